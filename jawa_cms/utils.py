"""Shared utility functions used across the content core and route modules."""
import re
from datetime import datetime, timezone

import bleach
from flask import request

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off', ''}

ALLOWED_RICH_TEXT_TAGS = [
    'p', 'br', 'strong', 'em', 'b', 'i', 'u', 's', 'blockquote', 'code', 'pre',
    'ul', 'ol', 'li', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'a', 'img', 'hr', 'div', 'span',
]
ALLOWED_RICH_TEXT_ATTRIBUTES = {
    '*': ['class'],
    'a': ['href', 'title', 'target', 'rel'],
    'img': ['src', 'alt', 'title', 'width', 'height'],
}
ALLOWED_RICH_TEXT_PROTOCOLS = ['http', 'https', 'mailto']


def utc_now_naive():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clean_text(value, max_length=255):
    return (value or '').strip()[:max_length]


def escape_like(value):
    """Escape SQL LIKE wildcard characters."""
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def is_valid_email(value):
    return bool(EMAIL_RE.match(value or ''))


def parse_bool(value):
    """Return True/False for form and JSON booleans, None when unrecognised."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    candidate = str(value if value is not None else '').strip().lower()
    if candidate in TRUE_VALUES:
        return True
    if candidate in FALSE_VALUES:
        return False
    return None


def sanitize_html(value, max_length=100000):
    html = (value or '').strip()
    cleaned = bleach.clean(
        html,
        tags=ALLOWED_RICH_TEXT_TAGS,
        attributes=ALLOWED_RICH_TEXT_ATTRIBUTES,
        protocols=ALLOWED_RICH_TEXT_PROTOCOLS,
        strip=True,
    )
    return cleaned[:max_length]


def isoformat(value):
    return value.isoformat() if value else None


def request_payload():
    """Submitted fields from a JSON body or a form post, minus the CSRF token."""
    if request.is_json:
        data = request.get_json(silent=True)
        payload = dict(data) if isinstance(data, dict) else {}
    else:
        payload = request.form.to_dict()
    payload.pop('_csrf_token', None)
    return payload
