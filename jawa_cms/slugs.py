"""URL identity for addressable content.

Generation lives here and is pure: it never looks at the database. Uniqueness
is enforced by the repository when the record is written, which raises
``ConflictError`` on a duplicate.
"""
from slugify import slugify as _slugify

from .errors import ValidationError

SLUG_MAX_LENGTH = 300

# Static segments under /api/blog/ that a post slug would shadow.
RESERVED_POST_SLUGS = frozenset({'categories'})


def slugify(text):
    """Lower-case, strip diacritics, hyphenate non-word runs, trim hyphens."""
    return _slugify(text or '', max_length=SLUG_MAX_LENGTH)


def is_url_safe(slug):
    return bool(slug) and slugify(slug) == slug


def assign_slug(title, manual_slug=None, field='slug', reserved=()):
    """Return the slug to store for a record titled ``title``.

    A manual slug typed by the editor takes precedence but must already be
    URL-safe. Otherwise the slug is derived from the title. Slugs listed in
    ``reserved`` are refused either way.
    """
    manual = (manual_slug or '').strip()
    if manual:
        if not is_url_safe(manual):
            raise ValidationError(
                'Slug can only contain lowercase letters, numbers, and hyphens.',
                field=field,
            )
        slug = manual
    else:
        slug = slugify(title)
        if not slug:
            raise ValidationError('Unable to generate a valid slug from title.', field=field)
    if slug in reserved:
        raise ValidationError(f'The slug "{slug}" is reserved.', field=field)
    return slug
