"""Admin editing operations.

Every call takes an ``EditorContext``: proof that the caller went through the
auth collaborator. The context is never inspected beyond its presence.

Saving a record with an image is two steps, upload then write, with no
atomicity between them. A failed upload aborts before the write; a failed
write after a successful upload leaves the asset orphaned in its bucket.
"""
from flask import current_app
from sqlalchemy import func

from .errors import AuthError, UploadError, ValidationError
from .kinds import KINDS, get_kind
from .models import db, NewsletterSubscriber
from .repository import ContentRepository, get_singleton, update_singleton
from .storage import store_upload
from .utils import utc_now_naive


class EditorContext:
    __slots__ = ('token',)

    def __init__(self, token):
        self.token = token

    def __repr__(self):
        return '<EditorContext>'


def require_context(ctx):
    if not isinstance(ctx, EditorContext):
        raise AuthError()
    return ctx


def list_records(ctx, kind, **filters):
    require_context(ctx)
    return ContentRepository(kind).list(**filters)


def get_record(ctx, kind, record_id):
    require_context(ctx)
    return ContentRepository(kind).get(record_id)


def save_record(ctx, kind, fields, upload=None, record_id=None):
    """Create (``record_id`` None) or partially update a record.

    ``upload`` is an optional werkzeug ``FileStorage`` stored in the kind's
    bucket; its public URL is written to the kind's asset field.
    """
    require_context(ctx)
    kind = get_kind(kind)
    fields = dict(fields or {})

    asset = None
    if upload is not None:
        if not kind.asset_field:
            raise ValidationError(f'{kind.label} does not accept an image.', field='file')
        try:
            asset = store_upload(upload, kind.asset_namespace, field=kind.asset_field)
        except UploadError:
            current_app.logger.exception('Upload failed for %s; record not written', kind.key)
            raise
        fields[kind.asset_field] = asset.url

    try:
        if kind.singleton:
            return update_singleton(kind, fields)
        repository = ContentRepository(kind)
        if record_id is None:
            return repository.create(fields, defaults=kind.admin_defaults)
        return repository.update(record_id, fields)
    except Exception:
        if asset is not None:
            current_app.logger.warning(
                'Record write failed after upload; orphaned asset bucket=%s key=%s',
                asset.bucket,
                asset.key,
            )
        raise


def delete_record(ctx, kind, record_id, confirmed=False):
    require_context(ctx)
    if not confirmed:
        raise ValidationError('Deletion must be confirmed.', field='confirm')
    ContentRepository(kind).delete(record_id)


def set_approval(ctx, testimonial_id, approved):
    require_context(ctx)
    return ContentRepository('testimonial').update(testimonial_id, {'approved': approved})


def publish_post(ctx, post_id):
    require_context(ctx)
    return ContentRepository('blog_post').update(post_id, {'is_published': True})


def unpublish_post(ctx, post_id):
    require_context(ctx)
    return ContentRepository('blog_post').update(post_id, {'is_published': False})


def set_subscriber_status(ctx, subscriber_id, active):
    require_context(ctx)
    return ContentRepository('newsletter_subscriber').update(subscriber_id, {'is_active': active})


def read_singleton(ctx, kind):
    require_context(ctx)
    kind = get_kind(kind)
    if not kind.singleton:
        raise ValidationError(f'{kind.label} is not a singleton.')
    return get_singleton(kind)


def subscriber_stats(now=None):
    now = now or utc_now_naive()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    total = db.session.query(func.count(NewsletterSubscriber.id)).scalar() or 0
    active = db.session.query(func.count(NewsletterSubscriber.id)).filter(
        NewsletterSubscriber.is_active.is_(True),
    ).scalar() or 0
    this_month = db.session.query(func.count(NewsletterSubscriber.id)).filter(
        NewsletterSubscriber.subscribed_at >= month_start,
    ).scalar() or 0
    return {'total': total, 'active': active, 'this_month': this_month}


def dashboard(ctx):
    require_context(ctx)
    counts = {}
    for kind in KINDS.values():
        if kind.singleton:
            continue
        counts[kind.key] = db.session.query(func.count(kind.model.id)).scalar() or 0
    return {'counts': counts, 'subscribers': subscriber_stats()}
