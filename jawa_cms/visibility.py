"""Which records the public reader may see.

Gates are applied as query criteria so gated rows are never fetched for a
public request.
"""
from .models import NewsletterSubscriber

# kind key -> boolean column that must be true for public display
PUBLIC_GATES = {
    'blog_post': 'is_published',
    'testimonial': 'approved',
    'faq': 'is_active',
}

# Subscribers are never displayed; is_active only selects the mailing list.
OUTBOUND_GATES = {
    'newsletter_subscriber': 'is_active',
}


def gate_field(kind_key):
    return PUBLIC_GATES.get(kind_key)


def is_visible(kind_key, record):
    field = gate_field(kind_key)
    if field is None:
        return True
    return bool(getattr(record, field, False))


def visibility_clause(kind_key, model):
    """SQL criterion restricting ``model`` to publicly visible rows, or None."""
    field = gate_field(kind_key)
    if field is None:
        return None
    return getattr(model, field).is_(True)


def mailing_list():
    """Active subscribers, the only audience for outbound communication."""
    return NewsletterSubscriber.query.filter(
        NewsletterSubscriber.is_active.is_(True),
    ).order_by(NewsletterSubscriber.subscribed_at.desc(), NewsletterSubscriber.id.desc()).all()
