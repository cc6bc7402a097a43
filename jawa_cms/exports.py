"""Newsletter subscriber CSV export.

The format matches what the newsletter team already imports: French headers,
dd/mm/YYYY dates, Actif/Inactif status, plain comma joins. Values are not
quoted, so a comma inside a name or source shifts the columns.
"""
from .repository import ContentRepository
from .utils import utc_now_naive

CSV_HEADER = ('Email', 'Nom', 'Date', 'Statut', 'Source')
STATUS_ACTIVE = 'Actif'
STATUS_INACTIVE = 'Inactif'


def subscriber_row(subscriber):
    return [
        subscriber.email or '',
        subscriber.name or '',
        subscriber.subscribed_at.strftime('%d/%m/%Y') if subscriber.subscribed_at else '',
        STATUS_ACTIVE if subscriber.is_active else STATUS_INACTIVE,
        subscriber.source or '',
    ]


def subscribers_csv(subscribers=None):
    if subscribers is None:
        subscribers = ContentRepository('newsletter_subscriber').list()
    lines = [','.join(CSV_HEADER)]
    lines.extend(','.join(subscriber_row(subscriber)) for subscriber in subscribers)
    return '\n'.join(lines)


def export_filename(today=None):
    today = today or utc_now_naive().date()
    return f'newsletter_subscribers_{today.isoformat()}.csv'
