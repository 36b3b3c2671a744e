"""
CSV export of contact messages and newsletter subscribers.

Fields are wrapped in double quotes and joined with commas. Embedded double
quotes and newlines are written as-is, so a value containing ``"`` produces
a row that strict CSV readers split differently. Spreadsheet imports of the
files this module has always produced depend on the format, so it is kept.
"""
from datetime import datetime

MESSAGES_HEADER = 'Name,Email,Subject,Message,Timestamp,Status'
SUBSCRIBERS_HEADER = 'Email,Subscription Status,Subscribed Date'


def _field(value):
    if value is None:
        value = ''
    elif isinstance(value, datetime):
        value = value.isoformat()
    return f'"{value}"'


def _row(values):
    return ','.join(_field(v) for v in values)


def messages_csv(messages):
    """Build the contact messages export from already loaded rows"""
    rows = [
        _row([
            m.get('name'),
            m.get('email'),
            m.get('subject'),
            m.get('message'),
            m.get('created_at'),
            m.get('status'),
        ])
        for m in messages
    ]
    return MESSAGES_HEADER + '\n' + '\n'.join(rows)


def subscribers_csv(subscribers):
    """Build the newsletter subscribers export from already loaded rows"""
    rows = [
        _row([
            s.get('email'),
            'Subscribed' if s.get('is_subscribed') else 'Unsubscribed',
            s.get('subscribed_at'),
        ])
        for s in subscribers
    ]
    return SUBSCRIBERS_HEADER + '\n' + '\n'.join(rows)
