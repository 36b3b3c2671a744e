"""Admin access to visitor submissions: contact messages and subscribers."""
import logging
from typing import Any, Dict, List

from .metadata import DEFAULT_STATUS, DEFAULT_SUBJECT
from .newsletter import CONTACT_MESSAGES_TABLE, SUBSCRIPTIONS_TABLE
from .supabase import SupabaseClient, eq, parse_timestamp

logger = logging.getLogger(__name__)

READ_STATUS = 'read'


def normalize_message(row: Dict[str, Any]) -> Dict[str, Any]:
    """Fill display defaults for a contact_messages row"""
    message = dict(row)
    message['name'] = row.get('name') or 'Unknown'
    message['subject'] = row.get('subject') or DEFAULT_SUBJECT
    message['message'] = row.get('message') or ''
    message['status'] = row.get('status') or DEFAULT_STATUS
    message['created_at'] = parse_timestamp(row.get('created_at'))
    return message


def load_messages(client: SupabaseClient) -> List[Dict[str, Any]]:
    rows = client.select(CONTACT_MESSAGES_TABLE, order='created_at.desc')
    logger.debug(f"Loaded {len(rows)} contact messages")
    return [normalize_message(r) for r in rows]


def mark_message_read(client: SupabaseClient, message_id: str) -> None:
    """
    Set a message's status to read.

    A single conditional update by id; concurrent admins marking the same
    message converge on the same value.
    """
    client.update(CONTACT_MESSAGES_TABLE, {'status': READ_STATUS}, {'id': eq(message_id)})


def delete_message(client: SupabaseClient, message_id: str) -> None:
    client.delete(CONTACT_MESSAGES_TABLE, {'id': eq(message_id)})


def load_subscribers(client: SupabaseClient) -> List[Dict[str, Any]]:
    rows = client.select(
        SUBSCRIPTIONS_TABLE,
        filters={'is_subscribed': eq(True)},
        order='subscribed_at.desc',
    )
    for row in rows:
        row['subscribed_at'] = parse_timestamp(row.get('subscribed_at'))
    return rows


def delete_subscriber(client: SupabaseClient, subscription_id: str) -> None:
    client.delete(SUBSCRIPTIONS_TABLE, {'id': eq(subscription_id)})


def subscriber_stats(subscribers: List[Dict[str, Any]]) -> Dict[str, int]:
    return {
        'total': len(subscribers),
        'active': sum(1 for s in subscribers if s.get('is_subscribed')),
    }


def message_stats(messages: List[Dict[str, Any]]) -> Dict[str, int]:
    return {
        'total': len(messages),
        'pending': sum(1 for m in messages if m.get('status') == DEFAULT_STATUS),
        'read': sum(1 for m in messages if m.get('status') == READ_STATUS),
    }
