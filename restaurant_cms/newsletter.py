"""
Visitor submissions: newsletter signups and contact messages.

Newsletter signups are written to Supabase first. If the write is rejected
(RLS policy, outage, anything) the signup is kept in the local fallback
store instead, so a submission is never lost and never stored twice.
Contact messages have no fallback; a failed write is reported to the visitor.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.utils import timezone

from .exceptions import FallbackStoreError, SubmissionValidationError, SupabaseAPIError
from .metadata import DEFAULT_STATUS, DEFAULT_SUBJECT
from .supabase import SupabaseClient
from .storage import SubscriptionStore

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_TABLE = 'member_subscriptions'
CONTACT_MESSAGES_TABLE = 'contact_messages'

INVALID_EMAIL_MESSAGE = 'Please enter a valid email address'
MISSING_FIELDS_MESSAGE = 'Please fill in all required fields'


class SubscriptionOutcome(enum.Enum):
    REMOTE = 'remote'
    LOCAL = 'local'
    DUPLICATE = 'duplicate'
    FAILED = 'failed'


# (level, title, description) per outcome, rendered as a notification
OUTCOME_MESSAGES = {
    SubscriptionOutcome.REMOTE: (
        'success', 'Success!', 'Thank you for subscribing to our newsletter!'),
    SubscriptionOutcome.LOCAL: (
        'success', 'Success!', 'Thank you for subscribing to our newsletter! (Stored locally)'),
    SubscriptionOutcome.DUPLICATE: (
        'error', 'Already Subscribed', 'This email is already subscribed to our newsletter'),
    SubscriptionOutcome.FAILED: (
        'error', 'Error', 'Failed to subscribe. Please try again later.'),
}


@dataclass
class SubscriptionResult:
    outcome: SubscriptionOutcome
    record: Optional[Dict[str, Any]] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome in (SubscriptionOutcome.REMOTE, SubscriptionOutcome.LOCAL)

    @property
    def notification(self):
        return OUTCOME_MESSAGES[self.outcome]


def is_valid_email(email: str) -> bool:
    """Minimal check used by the public forms: non-empty and contains '@'"""
    return bool(email) and '@' in email


def _subscription_record(email: str) -> Dict[str, Any]:
    return {
        'email': email,
        'is_subscribed': True,
        'subscribed_at': timezone.now().isoformat(),
    }


def subscribe(email: str, client: SupabaseClient, store: SubscriptionStore) -> SubscriptionResult:
    """
    Subscribe an email to the newsletter.

    Makes exactly one remote insert attempt. On any remote failure the
    signup goes to the fallback store, unless the store already holds an
    active subscription for the same email. A unique violation means
    Supabase already has the email and is reported as a duplicate.

    Raises:
        SubmissionValidationError: If the email fails the minimal format check
    """
    email = (email or '').strip()
    if not is_valid_email(email):
        raise SubmissionValidationError(INVALID_EMAIL_MESSAGE, fields=['email'])

    record = _subscription_record(email)
    try:
        rows = client.insert(SUBSCRIPTIONS_TABLE, record, returning=False)
        logger.info(f"Subscribed {email} in Supabase")
        return SubscriptionResult(SubscriptionOutcome.REMOTE, rows[0] if rows else record)
    except SupabaseAPIError as e:
        if e.is_unique_violation:
            logger.info(f"{email} is already subscribed in Supabase")
            return SubscriptionResult(SubscriptionOutcome.DUPLICATE)
        logger.warning(
            f"Remote subscription failed for {email} "
            f"(status={e.status_code}, policy={e.is_policy_violation}), using local fallback"
        )

    try:
        existing = store.get(email)
        if existing is not None and existing.get('is_subscribed'):
            logger.info(f"{email} already present in local fallback store")
            return SubscriptionResult(SubscriptionOutcome.DUPLICATE, existing)

        store.append(record)
    except FallbackStoreError as e:
        logger.error(f"Local fallback failed for {email}: {e}", exc_info=True)
        return SubscriptionResult(SubscriptionOutcome.FAILED)

    logger.info(f"Stored subscription for {email} locally")
    return SubscriptionResult(SubscriptionOutcome.LOCAL, record)


def flush_local_subscriptions(client: SupabaseClient, store: SubscriptionStore) -> Dict[str, int]:
    """
    Push locally stored subscriptions to Supabase.

    Entries are removed from the local store once Supabase holds them, either
    because the insert succeeded or because the email already exists there.
    Entries that still fail stay local. The store is re-read before the
    removal, so signups that fell back while the flush was running are kept.

    Returns:
        Counts: {'pushed': int, 'already_remote': int, 'kept': int}
    """
    counts = {'pushed': 0, 'already_remote': 0, 'kept': 0}
    reconciled = set()

    for entry in store.list():
        try:
            client.insert(SUBSCRIPTIONS_TABLE, {
                'email': entry['email'],
                'is_subscribed': entry.get('is_subscribed', True),
                'subscribed_at': entry.get('subscribed_at') or timezone.now().isoformat(),
            })
            counts['pushed'] += 1
            reconciled.add(entry['email'])
        except SupabaseAPIError as e:
            if e.is_unique_violation:
                counts['already_remote'] += 1
                reconciled.add(entry['email'])
            else:
                logger.warning(f"Could not push {entry.get('email')}: {e}")
                counts['kept'] += 1

    if reconciled:
        store.set([e for e in store.list() if e.get('email') not in reconciled])
    logger.info(f"Flushed local subscriptions: {counts}")
    return counts


def submit_contact_message(
    name: str,
    email: str,
    message: str,
    client: SupabaseClient,
    subject: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Store a contact form submission in the contact_messages table.

    Raises:
        SubmissionValidationError: If name, email or message is missing, or
            the email fails the minimal format check. Nothing is written.
        SupabaseAPIError: If the remote write fails. There is no local fallback.
    """
    name = (name or '').strip()
    email = (email or '').strip()
    message = (message or '').strip()

    missing = [f for f, v in (('name', name), ('email', email), ('message', message)) if not v]
    if missing:
        raise SubmissionValidationError(MISSING_FIELDS_MESSAGE, fields=missing)
    if not is_valid_email(email):
        raise SubmissionValidationError(INVALID_EMAIL_MESSAGE, fields=['email'])

    row = {
        'name': name,
        'email': email,
        'subject': (subject or '').strip() or DEFAULT_SUBJECT,
        'message': message,
        'status': DEFAULT_STATUS,
    }
    rows = client.insert(CONTACT_MESSAGES_TABLE, row, returning=False)
    logger.info(f"Stored contact message from {email}")
    return rows[0] if rows else row
