import pytest

from restaurant_cms.exceptions import FallbackStoreError, SubmissionValidationError, SupabaseAPIError
from restaurant_cms.newsletter import (
    OUTCOME_MESSAGES,
    SubscriptionOutcome,
    flush_local_subscriptions,
    submit_contact_message,
    subscribe,
)
from restaurant_cms.storage import InMemorySubscriptionStore

from .conftest import FakeSupabaseClient


class BrokenStore(InMemorySubscriptionStore):
    def list(self):
        raise FallbackStoreError("cache down")


# -- subscribe ---------------------------------------------------------------

def test_subscribe_remote_success_writes_only_remote():
    client = FakeSupabaseClient()
    store = InMemorySubscriptionStore()

    result = subscribe('new@example.com', client, store)

    assert result.outcome is SubscriptionOutcome.REMOTE
    assert result.succeeded
    rows = client.tables['member_subscriptions']
    assert len(rows) == 1
    assert rows[0]['email'] == 'new@example.com'
    assert rows[0]['is_subscribed'] is True
    assert rows[0]['subscribed_at']
    assert store.list() == []


def test_subscribe_remote_failure_falls_back_to_local_store():
    client = FakeSupabaseClient(fail_inserts=True)
    store = InMemorySubscriptionStore()

    result = subscribe('new@example.com', client, store)

    assert result.outcome is SubscriptionOutcome.LOCAL
    assert result.succeeded
    assert 'member_subscriptions' not in client.tables
    [entry] = store.list()
    assert entry['email'] == 'new@example.com'
    assert entry['is_subscribed'] is True


def test_subscribe_twice_against_failing_remote_reports_duplicate():
    client = FakeSupabaseClient(fail_inserts=True)
    store = InMemorySubscriptionStore()

    first = subscribe('new@example.com', client, store)
    second = subscribe('new@example.com', client, store)

    assert first.outcome is SubscriptionOutcome.LOCAL
    assert second.outcome is SubscriptionOutcome.DUPLICATE
    assert not second.succeeded
    assert len(store.list()) == 1


def test_subscribe_makes_a_single_remote_attempt():
    client = FakeSupabaseClient(fail_inserts=True)

    subscribe('new@example.com', client, InMemorySubscriptionStore())

    assert len([c for c in client.calls if c[0] == 'insert']) == 1


def test_unsubscribed_local_entry_does_not_block_new_subscription():
    store = InMemorySubscriptionStore([
        {'email': 'back@example.com', 'is_subscribed': False, 'subscribed_at': '2024-01-01T00:00:00+00:00'},
    ])

    result = subscribe('back@example.com', FakeSupabaseClient(fail_inserts=True), store)

    assert result.outcome is SubscriptionOutcome.LOCAL


def test_subscribe_existing_remote_email_is_duplicate_and_not_stored_locally():
    client = FakeSupabaseClient(tables={
        'member_subscriptions': [{'id': 'a', 'email': 'old@example.com', 'is_subscribed': True}],
    })
    store = InMemorySubscriptionStore()

    result = subscribe('old@example.com', client, store)

    assert result.outcome is SubscriptionOutcome.DUPLICATE
    assert store.list() == []


@pytest.mark.parametrize('email', ['', '   ', 'not-an-email', None])
def test_subscribe_rejects_invalid_email_without_remote_call(email):
    client = FakeSupabaseClient()
    store = InMemorySubscriptionStore()

    with pytest.raises(SubmissionValidationError) as excinfo:
        subscribe(email, client, store)

    assert excinfo.value.fields == ['email']
    assert client.calls == []
    assert store.list() == []


def test_subscribe_strips_whitespace():
    client = FakeSupabaseClient()

    subscribe('  new@example.com ', client, InMemorySubscriptionStore())

    assert client.tables['member_subscriptions'][0]['email'] == 'new@example.com'


def test_subscribe_reports_failure_when_fallback_store_breaks():
    result = subscribe('new@example.com', FakeSupabaseClient(fail_inserts=True), BrokenStore())

    assert result.outcome is SubscriptionOutcome.FAILED
    assert result.notification == OUTCOME_MESSAGES[SubscriptionOutcome.FAILED]


def test_each_outcome_has_distinct_copy():
    descriptions = {description for _, _, description in OUTCOME_MESSAGES.values()}
    assert len(descriptions) == len(SubscriptionOutcome)
    assert '(Stored locally)' in OUTCOME_MESSAGES[SubscriptionOutcome.LOCAL][2]


# -- flush ---------------------------------------------------------------------

def test_flush_pushes_local_entries_and_empties_store():
    client = FakeSupabaseClient()
    store = InMemorySubscriptionStore([
        {'email': 'a@example.com', 'is_subscribed': True, 'subscribed_at': '2024-05-01T10:00:00+00:00'},
        {'email': 'b@example.com', 'is_subscribed': True, 'subscribed_at': '2024-05-02T10:00:00+00:00'},
    ])

    counts = flush_local_subscriptions(client, store)

    assert counts == {'pushed': 2, 'already_remote': 0, 'kept': 0}
    assert store.list() == []
    assert [r['email'] for r in client.tables['member_subscriptions']] == ['a@example.com', 'b@example.com']
    assert client.tables['member_subscriptions'][0]['subscribed_at'] == '2024-05-01T10:00:00+00:00'


def test_flush_drops_entries_already_in_supabase():
    client = FakeSupabaseClient(tables={
        'member_subscriptions': [{'id': 'x', 'email': 'a@example.com', 'is_subscribed': True}],
    })
    store = InMemorySubscriptionStore([{'email': 'a@example.com', 'is_subscribed': True}])

    counts = flush_local_subscriptions(client, store)

    assert counts == {'pushed': 0, 'already_remote': 1, 'kept': 0}
    assert store.list() == []
    assert len(client.tables['member_subscriptions']) == 1


def test_flush_keeps_entries_that_still_fail():
    store = InMemorySubscriptionStore([{'email': 'a@example.com', 'is_subscribed': True}])

    counts = flush_local_subscriptions(FakeSupabaseClient(fail_inserts=True), store)

    assert counts == {'pushed': 0, 'already_remote': 0, 'kept': 1}
    assert [e['email'] for e in store.list()] == ['a@example.com']


def test_flush_keeps_signups_stored_while_it_runs():
    store = InMemorySubscriptionStore([{'email': 'old@example.com', 'is_subscribed': True}])

    class SlowClient(FakeSupabaseClient):
        def insert(self, table, rows, returning=True):
            # a visitor falls back locally while this insert is in flight
            subscribe('visitor@example.com', FakeSupabaseClient(fail_inserts=True), store)
            return super().insert(table, rows, returning=returning)

    counts = flush_local_subscriptions(SlowClient(), store)

    assert counts['pushed'] == 1
    assert [e['email'] for e in store.list()] == ['visitor@example.com']


# -- contact messages -------------------------------------------------------

def test_contact_message_goes_to_dedicated_table():
    client = FakeSupabaseClient()

    submit_contact_message('Somchai', 'somchai@example.com', 'Table for four?', client)

    [row] = client.tables['contact_messages']
    assert row['name'] == 'Somchai'
    assert row['email'] == 'somchai@example.com'
    assert row['message'] == 'Table for four?'
    assert row['subject'] == 'Contact Form Submission'
    assert row['status'] == 'pending'
    assert 'member_subscriptions' not in client.tables


def test_contact_message_keeps_given_subject():
    client = FakeSupabaseClient()

    submit_contact_message('A', 'a@example.com', 'Hi', client, subject='Catering')

    assert client.tables['contact_messages'][0]['subject'] == 'Catering'


@pytest.mark.parametrize('name, email, message, missing', [
    ('', 'a@example.com', 'Hi', ['name']),
    ('A', '', 'Hi', ['email']),
    ('A', 'a@example.com', '  ', ['message']),
    ('', '', '', ['name', 'email', 'message']),
])
def test_contact_message_missing_fields_are_not_sent(name, email, message, missing):
    client = FakeSupabaseClient()

    with pytest.raises(SubmissionValidationError) as excinfo:
        submit_contact_message(name, email, message, client)

    assert excinfo.value.fields == missing
    assert client.calls == []


def test_contact_message_requires_at_sign():
    client = FakeSupabaseClient()

    with pytest.raises(SubmissionValidationError) as excinfo:
        submit_contact_message('A', 'a.example.com', 'Hi', client)

    assert excinfo.value.fields == ['email']
    assert client.calls == []


def test_contact_message_remote_failure_propagates_without_fallback():
    client = FakeSupabaseClient(fail_inserts=True)

    with pytest.raises(SupabaseAPIError):
        submit_contact_message('A', 'a@example.com', 'Hi', client)
