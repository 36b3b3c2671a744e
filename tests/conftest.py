import uuid
from operator import itemgetter

import pytest
from django.core.cache import cache

from restaurant_cms.exceptions import SupabaseAPIError


def _as_filter_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    return str(value)


class FakeSupabaseClient:
    """
    In-memory stand-in for SupabaseClient with the same call surface.

    Understands the eq / neq / is.null / not.is.null filters used by the app and
    rejects duplicate active emails in member_subscriptions like the
    partial unique index does.
    """

    def __init__(self, tables=None, fail_inserts=False, fail_reads=False):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.fail_inserts = fail_inserts
        self.fail_reads = fail_reads
        self.stale = {}
        self.calls = []

    def is_configured(self):
        return True

    @staticmethod
    def _matches(row, filters):
        for column, expression in (filters or {}).items():
            op, _, value = expression.partition('.')
            actual = row.get(column)
            if op == 'eq' and _as_filter_value(actual) != value:
                return False
            if op == 'neq' and _as_filter_value(actual) == value:
                return False
            if op == 'not' and value == 'is.null' and actual is None:
                return False
            if op == 'is' and value == 'null' and actual is not None:
                return False
        return True

    def select(self, table, filters=None, columns='*', order=None, limit=None):
        self.calls.append(('select', table, filters))
        if self.fail_reads:
            raise SupabaseAPIError('API request failed: unavailable', status_code=503)
        rows = [dict(r) for r in self.tables.get(table, []) if self._matches(r, filters)]
        if order:
            column, _, direction = order.partition('.')
            rows.sort(key=itemgetter(column), reverse=direction == 'desc')
        if limit is not None:
            rows = rows[:limit]
        return rows

    def select_one(self, table, filters=None):
        rows = self.select(table, filters=filters, limit=1)
        return rows[0] if rows else None

    def cached_select(self, table, filters=None, order=None, limit=None):
        return self.select(table, filters=filters, order=order, limit=limit)

    def last_known(self, table, filters=None, order=None, limit=None):
        return self.stale.get(table)

    def insert(self, table, rows, returning=True):
        if isinstance(rows, dict):
            rows = [rows]
        self.calls.append(('insert', table, rows))
        if self.fail_inserts:
            raise SupabaseAPIError(
                'API request failed: new row violates row-level security policy',
                status_code=401, code='42501',
            )
        stored = []
        for row in rows:
            if table == 'member_subscriptions' and row.get('is_subscribed') and any(
                r.get('email') == row.get('email') and r.get('is_subscribed')
                for r in self.tables.get(table, [])
            ):
                raise SupabaseAPIError('API request failed: duplicate key', status_code=409, code='23505')
            row = dict(row)
            row.setdefault('id', str(uuid.uuid4()))
            self.tables.setdefault(table, []).append(row)
            stored.append(dict(row))
        return stored if returning else []

    def update(self, table, values, filters):
        self.calls.append(('update', table, values, filters))
        updated = []
        for row in self.tables.get(table, []):
            if self._matches(row, filters):
                row.update(values)
                updated.append(dict(row))
        return updated

    def delete(self, table, filters):
        self.calls.append(('delete', table, filters))
        kept, deleted = [], []
        for row in self.tables.get(table, []):
            (deleted if self._matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        return deleted

    def count(self, table, filters=None):
        if self.fail_reads:
            raise SupabaseAPIError('API request failed: unavailable', status_code=503)
        return len([r for r in self.tables.get(table, []) if self._matches(r, filters)])

    def writes(self):
        return [c for c in self.calls if c[0] in ('insert', 'update', 'delete')]


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def fake_client():
    return FakeSupabaseClient()


@pytest.fixture
def use_fake_client(monkeypatch):
    """Route every SupabaseClient() built by the views to one fake instance"""

    def install(client):
        factory = lambda *args, **kwargs: client  # noqa: E731
        monkeypatch.setattr('restaurant_cms.views.SupabaseClient', factory)
        monkeypatch.setattr('restaurant_cms.site_views.SupabaseClient', factory)
        return client

    return install
