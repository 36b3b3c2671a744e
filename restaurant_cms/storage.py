"""
Local fallback storage for newsletter subscriptions.

When Supabase rejects a subscription (RLS misconfiguration, outage), the
entry is kept in one of these stores until it can be pushed upstream with
``flush_local_subscriptions``.

Stores hold a plain list of dicts: ``{email, is_subscribed, subscribed_at}``.
Reads and writes are not locked; two concurrent requests can interleave
their read-modify-write of the list and the later write wins.
"""
import logging
from typing import Dict, List, Optional, Any

from django.conf import settings
from django.core.cache import InvalidCacheBackendError, caches
from django.utils.module_loading import import_string

from .exceptions import FallbackStoreError

logger = logging.getLogger(__name__)

STORAGE_KEY = 'newsletter_subscriptions'
DEFAULT_STORE = 'restaurant_cms.storage.CacheSubscriptionStore'


class SubscriptionStore:
    """Interface of a fallback store. Subclasses implement list() and set()."""

    def list(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def set(self, entries: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def get(self, email: str) -> Optional[Dict[str, Any]]:
        for entry in self.list():
            if entry.get('email') == email:
                return entry
        return None

    def append(self, entry: Dict[str, Any]) -> None:
        entries = self.list()
        entries.append(entry)
        self.set(entries)

    def remove(self, email: str) -> None:
        self.set([e for e in self.list() if e.get('email') != email])

    def clear(self) -> None:
        self.set([])


class InMemorySubscriptionStore(SubscriptionStore):
    """Process-local list, used by tests and as a last resort"""

    def __init__(self, entries=None, request=None):
        self._entries = list(entries or [])

    def list(self):
        return [dict(e) for e in self._entries]

    def set(self, entries):
        self._entries = [dict(e) for e in entries]


class CacheSubscriptionStore(SubscriptionStore):
    """
    List kept under one key of a Django cache alias, shared by the whole site.

    Point ``FALLBACK_CACHE_ALIAS`` at a file-based or database cache to make
    it survive restarts.
    """

    def __init__(self, request=None):
        config = getattr(settings, 'RESTAURANT_CMS', {})
        alias = config.get('FALLBACK_CACHE_ALIAS', 'default')
        try:
            self.cache = caches[alias]
        except InvalidCacheBackendError as e:
            raise FallbackStoreError(f"Fallback cache alias '{alias}' is not configured") from e

    def list(self):
        try:
            entries = self.cache.get(STORAGE_KEY)
        except Exception as e:
            logger.error(f"Failed to read fallback subscriptions: {e}", exc_info=True)
            raise FallbackStoreError(f"Failed to read fallback subscriptions: {str(e)}")
        return list(entries or [])

    def set(self, entries):
        try:
            self.cache.set(STORAGE_KEY, list(entries), None)
        except Exception as e:
            logger.error(f"Failed to write fallback subscriptions: {e}", exc_info=True)
            raise FallbackStoreError(f"Failed to write fallback subscriptions: {str(e)}")


class SessionSubscriptionStore(SubscriptionStore):
    """List kept in the visitor's session, closest to browser local storage"""

    def __init__(self, request=None):
        if request is None or not hasattr(request, 'session'):
            raise FallbackStoreError("SessionSubscriptionStore needs a request with a session")
        self.session = request.session

    def list(self):
        return list(self.session.get(STORAGE_KEY, []))

    def set(self, entries):
        self.session[STORAGE_KEY] = list(entries)
        self.session.modified = True


def get_fallback_store(request=None) -> SubscriptionStore:
    """Instantiate the store configured by ``RESTAURANT_CMS['FALLBACK_STORE']``"""
    config = getattr(settings, 'RESTAURANT_CMS', {})
    store_class = import_string(config.get('FALLBACK_STORE', DEFAULT_STORE))
    return store_class(request=request)
