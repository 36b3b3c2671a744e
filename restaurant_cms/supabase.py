"""Supabase client wrapper for Restaurant CMS data access"""
import hashlib
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any, Union

import requests
from django.core.cache import cache
from django.conf import settings

from .exceptions import ConfigurationError, SupabaseAPIError
from .tokens import generate_jwt

logger = logging.getLogger(__name__)

CACHE_PREFIX = 'restaurant_cms'
CACHE_VERSION_KEY = f'{CACHE_PREFIX}_cache_version'


def eq(value: Any) -> str:
    """Build a PostgREST equality filter (``eq.<value>``)"""
    if isinstance(value, bool):
        value = 'true' if value else 'false'
    return f'eq.{value}'


def parse_timestamp(value: Any) -> Any:
    """
    Convert an ISO timestamp string returned by PostgREST to a datetime.

    Values that are not strings, or that do not parse, are returned unchanged.
    """
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return value
    return value


class SupabaseClient:
    """
    Wrapper around Supabase PostgREST API.

    Handles authentication, caching of public reads, and error handling.

    A public client sends the anon key as bearer token, so every write it
    makes is subject to the anonymous row-level-security policies. A
    privileged client (admin views) sends a service JWT instead.
    """

    def __init__(self, privileged: bool = False):
        """Initialize Supabase client with configuration from Django settings"""
        config = getattr(settings, 'RESTAURANT_CMS', {})
        self.url = config.get('SUPABASE_URL')
        self.anon_key = config.get('ANON_KEY')
        self.service_jwt = config.get('SERVICE_JWT')
        self.jwt_secret = config.get('JWT_SECRET')
        self.jwt_expiry = config.get('JWT_EXPIRY_SECONDS', 3600)
        self.schema = config.get('SCHEMA', 'public')
        self.cache_timeout = config.get('CACHE_TIMEOUT', 300)  # 5 minutes default
        self.request_timeout = config.get('REQUEST_TIMEOUT', 30)
        self.privileged = privileged

        if self.is_configured():
            self.base_url = f"{self.url.rstrip('/')}/rest/v1"
            self.headers = {
                'apikey': self.anon_key,
                'Authorization': f'Bearer {self._bearer_token()}',
                'Content-Type': 'application/json',
                'Accept-Profile': self.schema,
                'Content-Profile': self.schema,
            }
        else:
            self.base_url = None
            self.headers = {}

    def is_configured(self) -> bool:
        """Check if client is properly configured"""
        if not (self.url and self.anon_key):
            return False
        if self.privileged:
            return bool(self.service_jwt or self.jwt_secret)
        return True

    def _bearer_token(self) -> str:
        if not self.privileged:
            return self.anon_key
        if self.service_jwt:
            return self.service_jwt
        return generate_jwt(self.jwt_secret, role='service_role', expiry_seconds=self.jwt_expiry)

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Any = None,
        prefer: Optional[str] = None,
    ) -> requests.Response:
        """
        Make a request to Supabase PostgREST API

        Args:
            method: HTTP method
            table: Table name (e.g., 'menu_items')
            params: Query parameters (PostgREST filters, select, order, limit)
            payload: JSON body for writes
            prefer: Value of the PostgREST ``Prefer`` header

        Returns:
            The successful response

        Raises:
            ConfigurationError: If client is not properly configured
            SupabaseAPIError: If the request fails or the API rejects it
        """
        if not self.is_configured():
            raise ConfigurationError("Restaurant CMS Supabase client is not configured")

        url = f"{self.base_url}/{table}"
        headers = dict(self.headers)
        if prefer:
            headers['Prefer'] = prefer

        try:
            response = requests.request(
                method,
                url,
                headers=headers,
                params=params,
                json=payload,
                timeout=self.request_timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Supabase API request failed: {e}")
            raise SupabaseAPIError(f"API request failed: {str(e)}")

        if not response.ok:
            raise self._error_from_response(response)
        return response

    def _error_from_response(self, response: requests.Response) -> SupabaseAPIError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get('message') or response.reason or f"HTTP {response.status_code}"
        code = body.get('code')
        logger.error(f"Supabase API error {response.status_code} ({code}): {message}")
        return SupabaseAPIError(
            f"API request failed: {message}",
            status_code=response.status_code,
            code=code,
        )

    @staticmethod
    def _rows(response: requests.Response) -> List[Dict[str, Any]]:
        if not response.content:
            return []
        data = response.json()
        if isinstance(data, dict):
            return [data]
        return data

    def select(
        self,
        table: str,
        filters: Optional[Dict[str, str]] = None,
        columns: str = '*',
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch rows from a table.

        Args:
            table: Table name
            filters: PostgREST filters, e.g. {'status': 'eq.published'}
            columns: Columns to select
            order: PostgREST order clause, e.g. 'published_at.desc'
            limit: Maximum number of rows

        Returns:
            List of row dicts

        Raises:
            ConfigurationError: If client is not properly configured
            SupabaseAPIError: If API call fails
        """
        params = {'select': columns}
        params.update(filters or {})
        if order:
            params['order'] = order
        if limit is not None:
            params['limit'] = str(limit)

        logger.debug(f"Selecting from {table} ({params})")
        return self._rows(self._request('GET', table, params=params))

    def select_one(self, table: str, filters: Optional[Dict[str, str]] = None) -> Optional[Dict[str, Any]]:
        """Fetch the first matching row, or None when there is none"""
        rows = self.select(table, filters=filters, limit=1)
        return rows[0] if rows else None

    def insert(
        self,
        table: str,
        rows: Union[Dict[str, Any], List[Dict[str, Any]]],
        returning: bool = True,
    ) -> List[Dict[str, Any]]:
        """
        Insert one or more rows.

        Args:
            table: Table name
            rows: One row dict or a list of them
            returning: Ask for the stored rows back. Anonymous callers must
                pass False on tables they are not allowed to SELECT from,
                otherwise RLS rejects the whole insert.

        Returns:
            The inserted rows as stored by the database (empty when
            returning is False)

        Raises:
            ConfigurationError: If client is not properly configured
            SupabaseAPIError: If API call fails (including RLS rejection)
        """
        if isinstance(rows, dict):
            rows = [rows]

        logger.info(f"Inserting {len(rows)} row(s) into {table}")
        prefer = 'return=representation' if returning else 'return=minimal'
        response = self._request('POST', table, payload=rows, prefer=prefer)
        self.invalidate_cache()
        return self._rows(response)

    def update(self, table: str, values: Dict[str, Any], filters: Dict[str, str]) -> List[Dict[str, Any]]:
        """
        Update rows matching filters.

        An empty filter dict is refused rather than updating the whole table.

        Returns:
            The updated rows
        """
        if not filters:
            raise ValueError(f"Refusing to update {table} without filters")

        logger.info(f"Updating {table} where {filters}")
        response = self._request('PATCH', table, params=dict(filters), payload=values,
                                 prefer='return=representation')
        self.invalidate_cache()
        return self._rows(response)

    def delete(self, table: str, filters: Dict[str, str]) -> List[Dict[str, Any]]:
        """
        Delete rows matching filters.

        An empty filter dict is refused rather than emptying the whole table.

        Returns:
            The deleted rows
        """
        if not filters:
            raise ValueError(f"Refusing to delete from {table} without filters")

        logger.info(f"Deleting from {table} where {filters}")
        response = self._request('DELETE', table, params=dict(filters), prefer='return=representation')
        self.invalidate_cache()
        return self._rows(response)

    def count(self, table: str, filters: Optional[Dict[str, str]] = None) -> int:
        """
        Count rows using PostgREST exact counting.

        The total is read from the ``Content-Range`` header (``0-24/25``).
        """
        params = {'select': '*'}
        params.update(filters or {})
        response = self._request('HEAD', table, params=params, prefer='count=exact')

        content_range = response.headers.get('Content-Range', '')
        total = content_range.rsplit('/', 1)[-1]
        try:
            return int(total)
        except ValueError:
            return 0

    # Cached reads for public pages

    def _cache_key(self, table: str, filters, order, limit) -> str:
        raw = f"{table}|{sorted((filters or {}).items())}|{order}|{limit}"
        return hashlib.md5(raw.encode()).hexdigest()

    def cached_select(
        self,
        table: str,
        filters: Optional[Dict[str, str]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Same as select() but served from the Django cache when possible.

        Every successful fetch is also kept as a "last known" copy without
        expiry, so views can show stale data when the API is unreachable.

        Raises:
            ConfigurationError: If client is not properly configured
            SupabaseAPIError: If API call fails
        """
        digest = self._cache_key(table, filters, order, limit)
        version = cache.get(CACHE_VERSION_KEY, 0)
        cache_key = f'{CACHE_PREFIX}_{version}_{digest}'

        cached = cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {table}: {cache_key}")
            return cached

        rows = self.select(table, filters=filters, order=order, limit=limit)
        cache.set(cache_key, rows, self.cache_timeout)
        cache.set(f'{CACHE_PREFIX}_last_{digest}', rows, None)
        logger.debug(f"Cached {table}: {cache_key}")
        return rows

    def last_known(
        self,
        table: str,
        filters: Optional[Dict[str, str]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Optional[List[Dict[str, Any]]]:
        """Return the last successfully fetched rows for a cached query, if any"""
        digest = self._cache_key(table, filters, order, limit)
        return cache.get(f'{CACHE_PREFIX}_last_{digest}')

    def invalidate_cache(self) -> None:
        """Expire every cached public read by bumping the cache version"""
        version = cache.get(CACHE_VERSION_KEY, 0)
        cache.set(CACHE_VERSION_KEY, version + 1, None)
