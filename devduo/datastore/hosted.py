"""
Hosted DataStore - REST client for the site's managed backend.

Rows live behind a PostgREST-style API (/rest/v1/<table>), images in the
storage API (/storage/v1/object/<bucket>/<path>), and the signed-in admin is
resolved through the auth API (/auth/v1/user).
"""

import logging
import mimetypes
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from devduo.datastore.base import DataStore
from devduo.errors import DataStoreError

logger = logging.getLogger(__name__)

_CONNECT_TIMEOUT = 10
_RETURN_ROWS = {'Prefer': 'return=representation'}


def _error_detail(response) -> str:
    """Best-effort human message from an error response."""
    if response is None:
        return 'no response'
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ('message', 'error_description', 'msg', 'error'):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


class HostedDataStore(DataStore):
    """DataStore backed by the hosted REST, storage and auth APIs."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        role_table: str = 'user_roles',
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        if not base_url or not api_key:
            raise ValueError("HostedDataStore needs both a base URL and an API key")
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.access_token = access_token or None
        self.role_table = role_table
        self.timeout = timeout
        self.session = session or requests.Session()

    # -------------------------------------------------------------------------
    # HTTP plumbing
    # -------------------------------------------------------------------------

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        # Row-level security applies to the signed-in admin when a session token is present
        token = self.access_token or self.api_key
        headers = {
            'apikey': self.api_key,
            'Authorization': f"Bearer {token}",
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method: str, path: str, operation: str, table: Optional[str] = None,
                 headers: Optional[Dict[str, str]] = None, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            logger.debug(f"{operation}: {method} {path}")
            response = self.session.request(
                method, url,
                headers=self._headers(headers),
                timeout=(_CONNECT_TIMEOUT, self.timeout),
                **kwargs,
            )
            response.raise_for_status()
            return response
        except requests.exceptions.HTTPError as e:
            detail = _error_detail(e.response)
            logger.error(f"{operation} on {table or path} rejected: {detail}")
            raise DataStoreError(f"{operation} failed: {detail}", operation, table) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"{operation} on {table or path} failed: {e}")
            raise DataStoreError(f"{operation} failed: {e}", operation, table) from e

    def _rows(self, response, operation: str, table: Optional[str]) -> List[Dict[str, Any]]:
        try:
            rows = response.json()
        except ValueError as e:
            raise DataStoreError(f"Unexpected {operation} response: {e}", operation, table) from e
        if not isinstance(rows, list):
            raise DataStoreError(f"Unexpected {operation} response: expected a list of rows", operation, table)
        return rows

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

    def select(self, table: str, order_by: str = 'created_at', descending: bool = True) -> List[Dict[str, Any]]:
        direction = 'desc' if descending else 'asc'
        response = self._request(
            'GET', f"/rest/v1/{table}", 'select', table,
            params={'select': '*', 'order': f"{order_by}.{direction}"},
        )
        rows = self._rows(response, 'select', table)
        logger.debug(f"select {table}: {len(rows)} rows")
        return rows

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        response = self._request(
            'POST', f"/rest/v1/{table}", 'insert', table,
            headers=_RETURN_ROWS, json=[row],
        )
        rows = self._rows(response, 'insert', table)
        if not rows:
            raise DataStoreError(f"insert into {table} returned no row", 'insert', table)
        logger.info(f"Inserted {table} row {rows[0].get('id')}")
        return rows[0]

    def update(self, table: str, record_id: str, changes: Dict[str, Any]) -> None:
        response = self._request(
            'PATCH', f"/rest/v1/{table}", 'update', table,
            headers=_RETURN_ROWS, params={'id': f"eq.{record_id}"}, json=changes,
        )
        if not self._rows(response, 'update', table):
            raise DataStoreError(f"No {table} row with id {record_id}", 'update', table)
        logger.info(f"Updated {table} row {record_id}: {list(changes.keys())}")

    def delete(self, table: str, record_id: str) -> None:
        response = self._request(
            'DELETE', f"/rest/v1/{table}", 'delete', table,
            headers=_RETURN_ROWS, params={'id': f"eq.{record_id}"},
        )
        if not self._rows(response, 'delete', table):
            raise DataStoreError(f"No {table} row with id {record_id}", 'delete', table)
        logger.info(f"Deleted {table} row {record_id}")

    # -------------------------------------------------------------------------
    # Object storage
    # -------------------------------------------------------------------------

    def upload_object(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        if not content_type:
            content_type, _ = mimetypes.guess_type(path)
        self._request(
            'POST', f"/storage/v1/object/{bucket}/{quote(path)}", 'upload', bucket,
            headers={'Content-Type': content_type or 'application/octet-stream', 'x-upsert': 'false'},
            data=data,
        )
        logger.info(f"Uploaded {len(data)} bytes to {bucket}/{path}")

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{quote(path)}"

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    def get_current_user_role(self) -> Optional[str]:
        if not self.access_token:
            raise DataStoreError(
                "No signed-in user: set DATASTORE_ACCESS_TOKEN to an admin session token",
                'get_current_user_role',
            )

        response = self._request('GET', "/auth/v1/user", 'get_current_user_role')
        try:
            user_id = response.json()['id']
        except (ValueError, KeyError, TypeError) as e:
            raise DataStoreError(f"Unexpected auth response: {e}", 'get_current_user_role') from e

        response = self._request(
            'GET', f"/rest/v1/{self.role_table}", 'get_current_user_role', self.role_table,
            params={'select': 'role', 'user_id': f"eq.{user_id}"},
        )
        rows = self._rows(response, 'get_current_user_role', self.role_table)
        role = rows[0].get('role') if rows else None
        logger.debug(f"get_current_user_role: user {user_id} has role {role!r}")
        return role
