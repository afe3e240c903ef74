"""
Postgres DataStore - direct database access for self-hosted deployments.

Rows are read and written with psycopg2 against the same tables the hosted
API exposes. Images are written below a local storage directory and served
from a configured public base URL.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2 import sql
from psycopg2.extras import RealDictCursor

from devduo.datastore.base import DataStore
from devduo.errors import DataStoreError

logger = logging.getLogger(__name__)

# Allowlists for dynamic SQL. Table and column names never come from user input directly
_TABLE_COLUMNS = {
    'contact_messages': {'id', 'name', 'email', 'subject', 'message', 'status', 'created_at'},
    'projects': {
        'id', 'title', 'description', 'category', 'project_url', 'technologies',
        'image_url', 'created_at',
    },
    'client_feedbacks': {
        'id', 'client_name', 'client_email', 'project_title', 'feedback', 'rating',
        'client_image_url', 'created_at',
    },
}
# Assigned by the database
_SERVER_COLUMNS = {'id', 'created_at'}


def _validate_columns(table: str, columns) -> None:
    """Raise ValueError for unknown tables or columns, or attempts to write server-assigned ones."""
    if table not in _TABLE_COLUMNS:
        raise ValueError(f"Unknown table: {table}")
    invalid = set(columns) - (_TABLE_COLUMNS[table] - _SERVER_COLUMNS)
    if invalid:
        raise ValueError(f"Invalid {table} fields: {invalid}")


class PostgresDataStore(DataStore):
    """DataStore talking straight to Postgres, with images on local disk."""

    def __init__(
        self,
        dsn: str,
        storage_path: str = 'uploads',
        public_url: str = '/storage',
        user_id: Optional[str] = None,
        role_table: str = 'user_roles',
    ):
        self.dsn = dsn
        self.storage_path = Path(storage_path)
        self.public_url = public_url.rstrip('/')
        self.user_id = user_id or None
        self.role_table = role_table

    @contextmanager
    def _cursor(self, operation: str, table: Optional[str] = None):
        """
        Yield a RealDictCursor inside one transaction.
        Commits on success, rolls back on any error; psycopg2 errors surface as DataStoreError.
        """
        conn = None
        try:
            conn = psycopg2.connect(self.dsn)
            cur = conn.cursor(cursor_factory=RealDictCursor)
            try:
                yield cur
            finally:
                cur.close()
            conn.commit()
        except Exception as e:
            if conn:
                conn.rollback()
                logger.debug(f"{operation}: transaction rolled back")
            if isinstance(e, psycopg2.Error):
                logger.error(f"{operation} on {table} failed: {e}")
                raise DataStoreError(f"{operation} failed: {e}", operation, table) from e
            raise
        finally:
            if conn:
                conn.close()

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

    def select(self, table: str, order_by: str = 'created_at', descending: bool = True) -> List[Dict[str, Any]]:
        if table not in _TABLE_COLUMNS or order_by not in _TABLE_COLUMNS[table]:
            raise ValueError(f"Cannot order {table} by {order_by}")

        query = sql.SQL("SELECT * FROM {} ORDER BY {} " + ('DESC' if descending else 'ASC')).format(
            sql.Identifier(table), sql.Identifier(order_by),
        )
        with self._cursor('select', table) as cur:
            cur.execute(query)
            rows = [dict(row) for row in cur.fetchall()]
        logger.debug(f"select {table}: {len(rows)} rows")
        return rows

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        _validate_columns(table, row.keys())
        columns = list(row.keys())
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(table),
            sql.SQL(', ').join(sql.Identifier(c) for c in columns),
            sql.SQL(', ').join(sql.Placeholder(c) for c in columns),
        )
        with self._cursor('insert', table) as cur:
            cur.execute(query, row)
            stored = dict(cur.fetchone())
        logger.info(f"Inserted {table} row {stored.get('id')}")
        return stored

    def update(self, table: str, record_id: str, changes: Dict[str, Any]) -> None:
        if not changes:
            return
        _validate_columns(table, changes.keys())
        assignments = sql.SQL(', ').join(
            sql.SQL("{} = {}").format(sql.Identifier(c), sql.Placeholder(c)) for c in changes
        )
        query = sql.SQL("UPDATE {} SET {} WHERE id = %(_record_id)s").format(sql.Identifier(table), assignments)
        with self._cursor('update', table) as cur:
            cur.execute(query, {**changes, '_record_id': record_id})
            if cur.rowcount == 0:
                raise DataStoreError(f"No {table} row with id {record_id}", 'update', table)
        logger.info(f"Updated {table} row {record_id}: {list(changes.keys())}")

    def delete(self, table: str, record_id: str) -> None:
        if table not in _TABLE_COLUMNS:
            raise ValueError(f"Unknown table: {table}")
        query = sql.SQL("DELETE FROM {} WHERE id = %s").format(sql.Identifier(table))
        with self._cursor('delete', table) as cur:
            cur.execute(query, (record_id,))
            if cur.rowcount == 0:
                raise DataStoreError(f"No {table} row with id {record_id}", 'delete', table)
        logger.info(f"Deleted {table} row {record_id}")

    # -------------------------------------------------------------------------
    # Object storage (local disk)
    # -------------------------------------------------------------------------

    def _object_path(self, bucket: str, path: str) -> Path:
        root = (self.storage_path / bucket).resolve()
        target = (root / path).resolve()
        if root not in target.parents:
            raise DataStoreError(f"Object path escapes bucket: {path}", 'upload', bucket)
        return target

    def upload_object(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        target = self._object_path(bucket, path)
        if target.exists():
            raise DataStoreError(f"Object already exists: {bucket}/{path}", 'upload', bucket)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"upload to {bucket}/{path} failed: {e}")
            raise DataStoreError(f"upload failed: {e}", 'upload', bucket) from e
        logger.info(f"File saved locally: {target}")

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_url}/{bucket}/{path}"

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    def get_current_user_role(self) -> Optional[str]:
        if not self.user_id:
            raise DataStoreError("No signed-in user: set ADMIN_USER_ID", 'get_current_user_role')

        query = sql.SQL("SELECT role FROM {} WHERE user_id = %s LIMIT 1").format(sql.Identifier(self.role_table))
        with self._cursor('get_current_user_role', self.role_table) as cur:
            cur.execute(query, (self.user_id,))
            row = cur.fetchone()
        return row['role'] if row else None
