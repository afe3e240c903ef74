"""
DataStore interface.

The engine only talks to the backend through this narrow contract: row
select/insert/update/delete, object upload with public URL lookup, and the
acting user's role. Every failure surfaces as DataStoreError.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class DataStore(ABC):
    """Row storage plus object storage for the admin back-office."""

    @abstractmethod
    def select(self, table: str, order_by: str = 'created_at', descending: bool = True) -> List[Dict[str, Any]]:
        """Return every row of a table, ordered by one column."""

    @abstractmethod
    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row and return the stored row (with id and created_at)."""

    @abstractmethod
    def update(self, table: str, record_id: str, changes: Dict[str, Any]) -> None:
        """Patch the row with the given id."""

    @abstractmethod
    def delete(self, table: str, record_id: str) -> None:
        """Delete the row with the given id."""

    @abstractmethod
    def upload_object(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Store a binary object. Existing paths are never overwritten."""

    @abstractmethod
    def get_public_url(self, bucket: str, path: str) -> str:
        """Public URL for an uploaded object. No request is made."""

    @abstractmethod
    def get_current_user_role(self) -> Optional[str]:
        """Role of the signed-in user, or None if they have no role row."""
