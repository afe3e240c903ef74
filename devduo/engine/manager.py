"""
Entity Manager - List/Detail Controller
Holds the loaded records of one entity kind plus the selected record, and
keeps them in step with the DataStore. Every mutation either patches local
state from the store's own answer or reloads the list when the answer is a
failure.
"""

import dataclasses
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from devduo.bus.events import (
    bus, EVENT_RECORDS_LOADED, EVENT_RECORD_CREATED, EVENT_RECORD_UPDATED,
    EVENT_RECORD_DELETED, EVENT_DELETE_DENIED,
)
from devduo.config import config
from devduo.datastore.base import DataStore
from devduo.engine.entities import EntitySchema
from devduo.errors import AuthorizationError, DataStoreError, RecordNotFound, ValidationError

logger = logging.getLogger(__name__)


class Reconciliation(Enum):
    """What a mutation did to the local list."""
    UNCHANGED = 'unchanged'
    INSERTED = 'inserted'
    PATCHED = 'patched'
    REMOVED = 'removed'


def _newest_first(records: Iterable, key: str) -> List:
    # Records without a timestamp sort last
    return sorted(
        records,
        key=lambda r: (getattr(r, key) is not None, getattr(r, key) or datetime.min),
        reverse=True,
    )


class EntityManager:
    """List/detail state for one entity kind."""

    def __init__(self, schema: EntitySchema, datastore: DataStore, privileged_roles: Optional[Iterable[str]] = None):
        self.schema = schema
        self.datastore = datastore
        self.privileged_roles = frozenset(config.PRIVILEGED_ROLES if privileged_roles is None else privileged_roles)
        self.records: List = []
        self.selected = None
        self.error: Optional[Exception] = None
        self.last_change: Optional[Reconciliation] = None

    def __repr__(self):
        return f"EntityManager({self.schema.kind!r}, records={len(self.records)})"

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def load(self) -> List:
        """
        Replace the local list with every stored record, newest first.
        A failed fetch leaves the list empty and is kept on self.error; it is not raised.
        """
        try:
            rows = self.datastore.select(self.schema.table, order_by=self.schema.order_by, descending=True)
            self.records = _newest_first((self.schema.from_row(row) for row in rows), self.schema.order_by)
            self.error = None
        except DataStoreError as e:
            logger.error(f"Error fetching {self.schema.kind}: {e}")
            self.records = []
            self.error = e

        if self.selected is not None:
            self.selected = self.find(self.selected.id)

        bus.emit(EVENT_RECORDS_LOADED, {'kind': self.schema.kind, 'count': len(self.records)})
        return self.records

    def find(self, record_id: str):
        """Record with this id from the local list, or None."""
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def select(self, record_id: Optional[str]):
        """Select a record by id, or clear the selection with None."""
        if record_id is None:
            self.selected = None
            return None

        record = self.find(record_id)
        if record is None:
            raise RecordNotFound(f"No {self.schema.label} with id {record_id}")
        self.selected = record
        return record

    # -------------------------------------------------------------------------
    # Local state
    # -------------------------------------------------------------------------

    def _patch_local(self, record_id: str, changes: Dict[str, Any]) -> None:
        known = {f.name for f in dataclasses.fields(self.schema.model)}
        changes = {k: v for k, v in changes.items() if k in known}

        self.records = [
            dataclasses.replace(r, **changes) if r.id == record_id else r
            for r in self.records
        ]
        if self.selected is not None and self.selected.id == record_id:
            self.selected = dataclasses.replace(self.selected, **changes)

    def _fail(self, action: str, error: DataStoreError) -> None:
        logger.error(f"Error {action} {self.schema.label}: {error}")
        self.error = error

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create(self, payload: Dict[str, Any]):
        """
        Insert a record. The stored row echoed back by the store becomes the
        head of the local list; no second read is made. Returns the record;
        last_change becomes Reconciliation.INSERTED.
        """
        try:
            row = self.datastore.insert(self.schema.table, payload)
        except DataStoreError as e:
            self._fail('saving', e)
            raise

        record = self.schema.from_row(row)
        self.records = [record] + [r for r in self.records if r.id != record.id]
        self.error = None
        self.last_change = Reconciliation.INSERTED
        logger.info(f"Created {self.schema.label} {record.id}")
        bus.emit(EVENT_RECORD_CREATED, {'kind': self.schema.kind, 'record': record})
        return record

    def update(self, record_id: str, changes: Dict[str, Any]) -> Reconciliation:
        """Update a record and patch the local copy with the submitted fields."""
        try:
            self.datastore.update(self.schema.table, record_id, changes)
        except DataStoreError as e:
            self._fail('updating', e)
            raise

        self._patch_local(record_id, changes)
        self.error = None
        self.last_change = Reconciliation.PATCHED
        logger.info(f"Updated {self.schema.label} {record_id}: {list(changes.keys())}")
        bus.emit(EVENT_RECORD_UPDATED, {'kind': self.schema.kind, 'record_id': record_id, 'changes': changes})
        return Reconciliation.PATCHED

    def update_status(self, record_id: str, status: str) -> Reconciliation:
        """Move a record to another workflow status. Local state only changes on success."""
        if not self.schema.status_field:
            raise ValueError(f"{self.schema.label.capitalize()}s have no status")
        if status not in self.schema.statuses:
            raise ValidationError([f"Status must be one of: {', '.join(self.schema.statuses)}"])

        return self.update(record_id, {self.schema.status_field: status})

    def _check_delete_allowed(self, record_id: str) -> None:
        """Re-verify the acting user's role. Anything but a privileged role refuses the delete."""
        try:
            role = self.datastore.get_current_user_role()
        except DataStoreError as e:
            logger.warning(f"Delete of {self.schema.label} {record_id} refused: role check failed: {e}")
            bus.emit(EVENT_DELETE_DENIED, {'kind': self.schema.kind, 'record_id': record_id, 'role': None})
            raise AuthorizationError(f"Could not verify your role: {e}") from e

        if role not in self.privileged_roles:
            logger.warning(f"Delete of {self.schema.label} {record_id} refused for role {role!r}")
            bus.emit(EVENT_DELETE_DENIED, {'kind': self.schema.kind, 'record_id': record_id, 'role': role})
            raise AuthorizationError(
                f"Role {role or '(none)'} may not delete {self.schema.label}s",
                role=role,
            )

    def delete(self, record_id: str, confirm: Callable[[str], bool]) -> Reconciliation:
        """
        Delete a record after confirmation.

        Args:
            record_id: id of the record to delete
            confirm: asked with a prompt string; a falsy answer cancels with no remote call
        Returns: Reconciliation.UNCHANGED if cancelled, REMOVED on success
        Raises:
            AuthorizationError: role check failed; nothing was deleted
            DataStoreError: the delete failed; the list was reloaded before raising
        """
        if not confirm(f"Are you sure you want to delete this {self.schema.label}?"):
            logger.debug(f"Delete of {self.schema.label} {record_id} cancelled")
            self.last_change = Reconciliation.UNCHANGED
            return Reconciliation.UNCHANGED

        if self.schema.privileged_delete:
            self._check_delete_allowed(record_id)

        try:
            self.datastore.delete(self.schema.table, record_id)
        except DataStoreError as e:
            self._fail('deleting', e)
            # Resynchronize: the row may or may not be gone
            self.load()
            self.error = e
            raise

        self.records = [r for r in self.records if r.id != record_id]
        if self.selected is not None and self.selected.id == record_id:
            self.selected = None
        self.error = None
        self.last_change = Reconciliation.REMOVED
        logger.info(f"Deleted {self.schema.label} {record_id}")
        bus.emit(EVENT_RECORD_DELETED, {'kind': self.schema.kind, 'record_id': record_id})
        return Reconciliation.REMOVED
