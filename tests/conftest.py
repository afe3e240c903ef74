"""
Fixtures shared by unit and BDD tests.

- The environment is pinned to the hosted backend before devduo.config is imported.
- FakeDataStore is an in-memory DataStore that records every call and can be
  told to fail specific operations.
- Event bus handlers are cleared after every test.
"""

import os

os.environ['DATASTORE_BACKEND'] = 'hosted'
os.environ['DATASTORE_URL'] = 'https://devduo.example.test'
os.environ['DATASTORE_KEY'] = 'test-key'
os.environ['PRIVILEGED_ROLES'] = 'admin,super_admin'

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from devduo.bus.events import bus
from devduo.datastore.base import DataStore
from devduo.errors import DataStoreError


# ---------------------------------------------------------------------------
# Sample rows, deliberately stored out of created_at order
# ---------------------------------------------------------------------------

MESSAGE_ROWS = [
    {'id': 'msg-2', 'name': 'Grace Hopper', 'email': 'grace@example.com', 'subject': 'Website redesign',
     'message': 'We need a new site.', 'status': 'read', 'created_at': '2025-11-02T09:30:00+00:00'},
    {'id': 'msg-1', 'name': 'Alan Turing', 'email': 'alan@example.com', 'subject': None,
     'message': 'Hello there.', 'status': None, 'created_at': '2025-10-01T12:00:00+00:00'},
    {'id': 'msg-3', 'name': 'Ada Lovelace', 'email': 'ada@example.com', 'subject': 'Mobile app quote',
     'message': 'Can you build an app?', 'status': 'new', 'created_at': '2025-12-24T18:45:00+00:00'},
]

PROJECT_ROWS = [
    {'id': 'prj-1', 'title': 'Bakery Storefront', 'description': 'Online shop for a bakery.',
     'category': 'web', 'project_url': 'https://bakery.example.com',
     'technologies': ['React', 'TypeScript', 'Tailwind CSS', 'Node.js'],
     'image_url': None, 'created_at': '2025-09-10T08:00:00+00:00'},
    {'id': 'prj-2', 'title': 'Trail Tracker', 'description': 'Hiking companion app.',
     'category': 'mobile', 'project_url': None, 'technologies': None,
     'image_url': 'https://cdn.example.test/project-images/projects/old.png',
     'created_at': '2025-11-20T15:00:00+00:00'},
]

TESTIMONIAL_ROWS = [
    {'id': 'tst-1', 'client_name': 'Margaret Hamilton', 'client_email': 'margaret@example.com',
     'project_title': 'Bakery Storefront', 'feedback': 'Shipped on time.', 'rating': 4,
     'client_image_url': None, 'created_at': '2025-10-05T10:00:00+00:00'},
]


class FakeDataStore(DataStore):
    """In-memory DataStore. Rows come back in storage order, not sorted."""

    def __init__(self, tables=None, role='admin'):
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.objects = {}
        self.role = role
        self.fail = set()
        self.calls = []
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _call(self, operation, *args):
        self.calls.append((operation,) + args)
        if operation in self.fail:
            raise DataStoreError(f"{operation} failed: service unavailable", operation)

    def operations(self):
        return [c[0] for c in self.calls]

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def _find(self, table, record_id):
        for row in self.rows(table):
            if row['id'] == record_id:
                return row
        return None

    def select(self, table, order_by='created_at', descending=True):
        self._call('select', table)
        return [dict(row) for row in self.rows(table)]

    def insert(self, table, row):
        self._call('insert', table, dict(row))
        self._clock += timedelta(seconds=1)
        stored = {**row, 'id': str(uuid.uuid4()), 'created_at': self._clock.isoformat()}
        self.rows(table).append(stored)
        return dict(stored)

    def update(self, table, record_id, changes):
        self._call('update', table, record_id, dict(changes))
        row = self._find(table, record_id)
        if row is None:
            raise DataStoreError(f"No {table} row with id {record_id}", 'update', table)
        row.update(changes)

    def delete(self, table, record_id):
        self._call('delete', table, record_id)
        row = self._find(table, record_id)
        if row is None:
            raise DataStoreError(f"No {table} row with id {record_id}", 'delete', table)
        self.rows(table).remove(row)

    def upload_object(self, bucket, path, data, content_type=None):
        self._call('upload_object', bucket, path)
        if (bucket, path) in self.objects:
            raise DataStoreError(f"Object already exists: {bucket}/{path}", 'upload', bucket)
        self.objects[(bucket, path)] = data

    def get_public_url(self, bucket, path):
        return f"https://cdn.example.test/{bucket}/{path}"

    def get_current_user_role(self):
        self._call('get_current_user_role')
        return self.role


@pytest.fixture
def store():
    """A FakeDataStore seeded with sample messages, projects and testimonials."""
    return FakeDataStore({
        'contact_messages': MESSAGE_ROWS,
        'projects': PROJECT_ROWS,
        'client_feedbacks': TESTIMONIAL_ROWS,
    })


@pytest.fixture
def empty_store():
    return FakeDataStore()


@pytest.fixture
def events():
    """Every event emitted during the test, as (name, data) tuples."""
    received = []
    bus.on('*', lambda data: received.append((data['event'], data)))
    return received


@pytest.fixture(autouse=True)
def clean_bus():
    yield
    bus.clear()
