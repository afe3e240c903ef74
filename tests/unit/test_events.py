"""
Unit tests for the EventBus (devduo/bus/events.py).
No mocking required, pure Python.
"""

import pytest
from devduo.bus.events import (
    EventBus, ALL_EVENTS, AUDITED_EVENTS,
    EVENT_RECORDS_LOADED, EVENT_RECORD_CREATED, EVENT_RECORD_UPDATED,
    EVENT_RECORD_DELETED, EVENT_DELETE_DENIED, EVENT_IMAGE_UPLOADED,
    EVENT_SUBMIT_FAILED, EVENT_LOADING_COMPLETE,
)

ALL_CONSTANTS = [
    EVENT_RECORDS_LOADED, EVENT_RECORD_CREATED, EVENT_RECORD_UPDATED,
    EVENT_RECORD_DELETED, EVENT_DELETE_DENIED, EVENT_IMAGE_UPLOADED,
    EVENT_SUBMIT_FAILED, EVENT_LOADING_COMPLETE,
]


@pytest.fixture
def bus():
    """Fresh EventBus for each test, never the shared singleton."""
    return EventBus()


# ---------------------------------------------------------------------------
# Basic emit / subscribe
# ---------------------------------------------------------------------------

def test_handler_called_on_emit(bus):
    received = []
    bus.on('test_event', lambda data: received.append(data))
    bus.emit('test_event', {'key': 'value'})
    assert received == [{'key': 'value'}]


def test_handlers_called_in_registration_order(bus):
    calls = []
    bus.on('evt', lambda d: calls.append('a'))
    bus.on('evt', lambda d: calls.append('b'))
    bus.emit('evt', {})
    assert calls == ['a', 'b']


def test_emit_no_handlers_is_silent(bus):
    bus.emit('unknown_event', {'x': 1})


def test_emit_default_data_is_empty_dict(bus):
    received = []
    bus.on('evt', lambda data: received.append(data))
    bus.emit('evt')
    assert received == [{}]


def test_registering_same_handler_twice_calls_it_once(bus):
    calls = []

    def handler(data):
        calls.append(data)

    bus.on('evt', handler)
    bus.on('evt', handler)
    bus.emit('evt', {'n': 1})
    assert calls == [{'n': 1}]


def test_events_are_isolated(bus):
    a_calls = []
    b_calls = []
    bus.on('event_a', lambda d: a_calls.append(True))
    bus.on('event_b', lambda d: b_calls.append(True))

    bus.emit('event_a', {})
    assert a_calls == [True]
    assert b_calls == []


# ---------------------------------------------------------------------------
# Wildcard handlers
# ---------------------------------------------------------------------------

def test_wildcard_receives_every_event_tagged_with_name(bus):
    received = []
    bus.on(ALL_EVENTS, lambda d: received.append(d))
    bus.emit(EVENT_RECORD_CREATED, {'kind': 'projects'})
    bus.emit(EVENT_RECORD_DELETED, {'kind': 'messages', 'record_id': 'm1'})
    assert received == [
        {'event': EVENT_RECORD_CREATED, 'kind': 'projects'},
        {'event': EVENT_RECORD_DELETED, 'kind': 'messages', 'record_id': 'm1'},
    ]


def test_wildcard_runs_after_specific_handlers(bus):
    order = []
    bus.on(ALL_EVENTS, lambda d: order.append('wildcard'))
    bus.on('evt', lambda d: order.append('specific'))
    bus.emit('evt', {})
    assert order == ['specific', 'wildcard']


def test_specific_handler_gets_untagged_data(bus):
    received = []
    bus.on('evt', lambda d: received.append(d))
    bus.on(ALL_EVENTS, lambda d: None)
    bus.emit('evt', {'x': 1})
    assert received == [{'x': 1}]


def test_wildcard_does_not_mutate_emitted_data(bus):
    data = {'x': 1}
    bus.on(ALL_EVENTS, lambda d: None)
    bus.emit('evt', data)
    assert data == {'x': 1}


# ---------------------------------------------------------------------------
# off()
# ---------------------------------------------------------------------------

def test_off_unregisters_handler(bus):
    calls = []

    def handler(data):
        calls.append(data)

    bus.on('evt', handler)
    bus.off('evt', handler)
    bus.emit('evt', {})
    assert calls == []


def test_off_unknown_handler_is_ignored(bus):
    bus.off('evt', lambda d: None)


# ---------------------------------------------------------------------------
# Error isolation
# ---------------------------------------------------------------------------

def test_handler_exception_does_not_propagate(bus):
    """A bad handler must not crash the bus or prevent other handlers from running."""
    good_calls = []

    def bad_handler(data):
        raise RuntimeError("handler exploded")

    bus.on('evt', bad_handler)
    bus.on('evt', lambda d: good_calls.append(True))
    bus.on(ALL_EVENTS, lambda d: good_calls.append('wildcard'))

    bus.emit('evt', {})
    assert good_calls == [True, 'wildcard']


def test_handler_exception_is_logged(bus, caplog):
    def bad_handler(data):
        raise RuntimeError("handler exploded")

    bus.on('evt', bad_handler)
    with caplog.at_level('ERROR', logger='devduo.bus.events'):
        bus.emit('evt', {})
    assert 'handler exploded' in caplog.text


# ---------------------------------------------------------------------------
# clear()
# ---------------------------------------------------------------------------

def test_clear_removes_all_handlers(bus):
    calls = []
    bus.on('evt', lambda d: calls.append(1))
    bus.on(ALL_EVENTS, lambda d: calls.append(2))
    bus.clear()
    bus.emit('evt', {})
    assert calls == []


# ---------------------------------------------------------------------------
# Event name constants (smoke test)
# ---------------------------------------------------------------------------

def test_event_constants_are_unique_strings():
    assert all(isinstance(c, str) and c for c in ALL_CONSTANTS)
    assert len(ALL_CONSTANTS) == len(set(ALL_CONSTANTS))
    assert ALL_EVENTS not in ALL_CONSTANTS


def test_audited_events_are_mutations():
    assert EVENT_RECORDS_LOADED not in AUDITED_EVENTS
    assert EVENT_RECORD_DELETED in AUDITED_EVENTS
    assert EVENT_DELETE_DENIED in AUDITED_EVENTS
