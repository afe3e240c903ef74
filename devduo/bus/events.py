"""
Event Bus - Decoupled Module Communication
The engine emits an event after every state change; listeners (the console's
audit log, tests) subscribe without the engine knowing about them.
"""

from typing import Callable, Dict, List, Any
import logging

logger = logging.getLogger(__name__)

# Subscribing to this name receives every event
ALL_EVENTS = '*'


class EventBus:
    """
    Simple event bus for decoupled module communication.
    Handlers receive the event data dict; wildcard handlers also get its name under 'event'.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event_name: str, handler: Callable):
        """
        Register a handler for an event, or for every event with ALL_EVENTS.
        Registering the same handler twice for one event is a no-op.
        """
        handlers = self._handlers.setdefault(event_name, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"Registered handler for event '{event_name}': {handler.__name__}")

    def off(self, event_name: str, handler: Callable):
        """Unregister a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_name: str, event_data: Dict[str, Any] = None):
        """
        Emit an event to its handlers, then to wildcard handlers.
        A failing handler is logged and never stops the others.
        """
        if event_data is None:
            event_data = {}

        logger.debug(f"Emitting event '{event_name}' with data: {event_data}")

        targets = [(h, event_data) for h in self._handlers.get(event_name, [])]
        if event_name != ALL_EVENTS:
            tagged = {'event': event_name, **event_data}
            targets += [(h, tagged) for h in self._handlers.get(ALL_EVENTS, [])]

        for handler, data in targets:
            try:
                handler(data)
            except Exception as e:
                logger.error(f"Error in handler {handler.__name__} for event '{event_name}': {e}")

    def clear(self):
        """Clear all handlers (useful for testing)."""
        self._handlers.clear()


# Singleton instance
bus = EventBus()


# =============================================================================
# STANDARD EVENTS
# =============================================================================

# Entity manager events; payloads always carry 'kind' (messages/projects/testimonials)
EVENT_RECORDS_LOADED = 'records_loaded'
EVENT_RECORD_CREATED = 'record_created'
EVENT_RECORD_UPDATED = 'record_updated'
EVENT_RECORD_DELETED = 'record_deleted'
EVENT_DELETE_DENIED = 'delete_denied'

# Form events
EVENT_IMAGE_UPLOADED = 'image_uploaded'
EVENT_SUBMIT_FAILED = 'submit_failed'

# Loading screen
EVENT_LOADING_COMPLETE = 'loading_complete'

# Events written to the audit log
AUDITED_EVENTS = (
    EVENT_RECORD_CREATED, EVENT_RECORD_UPDATED, EVENT_RECORD_DELETED,
    EVENT_DELETE_DENIED, EVENT_IMAGE_UPLOADED,
)
