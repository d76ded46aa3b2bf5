"""
Event-driven message bus for observing typewriters.
Supports pub/sub with async handlers, one-time subscriptions,
request/response style waiting and a bounded event history.

Typewriters publish from inside frame and timer callbacks, which are
synchronous, so ``publish`` enqueues without awaiting. Handlers run on
the bus task and never block the animation.
"""

import asyncio
import logging
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Events published by typewriters."""

    # Lifecycle
    TYPEWRITER_STARTED = "typewriter_started"
    TYPEWRITER_STOPPED = "typewriter_stopped"
    TYPEWRITER_DESTROYED = "typewriter_destroyed"

    # Queue
    COMMAND_STARTED = "command_started"
    COMMAND_COMPLETED = "command_completed"
    QUEUE_COMPLETED = "queue_completed"
    QUEUE_RESTARTED = "queue_restarted"
    OPTION_CHANGED = "option_changed"

    # Text
    CHAR_ADDED = "char_added"
    CHAR_DELETED = "char_deleted"
    TEXT_CLEARED = "text_cleared"

    # Cursor
    CURSOR_SHOWN = "cursor_shown"
    CURSOR_HIDDEN = "cursor_hidden"

    # Bus
    ERROR_OCCURRED = "error_occurred"


@dataclass
class Event:
    """Base event structure with metadata."""
    type: EventType
    data: Dict[str, Any]
    source: str = "typewriter"
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            "type": self.type.value,
            "data": self.data,
            "timestamp": self.timestamp,
            "source": self.source,
        }


class EventHandler:
    """Handler for processing events with async support."""

    def __init__(self, handler_func: Callable, event_types: List[EventType],
                 filter_func: Optional[Callable] = None, once: bool = False):
        self.handler_func = handler_func
        self.event_types = event_types
        self.filter_func = filter_func
        self.is_async = asyncio.iscoroutinefunction(handler_func)
        self.once = once
        self.call_count = 0

    def matches(self, event: Event) -> bool:
        """Check if this handler matches the event."""
        if event.type not in self.event_types:
            return False
        if self.filter_func and not self.filter_func(event):
            return False
        return True

    async def handle(self, event: Event) -> None:
        """Run the handler for an event it matches."""
        self.call_count += 1
        if self.is_async:
            await self.handler_func(event)
        else:
            self.handler_func(event)


class EventBus:
    """Pub/sub bus that dispatches typewriter events on its own task."""

    def __init__(self, max_queue_size: int = 1000, history_size: int = 100):
        self.handlers: Dict[EventType, List[EventHandler]] = defaultdict(list)
        self.event_queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self.is_running = False
        self._task: Optional[asyncio.Task] = None

        self.event_history: deque = deque(maxlen=history_size)

        self.metrics = {
            "total_events": 0,
            "total_errors": 0,
            "events_by_type": defaultdict(int),
            "queue_overflows": 0,
        }

    async def start(self) -> None:
        """Start the event bus processing loop."""
        if self.is_running:
            return

        self.is_running = True
        self._task = asyncio.create_task(self._process_events())
        logger.info("Event bus started")

    async def stop(self) -> None:
        """Stop the event bus processing loop."""
        self.is_running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Event bus stopped")

    async def drain(self) -> None:
        """Wait until every queued event has been dispatched."""
        await self.event_queue.join()

    async def _process_events(self) -> None:
        """Main event processing loop."""
        while self.is_running:
            event = await self.event_queue.get()
            try:
                await self._dispatch_event(event)
            finally:
                self.event_queue.task_done()

    async def _dispatch_event(self, event: Event) -> None:
        """Dispatch event to all registered handlers in subscription order."""
        for handler in list(self.handlers.get(event.type, [])):
            if not handler.matches(event):
                continue
            if handler.once:
                self._remove_handler(handler)
            try:
                await handler.handle(event)
            except Exception as e:
                self.metrics["total_errors"] += 1
                name = getattr(handler.handler_func, "__name__", repr(handler.handler_func))
                logger.error(f"Error in event handler {name}: {e}", exc_info=True)
                # Avoid recursion on failing error handlers
                if event.type != EventType.ERROR_OCCURRED:
                    self.publish(EventType.ERROR_OCCURRED, {
                        "error": str(e),
                        "error_type": type(e).__name__,
                        "handler": name,
                        "event_type": event.type.value,
                    }, source="event_bus")

    def publish(self, event_type: EventType, data: Optional[Dict[str, Any]] = None,
                source: str = "typewriter") -> None:
        """Queue an event without awaiting; safe inside frame callbacks."""
        event = Event(type=event_type, data=data or {}, source=source)

        try:
            self.event_queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Event queue full, dropping event: {event_type.value}")
            self.metrics["queue_overflows"] += 1
            return

        self.event_history.append(event)
        self.metrics["total_events"] += 1
        self.metrics["events_by_type"][event_type.value] += 1

    async def emit(self, event_type: EventType, data: Optional[Dict[str, Any]] = None,
                   source: str = "typewriter") -> None:
        """Emit an event to the bus."""
        self.publish(event_type, data, source)

    def subscribe(self, event_types: Union[EventType, List[EventType]],
                  handler: Callable, filter_func: Optional[Callable] = None) -> None:
        """Subscribe ``handler`` to one or more event types."""
        self._add_handler(event_types, handler, filter_func, once=False)

    def once(self, event_types: Union[EventType, List[EventType]],
             handler: Callable, filter_func: Optional[Callable] = None) -> None:
        """Subscribe ``handler`` for the first matching event only."""
        self._add_handler(event_types, handler, filter_func, once=True)

    def _add_handler(self, event_types, handler, filter_func, once: bool) -> None:
        if isinstance(event_types, EventType):
            event_types = [event_types]

        event_handler = EventHandler(handler, event_types, filter_func, once=once)
        for event_type in event_types:
            self.handlers[event_type].append(event_handler)

        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} "
                     f"to {[et.value for et in event_types]} (once={once})")

    def _remove_handler(self, event_handler: EventHandler) -> None:
        for event_type in event_handler.event_types:
            if event_handler in self.handlers[event_type]:
                self.handlers[event_type].remove(event_handler)

    def unsubscribe(self, handler: Callable) -> None:
        """Unsubscribe from all events."""
        for event_type in self.handlers:
            self.handlers[event_type] = [
                h for h in self.handlers[event_type]
                if h.handler_func != handler
            ]

    async def wait_for(self, event_type: EventType, timeout: float = 5.0,
                       filter_func: Optional[Callable] = None) -> Optional[Event]:
        """Wait for a specific event; ``None`` on timeout."""
        future = asyncio.get_running_loop().create_future()

        def wait_handler(event: Event):
            if not future.done():
                future.set_result(event)

        self.once(event_type, wait_handler, filter_func=filter_func)

        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            logger.debug(f"Timeout waiting for event {event_type.value}")
            return None
        finally:
            self.unsubscribe(wait_handler)

    def get_event_history(self, event_type: Optional[EventType] = None,
                          limit: int = 10) -> List[Event]:
        """Get recent event history, optionally filtered by type."""
        if event_type:
            events = [e for e in self.event_history if e.type == event_type]
        else:
            events = list(self.event_history)
        return events[-limit:]

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics."""
        return {
            "is_running": self.is_running,
            "queue_size": self.event_queue.qsize(),
            "total_handlers": sum(len(handlers) for handlers in self.handlers.values()),
            "metrics": dict(self.metrics),
            "event_history_size": len(self.event_history),
        }
