"""
Cursor blink state machine.

State Machine:
    VISIBLE -> (transition done, blink_speed later) -> HIDDEN
    HIDDEN  -> (transition done, blink_speed later) -> VISIBLE

Each state change sets the element's opacity; the surface reports when the
opacity transition has finished and that report schedules the next flip,
so the oscillation sustains itself until destroy().
"""

import logging
from typing import Any, Optional

from ..core.event_bus import EventBus, EventType
from ..core.types import CursorPhase, CursorState
from ..display.surface import Element

logger = logging.getLogger(__name__)

FADE_TRANSITION_MS = 100


class Cursor:
    """Blinks a cursor element on the host clock.

    Attributes:
        element: The cursor span on the surface
        host: Scheduling environment for the flip delays
        speed: Milliseconds to hold each state before flipping
        state: Observable visible/oscillating flags plus phase history
    """

    def __init__(self, element: Element, host, speed: float,
                 event_bus: Optional[EventBus] = None, source: str = "typewriter"):
        self.element = element
        self.host = host
        self.speed = speed
        self.event_bus = event_bus
        self.source = source
        self.state = CursorState(visible=True, oscillating=False)
        self._timer: Any = None
        self._destroyed = False

        self.element.set_transition(FADE_TRANSITION_MS)
        self.element.opacity = 1.0
        self.element.add_transition_listener(self._on_transition_end)

    @property
    def phase(self) -> CursorPhase:
        return CursorPhase.VISIBLE if self.state.visible else CursorPhase.HIDDEN

    @property
    def faded(self) -> bool:
        return not self.state.visible

    def start(self) -> None:
        """Begin oscillating; the first fade happens right away."""
        if self._destroyed:
            return
        self.state.oscillating = True
        self._schedule(self.fade, 0)

    def fade(self) -> None:
        self._timer = None
        self._enter(CursorPhase.HIDDEN)

    def fade_in(self) -> None:
        self._timer = None
        self._enter(CursorPhase.VISIBLE)

    def _enter(self, phase: CursorPhase) -> None:
        visible = phase is CursorPhase.VISIBLE
        self.state.visible = visible
        self.state.history.append(phase)
        self.element.set_opacity(1.0 if visible else 0.0)
        if self.event_bus is not None:
            event_type = EventType.CURSOR_SHOWN if visible else EventType.CURSOR_HIDDEN
            self.event_bus.publish(event_type, {}, self.source)

    def _on_transition_end(self, element: Element) -> None:
        if self._destroyed:
            return
        self._schedule(self.fade_in if self.faded else self.fade, self.speed)

    def _schedule(self, fn, delay_ms: float) -> None:
        if self._timer is not None:
            self.host.cancel_delay(self._timer)
        self._timer = self.host.call_later(fn, delay_ms)

    def destroy(self) -> None:
        """Stop oscillating; no further flip is scheduled after this."""
        self._destroyed = True
        self.state.oscillating = False
        self.element.remove_transition_listener(self._on_transition_end)
        if self._timer is not None:
            self.host.cancel_delay(self._timer)
            self._timer = None
        logger.debug("Cursor oscillation stopped")
