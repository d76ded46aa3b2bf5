"""
Hosts: the scheduling environment a typewriter runs in.

A host provides one-shot frame callbacks, delay callbacks, a clock in
milliseconds and grapheme segmentation. Everything runs on a single
asyncio event loop; no callback ever blocks.

- AsyncioHost: real time, frames every ``1 / fps`` seconds
- VirtualHost: a virtual clock advanced explicitly, for offline
  capture and deterministic tests
"""

import asyncio
import heapq
import itertools
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .animation.graphemes import segment_graphemes

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class Host(ABC):
    """Abstract scheduling environment for typewriters."""

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """Event loop used for completion futures."""
        return asyncio.get_running_loop()

    def create_future(self) -> asyncio.Future:
        return self.loop.create_future()

    @abstractmethod
    def now(self) -> float:
        """Current time in milliseconds."""

    @abstractmethod
    def request_frame(self, fn: FrameCallback) -> Any:
        """Call ``fn(timestamp_ms)`` on the next frame; returns a token."""

    @abstractmethod
    def cancel_frame(self, token: Any) -> None:
        """Cancel a pending frame callback."""

    @abstractmethod
    def call_later(self, fn: Callable[[], None], delay_ms: float) -> Any:
        """Call ``fn()`` after ``delay_ms``; returns a token."""

    @abstractmethod
    def cancel_delay(self, token: Any) -> None:
        """Cancel a pending delay callback."""

    def segment(self, text: str) -> List[str]:
        """Split ``text`` into grapheme clusters."""
        return segment_graphemes(text)

    def sleep(self, delay_ms: float) -> Tuple[asyncio.Future, Any]:
        """Future resolved after ``delay_ms`` plus the timer token."""
        future = self.create_future()

        def _resolve():
            if not future.done():
                future.set_result(None)

        return future, self.call_later(_resolve, delay_ms)


class AsyncioHost(Host):
    """Host backed by the running asyncio loop.

    Frame callbacks are spaced ``1 / fps`` seconds apart, which stands in
    for the display refresh when nothing else drives frames.
    """

    def __init__(self, fps: int = 60):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.fps = fps
        self.frame_interval = 1.0 / fps

    def now(self) -> float:
        return time.monotonic() * 1000.0

    def request_frame(self, fn: FrameCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(self.frame_interval, lambda: fn(self.now()))

    def cancel_frame(self, token: Optional[asyncio.TimerHandle]) -> None:
        if token is not None:
            token.cancel()

    def call_later(self, fn: Callable[[], None], delay_ms: float) -> asyncio.TimerHandle:
        return self.loop.call_later(max(delay_ms, 0) / 1000.0, fn)

    def cancel_delay(self, token: Optional[asyncio.TimerHandle]) -> None:
        if token is not None:
            token.cancel()


class VirtualHost(Host):
    """Host with a virtual millisecond clock.

    Nothing happens until the clock is advanced. ``drive`` alternates
    event loop turns with clock advances so a typewriter's run completes
    instantly in wall time while seeing realistic timestamps.
    """

    def __init__(self, frame_interval_ms: float = 1.0, start_ms: float = 0.0):
        if frame_interval_ms <= 0:
            raise ValueError("frame_interval_ms must be positive")
        self.frame_interval_ms = frame_interval_ms
        self._now = start_ms
        self._counter = itertools.count()
        self._timers: List[Tuple[float, int, Callable[[], None]]] = []
        self._cancelled: set = set()
        self._frames: Dict[int, FrameCallback] = {}

    def now(self) -> float:
        return self._now

    def _schedule(self, when: float, fn: Callable[[], None]) -> int:
        token = next(self._counter)
        heapq.heappush(self._timers, (when, token, fn))
        return token

    def request_frame(self, fn: FrameCallback) -> int:
        token = self._schedule(self._now + self.frame_interval_ms, lambda: fn(self._now))
        self._frames[token] = fn
        return token

    def cancel_frame(self, token: Optional[int]) -> None:
        if token is not None:
            self._frames.pop(token, None)
            self._cancelled.add(token)

    def call_later(self, fn: Callable[[], None], delay_ms: float) -> int:
        return self._schedule(self._now + max(delay_ms, 0), fn)

    def cancel_delay(self, token: Optional[int]) -> None:
        if token is not None:
            self._cancelled.add(token)

    def pending(self) -> int:
        """Number of callbacks still scheduled."""
        return sum(1 for _, token, _ in self._timers if token not in self._cancelled)

    def next_deadline(self) -> Optional[float]:
        """Time of the earliest live callback, if any."""
        self._drop_cancelled()
        return self._timers[0][0] if self._timers else None

    def _drop_cancelled(self) -> None:
        while self._timers and self._timers[0][1] in self._cancelled:
            _, token, _ = heapq.heappop(self._timers)
            self._cancelled.discard(token)

    def advance_to_next(self) -> bool:
        """Jump to the next deadline and fire everything due; False if idle."""
        deadline = self.next_deadline()
        if deadline is None:
            return False
        self.advance(deadline - self._now)
        return True

    def advance(self, ms: float) -> None:
        """Move the clock forward by ``ms``, firing due callbacks in order."""
        target = self._now + ms
        while True:
            self._drop_cancelled()
            if not self._timers or self._timers[0][0] > target:
                break
            when, token, fn = heapq.heappop(self._timers)
            self._frames.pop(token, None)
            self._now = max(self._now, when)
            fn()
        self._now = target

    async def drive(self, awaitable: Awaitable, limit_ms: float = 600_000.0,
                    idle_turns: int = 5) -> Any:
        """Run ``awaitable`` to completion under the virtual clock.

        Raises:
            RuntimeError: if nothing is scheduled while the task is pending,
                or the virtual clock passes ``limit_ms``
        """
        task = asyncio.ensure_future(awaitable)
        deadline = self._now + limit_ms

        while not task.done():
            # Let the task react to whatever just fired
            for _ in range(idle_turns):
                await asyncio.sleep(0)
                if task.done():
                    break
            if task.done():
                break

            if self._now > deadline:
                task.cancel()
                raise RuntimeError(f"Virtual clock passed {limit_ms} ms before completion")

            if not self.advance_to_next():
                task.cancel()
                raise RuntimeError("Task is waiting but nothing is scheduled")

        return task.result()
