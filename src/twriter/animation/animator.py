"""
Per-character animator.

Types and deletes one grapheme cluster at a time. On every host frame the
animator checks whether the current per-character delay has elapsed since
the last committed cluster; if so it commits exactly one cluster, calls the
matching hook, re-renders and draws the next delay.
"""

import asyncio
import logging
import random
from typing import Any, Callable, List, Optional

from ..core.config import TypewriterOptions, is_fixed_speed
from ..core.event_bus import EventBus, EventType
from ..display.layout import wrap_for_typing
from .graphemes import GraphemeBuffer

logger = logging.getLogger(__name__)


class Animator:
    """Animates a GraphemeBuffer through host frame callbacks.

    Attributes:
        host: Scheduling environment (frames, clock, segmentation)
        buffer: The visible text; the only thing this class mutates
        render: Called after every mutation to push the buffer to the surface
    """

    def __init__(self, host, buffer: GraphemeBuffer, render: Callable[[], None],
                 options: Callable[[], TypewriterOptions],
                 rng: Optional[random.Random] = None,
                 event_bus: Optional[EventBus] = None, source: str = "typewriter"):
        self.host = host
        self.buffer = buffer
        self.render = render
        self._options = options
        self.rng = rng or random.Random()
        self.event_bus = event_bus
        self.source = source

        self._frame_token: Any = None
        self._future: Optional[asyncio.Future] = None
        self._timestamp = 0.0

    @property
    def options(self) -> TypewriterOptions:
        return self._options()

    def speed(self, name: str) -> float:
        """Delay before the next ``type`` or ``delete`` step, in ms.

        A fixed speed is returned as is; a variable speed is drawn from
        ``[min, max)`` on every call.
        """
        options = self.options
        value = getattr(options, f"{name}_speed")
        if is_fixed_speed(value):
            return value
        low = getattr(options, f"{name}_speed_min")
        high = getattr(options, f"{name}_speed_max")
        if high == low:
            return low
        return int(self.rng.random() * (high - low)) + low

    def type_speed(self) -> float:
        return self.speed("type")

    def delete_speed(self) -> float:
        return self.speed("delete")

    async def type_text(self, content: str) -> None:
        """Type ``content``; resolves once the last cluster is shown."""
        clusters = self.host.segment(content)
        options = self.options
        if options.prevent_word_wrap:
            clusters = wrap_for_typing(self.buffer.clusters, clusters,
                                       options.word_wrap_line_length_limit)
        await self._animate(clusters, self.type_speed, self._add_char)

    async def delete_count(self, count: int) -> None:
        """Delete up to ``count`` clusters; stops early at an empty buffer."""
        count = min(count, len(self.buffer))
        if count <= 0:
            return
        await self._animate([None] * count, self.delete_speed, self._delete_char)

    async def delete_all(self) -> None:
        """Delete everything currently visible."""
        await self.delete_count(len(self.buffer))

    async def _animate(self, items: List[Any], next_delay: Callable[[], float],
                       commit: Callable[[Any], bool]) -> None:
        if not items:
            return

        future = self.host.create_future()
        self._future = future
        self._timestamp = self.host.now()
        state = {"index": 0, "delay": next_delay()}

        def _step(now: float) -> None:
            self._frame_token = None
            if future.done():
                return

            if now - self._timestamp >= state["delay"]:
                try:
                    more = commit(items[state["index"]])
                except Exception as e:
                    # hooks run inside host callbacks; hand the error to the awaiting step
                    future.set_exception(e)
                    return
                if future.done():
                    # a hook cancelled the step
                    return
                state["index"] += 1
                self._timestamp = now
                if not more or state["index"] == len(items):
                    future.set_result(None)
                    return
                state["delay"] = next_delay()

            self._frame_token = self.host.request_frame(_step)

        self._frame_token = self.host.request_frame(_step)
        try:
            await future
        finally:
            if self._future is future:
                self._future = None

    def _add_char(self, cluster: str) -> bool:
        self.buffer.append(cluster)
        hook = self.options.on_add_char
        if hook is not None:
            hook(cluster)
        self.render()
        if self.event_bus is not None:
            self.event_bus.publish(EventType.CHAR_ADDED,
                                   {"char": cluster, "length": len(self.buffer)}, self.source)
        return True

    def _delete_char(self, _unused: Any) -> bool:
        cluster = self.buffer.remove_last()
        if cluster is None:
            logger.debug("Delete reached an empty buffer")
            return False
        hook = self.options.on_delete_char
        if hook is not None:
            hook(cluster)
        self.render()
        if self.event_bus is not None:
            self.event_bus.publish(EventType.CHAR_DELETED,
                                   {"char": cluster, "length": len(self.buffer)}, self.source)
        return bool(self.buffer)

    def cancel(self) -> None:
        """Drop the pending frame and cancel the step in progress."""
        if self._frame_token is not None:
            self.host.cancel_frame(self._frame_token)
            self._frame_token = None
        if self._future is not None and not self._future.done():
            self._future.cancel()
        self._future = None
