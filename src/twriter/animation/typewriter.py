"""
Typewriter - queue interpreter and fluent authoring API.

Authoring calls append commands to a queue and return the typewriter, so
they chain. start() interprets the queue strictly in order: a command only
begins once the previous one has completed. Typing and deleting go through
the Animator, pauses through the host timer, and the cursor blinks on its
own through the Cursor state machine.

Example:
    writer = Typewriter(surface, {"loop": True})
    writer.type_text("Hello, world.").pause(1000).clear().start()
"""

import asyncio
import logging
import random
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..core.config import TypewriterOptions
from ..core.event_bus import EventBus, EventType
from ..core.types import (
    Callback, ClearText, Command, CommandKind, DeleteAll, DeleteCount,
    Pause, SetOption, ToggleCursor, TypeText,
)
from ..display.surface import Element, Surface
from .animator import Animator
from .cursor import Cursor
from .graphemes import GraphemeBuffer
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

OptionsLike = Union[TypewriterOptions, Mapping[str, Any], None]


class Typewriter:
    """Interprets a queue of typewriter commands on a surface.

    Attributes:
        surface: Where the text and cursor elements live
        host: Scheduling environment (defaults to the surface's host)
        options: Current option snapshot; replaced by SetOption steps
        buffer: Visible text as grapheme clusters
        queue: Pending commands, consumed in order
        running: True while the queue is being interpreted
    """

    def __init__(self, surface: Surface, options: OptionsLike = None, host=None,
                 event_bus: Optional[EventBus] = None, rng: Optional[random.Random] = None,
                 name: str = "typewriter"):
        """Initialize the typewriter.

        Args:
            surface: Rendering surface to draw into
            options: Overrides merged onto the defaults
            host: Scheduling environment; falls back to ``surface.host``,
                then to a new AsyncioHost
            event_bus: Optional bus that receives typewriter events
            rng: Random source for variable speeds
            name: Source name used in events and logs

        Raises:
            ConfigurationError: if the merged options are invalid
        """
        if isinstance(options, TypewriterOptions):
            self.options = options
        else:
            self.options = TypewriterOptions.merge(options)

        if host is None:
            host = surface.host
        if host is None:
            from ..host import AsyncioHost
            host = AsyncioHost()
        if surface.host is None:
            surface.host = host

        self.surface = surface
        self.host = host
        self.event_bus = event_bus
        self.name = name

        self.buffer = GraphemeBuffer()
        self.queue: List[Command] = []
        self.running = False

        self.text_el: Optional[Element] = None
        self.cursor_el: Optional[Element] = None
        self.cursor: Optional[Cursor] = None

        self.animator = Animator(host, self.buffer, self.render, lambda: self.options,
                                 rng=rng, event_bus=event_bus, source=name)

        self._task: Optional[asyncio.Task] = None
        self._stopped_task: Optional[asyncio.Task] = None
        self._pause_token: Any = None
        self._pause_future: Optional[asyncio.Future] = None

        self._handlers: Dict[CommandKind, Callable[[Any], Any]] = {
            CommandKind.TYPE_TEXT: self._run_type_text,
            CommandKind.DELETE_COUNT: self._run_delete_count,
            CommandKind.DELETE_ALL: self._run_delete_all,
            CommandKind.CLEAR_TEXT: self._run_clear_text,
            CommandKind.PAUSE: self._run_pause,
            CommandKind.CALLBACK: self._run_callback,
            CommandKind.TOGGLE_CURSOR: self._run_toggle_cursor,
            CommandKind.SET_OPTION: self._run_set_option,
        }

        self._sync_surface_options()
        self._create_text_el()

    # Authoring API

    def enqueue(self, command: Command) -> "Typewriter":
        self.queue.append(command)
        return self

    def type_text(self, text: str) -> "Typewriter":
        """Queue ``text`` with punctuation-aware pauses."""
        self.queue.extend(tokenize(text))
        return self

    def strings(self, interval: Optional[float], *texts: str) -> "Typewriter":
        """Queue several strings, deleting each before the next one.

        Args:
            interval: Pause after each string is typed (ms); falsy for none
            texts: The strings, typed in order
        """
        for i, text in enumerate(texts):
            commands = tokenize(text)
            self.queue.extend(commands)

            if interval:
                self.queue.append(Pause(interval))

            if i == len(texts) - 1:
                continue

            self.queue.append(DeleteCount(self._visible_length(commands)))
        return self

    def _visible_length(self, commands: List[Command]) -> int:
        """Clusters left on screen after ``commands`` have run."""
        length = 0
        for command in commands:
            if command.kind is CommandKind.CLEAR_TEXT:
                length = 0
            elif command.kind is CommandKind.TYPE_TEXT:
                length += len(self.host.segment(command.content))
        return length

    def remove(self, count: int) -> "Typewriter":
        """Queue deleting the last ``count`` characters."""
        return self.enqueue(DeleteCount(count))

    def clear(self) -> "Typewriter":
        """Queue deleting all visible text, animated."""
        return self.enqueue(DeleteAll())

    def queue_clear_text(self) -> "Typewriter":
        """Queue blanking the text instantly."""
        return self.enqueue(ClearText())

    def pause(self, ms: float) -> "Typewriter":
        return self.enqueue(Pause(ms))

    def change_options(self, options: Optional[Mapping[str, Any]] = None,
                       **changes: Any) -> "Typewriter":
        """Queue option changes; they apply to the commands after them."""
        merged = dict(options or {})
        merged.update(changes)
        for key, value in merged.items():
            # reject unknown keys now rather than mid-run
            TypewriterOptions.normalize_key(key)
            self.queue.append(SetOption(key, value))
        return self

    def change_type_color(self, color: Any) -> "Typewriter":
        return self.enqueue(SetOption("type_color", color))

    def change_cursor_color(self, color: Any) -> "Typewriter":
        return self.enqueue(SetOption("cursor_color", color))

    def change_type_class(self, class_name: str) -> "Typewriter":
        return self.enqueue(SetOption("type_class", class_name))

    def change_cursor_class(self, class_name: str) -> "Typewriter":
        return self.enqueue(SetOption("cursor_class", class_name))

    def add_cursor(self) -> "Typewriter":
        return self.enqueue(ToggleCursor(True))

    def remove_cursor(self) -> "Typewriter":
        return self.enqueue(ToggleCursor(False))

    def then(self, fn: Callable[[], Any]) -> "Typewriter":
        """Queue a callback, run when every earlier command has finished."""
        return self.enqueue(Callback(fn))

    # Immediate operations

    def clear_text(self) -> "Typewriter":
        """Blank the visible text now, without animation."""
        self.buffer.clear()
        self.render()
        self._publish(EventType.TEXT_CLEARED)
        return self

    def clear_queue(self) -> "Typewriter":
        """Drop all pending commands and blank the text now."""
        self.queue = []
        return self.clear_text()

    def start(self) -> asyncio.Task:
        """Start interpreting the queue; no-op while already running.

        Returns:
            The task running the queue
        """
        if self.running and self._task is not None:
            return self._task

        self._begin()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Typewriter '{self.name}' started with {len(self.queue)} commands")
        self._publish(EventType.TYPEWRITER_STARTED, {"commands": len(self.queue)})
        return self._task

    async def run(self) -> None:
        """Start and wait until the queue completes or stop() is called.

        Exceptions raised by callbacks and hooks propagate from here.
        """
        task = self.start()
        try:
            await task
        except asyncio.CancelledError:
            if task is not self._stopped_task:
                raise

    def stop(self) -> None:
        """Halt animation and cursor blinking, leaving the text visible."""
        was_running = self.running
        self.running = False
        self.animator.cancel()
        self._cancel_pause()
        self._stop_cursor()

        if self._task is not None and not self._task.done():
            self._stopped_task = self._task
            self._task.cancel()

        if was_running:
            logger.info(f"Typewriter '{self.name}' stopped")
            self._publish(EventType.TYPEWRITER_STOPPED, {"text": self.buffer.text})

    def destroy(self) -> None:
        """Stop and remove the text and cursor elements from the surface."""
        self.stop()
        self._remove_cursor_el()
        if self.text_el is not None:
            self.surface.remove_child(self.text_el)
            self.text_el = None
        logger.info(f"Typewriter '{self.name}' destroyed")
        self._publish(EventType.TYPEWRITER_DESTROYED)

    # Interpretation

    def _begin(self) -> None:
        if self.cursor_el is None:
            self._create_cursor_el()
        elif self.cursor is None and self.options.animate_cursor:
            self._start_cursor()
        self.running = True

    async def _run(self) -> None:
        try:
            while True:
                await self.animator.delete_all()

                index = 0
                while index < len(self.queue):
                    await self._step(self.queue[index], index)
                    if asyncio.current_task() is self._stopped_task:
                        return
                    index += 1

                self.running = False
                if self.options.loop:
                    logger.debug(f"Typewriter '{self.name}' looping")
                    self._publish(EventType.QUEUE_RESTARTED)
                    self._begin()
                    # a pass of instant commands must still give the loop a turn
                    await self._next_frame()
                    continue

                logger.debug(f"Typewriter '{self.name}' finished its queue")
                self._publish(EventType.QUEUE_COMPLETED, {"text": self.buffer.text})
                if self.options.on_last_char is not None:
                    self.options.on_last_char()
                return
        except asyncio.CancelledError:
            if asyncio.current_task() is self._stopped_task:
                # stop() ended this run deliberately
                return
            raise
        except Exception as e:
            self.running = False
            logger.error(f"Typewriter '{self.name}' failed: {e}")
            self._publish(EventType.ERROR_OCCURRED, {"error": str(e),
                                                     "error_type": type(e).__name__})
            raise

    async def _next_frame(self) -> None:
        """Wait for the host's next frame."""
        future = self.host.create_future()

        def _resolve(now: float) -> None:
            if not future.done():
                future.set_result(now)

        token = self.host.request_frame(_resolve)
        try:
            await future
        finally:
            if future.cancelled():
                self.host.cancel_frame(token)

    async def _step(self, command: Command, index: int) -> None:
        kind = getattr(command, "kind", None)
        handler = self._handlers.get(kind)
        if handler is None:
            logger.debug(f"Ignoring unrecognized command {command!r}")
            return

        self._publish(EventType.COMMAND_STARTED, {"index": index, "kind": kind.value})
        result = handler(command)
        if asyncio.iscoroutine(result):
            await result
        self._publish(EventType.COMMAND_COMPLETED, {"index": index, "kind": kind.value})

    async def _run_type_text(self, command: TypeText) -> None:
        await self.animator.type_text(command.content)

    async def _run_delete_count(self, command: DeleteCount) -> None:
        await self.animator.delete_count(command.count)

    async def _run_delete_all(self, command: DeleteAll) -> None:
        await self.animator.delete_all()

    def _run_clear_text(self, command: ClearText) -> None:
        self.clear_text()

    async def _run_pause(self, command: Pause) -> None:
        future, token = self.host.sleep(command.duration_ms)
        self._pause_future, self._pause_token = future, token
        try:
            await future
        finally:
            self._pause_future = self._pause_token = None

    def _run_callback(self, command: Callback) -> None:
        command.fn()

    def _run_toggle_cursor(self, command: ToggleCursor) -> None:
        if command.show:
            if self.cursor_el is None:
                self._create_cursor_el()
        else:
            self._remove_cursor_el()

    def _run_set_option(self, command: SetOption) -> None:
        key = TypewriterOptions.normalize_key(command.key)
        previous = self.options
        self.options = previous.replace(**{key: command.value})
        self._apply_option(key, previous)
        logger.debug(f"Option {key} set to {command.value!r}")
        self._publish(EventType.OPTION_CHANGED, {"key": key})

    def _apply_option(self, key: str, previous: TypewriterOptions) -> None:
        """Restyle elements for options that have a visible effect."""
        options = self.options
        if key == "type_color" and self.text_el is not None:
            self.text_el.set_color(options.type_color)
        elif key == "cursor_color" and self.cursor_el is not None:
            self.cursor_el.set_color(options.cursor_color)
        elif key == "type_class" and self.text_el is not None:
            self.text_el.remove_class(previous.type_class)
            self.text_el.add_class(options.type_class)
        elif key == "cursor_class" and self.cursor_el is not None:
            self.cursor_el.remove_class(previous.cursor_class)
            self.cursor_el.add_class(options.cursor_class)
        elif key == "cursor_char" and self.cursor_el is not None:
            self.cursor_el.set_text(options.cursor_char)
        elif key == "blink_speed" and self.cursor is not None:
            self.cursor.speed = options.blink_speed
        elif key == "animate_cursor" and self.cursor_el is not None:
            if options.animate_cursor and self.cursor is None:
                self._start_cursor()
            elif not options.animate_cursor:
                self._stop_cursor()
                self.cursor_el.set_opacity(1.0)
        elif key == "prevent_word_wrap":
            self._sync_surface_options()

    def _cancel_pause(self) -> None:
        if self._pause_token is not None:
            self.host.cancel_delay(self._pause_token)
        if self._pause_future is not None and not self._pause_future.done():
            self._pause_future.cancel()
        self._pause_future = self._pause_token = None

    # Elements

    def render(self) -> None:
        """Push the buffer to the text element."""
        if self.text_el is not None:
            self.text_el.set_text(self.buffer.text)

    def _sync_surface_options(self) -> None:
        if hasattr(self.surface, "prevent_word_wrap"):
            self.surface.prevent_word_wrap = self.options.prevent_word_wrap

    def _create_text_el(self) -> None:
        self.text_el = self.surface.create_element(
            "text", color=self.options.type_color, classes={self.options.type_class})
        self.surface.append_child(self.text_el)

    def _create_cursor_el(self) -> None:
        self.cursor_el = self.surface.create_element(
            "cursor", text=self.options.cursor_char, color=self.options.cursor_color,
            classes={self.options.cursor_class})
        self.surface.append_child(self.cursor_el)

        if self.options.animate_cursor:
            self._start_cursor()

    def _start_cursor(self) -> None:
        self.cursor = Cursor(self.cursor_el, self.host, self.options.blink_speed,
                             event_bus=self.event_bus, source=self.name)
        self.cursor.start()

    def _stop_cursor(self) -> None:
        if self.cursor is not None:
            self.cursor.destroy()
            self.cursor = None

    def _remove_cursor_el(self) -> None:
        if self.cursor_el is not None:
            self._stop_cursor()
            self.surface.remove_child(self.cursor_el)
            self.cursor_el = None

    def _publish(self, event_type: EventType, data: Optional[Dict[str, Any]] = None) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, data or {}, source=self.name)
