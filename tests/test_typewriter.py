"""
Tests for the typewriter queue interpreter and its fluent API.
"""

import asyncio

import pytest

from twriter.animation.tokenizer import RestType
from twriter.core.config import ConfigurationError
from twriter.core.event_bus import EventBus, EventType
from twriter.core.types import DeleteCount, Pause, SetOption, TypeText


class TestAuthoring:
    """Authoring calls only append to the queue."""

    def test_calls_chain_and_queue(self, make_writer):
        writer = make_writer()
        result = writer.type_text("Hi.").pause(100).remove(1).clear()

        assert result is writer
        assert [c.kind.value for c in writer.queue] == [
            "type_text", "pause", "pause", "delete_count", "delete_all"]
        assert writer.queue[0] == TypeText("Hi.")
        assert writer.queue[1] == Pause(RestType.SENTENCE)

    def test_strings_deletes_between(self, make_writer):
        writer = make_writer().strings(300, "one", "two, three")

        assert writer.queue[:3] == [TypeText("one"), Pause(300), DeleteCount(3)]
        assert writer.queue[-1] == Pause(300)
        assert DeleteCount(10) not in writer.queue

    def test_strings_counts_last_page_only(self, make_writer):
        writer = make_writer().strings(None, "ab\\cde", "x")
        assert DeleteCount(3) in writer.queue

    def test_change_options_accepts_aliases(self, make_writer):
        writer = make_writer().change_options({"typeSpeed": 5}, cursor_char="_")
        assert writer.queue == [SetOption("typeSpeed", 5), SetOption("cursor_char", "_")]

    def test_change_options_rejects_unknown_keys(self, make_writer):
        with pytest.raises(ConfigurationError):
            make_writer().change_options(fontSize=12)

    def test_invalid_options_fail_construction(self, make_writer):
        with pytest.raises(ConfigurationError):
            make_writer(type_speed=-1)


class TestSequencing:
    """Commands run strictly one after another."""

    @pytest.mark.asyncio
    async def test_punctuation_pauses_between_typing(self, make_writer, host, surface,
                                                     change_times):
        writer = make_writer().type_text("Hi, you.")

        await host.drive(writer.run())

        assert surface.render_text() == "Hi, you."
        times = change_times()
        # "Hi," at 10..30, comma rest, then " you." from 530
        assert times[:3] == [10.0, 20.0, 30.0]
        assert times[3] == 30.0 + RestType.COMMA + 10
        assert times[-1] == 30.0 + RestType.COMMA + 50
        assert host.now() == times[-1] + RestType.SENTENCE

    @pytest.mark.asyncio
    async def test_type_delete_type(self, make_writer, host, surface):
        writer = make_writer().type_text("abc").remove(2).type_text("xy")

        await host.drive(writer.run())

        assert surface.render_text() == "axy"
        assert surface.texts() == ["", "a", "ab", "abc", "ab", "a", "ax", "axy"]

    @pytest.mark.asyncio
    async def test_clear_is_animated_and_clear_text_is_not(self, make_writer, host, surface):
        writer = make_writer().type_text("abc").clear().type_text("de").queue_clear_text()

        await host.drive(writer.run())

        texts = surface.texts()
        assert texts[:7] == ["", "a", "ab", "abc", "ab", "a", ""]
        assert texts[-3:] == ["d", "de", ""]

    @pytest.mark.asyncio
    async def test_line_break_pages(self, make_writer, host, surface):
        writer = make_writer().type_text("A\\B")

        await host.drive(writer.run())

        assert surface.texts() == ["", "A", "", "B"]

    @pytest.mark.asyncio
    async def test_callback_runs_after_previous_commands(self, make_writer, host, surface):
        seen = []
        writer = make_writer().type_text("ab").then(lambda: seen.append(surface.render_text()))
        writer.type_text("c")

        await host.drive(writer.run())

        assert seen == ["ab"]
        assert surface.render_text() == "abc"

    @pytest.mark.asyncio
    async def test_unknown_command_is_ignored(self, make_writer, host, surface):
        writer = make_writer()
        writer.enqueue(object()).type_text("ok")

        await host.drive(writer.run())

        assert surface.render_text() == "ok"

    @pytest.mark.asyncio
    async def test_grapheme_clusters_typed_whole(self, make_writer, host, surface):
        writer = make_writer().type_text("ne\u0301e").remove(2)

        await host.drive(writer.run())

        assert surface.texts() == ["", "n", "ne\u0301", "ne\u0301e", "ne\u0301", "n"]

    @pytest.mark.asyncio
    async def test_restart_clears_previous_text(self, make_writer, host, surface):
        writer = make_writer().type_text("ab")
        await host.drive(writer.run())

        writer.queue = [TypeText("c")]
        await host.drive(writer.run())

        assert surface.render_text() == "c"


class TestOptions:
    """SetOption steps change what follows them."""

    @pytest.mark.asyncio
    async def test_speed_change_applies_to_later_commands(self, make_writer, host, change_times):
        writer = make_writer().type_text("ab").change_options(typeSpeed=100).type_text("c")

        await host.drive(writer.run())

        assert change_times() == [10.0, 20.0, 120.0]
        assert writer.options.type_speed == 100

    @pytest.mark.asyncio
    async def test_colors_and_classes(self, make_writer, host, surface):
        writer = make_writer()
        writer.change_type_color("red").change_cursor_color("blue")
        writer.change_type_class("big").change_cursor_class("thin")

        await host.drive(writer.run())

        text_el, cursor_el = surface.find("text"), surface.find("cursor")
        assert text_el.color == "red"
        assert cursor_el.color == "blue"
        assert text_el.classes == {"big"}
        assert cursor_el.classes == {"thin"}

    @pytest.mark.asyncio
    async def test_cursor_char(self, make_writer, host, surface):
        writer = make_writer().change_options(cursor_char="_")

        await host.drive(writer.run())

        assert surface.find("cursor").text == "_"

    @pytest.mark.asyncio
    async def test_invalid_value_fails_the_run(self, make_writer, host):
        writer = make_writer().change_options(type_speed=-5)

        with pytest.raises(ConfigurationError):
            await host.drive(writer.run())
        assert not writer.running


class TestCursor:
    """Cursor element handling inside a typewriter."""

    @pytest.mark.asyncio
    async def test_static_cursor_never_blinks(self, make_writer, host, surface):
        writer = make_writer(animate_cursor=False).type_text("abc")

        await host.drive(writer.run())

        assert writer.cursor is None
        assert all(frame.cursor_visible for frame in surface.frames[1:])

    @pytest.mark.asyncio
    async def test_blinking_cursor_while_pausing(self, make_writer, host, surface):
        writer = make_writer(animate_cursor=True, blink_speed=100).pause(2000)

        await host.drive(writer.run())

        visibility = [frame.cursor_visible for frame in surface.frames]
        assert visibility.count(False) >= 5
        assert writer.cursor.state.oscillating

    @pytest.mark.asyncio
    async def test_remove_and_add_cursor(self, make_writer, host, surface):
        seen = []
        writer = make_writer().remove_cursor()
        writer.then(lambda: seen.append(surface.find("cursor")))
        writer.add_cursor()

        await host.drive(writer.run())

        assert seen == [None]
        assert surface.find("cursor") is not None

    @pytest.mark.asyncio
    async def test_stop_halts_blinking(self, make_writer, host):
        writer = make_writer(animate_cursor=True, blink_speed=100).type_text("a")
        await host.drive(writer.run())

        cursor = writer.cursor
        writer.stop()
        count = len(cursor.state.history)
        host.advance(5000)

        assert len(cursor.state.history) == count
        assert writer.cursor is None


class TestLifecycle:
    """Looping, stopping and completion hooks."""

    @pytest.mark.asyncio
    async def test_loop_restarts_from_empty(self, make_writer, host, surface):
        passes = []
        writer = make_writer(loop=True).type_text("ab")

        def on_pass():
            passes.append(surface.render_text())
            if len(passes) == 2:
                writer.stop()

        writer.then(on_pass)

        await host.drive(writer.run())

        assert passes == ["ab", "ab"]
        assert "" in surface.texts()[1:]
        assert not writer.running

    @pytest.mark.asyncio
    async def test_loop_of_instant_commands_yields(self, make_writer, host, surface):
        """A loop with nothing to animate still lets other tasks stop it."""
        passes = []
        writer = make_writer(loop=True).change_type_color("red")
        writer.then(lambda: passes.append(host.now()))
        task = writer.start()

        async def stop_soon():
            for _ in range(3):
                await asyncio.sleep(0)
                host.advance_to_next()
            writer.stop()

        await asyncio.wait_for(stop_soon(), timeout=2)
        await asyncio.wait({task}, timeout=2)

        assert task.done()
        assert not writer.running
        assert 1 <= len(passes) <= 4
        assert surface.find("text").color == "red"

    @pytest.mark.asyncio
    async def test_on_last_char_fires_once(self, make_writer, host, surface):
        calls = []
        writer = make_writer(on_last_char=lambda: calls.append(surface.render_text()))
        writer.type_text("end")

        await host.drive(writer.run())
        host.advance(10_000)

        assert calls == ["end"]

    @pytest.mark.asyncio
    async def test_stop_mid_typing_keeps_text(self, make_writer, host, surface):
        writer = None

        def on_add(cluster):
            if cluster == "c":
                writer.stop()

        writer = make_writer(on_add_char=on_add).type_text("abcdef")

        await host.drive(writer.run())
        host.advance(10_000)

        assert surface.render_text() == "abc"
        assert not writer.running

    @pytest.mark.asyncio
    async def test_stop_on_last_char(self, make_writer, host, surface):
        writer = None

        def on_add(cluster):
            if cluster == "b":
                writer.stop()

        writer = make_writer(on_add_char=on_add).type_text("ab")

        await host.drive(writer.run())

        assert surface.render_text() == "ab"

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, make_writer, host):
        writer = make_writer().type_text("abc")

        first = writer.start()
        second = writer.start()
        await host.drive(first)

        assert first is second

    @pytest.mark.asyncio
    async def test_callback_error_propagates(self, make_writer, host):
        def fail():
            raise ValueError("callback failed")

        writer = make_writer().type_text("a").then(fail).type_text("b")

        with pytest.raises(ValueError, match="callback failed"):
            await host.drive(writer.run())
        assert writer.buffer.text == "a"

    @pytest.mark.asyncio
    async def test_clear_queue(self, make_writer, host, surface):
        writer = make_writer().type_text("abc")
        writer.buffer.extend(["x"])

        writer.clear_queue()

        assert writer.queue == []
        assert surface.render_text() == ""
        await host.drive(writer.run())
        assert surface.render_text() == ""

    @pytest.mark.asyncio
    async def test_destroy_removes_elements(self, make_writer, host, surface):
        writer = make_writer().type_text("abc")
        await host.drive(writer.run())

        writer.destroy()

        assert surface.children == []


class TestEvents:
    """Running typewriters publish to an event bus."""

    @pytest.mark.asyncio
    async def test_lifecycle_events(self, host, surface):
        from twriter.animation.typewriter import Typewriter

        bus = EventBus()
        await bus.start()
        try:
            writer = Typewriter(surface, {"type_speed": 1, "animate_cursor": False},
                                host=host, event_bus=bus)
            writer.type_text("ab")
            await host.drive(writer.run())
            await asyncio.wait_for(bus.drain(), timeout=1.0)
        finally:
            await bus.stop()

        types = [event.type for event in bus.event_history]
        assert types[0] is EventType.TYPEWRITER_STARTED
        assert types.count(EventType.CHAR_ADDED) == 2
        assert types[-1] is EventType.QUEUE_COMPLETED
        assert bus.event_history[-1].data == {"text": "ab"}
