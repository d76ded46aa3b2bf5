#!/usr/bin/env python3
"""
t-writer - command line entry point.

Types text into a pygame window, or headlessly under a virtual clock.

Usage:
    twriter "Hello, world."                       # Type into a window
    twriter "First page\\Second page" --loop       # Repeat until closed
    twriter --strings "One" "Two" --interval 800  # Alternate strings
    twriter "Hello, world." --headless            # Print the result only
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .core.config import ConfigurationError, TypewriterOptions
from .core.event_bus import Event, EventBus, EventType
from .animation.typewriter import Typewriter
from .display.memory_surface import MemorySurface
from .host import AsyncioHost, VirtualHost

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )


def parse_speed(value: str) -> Any:
    """A number means a fixed delay; anything else selects variable speed."""
    try:
        return float(value) if '.' in value else int(value)
    except ValueError:
        return value


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Option overrides taken from the command line."""
    overrides: Dict[str, Any] = {}
    if args.loop:
        overrides['loop'] = True
    if args.no_cursor_blink:
        overrides['animate_cursor'] = False
    if args.type_speed is not None:
        overrides['type_speed'] = parse_speed(args.type_speed)
    if args.delete_speed is not None:
        overrides['delete_speed'] = parse_speed(args.delete_speed)
    if args.wrap is not None:
        overrides['prevent_word_wrap'] = True
        overrides['word_wrap_line_length_limit'] = args.wrap
    return overrides


def author(writer: Typewriter, args: argparse.Namespace) -> Typewriter:
    """Queue the requested text on ``writer``."""
    if args.strings:
        return writer.strings(args.interval, *args.text)
    return writer.type_text(" ".join(args.text))


async def run_headless(args: argparse.Namespace, options: TypewriterOptions) -> str:
    """Run the queue under a virtual clock; returns the final text."""
    if options.loop:
        logger.warning("--loop has no end in headless mode, running once")
        options = options.replace(loop=False)

    host = VirtualHost()
    surface = MemorySurface(host)
    writer = author(Typewriter(surface, options, host=host), args)

    await host.drive(writer.run())
    writer.stop()

    logger.info(f"Rendered {len(surface.frames)} frames in {host.now() / 1000.0:.1f} s of virtual time")
    return surface.render_text()


async def run_window(args: argparse.Namespace, options: TypewriterOptions) -> str:
    """Type into a pygame window until the queue ends or the window closes."""
    # pygame is only needed here
    from .display.pygame_surface import PygameSurface
    from .display.window import TypewriterWindow, WindowConfig

    host = AsyncioHost(fps=args.fps)
    surface = PygameSurface(host, size=tuple(args.size))
    window = TypewriterWindow(WindowConfig(size=tuple(args.size), fps=args.fps,
                                           background_color=args.background), surface)

    event_bus = EventBus()
    await event_bus.start()

    def log_event(event: Event) -> None:
        logger.debug(f"{event.type.value}: {event.data}")

    event_bus.subscribe([EventType.QUEUE_COMPLETED, EventType.QUEUE_RESTARTED,
                         EventType.ERROR_OCCURRED], log_event)

    writer = author(Typewriter(surface, options, host=host, event_bus=event_bus), args)

    loop = asyncio.get_running_loop()
    if sys.platform != 'win32':
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, window.closed.set)

    await window.start()
    run_task = asyncio.ensure_future(writer.run())
    closed_task = asyncio.ensure_future(window.closed.wait())
    try:
        await asyncio.wait({run_task, closed_task}, return_when=asyncio.FIRST_COMPLETED)
        if run_task.done():
            run_task.result()
            # keep the finished text on screen until the window is closed
            await closed_task
    finally:
        if run_task.done():
            writer.stop()
        else:
            writer.destroy()
            await run_task
        closed_task.cancel()
        await window.cleanup()
        await event_bus.stop()

    return writer.buffer.text


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Typewriter text animation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  twriter "Hello, world."                       # Type into a window
  twriter "Page one\\\\Page two" --loop           # Repeat until closed
  twriter --strings "One" "Two" --interval 800  # Alternate strings
  twriter "Hello, world." --headless            # Print the result only
"""
    )
    parser.add_argument('text', nargs='+', help='Text to type (a backslash starts a new page)')
    parser.add_argument('--strings', action='store_true',
                        help='Treat each argument as a separate string, deleted before the next')
    parser.add_argument('--interval', type=float, default=None,
                        help='Pause after each string with --strings (ms)')
    parser.add_argument('--loop', action='store_true', help='Repeat the queue until closed')
    parser.add_argument('--headless', action='store_true',
                        help='Run under a virtual clock and print the final text')
    parser.add_argument('--type-speed', default=None,
                        help='Delay per typed character in ms, or "natural" for a random range')
    parser.add_argument('--delete-speed', default=None,
                        help='Delay per deleted character in ms, or "natural"')
    parser.add_argument('--wrap', type=int, default=None,
                        help='Break lines before words that would pass this many characters')
    parser.add_argument('--no-cursor-blink', action='store_true', help='Keep the cursor solid')
    parser.add_argument('--fps', type=int, default=60, help='Frames per second (default: 60)')
    parser.add_argument('--size', type=int, nargs=2, default=[800, 200], metavar=('W', 'H'),
                        help='Window size in pixels')
    parser.add_argument('--background', default=None,
                        help='Window background color (default: white)')
    parser.add_argument('--config', default='typewriter',
                        help='Name of the YAML file in the config directory (default: typewriter)')
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO)'
    )

    args = parser.parse_args(argv)

    load_dotenv()
    setup_logging(args.log_level)

    try:
        options = TypewriterOptions.load(args.config, build_overrides(args))
    except ConfigurationError as e:
        parser.error(str(e))

    try:
        if args.headless:
            text = asyncio.run(run_headless(args, options))
        else:
            text = asyncio.run(run_window(args, options))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    print(text)


if __name__ == "__main__":
    main()
