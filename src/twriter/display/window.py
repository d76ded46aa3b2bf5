"""
Pygame window that shows a PygameSurface.

The window owns the pygame display and runs its render loop as an asyncio
task next to the typewriter, so typing, cursor blinking and drawing all
share one event loop.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import pygame

from .pygame_surface import PygameSurface

logger = logging.getLogger(__name__)


@dataclass
class WindowConfig:
    """Configuration for the typewriter window."""
    title: str = "t-writer"
    size: Tuple[int, int] = (800, 200)
    position: Optional[Tuple[int, int]] = None
    fps: int = 60
    background_color: Optional[Any] = None  # None keeps the surface color
    borderless: bool = False
    fullscreen: bool = False


class TypewriterWindow:
    """A display window for one typewriter surface.

    Attributes:
        config: Window configuration
        surface: The surface whose elements are drawn each frame
    """

    def __init__(self, config: WindowConfig, surface: PygameSurface):
        self.config = config
        self.surface = surface
        if config.background_color is not None:
            surface.background_color = config.background_color
            surface.dirty = True

        # Pygame resources (initialized in initialize())
        self.screen: Optional[pygame.Surface] = None

        self._running = False
        self._render_task: Optional[asyncio.Task] = None
        self.closed = asyncio.Event()

    def initialize(self) -> None:
        """Create the pygame display."""
        if not pygame.get_init():
            pygame.init()

        if self.config.position:
            os.environ['SDL_VIDEO_WINDOW_POS'] = f"{self.config.position[0]},{self.config.position[1]}"

        flags = 0
        if self.config.fullscreen:
            flags |= pygame.FULLSCREEN
        if self.config.borderless:
            flags |= pygame.NOFRAME

        self.screen = pygame.display.set_mode(self.config.size, flags)
        pygame.display.set_caption(self.config.title)

        logger.info(f"Window '{self.config.title}' initialized with size {self.config.size}")

    async def start(self) -> None:
        """Start the window render loop."""
        if self._running:
            return
        if self.screen is None:
            self.initialize()

        self._running = True
        self._render_task = asyncio.create_task(self._render_loop())
        logger.info(f"Window '{self.config.title}' started")

    async def stop(self) -> None:
        """Stop the window render loop."""
        self._running = False
        if self._render_task:
            self._render_task.cancel()
            try:
                await self._render_task
            except asyncio.CancelledError:
                pass
            self._render_task = None
        logger.info(f"Window '{self.config.title}' stopped")

    async def cleanup(self) -> None:
        """Stop rendering and release pygame."""
        await self.stop()
        pygame.display.quit()
        logger.info(f"Window '{self.config.title}' cleaned up")

    async def _render_loop(self) -> None:
        """Main render loop for the window."""
        frame_time = 1.0 / self.config.fps

        while self._running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT or (
                        event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE):
                    self._running = False
                    self.closed.set()
                    break

            self.surface.draw(self.screen)
            pygame.display.flip()

            # tick() would block the loop, so sleep for the frame instead
            await asyncio.sleep(frame_time)
