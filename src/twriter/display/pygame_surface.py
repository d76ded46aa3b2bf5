"""
Pygame surface: draws the text and cursor spans with pygame.font.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pygame

from .layout import LINE_FEED, split_words
from .surface import Element, Surface

logger = logging.getLogger(__name__)

DEFAULT_STYLES: Dict[str, Dict[str, Any]] = {
    "type-span": {"font_size": 32},
    "cursor-span": {"font_size": 32},
}


class PygameSurface(Surface):
    """Draws typewriter elements onto a pygame.Surface.

    Class names map to entries of ``styles`` (font name, size, bold,
    color), which is how type/cursor classes change the look at runtime.

    Attributes:
        size: The (width, height) of the drawing area
        background_color: Fill color for each frame
        prevent_word_wrap: Only break lines where the text has line feeds
    """

    def __init__(self, host=None, size: Tuple[int, int] = (800, 200),
                 background_color: Any = "white", padding: int = 16,
                 styles: Optional[Dict[str, Dict[str, Any]]] = None,
                 prevent_word_wrap: bool = False):
        super().__init__(host)
        self.size = size
        self.width, self.height = size
        self.background_color = background_color
        self.padding = padding
        self.styles = dict(DEFAULT_STYLES)
        self.styles.update(styles or {})
        self.prevent_word_wrap = prevent_word_wrap

        self.dirty = True
        self._fonts: Dict[Tuple[Optional[str], int, bool], pygame.font.Font] = {}
        self._canvas: Optional[pygame.Surface] = None

    def on_change(self, element: Element) -> None:
        self.dirty = True

    def _style_for(self, element: Element) -> Dict[str, Any]:
        style: Dict[str, Any] = {"font": None, "font_size": 32, "bold": False}
        for name in sorted(element.classes):
            style.update(self.styles.get(name, {}))
        return style

    def _font(self, style: Dict[str, Any]) -> pygame.font.Font:
        key = (style.get("font"), int(style.get("font_size", 32)), bool(style.get("bold")))
        if key not in self._fonts:
            if not pygame.font.get_init():
                pygame.font.init()
            font = pygame.font.SysFont(key[0], key[1], bold=key[2]) if key[0] \
                else pygame.font.Font(None, key[1])
            self._fonts[key] = font
        return self._fonts[key]

    def _color(self, element: Element, style: Dict[str, Any]) -> pygame.Color:
        # inline color wins over the class style
        value = element.color if element.color is not None else style.get("color")
        try:
            return pygame.Color(value if value is not None else "black")
        except (ValueError, TypeError):
            logger.warning(f"Unknown color {value!r} on {element.role} element, using black")
            return pygame.Color("black")

    def layout_lines(self, text: str, font: pygame.font.Font) -> List[str]:
        """Split text into lines that fit the drawing width."""
        max_width = self.width - 2 * self.padding
        lines: List[str] = []

        for paragraph in text.split(LINE_FEED):
            if self.prevent_word_wrap:
                lines.append(paragraph)
                continue

            line = ""
            for word in split_words(paragraph):
                candidate = line + word
                if line and font.size(candidate)[0] > max_width:
                    lines.append(line)
                    line = word.lstrip(" ")
                else:
                    line = candidate
            lines.append(line)

        return lines

    def draw(self, target: Optional[pygame.Surface] = None) -> pygame.Surface:
        """Draw all elements; returns the surface drawn on."""
        if target is None:
            if self._canvas is None:
                self._canvas = pygame.Surface(self.size)
            target = self._canvas

        target.fill(pygame.Color(self.background_color))
        x, y = self.padding, self.padding
        line_height = 0

        for element in self.children:
            style = self._style_for(element)
            font = self._font(style)
            line_height = max(line_height, font.get_linesize())
            color = self._color(element, style)
            lines = self.layout_lines(element.text, font) if element.text else [""]

            for index, line in enumerate(lines):
                if index > 0:
                    x = self.padding
                    y += line_height
                if not line:
                    continue
                glyphs = font.render(line, True, color)
                if element.opacity < 1.0:
                    glyphs.set_alpha(int(255 * max(element.opacity, 0.0)))
                target.blit(glyphs, (x, y))
                x += glyphs.get_width()

        self.dirty = False
        return target

    def snapshot(self) -> np.ndarray:
        """Current frame as an (height, width, 3) uint8 array."""
        canvas = self.draw()
        return np.transpose(pygame.surfarray.array3d(canvas), (1, 0, 2)).copy()
