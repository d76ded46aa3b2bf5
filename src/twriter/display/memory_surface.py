"""
Headless surface that records what would have been shown.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from .surface import Element, Surface

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """One rendered state of the surface."""
    text: str
    cursor_visible: Optional[bool]
    timestamp: float


class MemorySurface(Surface):
    """Surface that keeps every distinct frame in a list.

    Used by the headless CLI and the tests; ``frames`` is the full visual
    history, ``render_text()`` the current typed text.
    """

    def __init__(self, host=None, max_frames: int = 100_000):
        super().__init__(host)
        self.max_frames = max_frames
        self.frames: List[Frame] = []

    def render_text(self) -> str:
        text_el = self.find("text")
        return text_el.text if text_el else ""

    def cursor_visible(self) -> Optional[bool]:
        cursor = self.find("cursor")
        if cursor is None:
            return None
        return cursor.opacity > 0

    def on_change(self, element: Element) -> None:
        frame = Frame(
            text=self.render_text(),
            cursor_visible=self.cursor_visible(),
            timestamp=self.host.now() if self.host else 0.0,
        )
        if self.frames:
            last = self.frames[-1]
            if (last.text, last.cursor_visible) == (frame.text, frame.cursor_visible):
                return
        self.frames.append(frame)
        if len(self.frames) > self.max_frames:
            del self.frames[0]

    def texts(self) -> List[str]:
        """Distinct consecutive text states, in order."""
        result: List[str] = []
        for frame in self.frames:
            if not result or result[-1] != frame.text:
                result.append(frame.text)
        return result
