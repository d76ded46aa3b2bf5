"""
Rendering surfaces.

A surface is the visible container a typewriter draws into. It holds
elements (spans) with text, a color, class names and an opacity. When an
element's opacity changes the surface plays a transition and, once it
finishes, notifies the element's transition listeners. The cursor blink
is driven entirely by those notifications.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Set

logger = logging.getLogger(__name__)

TransitionListener = Callable[["Element"], None]


class Element:
    """A span inside a surface.

    Attributes:
        role: What the element shows ("text" or "cursor")
        text: Current text content
        color: Color value understood by the surface
        classes: Class names applied to the element
        opacity: 0.0 (transparent) to 1.0 (opaque)
        transition_ms: Duration of opacity transitions
    """

    def __init__(self, role: str, text: str = "", color: Any = None,
                 classes: Optional[Set[str]] = None):
        self.role = role
        self.text = text
        self.color = color
        self.classes: Set[str] = set(classes or ())
        self.opacity = 1.0
        self.transition_ms = 0.0
        self.surface: Optional["Surface"] = None
        self._listeners: List[TransitionListener] = []
        self._transition_token: Any = None

    def set_text(self, text: str) -> None:
        self.text = text
        self._changed()

    def set_color(self, color: Any) -> None:
        self.color = color
        self._changed()

    def add_class(self, name: str) -> None:
        self.classes.add(name)
        self._changed()

    def remove_class(self, name: str) -> None:
        self.classes.discard(name)
        self._changed()

    def set_transition(self, duration_ms: float) -> None:
        self.transition_ms = duration_ms

    def set_opacity(self, opacity: float) -> None:
        """Change opacity; listeners fire when the transition completes."""
        self.opacity = opacity
        self._changed()
        if self.surface is not None:
            self.surface.begin_transition(self)

    def add_transition_listener(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    def remove_transition_listener(self, listener: TransitionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def transition_listeners(self) -> List[TransitionListener]:
        return list(self._listeners)

    def finish_transition(self) -> None:
        """Deliver the transition-completion signal to listeners."""
        self._transition_token = None
        for listener in list(self._listeners):
            listener(self)

    def _changed(self) -> None:
        if self.surface is not None:
            self.surface.on_change(self)

    def __repr__(self) -> str:
        return f"Element({self.role!r}, text={self.text!r}, opacity={self.opacity})"


class Surface(ABC):
    """Abstract base class for rendering surfaces.

    Subclasses decide what "rendering" means: recording frames in memory,
    drawing with pygame, and so on. Transitions are timed through the host
    so they follow the same clock as the typewriter.
    """

    def __init__(self, host=None):
        self.host = host
        self._children: List[Element] = []

    def create_element(self, role: str, text: str = "", color: Any = None,
                       classes: Optional[Set[str]] = None) -> Element:
        return Element(role, text=text, color=color, classes=classes)

    def append_child(self, element: Element) -> None:
        element.surface = self
        self._children.append(element)
        self.on_change(element)

    def remove_child(self, element: Element) -> None:
        if element not in self._children:
            return
        self._cancel_transition(element)
        self._children.remove(element)
        element.surface = None
        self.on_change(element)

    @property
    def children(self) -> List[Element]:
        return list(self._children)

    def find(self, role: str) -> Optional[Element]:
        for child in self._children:
            if child.role == role:
                return child
        return None

    @property
    def text(self) -> str:
        """Concatenated text of all visible elements."""
        return "".join(child.text for child in self._children if child.opacity > 0)

    def begin_transition(self, element: Element) -> None:
        """Schedule the transition-completion signal for ``element``."""
        if self.host is None:
            element.finish_transition()
            return
        self._cancel_transition(element)
        element._transition_token = self.host.call_later(
            element.finish_transition, element.transition_ms)

    def _cancel_transition(self, element: Element) -> None:
        if element._transition_token is not None and self.host is not None:
            self.host.cancel_delay(element._transition_token)
        element._transition_token = None

    @abstractmethod
    def on_change(self, element: Element) -> None:
        """Called after any element on this surface changed."""
