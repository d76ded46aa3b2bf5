"""
Core Types for the typewriter engine.

Shared type definitions used across all modules: the command variants
that make up a typewriter queue and the small state records around them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Union


class CommandKind(Enum):
    """Kinds of queued typewriter commands."""
    TYPE_TEXT = "type_text"
    DELETE_COUNT = "delete_count"
    DELETE_ALL = "delete_all"
    CLEAR_TEXT = "clear_text"
    PAUSE = "pause"
    CALLBACK = "callback"
    TOGGLE_CURSOR = "toggle_cursor"
    SET_OPTION = "set_option"


class CursorPhase(Enum):
    """Blink states of the cursor."""
    VISIBLE = "visible"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class TypeText:
    """Type ``content`` one grapheme cluster at a time."""
    content: str
    kind = CommandKind.TYPE_TEXT


@dataclass(frozen=True)
class DeleteCount:
    """Delete the last ``count`` grapheme clusters."""
    count: int
    kind = CommandKind.DELETE_COUNT


@dataclass(frozen=True)
class DeleteAll:
    """Delete everything currently visible, animated."""
    kind = CommandKind.DELETE_ALL


@dataclass(frozen=True)
class ClearText:
    """Blank the visible text instantly."""
    kind = CommandKind.CLEAR_TEXT


@dataclass(frozen=True)
class Pause:
    """Wait ``duration_ms`` milliseconds."""
    duration_ms: float
    kind = CommandKind.PAUSE


@dataclass(frozen=True)
class Callback:
    """Invoke ``fn`` synchronously."""
    fn: Callable[[], Any]
    kind = CommandKind.CALLBACK


@dataclass(frozen=True)
class ToggleCursor:
    """Attach (``show=True``) or detach the cursor."""
    show: bool
    kind = CommandKind.TOGGLE_CURSOR


@dataclass(frozen=True)
class SetOption:
    """Change one option for the commands that follow."""
    key: str
    value: Any
    kind = CommandKind.SET_OPTION


Command = Union[TypeText, DeleteCount, DeleteAll, ClearText, Pause,
                Callback, ToggleCursor, SetOption]


@dataclass
class CursorState:
    """Observable state of a cursor."""
    visible: bool = True
    oscillating: bool = False
    history: List[CursorPhase] = field(default_factory=list)


# Re-export common types
__all__ = [
    'CommandKind',
    'CursorPhase',
    'TypeText',
    'DeleteCount',
    'DeleteAll',
    'ClearText',
    'Pause',
    'Callback',
    'ToggleCursor',
    'SetOption',
    'Command',
    'CursorState',
]
