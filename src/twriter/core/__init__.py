"""
Core Package

Core infrastructure for the typewriter engine:
- event_bus: Pub/sub events published by running typewriters
- config: Option snapshots, YAML and environment loading
- types: Command variants and shared state records
"""

from .event_bus import Event, EventBus, EventType
from .config import (
    ConfigurationError,
    TypewriterOptions,
    apply_env_overrides,
    load_yaml_config,
    merge_configs,
)
from .types import (
    CommandKind,
    CursorPhase,
    CursorState,
    Command,
    TypeText,
    DeleteCount,
    DeleteAll,
    ClearText,
    Pause,
    Callback,
    ToggleCursor,
    SetOption,
)

__all__ = [
    # Event bus
    'Event',
    'EventBus',
    'EventType',
    # Config
    'ConfigurationError',
    'TypewriterOptions',
    'apply_env_overrides',
    'load_yaml_config',
    'merge_configs',
    # Types
    'CommandKind',
    'CursorPhase',
    'CursorState',
    'Command',
    'TypeText',
    'DeleteCount',
    'DeleteAll',
    'ClearText',
    'Pause',
    'Callback',
    'ToggleCursor',
    'SetOption',
]
