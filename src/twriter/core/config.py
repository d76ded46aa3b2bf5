"""
Configuration management for the typewriter engine.

Options are an immutable dataclass. Values come from, in increasing priority:
1. Code defaults (``TypewriterOptions``)
2. ``config/typewriter.yaml``
3. ``TYPEWRITER_*`` environment variables
4. Overrides passed to the constructor or queued with ``SetOption``
"""

import dataclasses
import logging
import math
import numbers
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

import yaml

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when options cannot produce a usable configuration."""


# camelCase names used by the browser version of the API
OPTION_ALIASES = {
    "loop": "loop",
    "animateCursor": "animate_cursor",
    "preventWordWrap": "prevent_word_wrap",
    "blinkSpeed": "blink_speed",
    "typeSpeed": "type_speed",
    "deleteSpeed": "delete_speed",
    "typeSpeedMin": "type_speed_min",
    "typeSpeedMax": "type_speed_max",
    "deleteSpeedMin": "delete_speed_min",
    "deleteSpeedMax": "delete_speed_max",
    "typeClass": "type_class",
    "cursorClass": "cursor_class",
    "typeColor": "type_color",
    "cursorColor": "cursor_color",
    "wordWrapLineLengthLimit": "word_wrap_line_length_limit",
    "cursorChar": "cursor_char",
    "onAddChar": "on_add_char",
    "onDeleteChar": "on_delete_char",
    "onLastChar": "on_last_char",
}

HOOK_KEYS = ("on_add_char", "on_delete_char", "on_last_char")

Speed = Union[int, float, str, None]


def is_fixed_speed(value: Any) -> bool:
    """A speed is fixed when it is a real number (booleans excluded)."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _is_delay(value: Any) -> bool:
    """A usable delay in ms: a finite, non-negative number."""
    return is_fixed_speed(value) and math.isfinite(value) and value >= 0


@dataclass(frozen=True)
class TypewriterOptions:
    """Immutable option snapshot for one typewriter."""
    loop: bool = False
    animate_cursor: bool = True
    prevent_word_wrap: bool = False
    blink_speed: float = 400

    # A number is a fixed delay per character; anything else is "variable"
    # and draws from the matching min/max pair.
    type_speed: Speed = 90
    delete_speed: Speed = 40
    type_speed_min: float = 65
    type_speed_max: float = 115
    delete_speed_min: float = 40
    delete_speed_max: float = 90

    type_class: str = "type-span"
    cursor_class: str = "cursor-span"
    type_color: Any = "black"
    cursor_color: Any = "black"
    word_wrap_line_length_limit: int = 0
    cursor_char: str = "|"

    on_add_char: Optional[Callable[[str], Any]] = None
    on_delete_char: Optional[Callable[[str], Any]] = None
    on_last_char: Optional[Callable[[], Any]] = None

    def __post_init__(self):
        self.validate()

    @staticmethod
    def normalize_key(key: str) -> str:
        """Map an option name (snake_case or camelCase alias) to a field name."""
        name = OPTION_ALIASES.get(key, key)
        if name not in _FIELD_NAMES:
            raise ConfigurationError(f"Unknown typewriter option: {key!r}")
        return name

    @classmethod
    def merge(cls, overrides: Optional[Mapping[str, Any]] = None,
              base: Optional["TypewriterOptions"] = None) -> "TypewriterOptions":
        """Merge ``overrides`` into ``base`` (defaults if omitted)."""
        base = base or cls()
        if not overrides:
            return base
        return base.replace(**overrides)

    def replace(self, **changes: Any) -> "TypewriterOptions":
        """Return a new validated snapshot with ``changes`` applied."""
        normalized = {self.normalize_key(key): value for key, value in changes.items()}
        return dataclasses.replace(self, **normalized)

    def validate(self) -> None:
        """Fail fast on options that would stall or corrupt the animation."""
        errors = []

        self._check_speed("type", self.type_speed, self.type_speed_min,
                          self.type_speed_max, errors)
        self._check_speed("delete", self.delete_speed, self.delete_speed_min,
                          self.delete_speed_max, errors)

        if not _is_delay(self.blink_speed):
            errors.append(f"blink_speed must be a finite non-negative number, got {self.blink_speed!r}")

        limit = self.word_wrap_line_length_limit
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
            errors.append(f"word_wrap_line_length_limit must be a non-negative int, got {limit!r}")

        for key in HOOK_KEYS:
            hook = getattr(self, key)
            if hook is not None and not callable(hook):
                errors.append(f"{key} must be callable or None")

        if errors:
            raise ConfigurationError(f"Invalid typewriter options: {'; '.join(errors)}")

    @staticmethod
    def _check_speed(name: str, speed: Speed, low: Any, high: Any, errors: list) -> None:
        if is_fixed_speed(speed):
            if not _is_delay(speed):
                errors.append(f"{name}_speed must be finite and not negative, got {speed!r}")
            return

        # Variable speed needs a coherent range
        if not (is_fixed_speed(low) and is_fixed_speed(high)):
            errors.append(f"{name}_speed_min/{name}_speed_max must be numbers "
                          f"when {name}_speed is variable")
        elif not (_is_delay(low) and _is_delay(high)) or low > high:
            errors.append(f"{name}_speed range [{low}, {high}) is not valid")

    def is_variable(self, name: str) -> bool:
        """True when the ``type`` or ``delete`` speed is drawn per character."""
        return not is_fixed_speed(getattr(self, f"{name}_speed"))

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to a dictionary (hooks excluded)."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in HOOK_KEYS
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TypewriterOptions":
        """Create options from a dictionary of (possibly aliased) keys."""
        return cls.merge(dict(data))

    @classmethod
    def load(cls, config_name: str = "typewriter",
             overrides: Optional[Mapping[str, Any]] = None) -> "TypewriterOptions":
        """Load options from YAML and environment, then apply ``overrides``."""
        file_config = load_yaml_config(config_name)
        config = apply_env_overrides(file_config, "TYPEWRITER")
        if overrides:
            config = merge_configs(config, dict(overrides))
        return cls.from_dict(config)


_FIELD_NAMES = frozenset(f.name for f in fields(TypewriterOptions))


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_path = Path(os.getenv('TWRITER_CONFIG_DIR', 'config'))
    if not config_path.is_absolute():
        config_path = Path.cwd() / config_path
    return config_path


def load_yaml_config(config_name: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        config_name: Name of the config file (without .yaml extension)

    Returns:
        Dictionary with configuration values, empty dict if file not found
    """
    config_file = get_config_dir() / f"{config_name}.yaml"

    if not config_file.exists():
        logger.debug(f"Config file not found: {config_file}, using defaults")
        return {}

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing config file {config_file}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {config_file} must contain a mapping")

    logger.info(f"Loaded configuration from {config_file}")
    return config


def merge_configs(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two flat option mappings; keys in ``overrides`` win."""
    result = dict(defaults)
    result.update(overrides)
    return result


def apply_env_overrides(config: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    ``TYPEWRITER_TYPE_SPEED=120`` sets ``type_speed``.

    Args:
        config: Configuration dictionary to update
        prefix: Environment variable prefix (e.g., 'TYPEWRITER')

    Returns:
        Updated configuration dictionary
    """
    result = config.copy()
    prefix_upper = f"{prefix.upper()}_"

    for env_key, env_value in os.environ.items():
        if not env_key.startswith(prefix_upper):
            continue
        key = env_key[len(prefix_upper):].lower()
        result[key] = _parse_env_value(env_value)
        logger.debug(f"Option {key} overridden by {env_key}")

    return result


def _parse_env_value(value: str) -> Any:
    """Parse an environment variable value to the appropriate type."""
    if value.lower() in ('true', 'false'):
        return value.lower() == 'true'

    if value.lower() in ('null', 'none', ''):
        return None

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value
