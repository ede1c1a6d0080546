"""Engine configuration.

Provides the knobs applications can adjust without touching schemas.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


class ConfigError(Exception):
    """Raised when a configuration source cannot be loaded."""
    pass


DEFAULT_FALLBACK_MESSAGES: Dict[str, str] = {
    "required": "{label} is required",
    "minLength": "{label} must be at least {value} characters",
    "maxLength": "{label} must be at most {value} characters",
    "pattern": "{label} format is invalid",
    "selection": "Invalid selection",
    "group": "Field validation error",
    "default": "Invalid value",
}


@dataclass
class EngineConfig:
    """Configuration for FormEngine behavior.

    Attributes:
        default_debounce_ms: Delay used when a field declares no debounce_ms
        max_render_passes: Upper bound on re-evaluation passes in one render
        fetch_error_message: Advisory shown when option resolution fails
        unsupported_label: Placeholder text for unknown field types
        fallback_messages: Message templates keyed by rule kind
    """

    default_debounce_ms: int = 500
    max_render_passes: int = 10
    fetch_error_message: str = "Failed to load options."
    unsupported_label: str = "Unsupported field type: {type}"
    fallback_messages: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FALLBACK_MESSAGES))


def config_from_dict(data: Optional[Dict[str, Any]]) -> EngineConfig:
    """Build an EngineConfig from a plain mapping.

    Partial fallback_messages are merged over the defaults.

    Raises:
        ConfigError: On unknown keys
    """
    data = dict(data or {})
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown engine config keys: {', '.join(unknown)}")

    messages = dict(DEFAULT_FALLBACK_MESSAGES)
    messages.update(data.pop("fallback_messages", None) or {})
    return EngineConfig(fallback_messages=messages, **data)


def load_config(path: Union[str, Path]) -> EngineConfig:
    """Load an EngineConfig from a YAML file."""
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load engine config from {path}: {e}") from e
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"Engine config in {path} must be a mapping")
    return config_from_dict(data)


# Global config instance (set by application)
_engine_config: Optional[EngineConfig] = None


def set_engine_config(config: Optional[EngineConfig]) -> None:
    """Set the process-wide default EngineConfig (None restores defaults)."""
    global _engine_config
    _engine_config = config


def get_engine_config() -> EngineConfig:
    """Get the current default EngineConfig."""
    if _engine_config is None:
        return EngineConfig()
    return _engine_config
