"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Final

from .errors import (
    ConfigurationError,
    InvalidConfigurationValueError,
    MissingConfigurationError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def require_env_var(name: str) -> str:
    """Return a required environment variable by name."""

    return require_env_vars([name])[name]


def optional_env_var(name: str) -> str | None:
    """Return a stripped environment variable, treating blank values as unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def env_list(name: str, *, default: Sequence[str] = ()) -> tuple[str, ...]:
    """Split a comma separated environment variable into a tuple of items."""

    value = optional_env_var(name)
    if value is None:
        return tuple(default)
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    if not items:
        raise ConfigurationError(f"{name} must list at least one value")
    return items


def env_flag(name: str, *, default: bool = False) -> bool:
    """Read an on/off switch such as ``MODELWRIGHT_SQL_ECHO=1``."""

    value = optional_env_var(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise InvalidConfigurationValueError(name, value, "expected an on/off value")
