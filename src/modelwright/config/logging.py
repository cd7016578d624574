"""Root logger setup for the command line."""

from __future__ import annotations

import logging
from typing import Final

from .env import optional_env_var
from .errors import InvalidConfigurationValueError

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_LEVEL_VAR: Final[str] = "MODELWRIGHT_LOG_LEVEL"


def log_level_from_env(default: int = logging.INFO) -> int:
    raw = optional_env_var(LOG_LEVEL_VAR)
    if raw is None:
        return default
    level = logging.getLevelName(raw.upper())
    if not isinstance(level, int):
        raise InvalidConfigurationValueError(LOG_LEVEL_VAR, raw, "not a logging level name")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once.

    Without an explicit ``level`` the one named by ``MODELWRIGHT_LOG_LEVEL`` is
    used, falling back to INFO. SQLAlchemy engine logging stays at WARNING unless
    the root level is DEBUG.
    """

    resolved = level if level is not None else log_level_from_env()
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    if resolved > logging.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
