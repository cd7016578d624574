"""Where the SQLAlchemy object store keeps saved foreign objects."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_flag, optional_env_var
from .errors import InvalidConfigurationValueError

APP_DIR_NAME: Final[str] = "modelwright"
DEFAULT_DB_FILENAME: Final[str] = "objects.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory and SQLite file of the object store."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def __post_init__(self) -> None:
        filename = self.database_filename
        if not filename or Path(filename).name != filename:
            raise InvalidConfigurationValueError(
                "database_filename", filename, "must be a bare file name"
            )

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def _default_data_dir() -> Path:
    base = optional_env_var("XDG_DATA_HOME")
    base_path = Path(base) if base else Path.home() / ".local" / "share"
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = optional_env_var("MODELWRIGHT_DATA_DIR")
    return StorageConfig(
        data_dir=Path(env_dir) if env_dir else _default_data_dir(),
        database_filename=optional_env_var("MODELWRIGHT_DB_FILENAME") or DEFAULT_DB_FILENAME,
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file inside the data directory."""

    echo = env_flag("MODELWRIGHT_SQL_ECHO")
    env_uri = optional_env_var("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri, echo=echo)
    storage_config = storage or get_storage_config()
    return DatabaseConfig(uri=storage_config.database_uri(), echo=echo)
