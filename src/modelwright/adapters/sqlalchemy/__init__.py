"""SQLAlchemy adapter package for modelwright."""

from __future__ import annotations

from .bridge import SqlAlchemyPersistenceBridge
from .mappings import create_all_tables, metadata, object_store_table
from .session import StartupError, configured_engine, is_started, shutdown, startup

__all__ = [
    "SqlAlchemyPersistenceBridge",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "metadata",
    "object_store_table",
    "shutdown",
    "startup",
]
