"""Application composition root."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from modelwright.adapters.sqlalchemy import SqlAlchemyPersistenceBridge, is_started, startup
from modelwright.adapters.tooling import ToolRequestHandler
from modelwright.config import get_library_config
from modelwright.domain.capabilities import MutationEngine

if TYPE_CHECKING:
    from collections.abc import Mapping

    from modelwright.config import LibraryConfig
    from modelwright.domain.capabilities import CreationResult
    from modelwright.domain.ports import PersistenceBridge

log = getLogger(__name__)


def build_sqlalchemy_bridge(*, database_uri: str | None = None) -> SqlAlchemyPersistenceBridge:
    """Start the SQLAlchemy adapter if needed and return a bridge bound to it."""

    if not is_started():
        startup(database_uri=database_uri)
    return SqlAlchemyPersistenceBridge()


def build_engine(
    *,
    config: LibraryConfig | None = None,
    bridge: PersistenceBridge | None = None,
) -> MutationEngine:
    """Build an engine from environment configuration unless overrides are given."""

    effective_config = config or get_library_config()
    effective_bridge = bridge if bridge is not None else build_sqlalchemy_bridge()
    log.info(
        "Building mutation engine for library=%s, namespace=%s",
        effective_config.library_name,
        effective_config.effective_namespace,
    )
    return MutationEngine(effective_config, effective_bridge)


def build_tool_handler(engine: MutationEngine | None = None) -> ToolRequestHandler:
    return ToolRequestHandler(engine or build_engine())


def create_named_object(
    engine: MutationEngine,
    type_name: str,
    object_name: str,
    inputs: Mapping[str, Any] | None = None,
) -> tuple[CreationResult, bool]:
    """Build a foreign object from inputs and store it under ``object_name``."""

    result = engine.create_instance(type_name, inputs)
    if not result.success:
        log.warning("Could not create %s:%s: %s", type_name, object_name, result.error)
        return result, False
    saved = engine.bridge.save(type_name, object_name, result.instance)
    log.info("Created %s:%s (saved=%s)", type_name, object_name, saved)
    return result, saved
