from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from modelwright.adapters.sqlalchemy import SqlAlchemyPersistenceBridge, shutdown, startup
from modelwright.config import LibraryConfig
from modelwright.domain.capabilities import MutationEngine
from tests.support.bridges import RecordingBridge
from tests.support.widgetlib import Panel, Widget

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

LIBRARY_NAME = "tests.support.widgetlib"


@pytest.fixture
def library_config() -> LibraryConfig:
    return LibraryConfig(library_name=LIBRARY_NAME)


@pytest.fixture
def widget() -> Widget:
    return Widget("MyWidget")


@pytest.fixture
def panel() -> Panel:
    return Panel()


@pytest.fixture
def bridge(widget: Widget, panel: Panel) -> RecordingBridge:
    return RecordingBridge(objects={("Widget", "MyWidget"): widget, ("Panel", "Main"): panel})


@pytest.fixture
def engine(library_config: LibraryConfig, bridge: RecordingBridge) -> MutationEngine:
    return MutationEngine(library_config, bridge)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlalchemy_bridge(sqlite_engine: Engine) -> Iterator[SqlAlchemyPersistenceBridge]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyPersistenceBridge()
    finally:
        shutdown()
