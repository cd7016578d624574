"""Persistence bridge storing pickled foreign objects through SQLAlchemy."""

from __future__ import annotations

import logging
import pickle
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from .mappings import object_store_table
from .session import session_factory as default_session_factory

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

log = logging.getLogger(__name__)


class SqlAlchemyPersistenceBridge:
    """Store one row per ``(object_type, object_name)`` in the ``object_store`` table.

    Each call opens its own session. ``save`` returns ``False`` when the
    instance cannot be pickled or the database rejects the write.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory

    def _session(self) -> Session:
        factory = self._session_factory or default_session_factory()
        return factory()

    def save(self, object_type: str, object_name: str, instance: object) -> bool:
        try:
            payload = pickle.dumps(instance)
        except (pickle.PicklingError, AttributeError, TypeError) as exc:
            log.warning("Cannot serialise %s:%s: %s", object_type, object_name, exc)
            return False
        python_type = f"{type(instance).__module__}.{type(instance).__qualname__}"
        table = object_store_table
        try:
            with self._session() as session, session.begin():
                existing = session.execute(
                    select(table.c.id)
                    .where(table.c.object_type == object_type)
                    .where(table.c.object_name == object_name)
                ).scalar_one_or_none()
                if existing is None:
                    session.execute(
                        table.insert().values(
                            object_type=object_type,
                            object_name=object_name,
                            python_type=python_type,
                            payload=payload,
                        )
                    )
                else:
                    session.execute(
                        table.update()
                        .where(table.c.id == existing)
                        .values(python_type=python_type, payload=payload)
                    )
        except SQLAlchemyError:
            log.exception("Failed to save %s:%s", object_type, object_name)
            return False
        log.info("Saved %s:%s", object_type, object_name)
        return True

    def find_existing(self, object_type: str, object_name: str) -> object | None:
        table = object_store_table
        with self._session() as session:
            payload = session.execute(
                select(table.c.payload)
                .where(table.c.object_type == object_type)
                .where(table.c.object_name == object_name)
            ).scalar_one_or_none()
        if payload is None:
            return None
        return pickle.loads(payload)  # noqa: S301
