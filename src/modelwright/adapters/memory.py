"""Dictionary-backed persistence bridge."""

from __future__ import annotations

import threading
from logging import getLogger

log = getLogger(__name__)


class InMemoryPersistenceBridge:
    """Keep named foreign objects in process memory, keyed by ``(type, name)``."""

    def __init__(self, objects: dict[tuple[str, str], object] | None = None) -> None:
        self._objects: dict[tuple[str, str], object] = dict(objects or {})
        self._lock = threading.Lock()

    def save(self, object_type: str, object_name: str, instance: object) -> bool:
        with self._lock:
            self._objects[(object_type, object_name)] = instance
        log.debug("Stored %s:%s in memory", object_type, object_name)
        return True

    def find_existing(self, object_type: str, object_name: str) -> object | None:
        with self._lock:
            return self._objects.get((object_type, object_name))

    def names(self, object_type: str) -> list[str]:
        with self._lock:
            return sorted(name for kind, name in self._objects if kind == object_type)

    def __len__(self) -> int:
        return len(self._objects)
