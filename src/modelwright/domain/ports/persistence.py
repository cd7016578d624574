"""Port for storing mutated foreign objects."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PersistenceBridge(Protocol):
    """Storage contract for named foreign objects.

    ``save`` reports failure by returning ``False``; the engine also treats an
    exception from ``save`` as a failed save. ``find_existing`` returns ``None``
    for unknown objects.
    """

    def save(self, object_type: str, object_name: str, instance: object) -> bool: ...

    def find_existing(self, object_type: str, object_name: str) -> object | None: ...
