"""Get-or-compute caches shared by concurrent request workers."""

from __future__ import annotations

from collections.abc import Hashable
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable

_MISSING: Final = object()


class ComputeCache[K: Hashable, V]:
    """Dictionary cache with lock-free reads.

    Two workers missing the same key may both run ``compute``; ``setdefault``
    keeps whichever value landed first so every caller sees one entry.
    Computations must therefore be pure.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[K, V] = {}

    def get_or_compute(self, key: K, compute: Callable[[K], V]) -> V:
        cached = self._entries.get(key, _MISSING)
        if cached is not _MISSING:
            return cached  # type: ignore[return-value]
        value = compute(key)
        return self._entries.setdefault(key, value)

    def peek(self, key: K) -> V | None:
        return self._entries.get(key)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
