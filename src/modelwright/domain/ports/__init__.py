"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import PersistenceBridge

__all__ = ["PersistenceBridge"]
