"""Post-mutation projection of a foreign object."""

from __future__ import annotations

from collections.abc import Sized
from logging import getLogger
from typing import Any, Final

from .introspection import is_collection_hint, iter_attributes, runtime_class

log = getLogger(__name__)

IDENTITY_SUFFIXES: Final[tuple[str, ...]] = ("name", "label", "description")


def take_snapshot(instance: object) -> dict[str, Any]:
    """Collect ``<attr>Count`` for sized collections and identity-like strings.

    Identity-like attributes are string attributes whose lowercase name ends
    with ``name``, ``label`` or ``description``. Attributes that cannot be read
    are left out.
    """

    snapshot: dict[str, Any] = {}
    for attribute in iter_attributes(type(instance)):
        if not attribute.readable:
            continue
        collection = is_collection_hint(attribute.hint)
        identity = attribute.name.lower().endswith(IDENTITY_SUFFIXES)
        if not collection and not identity:
            continue
        try:
            value = getattr(instance, attribute.name)
        except Exception as exc:  # noqa: BLE001
            log.debug("Snapshot skipped %s: %s", attribute.name, exc)
            continue
        if collection and isinstance(value, Sized):
            snapshot[f"{attribute.name}Count"] = len(value)
        elif identity and (isinstance(value, str) or runtime_class(attribute.hint) is str):
            snapshot[attribute.name] = value
    return snapshot

