"""Tool-layer request handling for modelwright."""

from __future__ import annotations

from .handlers import (
    CLEAR_CACHES,
    DISCOVER_CAPABILITIES,
    DISCOVER_TYPES,
    EXECUTE_MODIFICATION,
    STATISTICS,
    ToolRequestHandler,
    to_jsonable,
)
from .schema import CapabilitiesParameters, ModificationParameters, ToolRequest, ToolResponse

__all__ = [
    "CLEAR_CACHES",
    "DISCOVER_CAPABILITIES",
    "DISCOVER_TYPES",
    "EXECUTE_MODIFICATION",
    "STATISTICS",
    "CapabilitiesParameters",
    "ModificationParameters",
    "ToolRequest",
    "ToolRequestHandler",
    "ToolResponse",
    "to_jsonable",
]
