"""Dynamic capability discovery and mutation over a foreign object model."""

from __future__ import annotations

from .engine import MutationEngine
from .errors import (
    EngineError,
    InvocationError,
    LibraryNotFoundError,
    OperationNotFoundError,
    TypeNotFoundError,
    UnresolvedConcreteTypeError,
)
from .locator import LibraryLocator
from .resolver import (
    CONCRETE_TYPE_HINT,
    AmbiguousResolution,
    ConcreteResolution,
    ExplicitResolution,
    ResolutionStatus,
    UniqueResolution,
    UnresolvedResolution,
)
from .types import (
    CreationResult,
    EngineStatistics,
    ErrorKind,
    ExecutionResult,
    InvocationPhase,
    MutationCapability,
    MutationKind,
    ObjectCapabilities,
    ParameterCreationRequirement,
    ParameterDescriptor,
    PropertyCapability,
    PropertyDetail,
    PropertyRequirement,
    TypeDescriptor,
)

__all__ = [
    "CONCRETE_TYPE_HINT",
    "AmbiguousResolution",
    "ConcreteResolution",
    "CreationResult",
    "EngineError",
    "EngineStatistics",
    "ErrorKind",
    "ExecutionResult",
    "ExplicitResolution",
    "InvocationError",
    "InvocationPhase",
    "LibraryLocator",
    "LibraryNotFoundError",
    "MutationCapability",
    "MutationEngine",
    "MutationKind",
    "ObjectCapabilities",
    "OperationNotFoundError",
    "ParameterCreationRequirement",
    "ParameterDescriptor",
    "PropertyCapability",
    "PropertyDetail",
    "PropertyRequirement",
    "ResolutionStatus",
    "TypeDescriptor",
    "TypeNotFoundError",
    "UniqueResolution",
    "UnresolvedConcreteTypeError",
    "UnresolvedResolution",
]
