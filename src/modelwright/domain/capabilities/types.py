"""Records describing discovered types, capabilities and execution outcomes.

Descriptors and capability documents are frozen because they are cached and
shared between concurrent callers. Result records are plain mutable dataclasses
filled in while a request runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping


class ErrorKind(StrEnum):
    """Failure categories reported on structured results."""

    LIBRARY_NOT_FOUND = "library_not_found"
    TYPE_NOT_FOUND = "type_not_found"
    OBJECT_NOT_FOUND = "object_not_found"
    OPERATION_NOT_FOUND = "operation_not_found"
    UNRESOLVED_CONCRETE_TYPE = "unresolved_concrete_type"
    INVOCATION_FAILURE = "invocation_failure"


class MutationKind(StrEnum):
    """How a mutation capability is applied to the target object."""

    METHOD = "method"
    SETTER = "setter"


class InvocationPhase(StrEnum):
    """Stages of a single mutation request."""

    RESOLVING_TYPES = "resolving_types"
    BINDING_PARAMETERS = "binding_parameters"
    INVOKING = "invoking"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class ParameterDescriptor:
    name: str
    type: str
    is_optional: bool = False
    default_value: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class TypeDescriptor:
    """Structural description of one foreign class."""

    name: str
    qualified_name: str
    module_name: str
    is_abstract: bool
    base_type_name: str | None
    constructors: tuple[tuple[ParameterDescriptor, ...], ...] = ()
    description: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class PropertyCapability:
    name: str
    type: str
    readable: bool
    writable: bool
    is_collection: bool = False
    collection_mutator_names: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class PropertyRequirement:
    """One settable attribute of a domain-object parameter.

    ``expected_input_key`` always equals ``property_name``; callers must use it
    verbatim.
    """

    property_name: str
    property_type: str
    required: bool
    expected_input_key: str
    description: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class ParameterCreationRequirement:
    parameter_name: str
    parameter_type: str
    required: bool
    is_domain_object: bool = False
    is_abstract: bool = False
    required_properties: tuple[PropertyRequirement, ...] = ()
    creation_instructions: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class MutationCapability:
    name: str
    return_type: str
    parameters: tuple[ParameterDescriptor, ...]
    parameter_requirements: tuple[ParameterCreationRequirement, ...] = ()
    kind: MutationKind = MutationKind.METHOD
    description: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class ObjectCapabilities:
    """Capability document for one foreign type."""

    object_type: str
    success: bool
    error: str | None = None
    error_kind: ErrorKind | None = None
    type_info: TypeDescriptor | None = None
    mutation_capabilities: tuple[MutationCapability, ...] = ()
    writable_properties: tuple[PropertyCapability, ...] = ()
    inheritance_hierarchy: Mapping[str, tuple[TypeDescriptor, ...]] = field(
        default_factory=dict[str, tuple[TypeDescriptor, ...]]
    )
    related_types: tuple[TypeDescriptor, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "inheritance_hierarchy", MappingProxyType(dict(self.inheritance_hierarchy))
        )

    def find_mutation(self, name: str) -> MutationCapability | None:
        for capability in self.mutation_capabilities:
            if capability.name == name:
                return capability
        return None

    @classmethod
    def failure(cls, object_type: str, *, error: str, error_kind: ErrorKind) -> ObjectCapabilities:
        return cls(object_type=object_type, success=False, error=error, error_kind=error_kind)


@dataclass(slots=True, kw_only=True)
class ExecutionResult:
    """Outcome of one ``execute_mutation`` request."""

    object_type: str
    object_name: str
    operation_name: str
    success: bool = False
    error: str | None = None
    error_kind: ErrorKind | None = None
    error_type: str | None = None
    message: str | None = None
    return_value: Any = None
    return_type: str | None = None
    execution_duration_ms: float = 0.0
    updated_object_snapshot: dict[str, Any] = field(default_factory=dict[str, Any])
    invoked_types: dict[str, str] = field(default_factory=dict[str, str])
    warnings: list[str] = field(default_factory=list[str])
    saved: bool | None = None
    save_message: str | None = None

    def fail(self, error: str, *, kind: ErrorKind, error_type: str | None = None) -> None:
        self.success = False
        self.error = error
        self.error_kind = kind
        self.error_type = error_type


@dataclass(slots=True, kw_only=True)
class CreationResult:
    """Outcome of building a standalone foreign object from inputs."""

    type_name: str
    success: bool = False
    error: str | None = None
    error_kind: ErrorKind | None = None
    instance: Any = None
    warnings: list[str] = field(default_factory=list[str])
    execution_duration_ms: float = 0.0


@dataclass(frozen=True, slots=True, kw_only=True)
class PropertyDetail:
    name: str
    type: str
    readable: bool
    writable: bool
    declaring_type: str | None = None
    possible_values: tuple[str, ...] = ()
    current_value: Any = None


@dataclass(frozen=True, slots=True, kw_only=True)
class EngineStatistics:
    cached_type_count: int
    cached_capability_count: int
    supported_type_count: int
    library_identity: str | None
