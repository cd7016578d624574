"""Discover the mutation capabilities of foreign types."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from .cache import ComputeCache
from .errors import LibraryNotFoundError, TypeNotFoundError
from .introspection import (
    collection_mutator_names,
    describe_parameter,
    first_doc_line,
    is_abstract_class,
    is_collection_hint,
    is_enum_type,
    is_public_name,
    iter_attributes,
    iter_instance_methods,
    runtime_class,
    type_display_name,
)
from .requirements import SETTER_PARAMETER
from .types import (
    ErrorKind,
    MutationCapability,
    MutationKind,
    ObjectCapabilities,
    ParameterDescriptor,
    PropertyCapability,
    PropertyDetail,
    TypeDescriptor,
)

if TYPE_CHECKING:
    from .introspection import AttributeInfo
    from .registry import TypeRegistry
    from .requirements import RequirementBuilder
    from .resolver import ConcreteTypeResolver

log = getLogger(__name__)


class CapabilityAnalyzer:
    """Build and cache :class:`ObjectCapabilities` documents per type name.

    A mutation is any public instance method taking at least one argument
    besides ``self``, or any writable attribute (exposed as a ``setter``
    capability with a single ``value`` parameter). Member names play no role.
    """

    def __init__(
        self,
        registry: TypeRegistry,
        resolver: ConcreteTypeResolver,
        requirements: RequirementBuilder,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._requirements = requirements
        self._capabilities: ComputeCache[str, ObjectCapabilities] = ComputeCache("capabilities")

    @property
    def cached_count(self) -> int:
        return len(self._capabilities)

    def get_capabilities(self, type_name: str) -> ObjectCapabilities:
        try:
            return self._capabilities.get_or_compute(type_name, self._analyze)
        except LibraryNotFoundError as exc:
            return ObjectCapabilities.failure(
                type_name, error=str(exc), error_kind=ErrorKind.LIBRARY_NOT_FOUND
            )
        except TypeNotFoundError as exc:
            return ObjectCapabilities.failure(
                type_name, error=str(exc), error_kind=ErrorKind.TYPE_NOT_FOUND
            )

    def _analyze(self, type_name: str) -> ObjectCapabilities:
        descriptor = self._registry.get_type(type_name)
        if descriptor is None:
            raise TypeNotFoundError(type_name)
        cls = self._registry.class_of(descriptor)
        log.info("Analyzing capabilities of %s", descriptor.qualified_name)

        mutations = self._method_mutations(cls)
        method_names = {mutation.name for mutation in mutations}
        properties: list[PropertyCapability] = []
        for attribute in iter_attributes(cls):
            is_collection = is_collection_hint(attribute.hint)
            if attribute.readable and attribute.writable:
                properties.append(self._property_capability(attribute, is_collection=is_collection))
            if attribute.writable and attribute.name not in method_names:
                mutations.append(self._setter_mutation(cls, attribute))

        hierarchy = self._resolver.build_inheritance_hierarchy(cls)
        return ObjectCapabilities(
            object_type=type_name,
            success=True,
            type_info=descriptor,
            mutation_capabilities=tuple(sorted(mutations, key=lambda m: m.name)),
            writable_properties=tuple(properties),
            inheritance_hierarchy=hierarchy,
            related_types=_related_types(hierarchy),
        )

    def _method_mutations(self, cls: type) -> list[MutationCapability]:
        mutations: list[MutationCapability] = []
        for method in iter_instance_methods(cls):
            if not method.parameters:
                continue
            mutations.append(
                MutationCapability(
                    name=method.name,
                    return_type=type_display_name(method.return_hint),
                    parameters=tuple(
                        describe_parameter(p, method.hints) for p in method.parameters
                    ),
                    parameter_requirements=self._requirements.for_method(method),
                    kind=MutationKind.METHOD,
                    description=(
                        first_doc_line(method.function) or f"Call {cls.__name__}.{method.name}"
                    ),
                )
            )
        return mutations

    def _setter_mutation(self, cls: type, attribute: AttributeInfo) -> MutationCapability:
        return MutationCapability(
            name=attribute.name,
            return_type="None",
            parameters=(
                ParameterDescriptor(name=SETTER_PARAMETER, type=type_display_name(attribute.hint)),
            ),
            parameter_requirements=self._requirements.for_attribute(attribute),
            kind=MutationKind.SETTER,
            description=f"Set {cls.__name__}.{attribute.name}",
        )

    @staticmethod
    def _property_capability(
        attribute: AttributeInfo, *, is_collection: bool
    ) -> PropertyCapability:
        return PropertyCapability(
            name=attribute.name,
            type=type_display_name(attribute.hint),
            readable=attribute.readable,
            writable=attribute.writable,
            is_collection=is_collection,
            collection_mutator_names=(
                collection_mutator_names(attribute.hint) if is_collection else ()
            ),
        )

    def discover_available_types(self) -> tuple[TypeDescriptor, ...]:
        """Concrete domain types that expose at least one mutation."""

        config = self._registry.locator.config
        found: list[TypeDescriptor] = []
        for cls in self._registry.library_types():
            if (
                not is_public_name(cls.__name__)
                or is_abstract_class(cls)
                or is_enum_type(cls)
                or not config.follows_naming_convention(cls.__name__)
            ):
                continue
            descriptor = self._registry.describe(cls)
            capabilities = self.get_capabilities(descriptor.qualified_name)
            if capabilities.success and capabilities.mutation_capabilities:
                found.append(descriptor)
        return tuple(sorted(found, key=lambda d: (d.name, d.qualified_name)))

    def describe_properties(
        self, type_name: str, instance: object | None = None
    ) -> tuple[PropertyDetail, ...]:
        """List public attributes with enum choices and, given an instance, current values."""

        cls = self._registry.type_for(type_name)
        if cls is None:
            raise TypeNotFoundError(type_name)
        details: list[PropertyDetail] = []
        for attribute in iter_attributes(cls):
            enum_class = runtime_class(attribute.hint)
            possible: tuple[str, ...] = ()
            if is_enum_type(enum_class):
                possible = tuple(member.name for member in enum_class)  # type: ignore[attr-defined]
            details.append(
                PropertyDetail(
                    name=attribute.name,
                    type=type_display_name(attribute.hint),
                    readable=attribute.readable,
                    writable=attribute.writable,
                    declaring_type=attribute.declaring_type,
                    possible_values=possible,
                    current_value=(
                        _current_value(instance, attribute) if instance is not None else None
                    ),
                )
            )
        return tuple(details)

    def clear(self) -> None:
        self._capabilities.clear()


def _current_value(instance: object, attribute: AttributeInfo) -> Any:
    if not attribute.readable:
        return None
    try:
        return getattr(instance, attribute.name)
    except Exception as exc:  # noqa: BLE001
        log.warning("Reading %s failed: %s", attribute.name, exc)
        return None


def _related_types(hierarchy: dict[str, tuple[TypeDescriptor, ...]]) -> tuple[TypeDescriptor, ...]:
    seen: dict[str, TypeDescriptor] = {}
    for descriptors in hierarchy.values():
        for descriptor in descriptors:
            if not descriptor.is_abstract:
                seen.setdefault(descriptor.qualified_name, descriptor)
    return tuple(seen.values())
