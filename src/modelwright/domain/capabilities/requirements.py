"""Describe what a caller has to supply for each parameter of a mutation."""

from __future__ import annotations

import inspect
from logging import getLogger
from typing import TYPE_CHECKING, Any

from .cache import ComputeCache
from .introspection import (
    is_abstract_class,
    is_primitive_hint,
    is_value_type_hint,
    iter_attributes,
    runtime_class,
    type_display_name,
)
from .resolver import CONCRETE_TYPE_HINT
from .types import ParameterCreationRequirement, PropertyRequirement

if TYPE_CHECKING:
    from .introspection import AttributeInfo, MethodInfo
    from .registry import TypeRegistry
    from .resolver import ConcreteTypeResolver

log = getLogger(__name__)

SETTER_PARAMETER = "value"


class RequirementBuilder:
    """Derive parameter and property requirements from structure alone.

    A property is required only when it holds a non-nullable number, boolean or
    enum, or when it is explicitly marked required. Input keys are the property
    names verbatim.
    """

    def __init__(self, registry: TypeRegistry, resolver: ConcreteTypeResolver) -> None:
        self._registry = registry
        self._resolver = resolver
        self._properties: ComputeCache[type, tuple[PropertyRequirement, ...]] = ComputeCache(
            "property-requirements"
        )

    @property
    def cached_count(self) -> int:
        return len(self._properties)

    def property_requirements(self, cls: type) -> tuple[PropertyRequirement, ...]:
        return self._properties.get_or_compute(cls, self._derive_properties)

    def _derive_properties(self, cls: type) -> tuple[PropertyRequirement, ...]:
        requirements: list[PropertyRequirement] = []
        for attribute in iter_attributes(cls):
            if not (attribute.readable and attribute.writable):
                continue
            property_type = type_display_name(attribute.hint)
            requirements.append(
                PropertyRequirement(
                    property_name=attribute.name,
                    property_type=property_type,
                    required=attribute.marked_required or is_value_type_hint(attribute.hint),
                    expected_input_key=attribute.name,
                    description=f"{property_type} value for {cls.__name__}.{attribute.name}",
                )
            )
        log.debug("Derived %d property requirements for %s", len(requirements), cls.__name__)
        return tuple(requirements)

    def for_method(self, method: MethodInfo) -> tuple[ParameterCreationRequirement, ...]:
        return tuple(
            self.for_parameter(
                parameter.name,
                method.hints.get(parameter.name, parameter.annotation),
                required=parameter.default is inspect.Parameter.empty,
            )
            for parameter in method.parameters
        )

    def for_attribute(self, attribute: AttributeInfo) -> tuple[ParameterCreationRequirement, ...]:
        return (self.for_parameter(SETTER_PARAMETER, attribute.hint, required=True),)

    def for_parameter(
        self, name: str, hint: Any, *, required: bool
    ) -> ParameterCreationRequirement:
        parameter_type = type_display_name(hint)
        cls = runtime_class(hint)
        if cls is None or is_primitive_hint(hint) or not self._registry.is_domain_class(cls):
            return ParameterCreationRequirement(
                parameter_name=name,
                parameter_type=parameter_type,
                required=required,
                creation_instructions=f"Provide '{name}' as {parameter_type}.",
            )
        properties = self.property_requirements(cls)
        abstract = is_abstract_class(cls)
        if abstract:
            options = ", ".join(c.__name__ for c in self._resolver.candidates_for(cls)) or "none"
            instructions = (
                f"{cls.__name__} is abstract; pass '{CONCRETE_TYPE_HINT}' naming one of "
                f"{options} and its property values as input keys."
            )
        else:
            keys = ", ".join(p.expected_input_key for p in properties) or "no properties"
            instructions = f"Build {cls.__name__} from input keys: {keys}."
        return ParameterCreationRequirement(
            parameter_name=name,
            parameter_type=parameter_type,
            required=required,
            is_domain_object=True,
            is_abstract=abstract,
            required_properties=properties,
            creation_instructions=instructions,
        )

    def clear(self) -> None:
        self._properties.clear()
