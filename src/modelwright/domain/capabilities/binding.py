"""Turn flat caller inputs into arguments and foreign object instances."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final
from uuid import UUID

from .errors import InvocationError
from .introspection import (
    constructor_hints,
    constructor_parameters,
    is_primitive_hint,
    iter_attributes,
    runtime_class,
    type_display_name,
    unwrap_optional,
    zero_value,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .registry import TypeRegistry
    from .requirements import RequirementBuilder

log = getLogger(__name__)

TRUE_STRINGS: Final[frozenset[str]] = frozenset({"true", "1", "yes", "y", "on"})
FALSE_STRINGS: Final[frozenset[str]] = frozenset({"false", "0", "no", "n", "off"})


class CoercionError(ValueError):
    """Raised when an input value cannot be converted to the target type."""


def _coerce_enum(enum_type: type[Enum], value: Any) -> Enum:
    if isinstance(value, str):
        member = enum_type.__members__.get(value.strip())
        if member is not None:
            return member
    try:
        return enum_type(value)
    except ValueError:
        pass
    ordinal: int | None = None
    if isinstance(value, int) and not isinstance(value, bool):
        ordinal = value
    elif isinstance(value, str) and value.strip().isdigit():
        ordinal = int(value.strip())
    members = list(enum_type)
    if ordinal is not None and 0 <= ordinal < len(members):
        return members[ordinal]
    raise CoercionError(f"{value!r} is not a member of {enum_type.__name__}")


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    elif isinstance(value, (int, float, Decimal)) and value in (0, 1):
        return bool(value)
    raise CoercionError(f"{value!r} is not a boolean")


def _coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float | Decimal):
        if value != int(value):
            raise CoercionError(f"{value!r} would lose precision as int")
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise CoercionError(f"{value!r} is not an integer")


def _coerce_scalar(target: type, value: Any) -> Any:
    if target is bool:
        return _coerce_bool(value)
    if target is int:
        return _coerce_int(value)
    if target is float:
        if isinstance(value, int | Decimal | str) and not isinstance(value, bool):
            return float(value)
    elif target is complex:
        if isinstance(value, int | float | str) and not isinstance(value, bool):
            return complex(value)
    elif target is Decimal:
        if isinstance(value, int | float | str) and not isinstance(value, bool):
            return Decimal(str(value))
    elif target is str:
        if isinstance(value, Enum):
            return value.name
        if isinstance(value, int | float | Decimal | complex | UUID):
            return str(value)
    elif target is bytes:
        if isinstance(value, str):
            return value.encode("utf-8")
    elif target in (datetime, date, time):
        if isinstance(value, str):
            return target.fromisoformat(value.strip())  # type: ignore[attr-defined]
    elif target is UUID:
        if isinstance(value, str):
            return UUID(value.strip())
    raise CoercionError(f"cannot convert {type(value).__name__} to {target.__name__}")


def coerce(value: Any, hint: Any) -> Any:
    """Convert ``value`` to ``hint`` the way a native conversion would.

    Numbers widen, booleans accept common strings and enums match by member
    name, then by value, then by zero-based position. Values already of the
    target type pass through. Anything else raises :class:`CoercionError`.
    """

    target, nullable = unwrap_optional(hint)
    if value is None:
        if nullable or runtime_class(target) is None:
            return None
        raise CoercionError(f"None is not allowed for {type_display_name(hint)}")
    cls = runtime_class(target)
    if cls is None:
        return value
    if isinstance(value, cls) and not (isinstance(value, bool) and cls is not bool):
        return value
    try:
        if issubclass(cls, Enum):
            return _coerce_enum(cls, value)
        if is_primitive_hint(cls):
            return _coerce_scalar(cls, value)
        sequence_types = (list, tuple, set, frozenset)
        if cls in sequence_types and isinstance(value, sequence_types):
            return cls(value)
    except CoercionError:
        raise
    except (ValueError, TypeError, InvalidOperation, OverflowError) as exc:
        message = f"cannot convert {value!r} to {type_display_name(hint)}: {exc}"
        raise CoercionError(message) from exc
    raise CoercionError(f"cannot convert {type(value).__name__} to {type_display_name(hint)}")


class InstanceBuilder:
    """Bind caller inputs to parameters and construct domain objects.

    Primitive parameters are taken by exact name. Domain objects are built from
    the constructor signature of their resolved class, then their writable
    properties are set from inputs keyed by the exact property name. Problems
    that do not prevent building the object become warnings.
    """

    def __init__(self, registry: TypeRegistry, requirements: RequirementBuilder) -> None:
        self._registry = registry
        self._requirements = requirements

    def is_domain_hint(self, hint: Any) -> bool:
        cls = runtime_class(hint)
        if cls is None or is_primitive_hint(hint):
            return False
        return self._registry.is_domain_class(cls)

    def bind_arguments(
        self,
        parameters: Sequence[inspect.Parameter],
        hints: Mapping[str, Any],
        inputs: Mapping[str, Any],
        *,
        concrete_types: Mapping[str, type],
        warnings: list[str],
    ) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter in parameters:
            hint = hints.get(parameter.name, parameter.annotation)
            value = self.bind_value(
                parameter.name,
                hint,
                inputs,
                required=parameter.default is inspect.Parameter.empty,
                default=parameter.default,
                concrete=concrete_types.get(parameter.name),
                warnings=warnings,
            )
            if parameter.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[parameter.name] = value
        return args, kwargs

    def bind_value(
        self,
        name: str,
        hint: Any,
        inputs: Mapping[str, Any],
        *,
        required: bool,
        default: Any = inspect.Parameter.empty,
        concrete: type | None = None,
        warnings: list[str],
    ) -> Any:
        target = concrete or (runtime_class(hint) if self.is_domain_hint(hint) else None)
        if target is not None:
            return self._bind_domain_object(
                name, target, inputs, required=required, default=default, warnings=warnings
            )
        if name in inputs:
            return self._coerce_or_zero(name, inputs[name], hint, warnings)
        if required:
            fallback = zero_value(hint)
            warnings.append(f"Missing required parameter '{name}'; using {fallback!r}")
            return fallback
        return default

    def _bind_domain_object(
        self,
        name: str,
        target: type,
        inputs: Mapping[str, Any],
        *,
        required: bool,
        default: Any,
        warnings: list[str],
    ) -> Any:
        supplied = inputs.get(name)
        if isinstance(supplied, target):
            return supplied
        source: Mapping[str, Any] = supplied if isinstance(supplied, Mapping) else inputs
        if not required and name not in inputs and not self._mentions_properties(target, source):
            return default
        return self.build(target, source, warnings=warnings)

    def _mentions_properties(self, cls: type, inputs: Mapping[str, Any]) -> bool:
        return any(
            requirement.expected_input_key in inputs
            for requirement in self._requirements.property_requirements(cls)
        )

    def build(self, cls: type, inputs: Mapping[str, Any], *, warnings: list[str]) -> Any:
        """Construct ``cls`` from ``inputs`` and set its writable properties."""

        parameters = constructor_parameters(cls) or ()
        hints = constructor_hints(cls)
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter in parameters:
            hint = hints.get(parameter.name, parameter.annotation)
            if parameter.name in inputs:
                value = self._coerce_or_zero(parameter.name, inputs[parameter.name], hint, warnings)
            elif parameter.default is not inspect.Parameter.empty:
                value = parameter.default
            else:
                value = zero_value(hint)
                warnings.append(
                    f"Missing required constructor argument '{parameter.name}' for "
                    f"{cls.__name__}; using {value!r}"
                )
            if parameter.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[parameter.name] = value
        try:
            instance = cls(*args, **kwargs)
        except Exception as exc:
            raise InvocationError(f"{cls.__name__}()", exc) from exc

        consumed = {parameter.name for parameter in parameters}
        attribute_hints = {attribute.name: attribute.hint for attribute in iter_attributes(cls)}
        for requirement in self._requirements.property_requirements(cls):
            key = requirement.expected_input_key
            if key not in inputs:
                if requirement.required:
                    warnings.append(
                        f"Required property '{key}' of {cls.__name__} was not supplied"
                    )
                continue
            if key in consumed:
                continue
            self._set_property(instance, key, inputs[key], attribute_hints.get(key), warnings)
        log.debug("Built %s with %d warning(s)", cls.__name__, len(warnings))
        return instance

    def _set_property(
        self, instance: object, key: str, raw: Any, hint: Any, warnings: list[str]
    ) -> None:
        if hint is not None and self.is_domain_hint(hint):
            try:
                value = coerce(raw, hint)
            except CoercionError as exc:
                warnings.append(f"Property '{key}' left unset: {exc}")
                return
        else:
            value = self._coerce_or_zero(key, raw, hint, warnings)
        try:
            setattr(instance, key, value)
        except (AttributeError, TypeError, ValueError) as exc:
            warnings.append(f"Could not set property '{key}': {type(exc).__name__}: {exc}")

    @staticmethod
    def _coerce_or_zero(name: str, raw: Any, hint: Any, warnings: list[str]) -> Any:
        try:
            return coerce(raw, hint)
        except CoercionError as exc:
            fallback = zero_value(hint)
            warnings.append(f"Could not convert '{name}': {exc}; using {fallback!r}")
            return fallback
