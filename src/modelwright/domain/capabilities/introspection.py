"""Structural introspection of foreign classes.

Everything the engine knows about a foreign type comes through this module:
type hints, attributes (properties, dataclass fields, annotated attributes),
public instance methods and constructor signatures. Nothing here looks at
member names beyond the leading-underscore privacy convention.
"""

from __future__ import annotations

import dataclasses
import inspect
import types
import typing
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from logging import getLogger
from typing import TYPE_CHECKING, Any, ClassVar, Final, Union, get_args, get_origin
from uuid import UUID

from .types import ParameterDescriptor

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)

PRIMITIVE_TYPES: Final[tuple[type, ...]] = (
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    Decimal,
    datetime,
    date,
    time,
    UUID,
)
VALUE_TYPES: Final[tuple[type, ...]] = (bool, int, float, complex, Decimal, Enum)
COLLECTION_MUTATOR_PREFIXES: Final[tuple[str, ...]] = (
    "add",
    "append",
    "extend",
    "insert",
    "remove",
    "discard",
    "pop",
    "clear",
)
REQUIRED_MARKER: Final[str] = "required"


@dataclass(frozen=True, slots=True)
class AttributeInfo:
    """One public instance attribute of a class."""

    name: str
    hint: Any
    readable: bool
    writable: bool
    declaring_type: str
    marked_required: bool = False


@dataclass(frozen=True, slots=True)
class MethodInfo:
    """One public instance method of a class, ``self`` already stripped."""

    name: str
    function: Callable[..., Any]
    parameters: tuple[inspect.Parameter, ...]
    hints: dict[str, Any]

    @property
    def return_hint(self) -> Any:
        return self.hints.get("return", inspect.Signature.empty)


def is_public_name(name: str) -> bool:
    return not name.startswith("_")


def resolve_hints(obj: object) -> dict[str, Any]:
    """Evaluate annotations of ``obj``, falling back to raw annotations."""

    try:
        return typing.get_type_hints(obj, include_extras=True)
    except (NameError, TypeError, AttributeError) as exc:
        log.debug("Falling back to raw annotations for %r: %s", obj, exc)
    if isinstance(obj, type):
        merged: dict[str, Any] = {}
        for klass in reversed(obj.__mro__):
            merged.update(_own_annotations(klass))
        return merged
    try:
        return dict(inspect.get_annotations(obj))  # type: ignore[arg-type]
    except TypeError:
        return {}


def _own_annotations(klass: type) -> dict[str, Any]:
    try:
        return dict(inspect.get_annotations(klass))
    except TypeError:
        return {}


def strip_annotated(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(hint) is typing.Annotated:
        inner, *metadata = get_args(hint)
        return inner, tuple(metadata)
    return hint, ()


def unwrap_optional(hint: Any) -> tuple[Any, bool]:
    """Return ``(inner, nullable)`` for ``X | None`` style hints."""

    hint, _ = strip_annotated(hint)
    origin = get_origin(hint)
    if origin is Union or origin is types.UnionType:
        args = get_args(hint)
        remaining = tuple(arg for arg in args if arg is not type(None))
        if len(remaining) != len(args):
            if len(remaining) == 1:
                return remaining[0], True
            return Union[remaining], True  # noqa: UP007
    return hint, False


def runtime_class(hint: Any) -> type | None:
    """Return the class a hint instantiates to, if there is exactly one."""

    inner, _ = unwrap_optional(hint)
    inner, _ = strip_annotated(inner)
    if inner is inspect.Parameter.empty:
        return None
    if isinstance(inner, type) and get_origin(inner) is None:
        return inner
    origin = get_origin(inner)
    if isinstance(origin, type):
        return origin
    return None


def type_display_name(hint: Any) -> str:
    if hint is inspect.Parameter.empty or hint is inspect.Signature.empty:
        return "Any"
    if hint is None or hint is type(None):
        return "None"
    if isinstance(hint, str):
        return hint
    inner, metadata = strip_annotated(hint)
    if metadata:
        return type_display_name(inner)
    unwrapped, nullable = unwrap_optional(hint)
    if nullable:
        return f"{type_display_name(unwrapped)} | None"
    origin = get_origin(hint)
    if origin is Union or origin is types.UnionType:
        return " | ".join(type_display_name(arg) for arg in get_args(hint))
    if origin is not None:
        args = ", ".join(type_display_name(arg) for arg in get_args(hint))
        origin_name = getattr(origin, "__name__", repr(origin))
        return f"{origin_name}[{args}]" if args else origin_name
    if isinstance(hint, type):
        return hint.__name__
    return repr(hint)


def is_enum_type(cls: object) -> bool:
    return isinstance(cls, type) and issubclass(cls, Enum)


def is_primitive_hint(hint: Any) -> bool:
    cls = runtime_class(hint)
    return cls is not None and issubclass(cls, (*PRIMITIVE_TYPES, Enum))


def is_nullable_hint(hint: Any) -> bool:
    return unwrap_optional(hint)[1]


def is_value_type_hint(hint: Any) -> bool:
    """True for non-nullable numbers, booleans and enums."""

    inner, nullable = unwrap_optional(hint)
    if nullable:
        return False
    cls = runtime_class(inner)
    return cls is not None and issubclass(cls, VALUE_TYPES)


def is_collection_hint(hint: Any) -> bool:
    cls = runtime_class(hint)
    if cls is None or issubclass(cls, (str, bytes, bytearray)):
        return False
    try:
        return issubclass(cls, Iterable)
    except TypeError:
        return False


def collection_mutator_names(hint: Any) -> tuple[str, ...]:
    cls = runtime_class(hint)
    if cls is None:
        return ()
    names = {
        name
        for name in dir(cls)
        if is_public_name(name)
        and name.startswith(COLLECTION_MUTATOR_PREFIXES)
        and callable(getattr(cls, name, None))
    }
    return tuple(sorted(names))


def has_required_marker(hint: Any) -> bool:
    _, metadata = strip_annotated(hint)
    return any(isinstance(item, str) and item == REQUIRED_MARKER for item in metadata)


def zero_value(hint: Any) -> Any:
    """Return the neutral value for ``hint`` (``None`` for nullable or object types)."""

    inner, nullable = unwrap_optional(hint)
    if nullable:
        return None
    cls = runtime_class(inner)
    if cls is None:
        return None
    if issubclass(cls, Enum):
        members = list(cls)
        return members[0] if members else None
    if cls in (bool, int, float, complex, str, bytes, Decimal):
        return cls()
    return None


def is_class_var(hint: Any) -> bool:
    if isinstance(hint, str):
        return hint.startswith(("ClassVar", "typing.ClassVar"))
    return hint is ClassVar or get_origin(hint) is ClassVar


def is_abstract_class(cls: type) -> bool:
    return inspect.isabstract(cls) or bool(getattr(cls, "_is_protocol", False))


def is_subtype(candidate: type, base: type) -> bool:
    try:
        return issubclass(candidate, base)
    except TypeError:
        return base in getattr(candidate, "__mro__", ())


def _declaring_type(cls: type, name: str) -> str:
    for klass in cls.__mro__:
        if name in vars(klass) or name in _own_annotations(klass):
            return klass.__name__
    return cls.__name__


def _is_frozen_dataclass(cls: type) -> bool:
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


def iter_attributes(cls: type) -> list[AttributeInfo]:
    """Collect public instance attributes: properties first, then annotations."""

    found: dict[str, AttributeInfo] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, member in vars(klass).items():
            if not is_public_name(name) or not isinstance(member, property):
                continue
            hint = inspect.Signature.empty
            if member.fget is not None:
                hint = resolve_hints(member.fget).get("return", hint)
            found[name] = AttributeInfo(
                name=name,
                hint=hint,
                readable=member.fget is not None,
                writable=member.fset is not None,
                declaring_type=klass.__name__,
                marked_required=has_required_marker(hint),
            )

    dataclass_fields: dict[str, dataclasses.Field[Any]] = {}
    if dataclasses.is_dataclass(cls):
        dataclass_fields = {f.name: f for f in dataclasses.fields(cls)}
    frozen = _is_frozen_dataclass(cls)
    for name, hint in resolve_hints(cls).items():
        if not is_public_name(name) or name in found or is_class_var(hint):
            continue
        if isinstance(hint, dataclasses.InitVar):
            continue
        if dataclass_fields and name not in dataclass_fields:
            continue
        metadata_required = bool(
            name in dataclass_fields and dataclass_fields[name].metadata.get(REQUIRED_MARKER)
        )
        found[name] = AttributeInfo(
            name=name,
            hint=hint,
            readable=True,
            writable=not frozen,
            declaring_type=_declaring_type(cls, name),
            marked_required=metadata_required or has_required_marker(hint),
        )
    return [found[name] for name in sorted(found)]


def find_attribute(cls: type, name: str) -> AttributeInfo | None:
    for attribute in iter_attributes(cls):
        if attribute.name == name:
            return attribute
    return None


def _bindable(parameter: inspect.Parameter) -> bool:
    return parameter.kind not in (
        inspect.Parameter.VAR_POSITIONAL,
        inspect.Parameter.VAR_KEYWORD,
    )


def iter_instance_methods(cls: type) -> list[MethodInfo]:
    """Collect public instance methods defined in Python, sorted by name."""

    methods: list[MethodInfo] = []
    for name in sorted(dir(cls)):
        if not is_public_name(name):
            continue
        member = inspect.getattr_static(cls, name, None)
        if not inspect.isfunction(member):
            continue
        try:
            signature = inspect.signature(member)
        except (TypeError, ValueError):
            log.debug("Skipping %s.%s: signature unavailable", cls.__name__, name)
            continue
        parameters = tuple(signature.parameters.values())[1:]
        methods.append(
            MethodInfo(
                name=name,
                function=member,
                parameters=tuple(p for p in parameters if _bindable(p)),
                hints=resolve_hints(member),
            )
        )
    return methods


def constructor_parameters(cls: type) -> tuple[inspect.Parameter, ...] | None:
    """Return bindable constructor parameters, or ``None`` if not introspectable."""

    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return None
    return tuple(p for p in signature.parameters.values() if _bindable(p))


def constructor_hints(cls: type) -> dict[str, Any]:
    init = cls.__dict__.get("__init__") or getattr(cls, "__init__", None)
    if init is None or init is object.__init__:
        return {}
    return resolve_hints(init)


def is_default_constructible(cls: type) -> bool:
    parameters = constructor_parameters(cls)
    if parameters is None:
        return False
    return all(p.default is not inspect.Parameter.empty for p in parameters)


def describe_parameter(parameter: inspect.Parameter, hints: dict[str, Any]) -> ParameterDescriptor:
    hint = hints.get(parameter.name, parameter.annotation)
    has_default = parameter.default is not inspect.Parameter.empty
    return ParameterDescriptor(
        name=parameter.name,
        type=type_display_name(hint),
        is_optional=has_default,
        default_value=repr(parameter.default) if has_default else None,
    )


def first_doc_line(obj: object) -> str | None:
    """Return the first line of the docstring declared on ``obj`` itself."""

    doc = getattr(obj, "__doc__", None)
    if not isinstance(doc, str) or not doc.strip():
        return None
    return inspect.cleandoc(doc).splitlines()[0]
