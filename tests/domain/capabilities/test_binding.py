from __future__ import annotations

import inspect
from datetime import date
from typing import Any

import pytest

from modelwright.config import LibraryConfig
from modelwright.domain.capabilities import InvocationError, LibraryLocator
from modelwright.domain.capabilities.binding import CoercionError, InstanceBuilder, coerce
from modelwright.domain.capabilities.introspection import iter_instance_methods
from modelwright.domain.capabilities.registry import TypeRegistry
from modelwright.domain.capabilities.requirements import RequirementBuilder
from modelwright.domain.capabilities.resolver import ConcreteTypeResolver
from tests.support.widgetlib import Color, Gauge, NumberPart, Sprocket, StringPart, Widget


@pytest.fixture
def builder(library_config: LibraryConfig) -> InstanceBuilder:
    registry = TypeRegistry(LibraryLocator(library_config))
    return InstanceBuilder(registry, RequirementBuilder(registry, ConcreteTypeResolver(registry)))


@pytest.mark.parametrize(
    ("value", "hint", "expected"),
    [
        ("42", int, 42),
        (3.0, int, 3),
        (True, int, 1),
        (1, float, 1.0),
        ("2.5", float, 2.5),
        ("yes", bool, True),
        ("off", bool, False),
        (5, str, "5"),
        ("GREEN", Color, Color.GREEN),
        ("blue", Color, Color.BLUE),
        (0, Color, Color.RED),
        ("2", Color, Color.BLUE),
        ("2024-01-02", date, date(2024, 1, 2)),
        (None, str | None, None),
        ([1, 2], tuple, (1, 2)),
    ],
)
def test_coerce_converts_like_native_conversion(value: Any, hint: Any, expected: Any) -> None:
    result = coerce(value, hint)

    assert result == expected
    assert type(result) is type(expected)


def test_coerce_passes_values_through_for_unannotated_parameters() -> None:
    marker = object()

    assert coerce(marker, inspect.Parameter.empty) is marker


@pytest.mark.parametrize(
    ("value", "hint"),
    [
        (3.5, int),
        ("maybe", bool),
        ("PURPLE", Color),
        (7, Color),
        (None, int),
        ("abc", float),
    ],
)
def test_coerce_rejects_unconvertible_values(value: Any, hint: Any) -> None:
    with pytest.raises(CoercionError):
        coerce(value, hint)


def test_build_sets_properties_by_exact_name(builder: InstanceBuilder) -> None:
    warnings: list[str] = []

    part = builder.build(StringPart, {"name": "Foo", "text": "hello"}, warnings=warnings)

    assert isinstance(part, StringPart)
    assert part.name == "Foo"
    assert part.text == "hello"
    assert warnings == []


def test_build_ignores_near_miss_keys(builder: InstanceBuilder) -> None:
    warnings: list[str] = []

    part = builder.build(StringPart, {"Name": "Foo", "title": "x"}, warnings=warnings)

    assert part.name == ""
    assert warnings == []


def test_build_warns_for_missing_required_properties(builder: InstanceBuilder) -> None:
    warnings: list[str] = []

    gauge = builder.build(Gauge, {"caption": "Boiler"}, warnings=warnings)

    assert gauge.caption == "Boiler"
    assert gauge.code == 0
    assert warnings == [
        "Required property 'code' of Gauge was not supplied",
        "Required property 'serial' of Gauge was not supplied",
        "Required property 'unit_label' of Gauge was not supplied",
    ]


def test_build_uses_zero_value_for_missing_constructor_arguments(
    builder: InstanceBuilder,
) -> None:
    warnings: list[str] = []

    sprocket = builder.build(Sprocket, {}, warnings=warnings)

    assert sprocket.teeth == 0
    assert sprocket.description == "sprocket"
    assert warnings[0] == "Missing required constructor argument 'teeth' for Sprocket; using 0"


def test_build_converts_constructor_arguments(builder: InstanceBuilder) -> None:
    warnings: list[str] = []

    sprocket = builder.build(Sprocket, {"teeth": "12"}, warnings=warnings)

    assert sprocket.teeth == 12
    assert warnings == []


def test_build_falls_back_to_zero_value_on_conversion_failure(builder: InstanceBuilder) -> None:
    warnings: list[str] = []

    part = builder.build(NumberPart, {"value": "abc"}, warnings=warnings)

    assert part.value == 0.0
    assert len(warnings) == 1
    assert warnings[0].startswith("Could not convert 'value'")


def test_build_wraps_constructor_failures(builder: InstanceBuilder) -> None:
    with pytest.raises(InvocationError) as excinfo:
        builder.build(Sprocket, {"teeth": -1}, warnings=[])

    assert excinfo.value.inner_type == "ValueError"
    assert excinfo.value.operation_name == "Sprocket()"


def _method(name: str) -> tuple[tuple[inspect.Parameter, ...], dict[str, Any]]:
    method = next(m for m in iter_instance_methods(Widget) if m.name == name)
    return method.parameters, method.hints


def test_bind_arguments_converts_primitives_and_applies_defaults(
    builder: InstanceBuilder,
) -> None:
    parameters, hints = _method("resize")
    warnings: list[str] = []

    args, kwargs = builder.bind_arguments(
        parameters, hints, {"width": "3"}, concrete_types={}, warnings=warnings
    )

    assert args == []
    assert kwargs == {"width": 3, "height": 10}
    assert warnings == []


def test_bind_arguments_warns_for_missing_required_primitive(builder: InstanceBuilder) -> None:
    parameters, hints = _method("resize")
    warnings: list[str] = []

    _, kwargs = builder.bind_arguments(parameters, hints, {}, concrete_types={}, warnings=warnings)

    assert kwargs["width"] == 0
    assert warnings == ["Missing required parameter 'width'; using 0"]


def test_bind_arguments_builds_domain_objects_from_flat_inputs(builder: InstanceBuilder) -> None:
    parameters, hints = _method("add_part")

    _, kwargs = builder.bind_arguments(
        parameters,
        hints,
        {"name": "Foo"},
        concrete_types={"part": StringPart},
        warnings=[],
    )

    assert isinstance(kwargs["part"], StringPart)
    assert kwargs["part"].name == "Foo"


def test_bind_arguments_accepts_nested_mapping(builder: InstanceBuilder) -> None:
    parameters, hints = _method("add_part")

    _, kwargs = builder.bind_arguments(
        parameters,
        hints,
        {"part": {"name": "Nested", "value": 4}},
        concrete_types={"part": NumberPart},
        warnings=[],
    )

    assert isinstance(kwargs["part"], NumberPart)
    assert kwargs["part"].name == "Nested"
    assert kwargs["part"].value == 4.0


def test_bind_arguments_passes_existing_instances_through(builder: InstanceBuilder) -> None:
    parameters, hints = _method("add_part")
    existing = StringPart()

    _, kwargs = builder.bind_arguments(
        parameters, hints, {"part": existing}, concrete_types={}, warnings=[]
    )

    assert kwargs["part"] is existing


def test_bind_value_builds_concrete_type_for_unannotated_parameter(
    builder: InstanceBuilder,
) -> None:
    warnings: list[str] = []

    part = builder.bind_value(
        "part",
        inspect.Parameter.empty,
        {"name": "Foo", "text": "bar"},
        required=True,
        concrete=StringPart,
        warnings=warnings,
    )
    width = builder.bind_value("width", int, {"width": "7"}, required=True, warnings=warnings)

    assert isinstance(part, StringPart)
    assert (part.name, part.text) == ("Foo", "bar")
    assert width == 7
    assert warnings == []
