from __future__ import annotations

import pytest

from modelwright.config import LibraryConfig
from modelwright.domain.capabilities import (
    CONCRETE_TYPE_HINT,
    AmbiguousResolution,
    ExplicitResolution,
    LibraryLocator,
    UniqueResolution,
    UnresolvedConcreteTypeError,
    UnresolvedResolution,
)
from modelwright.domain.capabilities.registry import TypeRegistry
from modelwright.domain.capabilities.resolver import ConcreteTypeResolver
from tests.support.widgetlib import Fixture, ImagePart, NumberPart, Part, Panel, StringPart, Widget


@pytest.fixture
def resolver(library_config: LibraryConfig) -> ConcreteTypeResolver:
    return ConcreteTypeResolver(TypeRegistry(LibraryLocator(library_config)))


def test_candidates_are_public_concrete_subtypes_in_name_order(
    resolver: ConcreteTypeResolver,
) -> None:
    assert resolver.candidates_for(Part) == (ImagePart, NumberPart, StringPart)


def test_ambiguous_resolution_is_deterministic(resolver: ConcreteTypeResolver) -> None:
    resolutions = [resolver.resolve(Part) for _ in range(5)]

    assert all(isinstance(resolution, AmbiguousResolution) for resolution in resolutions)
    concretes = {resolution.concrete for resolution in resolutions}  # type: ignore[union-attr]
    assert concretes == {ImagePart}
    first = resolutions[0]
    assert isinstance(first, AmbiguousResolution)
    assert first.candidates == (ImagePart, NumberPart, StringPart)
    assert "ImagePart, NumberPart, StringPart" in first.warning("Part")
    assert CONCRETE_TYPE_HINT in first.warning("Part")


@pytest.mark.parametrize("hint", ["StringPart", "tests.support.widgetlib.StringPart", StringPart])
def test_explicit_hint_is_honoured(resolver: ConcreteTypeResolver, hint: object) -> None:
    resolution = resolver.resolve(Part, {CONCRETE_TYPE_HINT: hint})

    assert resolution == ExplicitResolution(concrete=StringPart)


@pytest.mark.parametrize("hint", ["Gizmo", "Widget", "Part", "_HiddenPart"])
def test_invalid_hint_is_unresolved(resolver: ConcreteTypeResolver, hint: str) -> None:
    resolution = resolver.resolve(Part, {CONCRETE_TYPE_HINT: hint})

    assert isinstance(resolution, UnresolvedResolution)
    assert hint in resolution.reason


def test_concrete_type_resolves_to_itself(resolver: ConcreteTypeResolver) -> None:
    assert resolver.resolve(Widget) == UniqueResolution(concrete=Widget)


def test_abstract_type_without_implementations_is_unresolved(
    resolver: ConcreteTypeResolver,
) -> None:
    resolution = resolver.resolve(Fixture)

    assert isinstance(resolution, UnresolvedResolution)
    with pytest.raises(UnresolvedConcreteTypeError) as excinfo:
        resolver.require(Fixture)
    assert excinfo.value.abstract_type == "Fixture"
    assert excinfo.value.candidates == ()


def test_ambiguous_resolution_requires_two_candidates() -> None:
    with pytest.raises(ValueError, match="at least two"):
        AmbiguousResolution(concrete=StringPart, candidates=(StringPart,))


def test_inheritance_hierarchy_lists_concrete_options(resolver: ConcreteTypeResolver) -> None:
    hierarchy = resolver.build_inheritance_hierarchy(Widget)

    assert list(hierarchy) == ["Part"]
    assert [descriptor.name for descriptor in hierarchy["Part"]] == [
        "ImagePart",
        "NumberPart",
        "StringPart",
    ]


def test_inheritance_hierarchy_includes_concrete_parameter_types(
    resolver: ConcreteTypeResolver,
) -> None:
    hierarchy = resolver.build_inheritance_hierarchy(Panel)

    assert [descriptor.name for descriptor in hierarchy["Gauge"]] == ["Gauge"]


def test_inheritance_hierarchy_follows_writable_attribute_types(
    resolver: ConcreteTypeResolver,
) -> None:
    hierarchy = resolver.build_inheritance_hierarchy(Panel)

    assert [descriptor.name for descriptor in hierarchy["Part"]] == [
        "ImagePart",
        "NumberPart",
        "StringPart",
    ]
