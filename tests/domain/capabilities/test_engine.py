from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from modelwright.config import LibraryConfig
from modelwright.domain.capabilities import (
    CONCRETE_TYPE_HINT,
    ErrorKind,
    LibraryNotFoundError,
    MutationEngine,
    OperationNotFoundError,
    TypeNotFoundError,
)
from tests.support.bridges import RecordingBridge
from tests.support.widgetlib import (
    Color,
    Gauge,
    ImagePart,
    NumberPart,
    Panel,
    Sprocket,
    StringPart,
    Widget,
)


def test_add_part_with_explicit_concrete_type(
    engine: MutationEngine, bridge: RecordingBridge, widget: Widget
) -> None:
    result = engine.execute_mutation(
        "Widget",
        "MyWidget",
        "add_part",
        {CONCRETE_TYPE_HINT: "StringPart", "name": "Foo"},
    )

    assert result.success, result.error
    assert result.error is None
    assert result.saved is True
    assert result.save_message == "Saved"
    assert result.message == "Successfully executed add_part on Widget:MyWidget and saved changes"
    assert result.warnings == []
    assert result.invoked_types == {"part": "StringPart"}
    assert result.return_type == "Part"
    assert result.execution_duration_ms >= 0

    (part,) = widget.items
    assert isinstance(part, StringPart)
    assert part.name == "Foo"
    assert result.return_value is part
    assert bridge.saves == [("Widget", "MyWidget", widget)]
    assert result.updated_object_snapshot == {
        "itemsCount": 1,
        "label": "",
        "name": "MyWidget",
        "sparesCount": 0,
    }


def test_snapshot_count_grows_by_one_per_added_part(
    engine: MutationEngine, widget: Widget
) -> None:
    widget.add_part(NumberPart())

    result = engine.execute_mutation(
        "Widget", "MyWidget", "add_part", {CONCRETE_TYPE_HINT: "NumberPart", "value": 1}
    )

    assert result.updated_object_snapshot["itemsCount"] == 2


def test_ambiguous_parameter_type_uses_first_candidate_with_warning(
    engine: MutationEngine, widget: Widget
) -> None:
    result = engine.execute_mutation("Widget", "MyWidget", "add_part", {"name": "Foo"})

    assert result.success
    assert result.invoked_types == {"part": "ImagePart"}
    assert isinstance(widget.items[0], ImagePart)
    assert len(result.warnings) == 1
    assert "ImagePart, NumberPart, StringPart" in result.warnings[0]


def test_near_miss_input_keys_are_not_mapped(engine: MutationEngine, widget: Widget) -> None:
    result = engine.execute_mutation(
        "Widget",
        "MyWidget",
        "add_part",
        {CONCRETE_TYPE_HINT: "StringPart", "Title": "Foo", "Name": "Foo"},
    )

    assert result.success
    assert widget.items[0].name == ""


def test_missing_required_property_is_a_warning(engine: MutationEngine, panel: Panel) -> None:
    result = engine.execute_mutation("Panel", "Main", "mount", {"caption": "Boiler"})

    assert result.success
    assert "Required property 'code' of Gauge was not supplied" in result.warnings
    (gauge,) = panel.gauges
    assert isinstance(gauge, Gauge)
    assert gauge.code == 0
    assert gauge.caption == "Boiler"
    assert result.return_value == 1
    assert result.updated_object_snapshot["gaugesCount"] == 1


def test_setter_with_abstract_type_uses_concrete_type_hint(
    engine: MutationEngine, bridge: RecordingBridge, panel: Panel
) -> None:
    result = engine.execute_mutation(
        "Panel",
        "Main",
        "backdrop",
        {CONCRETE_TYPE_HINT: "StringPart", "name": "Cover", "text": "hello"},
    )

    assert result.success, result.error
    assert result.warnings == []
    assert isinstance(panel.backdrop, StringPart)
    assert panel.backdrop.name == "Cover"
    assert panel.backdrop.text == "hello"
    assert result.invoked_types == {"value": "StringPart"}
    assert result.return_value is None
    assert len(bridge.saves) == 1


def test_save_failure_keeps_mutation_successful(
    engine: MutationEngine, bridge: RecordingBridge, widget: Widget
) -> None:
    bridge.save_result = False

    result = engine.execute_mutation("Widget", "MyWidget", "rename", {"new_name": "Renamed"})

    assert result.success
    assert result.saved is False
    assert result.save_message == "Save failed: bridge reported failure"
    assert result.message == (
        "Successfully executed rename on Widget:MyWidget but failed to save changes"
    )
    assert widget.name == "Renamed"


def test_save_exception_keeps_mutation_successful(
    engine: MutationEngine, bridge: RecordingBridge
) -> None:
    bridge.save_error = RuntimeError("disk full")

    result = engine.execute_mutation("Widget", "MyWidget", "toggle", {"enabled": "true"})

    assert result.success
    assert result.return_value is True
    assert result.saved is False
    assert result.save_message == "Save failed: RuntimeError: disk full"


def test_invocation_failure_reports_inner_exception(
    engine: MutationEngine, bridge: RecordingBridge
) -> None:
    result = engine.execute_mutation("Widget", "MyWidget", "explode", {"reason": "boom"})

    assert not result.success
    assert result.error_kind is ErrorKind.INVOCATION_FAILURE
    assert result.error == "ValueError: boom"
    assert result.error_type == "ValueError"
    assert result.saved is None
    assert bridge.saves == []


def test_operation_names_match_exactly(engine: MutationEngine, bridge: RecordingBridge) -> None:
    result = engine.execute_mutation("Widget", "MyWidget", "AddPart", {"name": "Foo"})

    assert not result.success
    assert result.error_kind is ErrorKind.OPERATION_NOT_FOUND
    assert result.error == "Operation 'AddPart' not found on type 'Widget'"
    assert bridge.saves == []


def test_unknown_type(engine: MutationEngine) -> None:
    result = engine.execute_mutation("Gizmo", "MyWidget", "add_part")

    assert not result.success
    assert result.error_kind is ErrorKind.TYPE_NOT_FOUND
    assert result.error == "Object type 'Gizmo' not found"


def test_unknown_object(engine: MutationEngine) -> None:
    result = engine.execute_mutation("Widget", "Elsewhere", "rename", {"new_name": "x"})

    assert not result.success
    assert result.error_kind is ErrorKind.OBJECT_NOT_FOUND
    assert result.error == "Object 'Elsewhere' of type 'Widget' not found"


def test_lookup_errors_are_reported_as_missing_object(
    engine: MutationEngine, bridge: RecordingBridge
) -> None:
    bridge.lookup_error = ConnectionError("offline")

    result = engine.execute_mutation("Widget", "MyWidget", "rename", {"new_name": "x"})

    assert not result.success
    assert result.error_kind is ErrorKind.OBJECT_NOT_FOUND
    assert result.error_type == "ConnectionError"


def test_abstract_parameter_without_implementations_aborts(
    engine: MutationEngine, bridge: RecordingBridge
) -> None:
    result = engine.execute_mutation("Widget", "MyWidget", "attach", {})

    assert not result.success
    assert result.error_kind is ErrorKind.UNRESOLVED_CONCRETE_TYPE
    assert "Fixture" in (result.error or "")
    assert bridge.saves == []


def test_invalid_concrete_type_hint_aborts(engine: MutationEngine, widget: Widget) -> None:
    result = engine.execute_mutation(
        "Widget", "MyWidget", "add_part", {CONCRETE_TYPE_HINT: "Widget", "name": "Foo"}
    )

    assert not result.success
    assert result.error_kind is ErrorKind.UNRESOLVED_CONCRETE_TYPE
    assert widget.items == []


def test_setter_capabilities_assign_converted_value(
    engine: MutationEngine, widget: Widget
) -> None:
    label = engine.execute_mutation("Widget", "MyWidget", "label", {"value": "front"})
    color = engine.execute_mutation("Widget", "MyWidget", "color", {"value": "GREEN"})

    assert label.success and color.success
    assert label.return_value is None
    assert widget.label == "front"
    assert widget.color is Color.GREEN


def test_keyword_only_parameters_are_bound(engine: MutationEngine) -> None:
    result = engine.execute_mutation("Widget", "MyWidget", "resize", {"width": 4, "height": "2"})

    assert result.success
    assert result.return_value == "4x2"
    assert result.return_type == "str"


def test_missing_library_is_reported(bridge: RecordingBridge) -> None:
    engine = MutationEngine(LibraryConfig(library_name="tests.support.absent"), bridge)

    result = engine.execute_mutation("Widget", "MyWidget", "rename", {"new_name": "x"})

    assert not result.success
    assert result.error_kind is ErrorKind.LIBRARY_NOT_FOUND


def test_concurrent_mutations_on_one_object(
    engine: MutationEngine, bridge: RecordingBridge, widget: Widget
) -> None:
    def add(index: int) -> bool:
        inputs = {CONCRETE_TYPE_HINT: "StringPart", "name": f"part-{index}"}
        return engine.execute_mutation("Widget", "MyWidget", "add_part", inputs).success

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(add, range(16)))

    assert all(outcomes)
    assert sorted(part.name for part in widget.items) == sorted(f"part-{i}" for i in range(16))
    assert len(bridge.saves) == 16


def test_create_instance_resolves_abstract_types(engine: MutationEngine) -> None:
    result = engine.create_instance("Part", {CONCRETE_TYPE_HINT: "NumberPart", "value": "2.5"})

    assert result.success
    assert isinstance(result.instance, NumberPart)
    assert result.instance.value == 2.5
    assert result.warnings == []


def test_create_instance_reports_warnings(engine: MutationEngine) -> None:
    result = engine.create_instance("Sprocket")

    assert result.success
    assert isinstance(result.instance, Sprocket)
    assert "Missing required constructor argument 'teeth' for Sprocket; using 0" in result.warnings


@pytest.mark.parametrize(
    ("type_name", "inputs", "kind"),
    [
        ("Gizmo", {}, ErrorKind.TYPE_NOT_FOUND),
        ("Fixture", {}, ErrorKind.UNRESOLVED_CONCRETE_TYPE),
        ("Sprocket", {"teeth": -1}, ErrorKind.INVOCATION_FAILURE),
    ],
)
def test_create_instance_failures(
    engine: MutationEngine, type_name: str, inputs: dict[str, object], kind: ErrorKind
) -> None:
    result = engine.create_instance(type_name, inputs)

    assert not result.success
    assert result.instance is None
    assert result.error_kind is kind


def test_get_requirements(engine: MutationEngine) -> None:
    (requirement,) = engine.get_requirements("Widget", "add_part")

    assert requirement.parameter_name == "part"
    assert requirement.is_abstract

    with pytest.raises(OperationNotFoundError):
        engine.get_requirements("Widget", "AddPart")
    with pytest.raises(TypeNotFoundError):
        engine.get_requirements("Gizmo", "add_part")


def test_get_requirements_reraises_library_failure(bridge: RecordingBridge) -> None:
    engine = MutationEngine(LibraryConfig(library_name="tests.support.absent"), bridge)

    with pytest.raises(LibraryNotFoundError):
        engine.get_requirements("Widget", "add_part")


def test_statistics_and_cache_clearing(engine: MutationEngine) -> None:
    first = engine.get_capabilities("Widget")

    stats = engine.get_statistics()
    assert stats.cached_capability_count == 1
    assert stats.cached_type_count >= 1
    assert stats.supported_type_count == 7
    assert stats.library_identity is not None
    assert stats.library_identity.startswith("tests.support.widgetlib")

    engine.clear_caches()

    cleared = engine.get_statistics()
    assert cleared.cached_capability_count == 0
    assert cleared.cached_type_count == 0

    again = engine.get_capabilities("Widget")
    assert again is not first
    assert again == first


def test_statistics_without_library(bridge: RecordingBridge) -> None:
    engine = MutationEngine(LibraryConfig(library_name="tests.support.absent"), bridge)

    stats = engine.get_statistics()

    assert stats.supported_type_count == 0
    assert stats.library_identity is None
