"""Dispatch tool-layer requests to the mutation engine."""

from __future__ import annotations

import time
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from pydantic import TypeAdapter, ValidationError

from modelwright.domain.capabilities import EngineError

from .schema import CapabilitiesParameters, ModificationParameters, ToolRequest, ToolResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from modelwright.domain.capabilities import MutationEngine

log = getLogger(__name__)

DISCOVER_TYPES: Final[str] = "discoverAvailableTypes"
DISCOVER_CAPABILITIES: Final[str] = "discoverModificationCapabilities"
EXECUTE_MODIFICATION: Final[str] = "executeObjectModification"
CLEAR_CACHES: Final[str] = "clearCaches"
STATISTICS: Final[str] = "statistics"

_JSONABLE: Final[TypeAdapter[Any]] = TypeAdapter(Any)


def to_jsonable(value: object) -> Any:
    """Convert engine records into JSON-ready structures; unknown objects become ``str``."""

    return _JSONABLE.dump_python(value, mode="json", fallback=_fallback)


def _fallback(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    return str(value)


def _describe_validation_error(exc: ValidationError) -> str:
    problems: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "request"
        if error["type"] == "missing":
            problems.append(f"{location} parameter is required")
        else:
            problems.append(f"{location}: {error['msg']}")
    return "; ".join(problems)


class ToolRequestHandler:
    """Validate raw request mappings and answer with ``{"success", "data", "error"}``."""

    def __init__(self, engine: MutationEngine) -> None:
        self._engine = engine
        self._actions: dict[str, Callable[[dict[str, Any]], Any]] = {
            DISCOVER_TYPES: self._discover_types,
            DISCOVER_CAPABILITIES: self._discover_capabilities,
            EXECUTE_MODIFICATION: self._execute_modification,
            CLEAR_CACHES: self._clear_caches,
            STATISTICS: self._statistics,
        }

    @property
    def supported_actions(self) -> tuple[str, ...]:
        return tuple(sorted(self._actions))

    def handle(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        started = time.perf_counter()
        request_id = payload.get("id") if isinstance(payload.get("id"), str) else None
        try:
            request = ToolRequest.model_validate(payload)
        except ValidationError as exc:
            response = ToolResponse(
                id=request_id, success=False, error=_describe_validation_error(exc)
            )
            return self._finish(response, started)

        action = self._actions.get(request.action)
        if action is None:
            response = ToolResponse(
                id=request.id, success=False, error=f"Unsupported action '{request.action}'"
            )
            return self._finish(response, started)

        log.info("Handling %s request %s", request.action, request.id or "-")
        try:
            data = action(request.parameters)
        except ValidationError as exc:
            response = ToolResponse(
                id=request.id, success=False, error=_describe_validation_error(exc)
            )
        except EngineError as exc:
            log.error("Request %s failed: %s", request.action, exc)
            response = ToolResponse(id=request.id, success=False, error=str(exc))
        else:
            success = bool(data.get("success", True)) if isinstance(data, dict) else True
            error = data.get("error") if isinstance(data, dict) and not success else None
            response = ToolResponse(id=request.id, success=success, data=data, error=error)
        return self._finish(response, started)

    @staticmethod
    def _finish(response: ToolResponse, started: float) -> dict[str, Any]:
        response.processing_time_ms = (time.perf_counter() - started) * 1000
        return response.model_dump(by_alias=True)

    def _discover_types(self, parameters: dict[str, Any]) -> Any:
        _ = parameters
        return to_jsonable(self._engine.discover_available_types())

    def _discover_capabilities(self, parameters: dict[str, Any]) -> Any:
        validated = CapabilitiesParameters.model_validate(parameters)
        return to_jsonable(self._engine.get_capabilities(validated.object_type))

    def _execute_modification(self, parameters: dict[str, Any]) -> Any:
        validated = ModificationParameters.model_validate(parameters)
        result = self._engine.execute_mutation(
            validated.object_type,
            validated.object_name,
            validated.method_name,
            validated.parameters,
        )
        return to_jsonable(result)

    def _clear_caches(self, parameters: dict[str, Any]) -> Any:
        _ = parameters
        self._engine.clear_caches()
        return {"cleared": True}

    def _statistics(self, parameters: dict[str, Any]) -> Any:
        _ = parameters
        return to_jsonable(self._engine.get_statistics())
