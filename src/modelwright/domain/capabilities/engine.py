"""Engine facade: discovery, requirement lookup and mutation execution."""

from __future__ import annotations

import inspect
import time
from logging import getLogger
from typing import TYPE_CHECKING, Any

from .analyzer import CapabilityAnalyzer
from .binding import InstanceBuilder
from .errors import (
    InvocationError,
    LibraryNotFoundError,
    OperationNotFoundError,
    TypeNotFoundError,
    UnresolvedConcreteTypeError,
)
from .introspection import find_attribute, is_abstract_class, iter_instance_methods, runtime_class
from .locator import LibraryLocator
from .registry import TypeRegistry
from .requirements import SETTER_PARAMETER, RequirementBuilder
from .resolver import AmbiguousResolution, ConcreteTypeResolver
from .snapshot import take_snapshot
from .types import (
    CreationResult,
    EngineStatistics,
    ErrorKind,
    ExecutionResult,
    InvocationPhase,
    MutationKind,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from modelwright.config import LibraryConfig
    from modelwright.domain.ports import PersistenceBridge

    from .types import (
        MutationCapability,
        ObjectCapabilities,
        ParameterCreationRequirement,
        PropertyDetail,
        TypeDescriptor,
    )

log = getLogger(__name__)


class _Aborted(Exception):
    """Internal signal that ``result`` already carries the failure."""


class MutationEngine:
    """Discover and apply mutations on objects of a foreign object model.

    The engine owns its caches; construct one per library configuration and
    share it between request workers. Discovery failures come back as
    structured results, never as exceptions, except for
    :meth:`list_supported_types` and :meth:`discover_available_types` which
    raise :class:`LibraryNotFoundError`.
    """

    def __init__(
        self,
        config: LibraryConfig,
        bridge: PersistenceBridge,
        *,
        locator: LibraryLocator | None = None,
    ) -> None:
        self._locator = locator or LibraryLocator(config)
        self._registry = TypeRegistry(self._locator)
        self._resolver = ConcreteTypeResolver(self._registry)
        self._requirements = RequirementBuilder(self._registry, self._resolver)
        self._analyzer = CapabilityAnalyzer(self._registry, self._resolver, self._requirements)
        self._builder = InstanceBuilder(self._registry, self._requirements)
        self._bridge = bridge

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    @property
    def analyzer(self) -> CapabilityAnalyzer:
        return self._analyzer

    @property
    def resolver(self) -> ConcreteTypeResolver:
        return self._resolver

    @property
    def bridge(self) -> PersistenceBridge:
        return self._bridge

    # Discovery -----------------------------------------------------------

    def list_supported_types(self) -> tuple[str, ...]:
        return self._registry.list_supported_types()

    def discover_available_types(self) -> tuple[TypeDescriptor, ...]:
        return self._analyzer.discover_available_types()

    def get_capabilities(self, type_name: str) -> ObjectCapabilities:
        return self._analyzer.get_capabilities(type_name)

    def describe_properties(
        self, type_name: str, instance: object | None = None
    ) -> tuple[PropertyDetail, ...]:
        return self._analyzer.describe_properties(type_name, instance)

    def get_requirements(
        self, type_name: str, operation_name: str
    ) -> tuple[ParameterCreationRequirement, ...]:
        capabilities = self.get_capabilities(type_name)
        if not capabilities.success:
            if capabilities.error_kind is ErrorKind.LIBRARY_NOT_FOUND:
                self._locator.locate()
            raise TypeNotFoundError(type_name)
        capability = capabilities.find_mutation(operation_name)
        if capability is None:
            raise OperationNotFoundError(type_name, operation_name)
        return capability.parameter_requirements

    # Execution -----------------------------------------------------------

    def execute_mutation(
        self,
        object_type: str,
        object_name: str,
        operation_name: str,
        inputs: Mapping[str, Any] | None = None,
    ) -> ExecutionResult:
        result = ExecutionResult(
            object_type=object_type,
            object_name=object_name,
            operation_name=operation_name,
        )
        started = time.perf_counter()
        try:
            self._execute(result, dict(inputs or {}))
        except _Aborted:
            self._enter(result, InvocationPhase.FAILED)
        finally:
            result.execution_duration_ms = (time.perf_counter() - started) * 1000
        return result

    def _execute(self, result: ExecutionResult, inputs: dict[str, Any]) -> None:
        capabilities = self.get_capabilities(result.object_type)
        if not capabilities.success or capabilities.type_info is None:
            result.fail(
                capabilities.error or "capability discovery failed",
                kind=capabilities.error_kind or ErrorKind.TYPE_NOT_FOUND,
            )
            raise _Aborted
        capability = capabilities.find_mutation(result.operation_name)
        if capability is None:
            error = OperationNotFoundError(result.object_type, result.operation_name)
            result.fail(str(error), kind=ErrorKind.OPERATION_NOT_FOUND)
            raise _Aborted
        target = self._find_target(result)
        cls = self._registry.class_of(capabilities.type_info)
        parameters, hints = self._signature_of(cls, capability)

        self._enter(result, InvocationPhase.RESOLVING_TYPES)
        concrete_types = self._resolve_concrete_types(result, parameters, hints, inputs)

        self._enter(result, InvocationPhase.BINDING_PARAMETERS)
        try:
            args, kwargs = self._builder.bind_arguments(
                parameters,
                hints,
                inputs,
                concrete_types=concrete_types,
                warnings=result.warnings,
            )
        except InvocationError as error:
            self._report_invocation_failure(result, error)
            raise _Aborted from error
        for name, value in kwargs.items():
            if self._builder.is_domain_hint(hints.get(name)) and value is not None:
                result.invoked_types[name] = type(value).__name__

        self._enter(result, InvocationPhase.INVOKING)
        try:
            result.return_value = self._invoke(target, capability, args, kwargs)
        except InvocationError as error:
            self._report_invocation_failure(result, error)
            raise _Aborted from error
        result.return_type = capability.return_type

        self._enter(result, InvocationPhase.PERSISTING)
        self._persist(result, target)

        result.success = True
        result.updated_object_snapshot = take_snapshot(target)
        self._enter(result, InvocationPhase.DONE)

    def _find_target(self, result: ExecutionResult) -> object:
        try:
            target = self._bridge.find_existing(result.object_type, result.object_name)
        except Exception as exc:
            log.exception("Lookup of %s:%s failed", result.object_type, result.object_name)
            result.fail(
                f"Lookup of '{result.object_name}' failed: {type(exc).__name__}: {exc}",
                kind=ErrorKind.OBJECT_NOT_FOUND,
                error_type=type(exc).__name__,
            )
            raise _Aborted from exc
        if target is None:
            result.fail(
                f"Object '{result.object_name}' of type '{result.object_type}' not found",
                kind=ErrorKind.OBJECT_NOT_FOUND,
            )
            raise _Aborted
        return target

    @staticmethod
    def _signature_of(
        cls: type, capability: MutationCapability
    ) -> tuple[tuple[inspect.Parameter, ...], dict[str, Any]]:
        if capability.kind is MutationKind.SETTER:
            attribute = find_attribute(cls, capability.name)
            hint = attribute.hint if attribute is not None else inspect.Parameter.empty
            parameter = inspect.Parameter(
                SETTER_PARAMETER, inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=hint
            )
            return (parameter,), {SETTER_PARAMETER: hint}
        for method in iter_instance_methods(cls):
            if method.name == capability.name:
                return method.parameters, method.hints
        raise OperationNotFoundError(cls.__name__, capability.name)

    def _resolve_concrete_types(
        self,
        result: ExecutionResult,
        parameters: tuple[inspect.Parameter, ...],
        hints: Mapping[str, Any],
        inputs: Mapping[str, Any],
    ) -> dict[str, type]:
        concrete_types: dict[str, type] = {}
        for parameter in parameters:
            hint = hints.get(parameter.name, parameter.annotation)
            declared = runtime_class(hint)
            if declared is None or not self._builder.is_domain_hint(hint):
                continue
            if not is_abstract_class(declared) or isinstance(inputs.get(parameter.name), declared):
                continue
            try:
                resolution = self._resolver.require(declared, inputs)
            except UnresolvedConcreteTypeError as exc:
                result.fail(str(exc), kind=ErrorKind.UNRESOLVED_CONCRETE_TYPE)
                raise _Aborted from exc
            if isinstance(resolution, AmbiguousResolution):
                result.warnings.append(resolution.warning(declared.__name__))
            concrete_types[parameter.name] = resolution.concrete
        return concrete_types

    @staticmethod
    def _invoke(
        target: object,
        capability: MutationCapability,
        args: list[Any],
        kwargs: dict[str, Any],
    ) -> Any:
        try:
            if capability.kind is MutationKind.SETTER:
                setattr(target, capability.name, kwargs[SETTER_PARAMETER])
                return None
            return getattr(target, capability.name)(*args, **kwargs)
        except Exception as exc:
            raise InvocationError(capability.name, exc) from exc

    @staticmethod
    def _report_invocation_failure(result: ExecutionResult, error: InvocationError) -> None:
        log.error(
            "Invocation of %s failed on %s:%s: %s",
            error.operation_name,
            result.object_type,
            result.object_name,
            error.inner,
        )
        result.fail(
            f"{error.inner_type}: {error.inner}",
            kind=ErrorKind.INVOCATION_FAILURE,
            error_type=error.inner_type,
        )

    def _persist(self, result: ExecutionResult, target: object) -> None:
        label = f"{result.operation_name} on {result.object_type}:{result.object_name}"
        try:
            saved = bool(self._bridge.save(result.object_type, result.object_name, target))
            failure = None if saved else "bridge reported failure"
        except Exception as exc:  # noqa: BLE001
            log.exception("Error saving %s:%s", result.object_type, result.object_name)
            saved = False
            failure = f"{type(exc).__name__}: {exc}"
        result.saved = saved
        if saved:
            result.save_message = "Saved"
            result.message = f"Successfully executed {label} and saved changes"
            return
        log.warning(
            "Execution succeeded but save failed for %s:%s", result.object_type, result.object_name
        )
        result.save_message = f"Save failed: {failure}"
        result.message = f"Successfully executed {label} but failed to save changes"

    @staticmethod
    def _enter(result: ExecutionResult, phase: InvocationPhase) -> None:
        log.debug(
            "%s.%s on %s: %s", result.object_type, result.operation_name, result.object_name, phase
        )

    # Standalone creation -------------------------------------------------

    def create_instance(
        self, type_name: str, inputs: Mapping[str, Any] | None = None
    ) -> CreationResult:
        """Build a foreign object from inputs without mutating or saving anything."""

        result = CreationResult(type_name=type_name)
        provided = dict(inputs or {})
        started = time.perf_counter()
        try:
            result.instance = self._create(result, provided)
            result.success = result.instance is not None
        finally:
            result.execution_duration_ms = (time.perf_counter() - started) * 1000
        return result

    def _create(self, result: CreationResult, inputs: dict[str, Any]) -> object | None:
        try:
            cls = self._registry.type_for(result.type_name)
        except LibraryNotFoundError as exc:
            result.error, result.error_kind = str(exc), ErrorKind.LIBRARY_NOT_FOUND
            return None
        if cls is None:
            result.error = str(TypeNotFoundError(result.type_name))
            result.error_kind = ErrorKind.TYPE_NOT_FOUND
            return None
        concrete = cls
        if is_abstract_class(cls):
            try:
                resolution = self._resolver.require(cls, inputs)
            except UnresolvedConcreteTypeError as exc:
                result.error, result.error_kind = str(exc), ErrorKind.UNRESOLVED_CONCRETE_TYPE
                return None
            if isinstance(resolution, AmbiguousResolution):
                result.warnings.append(resolution.warning(cls.__name__))
            concrete = resolution.concrete
        try:
            return self._builder.build(concrete, inputs, warnings=result.warnings)
        except InvocationError as error:
            result.error = f"{error.inner_type}: {error.inner}"
            result.error_kind = ErrorKind.INVOCATION_FAILURE
            return None

    # Maintenance ---------------------------------------------------------

    def clear_caches(self) -> None:
        self._analyzer.clear()
        self._requirements.clear()
        self._resolver.clear()
        self._registry.clear()
        self._locator.reset()
        log.info("Cleared capability engine caches")

    def get_statistics(self) -> EngineStatistics:
        try:
            supported = len(self._registry.list_supported_types())
        except LibraryNotFoundError:
            supported = 0
        return EngineStatistics(
            cached_type_count=self._registry.cached_type_count,
            cached_capability_count=self._analyzer.cached_count,
            supported_type_count=supported,
            library_identity=self._locator.identity,
        )
