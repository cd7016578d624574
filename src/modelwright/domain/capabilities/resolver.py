"""Pick concrete implementations for abstract parameter types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final, Literal

from .cache import ComputeCache
from .errors import UnresolvedConcreteTypeError
from .introspection import (
    is_abstract_class,
    is_primitive_hint,
    is_public_name,
    is_subtype,
    iter_attributes,
    iter_instance_methods,
    runtime_class,
)
from .registry import qualified_name

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from .registry import TypeRegistry
    from .types import TypeDescriptor

log = getLogger(__name__)

CONCRETE_TYPE_HINT: Final[str] = "concreteType"


class ResolutionStatus(StrEnum):
    """How a concrete type was chosen for an abstract parameter type."""

    EXPLICIT = "explicit"
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"
    UNRESOLVED = "unresolved"


@dataclass(slots=True, kw_only=True)
class ExplicitResolution:
    """The caller named a valid concrete type."""

    concrete: type
    status: Literal[ResolutionStatus.EXPLICIT] = ResolutionStatus.EXPLICIT


@dataclass(slots=True, kw_only=True)
class UniqueResolution:
    """Exactly one concrete implementation exists."""

    concrete: type
    status: Literal[ResolutionStatus.UNIQUE] = ResolutionStatus.UNIQUE


@dataclass(slots=True, kw_only=True)
class AmbiguousResolution:
    """Several implementations exist; ``concrete`` is the first in sorted order."""

    concrete: type
    candidates: tuple[type, ...]
    status: Literal[ResolutionStatus.AMBIGUOUS] = ResolutionStatus.AMBIGUOUS

    def __post_init__(self) -> None:
        if len(self.candidates) < 2:
            raise ValueError("Ambiguous resolution must include at least two candidates")

    def warning(self, abstract_name: str) -> str:
        names = ", ".join(candidate.__name__ for candidate in self.candidates)
        return (
            f"Multiple concrete types implement {abstract_name} ({names}); "
            f"using {self.concrete.__name__}. Pass '{CONCRETE_TYPE_HINT}' to choose explicitly."
        )


@dataclass(slots=True, kw_only=True)
class UnresolvedResolution:
    """No usable concrete implementation."""

    reason: str
    status: Literal[ResolutionStatus.UNRESOLVED] = ResolutionStatus.UNRESOLVED


type ConcreteResolution = (
    ExplicitResolution | UniqueResolution | AmbiguousResolution | UnresolvedResolution
)


def _sort_key(cls: type) -> tuple[str, str]:
    return cls.__name__, qualified_name(cls)


def _mutation_parameter_hints(main_type: type) -> Iterator[Any]:
    for method in iter_instance_methods(main_type):
        for parameter in method.parameters:
            yield method.hints.get(parameter.name, parameter.annotation)
    for attribute in iter_attributes(main_type):
        if attribute.writable:
            yield attribute.hint


class ConcreteTypeResolver:
    """Map abstract types to concrete library classes, honouring caller hints."""

    def __init__(self, registry: TypeRegistry) -> None:
        self._registry = registry
        self._candidates: ComputeCache[type, tuple[type, ...]] = ComputeCache("concrete-candidates")

    def candidates_for(self, abstract: type) -> tuple[type, ...]:
        return self._candidates.get_or_compute(abstract, self._find_candidates)

    def _find_candidates(self, abstract: type) -> tuple[type, ...]:
        found = [
            cls
            for cls in self._registry.library_types()
            if cls is not abstract
            and is_public_name(cls.__name__)
            and not is_abstract_class(cls)
            and is_subtype(cls, abstract)
        ]
        return tuple(sorted(found, key=_sort_key))

    def resolve(self, abstract: type, hints: Mapping[str, Any] | None = None) -> ConcreteResolution:
        hint = (hints or {}).get(CONCRETE_TYPE_HINT)
        if hint is not None:
            return self._resolve_hint(abstract, hint)
        if not is_abstract_class(abstract):
            return UniqueResolution(concrete=abstract)
        candidates = self.candidates_for(abstract)
        if not candidates:
            log.warning("No concrete types found for abstract type %s", abstract.__name__)
            return UnresolvedResolution(
                reason=f"no concrete implementation of {abstract.__name__} found"
            )
        if len(candidates) == 1:
            return UniqueResolution(concrete=candidates[0])
        log.info(
            "Found %d concrete types for %s, using first: %s",
            len(candidates),
            abstract.__name__,
            candidates[0].__name__,
        )
        return AmbiguousResolution(concrete=candidates[0], candidates=candidates)

    def require(
        self, abstract: type, hints: Mapping[str, Any] | None = None
    ) -> ExplicitResolution | UniqueResolution | AmbiguousResolution:
        """Like :meth:`resolve` but raise :class:`UnresolvedConcreteTypeError` instead."""

        resolution = self.resolve(abstract, hints)
        if isinstance(resolution, UnresolvedResolution):
            candidates = tuple(self._registry.describe(c) for c in self.candidates_for(abstract))
            raise UnresolvedConcreteTypeError(abstract.__name__, resolution.reason, candidates)
        return resolution

    def _resolve_hint(self, abstract: type, hint: Any) -> ConcreteResolution:
        candidate = hint if isinstance(hint, type) else self._registry.type_for(str(hint))
        if (
            candidate is None
            or not is_public_name(candidate.__name__)
            or is_abstract_class(candidate)
            or not is_subtype(candidate, abstract)
        ):
            log.warning(
                "Concrete type %r is not a public concrete implementation of %s",
                hint,
                abstract.__name__,
            )
            return UnresolvedResolution(
                reason=(
                    f"{CONCRETE_TYPE_HINT} {hint!r} is not a public concrete "
                    f"implementation of {abstract.__name__}"
                )
            )
        log.debug("Using explicit concrete type %s for %s", candidate.__name__, abstract.__name__)
        return ExplicitResolution(concrete=candidate)

    def build_inheritance_hierarchy(self, main_type: type) -> dict[str, tuple[TypeDescriptor, ...]]:
        """Concrete options for every domain type a mutation accepts.

        Covers method parameters and the value of every writable attribute.
        """

        config = self._registry.locator.config
        hierarchy: dict[str, tuple[TypeDescriptor, ...]] = {}
        for hint in _mutation_parameter_hints(main_type):
            cls = runtime_class(hint)
            if cls is None or is_primitive_hint(cls) or not self._registry.is_domain_class(cls):
                continue
            if cls.__name__ in hierarchy or not config.follows_naming_convention(cls.__name__):
                continue
            if is_abstract_class(cls):
                candidates = self.candidates_for(cls)
                if candidates:
                    hierarchy[cls.__name__] = tuple(
                        self._registry.describe(candidate) for candidate in candidates
                    )
            else:
                hierarchy[cls.__name__] = (self._registry.describe(cls),)
        return hierarchy

    def clear(self) -> None:
        self._candidates.clear()
