"""Exception taxonomy of the capability engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .types import TypeDescriptor


class EngineError(RuntimeError):
    """Base class for capability engine failures."""


class LibraryNotFoundError(EngineError):
    """Raised when the foreign object-model library cannot be located."""

    def __init__(self, library_name: str, attempts: Sequence[str]) -> None:
        self.library_name = library_name
        self.attempts = tuple(attempts)
        detail = "; ".join(self.attempts) if self.attempts else "no strategy applied"
        super().__init__(f"Could not locate object-model library {library_name!r}: {detail}")


class TypeNotFoundError(EngineError):
    """Raised when a type name does not resolve inside the library."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Object type '{type_name}' not found")


class OperationNotFoundError(EngineError):
    """Raised when a type exposes no mutation with the requested name."""

    def __init__(self, type_name: str, operation_name: str) -> None:
        self.type_name = type_name
        self.operation_name = operation_name
        super().__init__(f"Operation '{operation_name}' not found on type '{type_name}'")


class UnresolvedConcreteTypeError(EngineError):
    """Raised when an abstract parameter type has no usable concrete implementation."""

    def __init__(
        self,
        abstract_type: str,
        reason: str,
        candidates: Sequence[TypeDescriptor] = (),
    ) -> None:
        self.abstract_type = abstract_type
        self.reason = reason
        self.candidates = tuple(candidates)
        super().__init__(f"Cannot resolve concrete type for '{abstract_type}': {reason}")


class InvocationError(EngineError):
    """Wraps an exception raised by the foreign operation itself."""

    def __init__(self, operation_name: str, inner: BaseException) -> None:
        self.operation_name = operation_name
        self.inner = inner
        super().__init__(f"{operation_name} raised {type(inner).__name__}: {inner}")

    @property
    def inner_type(self) -> str:
        return type(self.inner).__name__
