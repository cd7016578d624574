"""Type registry over the located foreign library."""

from __future__ import annotations

import inspect
import pkgutil
import sys
from importlib import import_module
from logging import getLogger
from typing import TYPE_CHECKING

from .cache import ComputeCache
from .introspection import (
    constructor_hints,
    constructor_parameters,
    describe_parameter,
    first_doc_line,
    is_abstract_class,
    is_default_constructible,
    is_enum_type,
    is_public_name,
)
from .locator import module_in_namespace
from .types import TypeDescriptor

if TYPE_CHECKING:
    from types import ModuleType

    from .locator import LibraryLocator
    from .types import ParameterDescriptor

log = getLogger(__name__)


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


class TypeRegistry:
    """Resolve type names to descriptors and live classes of the foreign library."""

    def __init__(self, locator: LibraryLocator) -> None:
        self._locator = locator
        self._by_name: ComputeCache[str, TypeDescriptor | None] = ComputeCache("types-by-name")
        self._by_class: ComputeCache[type, TypeDescriptor] = ComputeCache("types-by-class")
        self._classes: dict[str, type] = {}
        self._library_types: tuple[type, ...] | None = None
        self._supported: tuple[str, ...] | None = None

    @property
    def locator(self) -> LibraryLocator:
        return self._locator

    @property
    def cached_type_count(self) -> int:
        return len(self._by_class)

    def library_types(self) -> tuple[type, ...]:
        """Every class defined in the library module or one of its submodules."""

        cached = self._library_types
        if cached is not None:
            return cached
        library = self._locator.locate()
        classes: dict[str, type] = {}
        for module in self._library_modules(library):
            try:
                members = list(vars(module).values())
            except TypeError as exc:
                log.warning("Skipping module %s: %s", module.__name__, exc)
                continue
            for member in members:
                if not inspect.isclass(member):
                    continue
                if not module_in_namespace(member.__module__, library.__name__):
                    continue
                classes.setdefault(qualified_name(member), member)
        found = tuple(classes[key] for key in sorted(classes))
        self._library_types = found
        log.debug("Enumerated %d classes in %s", len(found), library.__name__)
        return found

    def _library_modules(self, library: ModuleType) -> list[ModuleType]:
        search_path = getattr(library, "__path__", None)
        if search_path is not None:
            for info in pkgutil.walk_packages(search_path, prefix=f"{library.__name__}."):
                try:
                    import_module(info.name)
                except ImportError as exc:
                    log.warning("Skipping submodule %s: %s", info.name, exc)
        return [
            module
            for name, module in sorted(sys.modules.copy().items())
            if module is not None and module_in_namespace(name, library.__name__)
        ]

    def describe(self, cls: type) -> TypeDescriptor:
        return self._by_class.get_or_compute(cls, self._describe)

    def _describe(self, cls: type) -> TypeDescriptor:
        descriptor_name = qualified_name(cls)
        self._classes.setdefault(descriptor_name, cls)
        parameters = constructor_parameters(cls)
        constructors: tuple[tuple[ParameterDescriptor, ...], ...] = ()
        if parameters is not None:
            hints = constructor_hints(cls)
            constructors = (tuple(describe_parameter(p, hints) for p in parameters),)
        base = cls.__mro__[1].__name__ if len(cls.__mro__) > 1 else None
        return TypeDescriptor(
            name=cls.__name__,
            qualified_name=descriptor_name,
            module_name=cls.__module__,
            is_abstract=is_abstract_class(cls),
            base_type_name=base,
            constructors=constructors,
            description=first_doc_line(cls) or f"{cls.__name__} from {cls.__module__}",
        )

    def get_type(self, type_name: str) -> TypeDescriptor | None:
        """Resolve ``type_name`` by qualified name, namespace prefix, then short name.

        Unknown names resolve to ``None`` and that answer is cached as well.
        Raises :class:`LibraryNotFoundError` when the library cannot be located.
        """

        return self._by_name.get_or_compute(type_name, self._lookup)

    def _lookup(self, type_name: str) -> TypeDescriptor | None:
        cls = self._resolve_class(type_name)
        if cls is None:
            log.debug("Type %s not found in library", type_name)
            return None
        return self.describe(cls)

    def _resolve_class(self, type_name: str) -> type | None:
        classes = self.library_types()
        by_qualified = {qualified_name(cls): cls for cls in classes}
        exact = by_qualified.get(type_name.replace(":", "."))
        if exact is not None:
            return exact
        namespace = self._locator.config.effective_namespace
        prefixed = by_qualified.get(f"{namespace}.{type_name}")
        if prefixed is not None:
            return prefixed
        for cls in classes:
            if cls.__name__ == type_name:
                return cls
        return None

    def type_for(self, type_name: str) -> type | None:
        descriptor = self.get_type(type_name)
        if descriptor is None:
            return None
        return self._classes.get(descriptor.qualified_name)

    def class_of(self, descriptor: TypeDescriptor) -> type:
        return self._classes[descriptor.qualified_name]

    def is_domain_class(self, candidate: object) -> bool:
        if not inspect.isclass(candidate):
            return False
        library = self._locator.locate()
        return module_in_namespace(candidate.__module__, library.__name__)

    def list_supported_types(self) -> tuple[str, ...]:
        """Short names of public, concrete, default-constructible domain types."""

        cached = self._supported
        if cached is not None:
            return cached
        config = self._locator.config
        names = {
            cls.__name__
            for cls in self.library_types()
            if is_public_name(cls.__name__)
            and config.follows_naming_convention(cls.__name__)
            and not any(fragment in cls.__name__ for fragment in config.excluded_name_fragments)
            and not is_abstract_class(cls)
            and not is_enum_type(cls)
            and is_default_constructible(cls)
        }
        supported = tuple(sorted(names))
        self._supported = supported
        return supported

    def clear(self) -> None:
        self._by_name.clear()
        self._by_class.clear()
        self._classes.clear()
        self._library_types = None
        self._supported = None
