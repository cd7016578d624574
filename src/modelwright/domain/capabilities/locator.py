"""Locate the foreign object-model module inside the running process."""

from __future__ import annotations

import importlib
import inspect
import sys
import threading
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import LibraryNotFoundError

if TYPE_CHECKING:
    from types import ModuleType

    from modelwright.config import LibraryConfig

log = getLogger(__name__)


def module_in_namespace(module_name: str, namespace: str) -> bool:
    return module_name == namespace or module_name.startswith(f"{namespace}.")


class LibraryLocator:
    """Find the foreign library once and remember the outcome.

    Strategies run in order: import the configured anchor type, scan already
    loaded modules inside the namespace, import the library by name. Both the
    located module and a final failure are memoized until :meth:`reset`.
    """

    def __init__(self, config: LibraryConfig) -> None:
        self._config = config
        self._lock = threading.Lock()
        self._module: ModuleType | None = None
        self._failure: LibraryNotFoundError | None = None
        self.strategy: str | None = None

    @property
    def config(self) -> LibraryConfig:
        return self._config

    @property
    def identity(self) -> str | None:
        module = self._module
        if module is None:
            return None
        location = getattr(module, "__file__", None) or "built-in"
        return f"{module.__name__} ({location})"

    def locate(self) -> ModuleType:
        module = self._module
        if module is not None:
            return module
        with self._lock:
            if self._module is not None:
                return self._module
            if self._failure is not None:
                raise self._failure
            attempts: list[str] = []
            for name, strategy in (
                ("anchor", self._from_anchor),
                ("scan", self._from_loaded_modules),
                ("import", self._from_import),
            ):
                found = strategy(attempts)
                if found is not None:
                    log.info("Located library %s via %s strategy", found.__name__, name)
                    self.strategy = name
                    self._module = found
                    return found
            self._failure = LibraryNotFoundError(self._config.library_name, attempts)
            log.error("%s", self._failure)
            raise self._failure

    def reset(self) -> None:
        with self._lock:
            self._module = None
            self._failure = None
            self.strategy = None

    def _library_module_for(self, module_name: str) -> ModuleType:
        library_name = self._config.library_name
        if module_in_namespace(module_name, library_name):
            loaded = sys.modules.get(library_name)
            return loaded if loaded is not None else importlib.import_module(library_name)
        return sys.modules[module_name]

    def _from_anchor(self, attempts: list[str]) -> ModuleType | None:
        anchor = self._config.anchor_type
        if anchor is None:
            return None
        module_path, _, qualname = anchor.partition(":")
        try:
            target: object = importlib.import_module(module_path)
            for part in qualname.split("."):
                target = getattr(target, part)
        except (ImportError, AttributeError) as exc:
            attempts.append(f"anchor {anchor!r} failed: {exc}")
            return None
        if not inspect.isclass(target):
            attempts.append(f"anchor {anchor!r} is not a class")
            return None
        try:
            return self._library_module_for(target.__module__)
        except (ImportError, KeyError) as exc:
            attempts.append(f"anchor module {target.__module__!r} unavailable: {exc}")
            return None

    def _from_loaded_modules(self, attempts: list[str]) -> ModuleType | None:
        namespace = self._config.effective_namespace
        matches: list[ModuleType] = []
        for module_name, module in sorted(sys.modules.copy().items()):
            if module is None or not module_in_namespace(module_name, namespace):
                continue
            try:
                if self._samples_domain_types(module):
                    matches.append(module)
            except (AttributeError, ImportError, TypeError) as exc:
                log.debug("Skipping module %s while scanning: %s", module_name, exc)
        if not matches:
            attempts.append(f"no loaded module under namespace {namespace!r} exposes domain types")
            return None
        loaded_root = sys.modules.get(self._config.library_name)
        return loaded_root if loaded_root is not None else matches[0]

    def _samples_domain_types(self, module: ModuleType) -> bool:
        sampled = 0
        for member in list(vars(module).values()):
            if not inspect.isclass(member) or member.__module__ != module.__name__:
                continue
            if self._config.follows_naming_convention(member.__name__):
                return True
            sampled += 1
            if sampled >= self._config.sample_size:
                break
        return False

    def _from_import(self, attempts: list[str]) -> ModuleType | None:
        library_name = self._config.library_name
        try:
            return importlib.import_module(library_name)
        except ImportError as exc:
            attempts.append(f"import {library_name!r} failed: {exc}")
            return None
