"""Foreign object-model library configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_list, optional_env_var, require_env_var
from .errors import InvalidConfigurationValueError

DEFAULT_EXCLUDED_FRAGMENTS: Final[tuple[str, ...]] = ("Collection", "Base", "Helper", "Util")
DEFAULT_SAMPLE_SIZE: Final[int] = 5


@dataclass(frozen=True, slots=True)
class LibraryConfig:
    """Describes where the foreign object model lives and how its types are named.

    ``library_name`` is the importable module holding the model. ``namespace``
    is the dotted prefix used to compose short type names into qualified ones and
    to recognise candidate modules while scanning ``sys.modules``; it defaults
    to ``library_name``. ``anchor_type`` (``"package.module:ClassName"``) is a
    well-known class whose import forces the library to load. ``type_prefix`` is
    the naming convention of domain types (empty means every class qualifies).
    """

    library_name: str
    namespace: str | None = None
    anchor_type: str | None = None
    type_prefix: str = ""
    excluded_name_fragments: tuple[str, ...] = DEFAULT_EXCLUDED_FRAGMENTS
    sample_size: int = DEFAULT_SAMPLE_SIZE

    def __post_init__(self) -> None:
        if not self.library_name.strip():
            raise InvalidConfigurationValueError(
                "library_name", self.library_name, "must not be blank"
            )
        if self.anchor_type is not None and ":" not in self.anchor_type:
            raise InvalidConfigurationValueError(
                "anchor_type", self.anchor_type, "must look like 'package.module:ClassName'"
            )
        if self.sample_size < 1:
            raise InvalidConfigurationValueError(
                "sample_size", self.sample_size, "must be positive"
            )

    @property
    def effective_namespace(self) -> str:
        return self.namespace or self.library_name

    def follows_naming_convention(self, type_name: str) -> bool:
        return type_name.startswith(self.type_prefix)


def get_library_config() -> LibraryConfig:
    return LibraryConfig(
        library_name=require_env_var("MODELWRIGHT_LIBRARY"),
        namespace=optional_env_var("MODELWRIGHT_NAMESPACE"),
        anchor_type=optional_env_var("MODELWRIGHT_ANCHOR_TYPE"),
        type_prefix=optional_env_var("MODELWRIGHT_TYPE_PREFIX") or "",
        excluded_name_fragments=env_list(
            "MODELWRIGHT_EXCLUDED_FRAGMENTS", default=DEFAULT_EXCLUDED_FRAGMENTS
        ),
    )
