"""Index enumerations mapping static array slots to symbolic keys."""

from enum import IntEnum

from ..errors import SchemaError
from .types import IndexEnum, RegistryDefinition


class IndexEnumeration:
    """Translates between static array slot indices and their JSON keys.

    Arrays without a declared enumeration use the decimal slot index as key,
    and slots missing from a declared enumeration fall back the same way.
    """

    def __init__(self, definition: RegistryDefinition):
        self._enums: dict[str, type[IntEnum]] = {
            index.name: _build_enum(index) for index in definition.indices
        }

    def get_index_enum(self, array_name: str) -> type[IntEnum] | None:
        return self._enums.get(array_name)

    def index_for_key(self, enum_type: type[IntEnum] | None, key: str) -> int:
        if enum_type is not None and key in enum_type.__members__:
            return int(enum_type[key])

        try:
            return int(key)
        except ValueError:
            source = enum_type.__name__ if enum_type is not None else "a numeric slot"
            raise SchemaError(f"'{key}' is not a member of {source}") from None

    def is_slot_key(self, enum_type: type[IntEnum] | None, key: str) -> bool:
        """Whether index_for_key() would accept a key."""
        if enum_type is not None and key in enum_type.__members__:
            return True
        return key.isdecimal()

    def key_for_index(self, array_name: str, index: int) -> str:
        enum_type = self._enums.get(array_name)
        if enum_type is not None:
            try:
                return enum_type(index).name
            except ValueError:
                pass
        return str(index)


def _build_enum(index: IndexEnum) -> type[IntEnum]:
    return IntEnum(index.name, [(entry.key, entry.index) for entry in index.entries])
