"""In-memory representation of decoded save fields.

Every node keeps the header values it was read or built with (name, size and
array index) so an unmodified tree serializes back to the same bytes.
"""

from dataclasses import dataclass, field
from typing import ClassVar, TypeAlias

from ..schema.types import ArrayShape, PropertyType

# Synthetic size and index of a static array, which has no header of its own
UNINITIALIZED = -1


@dataclass(frozen=True)
class Tag:
    """Header of one field, built while reading and discarded afterwards."""

    name: str
    type: str
    size: int
    array_index: int
    array_entry_count: int = 0
    array_shape: ArrayShape | None = None


@dataclass(kw_only=True)
class Property:
    """Base class for every decoded field."""

    type: ClassVar[PropertyType]

    name: str
    size: int = 0
    array_index: int = 0
    # Serialized length including the header, cached on fields built from JSON
    element_size: int | None = field(default=None, compare=False, repr=False)


@dataclass(kw_only=True)
class IntProperty(Property):
    type: ClassVar[PropertyType] = PropertyType.INT

    value: int


@dataclass(kw_only=True)
class FloatProperty(Property):
    type: ClassVar[PropertyType] = PropertyType.FLOAT

    value: float


@dataclass(kw_only=True)
class BoolProperty(Property):
    type: ClassVar[PropertyType] = PropertyType.BOOL

    value: bool


@dataclass(kw_only=True)
class StrProperty(Property):
    type: ClassVar[PropertyType] = PropertyType.STR

    value: str


@dataclass(kw_only=True)
class NameProperty(Property):
    """Localized name; identical to StrProperty on the wire."""

    type: ClassVar[PropertyType] = PropertyType.NAME

    value: str


@dataclass(kw_only=True)
class ByteProperty(Property):
    """Plain byte value, preceded on the wire by a "None" enum name."""

    type: ClassVar[PropertyType] = PropertyType.BYTE

    value: int


@dataclass(kw_only=True)
class EnumProperty(Property):
    """Enumerated byte stored as an enum name and value pair."""

    type: ClassVar[PropertyType] = PropertyType.BYTE

    enum_name: str
    enum_value: str


@dataclass(kw_only=True)
class StructProperty(Property):
    type: ClassVar[PropertyType] = PropertyType.STRUCT

    struct_name: str = ""
    elements: list[Property] = field(default_factory=list)


# Element of a dynamic array; the array shape decides which one applies
ArrayElement: TypeAlias = int | float | bool | str | list[Property]


@dataclass(kw_only=True)
class ArrayProperty(Property):
    """Dynamic array: entry count followed by homogeneous elements."""

    type: ClassVar[PropertyType] = PropertyType.ARRAY

    shape: ArrayShape
    elements: list[ArrayElement] = field(default_factory=list)

    @property
    def array_entry_count(self) -> int:
        return len(self.elements)


@dataclass(kw_only=True)
class StaticArrayProperty(Property):
    """Static array: a run of same-named fields, one per slot."""

    type: ClassVar[PropertyType] = PropertyType.ARRAY

    size: int = UNINITIALIZED
    array_index: int = UNINITIALIZED
    shape: ArrayShape
    elements: list[Property] = field(default_factory=list)

    @property
    def array_entry_count(self) -> int:
        return len(self.elements)
