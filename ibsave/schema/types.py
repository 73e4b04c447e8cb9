"""Type definitions for the format registry."""

from dataclasses import dataclass, field
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin


class Title(StrEnum):
    """One of the four save format dialects."""

    IB1 = "IB1"
    IB2 = "IB2"
    IB3 = "IB3"
    VOTE = "VOTE"


class PropertyType(StrEnum):
    """Wire names of every property type found in a save package."""

    INT = "IntProperty"
    FLOAT = "FloatProperty"
    BOOL = "BoolProperty"
    BYTE = "ByteProperty"
    STR = "StrProperty"
    NAME = "NameProperty"
    STRUCT = "StructProperty"
    ARRAY = "ArrayProperty"


# Reserved field name terminating every field list
NONE = "None"


class ArrayKind(StrEnum):
    """How an array field is laid out on the wire."""

    STATIC = auto()  # run of same-named fields, one per slot
    DYNAMIC = auto()  # entry count followed by homogeneous elements


class ElementKind(StrEnum):
    """Element type of an array field."""

    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    BYTE = "byte"
    STR = "str"
    NAME = "name"
    STRUCT = "struct"

    @property
    def property_type(self) -> PropertyType:
        return _ELEMENT_PROPERTY_TYPES[self]


_ELEMENT_PROPERTY_TYPES = {
    ElementKind.INT: PropertyType.INT,
    ElementKind.FLOAT: PropertyType.FLOAT,
    ElementKind.BOOL: PropertyType.BOOL,
    ElementKind.BYTE: PropertyType.BYTE,
    ElementKind.STR: PropertyType.STR,
    ElementKind.NAME: PropertyType.NAME,
    ElementKind.STRUCT: PropertyType.STRUCT,
}


@dataclass(frozen=True)
class ArrayShape(DataClassJsonMixin):
    """Describes the layout of one array field.

    - alt_name: struct name carried by each element of a static struct array
    - indexed: static struct arrays written as keyed objects instead of a list
    """

    name: str
    element_kind: ElementKind
    array_kind: ArrayKind
    alt_name: str = ""
    indexed: bool = False

    @property
    def is_static(self) -> bool:
        return self.array_kind == ArrayKind.STATIC


@dataclass(frozen=True)
class IndexEntry(DataClassJsonMixin):
    """Symbolic key for one static array slot."""

    key: str
    index: int


@dataclass(frozen=True)
class IndexEnum(DataClassJsonMixin):
    """Slot enumeration for a static array."""

    name: str
    entries: tuple[IndexEntry, ...]


@dataclass
class RegistryDefinition(DataClassJsonMixin):
    """Parsed contents of one or more registry definition files."""

    common: list[ArrayShape] = field(default_factory=list)
    titles: dict[Title, list[ArrayShape]] = field(default_factory=dict)
    struct_names: dict[str, str] = field(default_factory=dict)
    indices: list[IndexEnum] = field(default_factory=list)

    def extend(self, other: "RegistryDefinition") -> None:
        """Merge another definition into this one; later entries win."""
        self.common.extend(other.common)
        for title, shapes in other.titles.items():
            self.titles.setdefault(title, []).extend(shapes)
        self.struct_names.update(other.struct_names)
        self.indices.extend(other.indices)
