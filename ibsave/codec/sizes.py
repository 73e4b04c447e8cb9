"""Size accounting for serialized properties.

Every struct and array header declares the byte length of its payload. When a
tree is built from JSON these lengths are computed here, bottom-up, from the
cached element sizes of the children instead of by serializing them. Any
change to the serializer must be mirrored in this module.
"""

from ..schema.types import NONE, ElementKind
from .properties import (
    ArrayProperty,
    BoolProperty,
    ByteProperty,
    EnumProperty,
    FloatProperty,
    IntProperty,
    NameProperty,
    Property,
    StaticArrayProperty,
    StrProperty,
    StructProperty,
)

INT_SIZE = 4
FLOAT_SIZE = 4
BOOL_SIZE = 1
BYTE_SIZE = 1
# Header words following the name and type strings: size and array index
HEADER_WORDS_SIZE = 8
ENTRY_COUNT_SIZE = 4

SCALAR_ELEMENT_SIZES: dict[ElementKind, int] = {
    ElementKind.INT: INT_SIZE,
    ElementKind.FLOAT: FLOAT_SIZE,
    ElementKind.BOOL: BOOL_SIZE,
    ElementKind.BYTE: BYTE_SIZE,
}


def string_size(value: str) -> int:
    """Serialized length of a string, including its length prefix."""
    if not value:
        return 4
    return 4 + len(value.encode("utf-8")) + 1


TERMINATOR_SIZE = string_size(NONE)


def header_size(prop: Property) -> int:
    """Length of the name, type, size and array index header."""
    return string_size(prop.name) + string_size(prop.type) + HEADER_WORDS_SIZE


def prefix_size(prop: Property) -> int:
    """Payload bytes that precede the value but are not counted in its size."""
    match prop:
        case BoolProperty():
            # Bools declare a size of 0 but still write one byte
            return BOOL_SIZE
        case ByteProperty():
            return TERMINATOR_SIZE
        case EnumProperty():
            return string_size(prop.enum_name)
        case StructProperty():
            return string_size(prop.struct_name)
        case _:
            return 0


def fields_size(elements: list[Property]) -> int:
    """Length of a field list and its terminator."""
    return sum(element_size(element) for element in elements) + TERMINATOR_SIZE


def payload_size(prop: Property) -> int:
    """The size a field should declare in its header."""
    match prop:
        case IntProperty():
            return INT_SIZE
        case FloatProperty():
            return FLOAT_SIZE
        case BoolProperty():
            return 0
        case StrProperty() | NameProperty():
            return string_size(prop.value)
        case ByteProperty():
            return BYTE_SIZE
        case EnumProperty():
            return string_size(prop.enum_value)
        case StructProperty():
            return fields_size(prop.elements)
        case ArrayProperty():
            return ENTRY_COUNT_SIZE + array_content_size(prop)
        case StaticArrayProperty():
            return prop.size
        case _:
            raise TypeError(f"Unknown property node {type(prop).__name__}")


def array_content_size(prop: ArrayProperty) -> int:
    """Length of the elements of a dynamic array, excluding the entry count."""
    kind = prop.shape.element_kind
    match kind:
        case ElementKind.INT | ElementKind.FLOAT | ElementKind.BOOL | ElementKind.BYTE:
            return SCALAR_ELEMENT_SIZES[kind] * len(prop.elements)
        case ElementKind.STR | ElementKind.NAME:
            return sum(string_size(element) for element in prop.elements)
        case ElementKind.STRUCT:
            return sum(fields_size(element) for element in prop.elements)


def element_size(prop: Property) -> int:
    """Full serialized length of a field, header included."""
    if prop.element_size is not None:
        return prop.element_size
    if isinstance(prop, StaticArrayProperty):
        return sum(element_size(element) for element in prop.elements)
    return header_size(prop) + prefix_size(prop) + prop.size


def account(prop: Property, nested: bool = False) -> Property:
    """Compute the declared size of a freshly built field.

    Nested fields also cache their full length so the enclosing struct or array
    can total its payload without walking the subtree again.
    """
    if not isinstance(prop, StaticArrayProperty):
        prop.size = payload_size(prop)
    if nested:
        prop.element_size = None
        prop.element_size = element_size(prop)
    return prop
