"""Binary deserializer turning a plaintext property stream into nodes."""

import logging
import math

from ..errors import CorruptPackageError, PropertyValueError, SaveCodecError, SchemaError
from ..schema.registry import FormatRegistry
from ..schema.types import NONE, ElementKind, PropertyType, Title
from .properties import (
    UNINITIALIZED,
    ArrayElement,
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
    Tag,
)
from .stream import PackageReader

logger = logging.getLogger(__name__)

MAX_STATIC_ARRAY_ELEMENTS = 2000


class Deserializer:
    """Reads tagged fields until the "None" terminator or the end of data.

    Each field is a name, type name, declared size and array index followed by
    a type specific payload. Static arrays have no header of their own: they
    are recognised by name and rebuilt from the run of same-named fields.
    """

    def __init__(self, title: Title, registry: FormatRegistry) -> None:
        self.title = title
        self.registry = registry

    def deserialize(self, reader: PackageReader) -> list[Property]:
        """Read every top-level field of a package."""
        properties: list[Property] = []

        while not reader.at_end():
            start = reader.position
            try:
                prop = self._read_property(reader)
            except CorruptPackageError as exc:
                raise CorruptPackageError(f"Package is corrupt: {exc}", start) from exc
            except SaveCodecError as exc:
                raise type(exc)(f"Failed to deserialize field at offset {start}: {exc}") from exc

            if prop is None:
                break
            properties.append(prop)

        logger.debug("Deserialized %d top-level fields", len(properties))
        return properties

    def _read_property(self, reader: PackageReader, detect_static: bool = True) -> Property | None:
        start = reader.position
        name = reader.read_string()
        if name == NONE:
            return None

        shape = self.registry.lookup(self.title, name)

        if detect_static and shape is not None and shape.is_static:
            reader.seek(start)
            tag = Tag(name, PropertyType.ARRAY, UNINITIALIZED, UNINITIALIZED, 0, shape)
            return self._read_static_array(reader, tag)

        type_name = reader.read_string()
        size = reader.read_int32()
        array_index = reader.read_int32()
        entry_count = reader.read_int32() if type_name == PropertyType.ARRAY else 0
        tag = Tag(name, type_name, size, array_index, entry_count, shape)

        return self._read_value(reader, tag)

    def _read_value(self, reader: PackageReader, tag: Tag) -> Property:
        common = {"name": tag.name, "size": tag.size, "array_index": tag.array_index}

        match tag.type:
            case PropertyType.INT:
                return IntProperty(value=reader.read_int32(), **common)
            case PropertyType.FLOAT:
                return FloatProperty(value=_read_float(reader), **common)
            case PropertyType.BOOL:
                return BoolProperty(value=reader.read_bool(), **common)
            case PropertyType.STR:
                return StrProperty(value=reader.read_string(), **common)
            case PropertyType.NAME:
                return NameProperty(value=reader.read_string(), **common)
            case PropertyType.BYTE:
                return self._read_byte(reader, tag)
            case PropertyType.STRUCT:
                struct_name = reader.read_string()
                return StructProperty(struct_name=struct_name, elements=self._read_fields(reader), **common)
            case PropertyType.ARRAY:
                return self._read_dynamic_array(reader, tag)
            case _:
                raise CorruptPackageError(f"Unsupported property type '{tag.type}' for {tag.name}")

    def _read_byte(self, reader: PackageReader, tag: Tag) -> Property:
        identifier = reader.read_string()
        common = {"name": tag.name, "size": tag.size, "array_index": tag.array_index}

        if tag.size == 1:
            return ByteProperty(value=reader.read_byte(), **common)
        if tag.size > 1:
            return EnumProperty(enum_name=identifier, enum_value=reader.read_string(), **common)
        raise CorruptPackageError(f"Unsupported byte property size {tag.size} for {tag.name}")

    def _read_fields(self, reader: PackageReader) -> list[Property]:
        """Read a nested field list up to its terminator."""
        elements: list[Property] = []
        while (prop := self._read_property(reader)) is not None:
            elements.append(prop)
        return elements

    def _read_dynamic_array(self, reader: PackageReader, tag: Tag) -> ArrayProperty:
        shape = self.registry.require(self.title, tag.name)
        if shape.is_static:
            raise SchemaError(f"{tag.name} is registered as a static array but has an array header")
        if tag.array_entry_count < 0:
            raise CorruptPackageError(f"Negative entry count {tag.array_entry_count} for {tag.name}")

        elements: list[ArrayElement] = []
        for _ in range(tag.array_entry_count):
            elements.append(self._read_element(reader, shape.element_kind))

        return ArrayProperty(
            name=tag.name, size=tag.size, array_index=tag.array_index, shape=shape, elements=elements
        )

    def _read_element(self, reader: PackageReader, kind: ElementKind) -> ArrayElement:
        match kind:
            case ElementKind.INT:
                return reader.read_int32()
            case ElementKind.FLOAT:
                return _read_float(reader)
            case ElementKind.BOOL:
                return reader.read_bool()
            case ElementKind.BYTE:
                return reader.read_byte()
            case ElementKind.STR | ElementKind.NAME:
                return reader.read_string()
            case ElementKind.STRUCT:
                return self._read_fields(reader)

    def _read_static_array(self, reader: PackageReader, tag: Tag) -> StaticArrayProperty:
        assert tag.array_shape is not None
        elements: list[Property] = []

        while reader.peek_string() == tag.name:
            if len(elements) > MAX_STATIC_ARRAY_ELEMENTS:
                raise CorruptPackageError(
                    f"Static array {tag.name} exceeds {MAX_STATIC_ARRAY_ELEMENTS} elements", reader.position
                )

            element = self._read_property(reader, detect_static=False)
            assert element is not None
            elements.append(element)

        return StaticArrayProperty(
            name=tag.name, size=tag.size, array_index=tag.array_index, shape=tag.array_shape, elements=elements
        )


def _read_float(reader: PackageReader) -> float:
    start = reader.position
    value = reader.read_float()
    if math.isnan(value) or math.isinf(value):
        raise PropertyValueError(f"Invalid float value {value} at offset {start}")
    return value
