"""Binary serializer turning nodes back into a package."""

import logging
import struct
from typing import TYPE_CHECKING

from ..config import Config
from ..errors import ClassificationError, PropertyValueError
from ..schema.types import NONE, ElementKind, Title
from . import crypto
from .properties import (
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
)
from .stream import PackageWriter

if TYPE_CHECKING:
    from .package import PackageInfo

logger = logging.getLogger(__name__)


class Serializer:
    """Writes a package header, every field and the "None" terminator."""

    def __init__(self, info: "PackageInfo", config: Config) -> None:
        self.info = info
        self.config = config

    def serialize(self, properties: list[Property]) -> bytes:
        writer = PackageWriter()
        self._write_header(writer)

        try:
            for prop in properties:
                write_property(writer, prop)
        except (struct.error, ValueError, OverflowError) as exc:
            raise PropertyValueError(f"Value out of range at offset {len(writer)}: {exc}") from exc

        writer.write_string(NONE)
        data = writer.getvalue()
        logger.debug("Serialized %d fields into %d bytes", len(properties), len(data))

        if self.info.is_encrypted:
            data = crypto.encrypt(
                self.info.title, data, self.info.save_version, self.info.save_magic, self.config
            )
        return data

    def _write_header(self, writer: PackageWriter) -> None:
        """Write the header that precedes the property stream in the plaintext."""
        no_magic = self.config.constants.no_magic

        if not self.info.is_encrypted:
            writer.write_uint32(self.info.save_version)
            writer.write_uint32(self.info.save_magic)
            return

        match self.info.title:
            case Title.IB1:
                writer.write_uint32(no_magic)
            case Title.IB2 | Title.VOTE:
                writer.write_uint32(0)
                writer.write_uint32(no_magic)
            case _:
                raise ClassificationError(f"{self.info.title} packages cannot be encrypted")


def write_property(writer: PackageWriter, prop: Property) -> None:
    """Write one field, header included."""
    if isinstance(prop, StaticArrayProperty):
        for element in prop.elements:
            write_property(writer, element)
        return

    writer.write_string(prop.name)
    writer.write_string(prop.type)
    writer.write_int32(prop.size)
    writer.write_int32(prop.array_index)
    write_value(writer, prop)


def write_fields(writer: PackageWriter, elements: list[Property]) -> None:
    for element in elements:
        write_property(writer, element)
    writer.write_string(NONE)


def write_value(writer: PackageWriter, prop: Property) -> None:
    """Write the payload of a field."""
    match prop:
        case IntProperty():
            writer.write_int32(prop.value)
        case FloatProperty():
            writer.write_float(prop.value)
        case BoolProperty():
            writer.write_bool(prop.value)
        case StrProperty() | NameProperty():
            writer.write_string(prop.value)
        case ByteProperty():
            writer.write_string(NONE)
            writer.write_byte(prop.value)
        case EnumProperty():
            writer.write_string(prop.enum_name)
            writer.write_string(prop.enum_value)
        case StructProperty():
            writer.write_string(prop.struct_name)
            write_fields(writer, prop.elements)
        case ArrayProperty():
            writer.write_int32(len(prop.elements))
            for element in prop.elements:
                _write_element(writer, prop.shape.element_kind, element)
        case _:
            raise TypeError(f"Cannot serialize {type(prop).__name__}")


def _write_element(writer: PackageWriter, kind: ElementKind, element: ArrayElement) -> None:
    match kind:
        case ElementKind.INT:
            writer.write_int32(element)
        case ElementKind.FLOAT:
            writer.write_float(element)
        case ElementKind.BOOL:
            writer.write_bool(element)
        case ElementKind.BYTE:
            writer.write_byte(element)
        case ElementKind.STR | ElementKind.NAME:
            writer.write_string(element)
        case ElementKind.STRUCT:
            write_fields(writer, element)
