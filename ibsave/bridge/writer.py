"""Render decoded fields as an editable JSON document."""

import json
import logging
from typing import Any

from ..codec.properties import (
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
from ..errors import SchemaError
from ..schema.indices import IndexEnumeration
from ..schema.registry import FormatRegistry
from ..schema.types import ElementKind, Title
from . import naming

logger = logging.getLogger(__name__)


class JsonWriter:
    """Turns a field list into nested dicts and lists.

    Types JSON cannot express are carried by key prefixes (see `naming`), and
    static arrays are folded back into a single key.
    """

    def __init__(self, title: Title, registry: FormatRegistry, indices: IndexEnumeration):
        self.title = title
        self.registry = registry
        self.indices = indices

    def to_dict(self, properties: list[Property]) -> dict[str, Any]:
        return self._fields(properties)

    def _fields(self, properties: list[Property]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for prop in properties:
            key = self._key(prop)
            if key in out:
                raise SchemaError(
                    f"Field {prop.name} appears more than once; it must be registered as a static array"
                )
            out[key] = self._value(prop)
        return out

    def _key(self, prop: Property) -> str:
        match prop:
            case NameProperty():
                return naming.name_key(prop.name)
            case ByteProperty():
                return naming.byte_key(prop.name)
            case EnumProperty():
                return naming.enum_key(prop.name)
            case IntProperty() if naming.is_byte_key(prop.name):
                raise SchemaError(
                    f"Int field {prop.name} would be read back as a byte; add it to naming.BYTE_EXEMPTIONS"
                )
            case StructProperty() if naming.is_enum_key(prop.name):
                raise SchemaError(
                    f"Struct field {prop.name} would be read back as an enum because of its "
                    f"'{naming.ENUM_PREFIX}' prefix"
                )
            case StrProperty() if naming.is_name_key(prop.name):
                raise SchemaError(
                    f"String field {prop.name} would be read back as a name because of its "
                    f"'{naming.NAME_PREFIX}' prefix"
                )
            case _:
                return prop.name

    def _value(self, prop: Property) -> Any:
        match prop:
            case IntProperty() | FloatProperty() | BoolProperty() | StrProperty() | NameProperty() | ByteProperty():
                return prop.value
            case EnumProperty():
                return {naming.ENUM_NAME_KEY: prop.enum_name, naming.ENUM_VALUE_KEY: prop.enum_value}
            case StructProperty():
                return self._struct(prop)
            case ArrayProperty():
                return [self._element(prop.shape.element_kind, element) for element in prop.elements]
            case StaticArrayProperty():
                return self._static_array(prop)
            case _:
                raise TypeError(f"Cannot write {type(prop).__name__} as JSON")

    def _struct(self, prop: StructProperty) -> dict[str, Any]:
        out = {}
        if prop.struct_name != self.registry.struct_name(self.title, prop.name):
            out[naming.STRUCT_NAME_KEY] = prop.struct_name
        out.update(self._fields(prop.elements))
        return out

    def _element(self, kind: ElementKind, element: ArrayElement) -> Any:
        if kind is ElementKind.STRUCT:
            return self._fields(element)
        return element

    def _static_array(self, prop: StaticArrayProperty) -> list[Any]:
        shape = prop.shape
        expected = shape.element_kind.property_type
        for element in prop.elements:
            if element.type != expected:
                raise SchemaError(
                    f"Static array {prop.name} holds a {element.type}, expected {expected}"
                )

        # Plain struct arrays are listed by position unless a slot is out of place
        if shape.element_kind is ElementKind.STRUCT and not shape.indexed:
            if all(element.array_index == position for position, element in enumerate(prop.elements)):
                return [self._value(element) for element in prop.elements]
            logger.debug("%s has non-contiguous slots, writing it keyed by slot", prop.name)

        keyed = {}
        for element in prop.elements:
            key = self.indices.key_for_index(prop.name, element.array_index)
            if key in keyed:
                raise SchemaError(f"Static array {prop.name} has slot {element.array_index} more than once")
            keyed[key] = self._value(element)
        return [keyed]


def to_dict(
    properties: list[Property], title: Title, registry: FormatRegistry, indices: IndexEnumeration
) -> dict[str, Any]:
    return JsonWriter(title, registry, indices).to_dict(properties)


def to_json(
    properties: list[Property], title: Title, registry: FormatRegistry, indices: IndexEnumeration
) -> str:
    """Render fields as indented JSON text."""
    return json.dumps(to_dict(properties, title, registry, indices), indent=2, ensure_ascii=False)
