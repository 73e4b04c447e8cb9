"""Rebuild fields from the editable JSON document."""

import json
import logging
import math
import struct
from enum import IntEnum
from typing import Any

from ..codec import sizes
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
from ..errors import JsonFormatError, PropertyValueError, SchemaError
from ..schema.indices import IndexEnumeration
from ..schema.registry import FormatRegistry
from ..schema.types import ArrayShape, ElementKind, Title
from . import naming

logger = logging.getLogger(__name__)

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
FLOAT32_MAX = struct.unpack("<f", b"\xff\xff\x7f\x7f")[0]


def _check_int32(key: str, value: int) -> int:
    if not INT32_MIN <= value <= INT32_MAX:
        raise PropertyValueError(f"{key} = {value} does not fit in a 32-bit integer")
    return value


def _check_byte(key: str, value: int) -> int:
    if not 0 <= value <= 255:
        raise PropertyValueError(f"{key} = {value} is not a byte (0..255)")
    return value


def _check_float32(key: str, value: float) -> float:
    if not math.isfinite(value) or abs(value) > FLOAT32_MAX:
        raise PropertyValueError(f"{key} = {value} is not a finite 32-bit float")
    return float(value)


def _expect(key: str, value: Any, *types: type) -> Any:
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) and bool not in types:
        raise JsonFormatError(f"{key} must be a {types[0].__name__}, got a boolean")
    if not isinstance(value, types):
        found = "null" if value is None else type(value).__name__
        raise JsonFormatError(f"{key} must be a {types[0].__name__}, got {found}")
    return value


class JsonReader:
    """Builds a field list, with sizes filled in, from a parsed document.

    Array fields are shaped by the format registry. Fields below the top level
    also cache their full serialized length so each enclosing struct or array
    can total its own size.
    """

    def __init__(self, title: Title, registry: FormatRegistry, indices: IndexEnumeration):
        self.title = title
        self.registry = registry
        self.indices = indices

    def from_dict(self, tree: Any) -> list[Property]:
        if not isinstance(tree, dict):
            raise JsonFormatError("Save data must be a JSON object")
        return self._fields(tree, nested=False)

    def _fields(self, obj: dict[str, Any], nested: bool) -> list[Property]:
        properties = []
        for key, value in obj.items():
            if key == naming.STRUCT_NAME_KEY:
                raise JsonFormatError(f"'{key}' is only allowed directly inside a struct")
            properties.append(self._field(key, value, nested))
        return properties

    def _field(self, key: str, value: Any, nested: bool) -> Property:
        match value:
            case None:
                raise JsonFormatError(f"{key} is null")
            case bool():
                prop = BoolProperty(name=key, value=value)
            case int() if naming.is_byte_key(key):
                prop = ByteProperty(name=naming.strip_prefix(key, naming.BYTE_PREFIX), value=_check_byte(key, value))
            case int():
                prop = IntProperty(name=key, value=_check_int32(key, value))
            case float():
                prop = FloatProperty(name=key, value=_check_float32(key, value))
            case str() if naming.is_name_key(key):
                prop = NameProperty(name=naming.strip_prefix(key, naming.NAME_PREFIX), value=value)
            case str():
                prop = StrProperty(name=key, value=value)
            case dict() if naming.is_enum_key(key):
                prop = self._enum(naming.field_name_of_enum_key(key), key, value)
            case dict():
                prop = self._struct(key, value)
            case list():
                prop = self._array(key, value)
            case _:
                raise JsonFormatError(f"{key} has unsupported JSON type {type(value).__name__}")

        return sizes.account(prop, nested)

    def _enum(self, name: str, key: str, obj: dict[str, Any], array_index: int = 0) -> EnumProperty:
        try:
            enum_name = obj[naming.ENUM_NAME_KEY]
            enum_value = obj[naming.ENUM_VALUE_KEY]
        except KeyError as exc:
            raise SchemaError(f"Enum {key} is missing its {exc.args[0]!r} entry") from None

        extra = set(obj) - {naming.ENUM_NAME_KEY, naming.ENUM_VALUE_KEY}
        if extra:
            raise JsonFormatError(f"Enum {key} has unexpected entries: {', '.join(sorted(extra))}")

        return EnumProperty(
            name=name,
            array_index=array_index,
            enum_name=_expect(f"{key}.{naming.ENUM_NAME_KEY}", enum_name, str),
            enum_value=_expect(f"{key}.{naming.ENUM_VALUE_KEY}", enum_value, str),
        )

    def _struct(self, name: str, obj: dict[str, Any], array_index: int = 0) -> StructProperty:
        fields = dict(obj)
        struct_name = fields.pop(naming.STRUCT_NAME_KEY, None)
        if struct_name is None:
            struct_name = self.registry.struct_name(self.title, name)

        return StructProperty(
            name=name,
            array_index=array_index,
            struct_name=_expect(f"{name}.{naming.STRUCT_NAME_KEY}", struct_name, str),
            elements=self._fields(fields, nested=True),
        )

    def _array(self, name: str, items: list[Any]) -> Property:
        shape = self.registry.require(self.title, name)

        if shape.is_static:
            return StaticArrayProperty(name=name, shape=shape, elements=self._static_elements(shape, items))

        elements = [self._dynamic_element(shape, f"{name}[{i}]", item) for i, item in enumerate(items)]
        return ArrayProperty(name=name, shape=shape, elements=elements)

    def _dynamic_element(self, shape: ArrayShape, key: str, item: Any) -> ArrayElement:
        match shape.element_kind:
            case ElementKind.INT:
                return _check_int32(key, _expect(key, item, int))
            case ElementKind.FLOAT:
                return _check_float32(key, _expect(key, item, float, int))
            case ElementKind.BOOL:
                return _expect(key, item, bool)
            case ElementKind.BYTE:
                return _check_byte(key, _expect(key, item, int))
            case ElementKind.STR | ElementKind.NAME:
                return _expect(key, item, str)
            case ElementKind.STRUCT:
                return self._fields(_expect(key, item, dict), nested=True)

    def _static_elements(self, shape: ArrayShape, items: list[Any]) -> list[Property]:
        enum_type = self.indices.get_index_enum(shape.name)

        positional = shape.element_kind is ElementKind.STRUCT and not shape.indexed
        if positional and not self._is_keyed(enum_type, items):
            elements = [
                self._static_element(shape, index, f"{shape.name}[{index}]", item)
                for index, item in enumerate(items)
            ]
            return [sizes.account(element, nested=True) for element in elements]

        elements = []
        seen: set[int] = set()
        for entries in items:
            for key, value in _expect(shape.name, entries, dict).items():
                index = self.indices.index_for_key(enum_type, key)
                if index in seen:
                    raise JsonFormatError(f"{shape.name} has slot {index} more than once")
                seen.add(index)
                element = self._static_element(shape, index, f"{shape.name}.{key}", value)
                elements.append(sizes.account(element, nested=True))
        return elements

    def _is_keyed(self, enum_type: type[IntEnum] | None, items: list[Any]) -> bool:
        """Whether a plain struct array was written keyed by slot rather than by position."""
        if len(items) != 1 or not isinstance(items[0], dict) or not items[0]:
            return False
        return all(
            self.indices.is_slot_key(enum_type, key) and isinstance(value, dict) for key, value in items[0].items()
        )

    def _static_element(self, shape: ArrayShape, index: int, key: str, value: Any) -> Property:
        name = shape.name
        match shape.element_kind:
            case ElementKind.INT:
                return IntProperty(name=name, array_index=index, value=_check_int32(key, _expect(key, value, int)))
            case ElementKind.FLOAT:
                value = _check_float32(key, _expect(key, value, float, int))
                return FloatProperty(name=name, array_index=index, value=value)
            case ElementKind.BOOL:
                return BoolProperty(name=name, array_index=index, value=_expect(key, value, bool))
            case ElementKind.BYTE if isinstance(value, dict):
                return self._enum(name, key, value, index)
            case ElementKind.BYTE:
                return ByteProperty(name=name, array_index=index, value=_check_byte(key, _expect(key, value, int)))
            case ElementKind.STR:
                return StrProperty(name=name, array_index=index, value=_expect(key, value, str))
            case ElementKind.NAME:
                return NameProperty(name=name, array_index=index, value=_expect(key, value, str))
            case ElementKind.STRUCT:
                return self._struct(name, _expect(key, value, dict), index)


def _reject_duplicates(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    obj: dict[str, Any] = {}
    for key, value in pairs:
        if key in obj:
            raise JsonFormatError(f"Duplicate key {key!r}")
        obj[key] = value
    return obj


def _reject_constant(name: str) -> Any:
    raise JsonFormatError(f"{name} is not a valid JSON number")


def load_json(text: str) -> Any:
    """Parse JSON text strictly: no duplicate keys and no NaN or Infinity."""
    try:
        return json.loads(text, object_pairs_hook=_reject_duplicates, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise JsonFormatError(f"Invalid JSON: {exc}") from exc


def from_dict(tree: Any, title: Title, registry: FormatRegistry, indices: IndexEnumeration) -> list[Property]:
    return JsonReader(title, registry, indices).from_dict(tree)


def from_json(text: str, title: Title, registry: FormatRegistry, indices: IndexEnumeration) -> list[Property]:
    """Parse JSON text back into fields ready to serialize."""
    properties = from_dict(load_json(text), title, registry, indices)
    logger.debug("Read %d top-level fields from JSON", len(properties))
    return properties
