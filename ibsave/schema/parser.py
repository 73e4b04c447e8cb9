"""Registry definition parser using Lark."""

import ast
import os
from dataclasses import dataclass
from typing import Any, TypeVar

from lark import Lark
from lark.exceptions import LarkError, VisitError
from lark.visitors import Transformer

from .types import (
    ArrayKind,
    ArrayShape,
    ElementKind,
    IndexEntry,
    IndexEnum,
    RegistryDefinition,
    Title,
)

_g_parser: Lark | None = None

KNOWN_FLAGS = frozenset(["indexed"])


class ValidationError(RuntimeError):
    """Raised when a registry definition is invalid."""


@dataclass
class _Name:
    value: str


@dataclass
class _AltName:
    value: str


@dataclass
class _Flag:
    value: str


@dataclass
class _Number:
    value: int


@dataclass
class _Common:
    shapes: list[ArrayShape]


@dataclass
class _TitleBlock:
    title: str
    shapes: list[ArrayShape]


@dataclass
class _StructAlias:
    field_name: str
    struct_name: str


@dataclass
class _Structs:
    aliases: list[_StructAlias]


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[object]) -> Any:
    filtered = _filter(args, class_type)
    if len(filtered) == 0:
        return None
    if len(filtered) > 1:
        raise RuntimeError(f"Found more than one {class_type}")

    # Unwrap helper tokens; enums and dataclasses are returned as-is
    if isinstance(filtered[0], (_Name, _AltName, _Flag, _Number)):
        return filtered[0].value
    return filtered[0]


class TreeTransformer(Transformer):
    """Transform parse tree into registry types."""

    def name(self, args: list[Any]) -> _Name:
        return _Name(value=str(args[0]))

    def number(self, args: list[Any]) -> _Number:
        return _Number(value=int(args[0]))

    def array_kind(self, args: list[Any]) -> ArrayKind:
        return ArrayKind(str(args[0]))

    def element_kind(self, args: list[Any]) -> ElementKind:
        return ElementKind(str(args[0]))

    def alt_name(self, args: list[Any]) -> _AltName:
        return _AltName(value=args[0].value)

    def flag(self, args: list[Any]) -> _Flag:
        return _Flag(value=args[0].value)

    def shape(self, args: list[Any]) -> ArrayShape:
        flags = [flag.value for flag in _filter(args, _Flag)]
        unknown = set(flags) - KNOWN_FLAGS
        if unknown:
            raise ValidationError(f"Unknown flag(s) {sorted(unknown)}")

        return ArrayShape(
            name=_find_one(args, _Name),
            element_kind=_find_one(args, ElementKind),
            array_kind=_find_one(args, ArrayKind),
            alt_name=_find_one(args, _AltName) or "",
            indexed="indexed" in flags,
        )

    def common(self, args: list[Any]) -> _Common:
        return _Common(shapes=_filter(args, ArrayShape))

    def title(self, args: list[Any]) -> _TitleBlock:
        return _TitleBlock(title=_find_one(args, _Name), shapes=_filter(args, ArrayShape))

    def struct_alias(self, args: list[Any]) -> _StructAlias:
        return _StructAlias(field_name=args[0].value, struct_name=args[1].value)

    def structs(self, args: list[Any]) -> _Structs:
        return _Structs(aliases=_filter(args, _StructAlias))

    def index_key(self, args: list[Any]) -> str:
        token = args[0]
        if token.type == "ESCAPED_STRING":
            return ast.literal_eval(str(token))
        return str(token)

    def index_entry(self, args: list[Any]) -> IndexEntry:
        return IndexEntry(key=args[0], index=_find_one(args, _Number))

    def index(self, args: list[Any]) -> IndexEnum:
        return IndexEnum(name=_find_one(args, _Name), entries=tuple(_filter(args, IndexEntry)))


def _validate_shapes(block: str, shapes: list[ArrayShape]) -> None:
    seen: set[str] = set()
    for shape in shapes:
        if shape.name in seen:
            raise ValidationError(f"{shape.name} declared more than once in {block}")
        seen.add(shape.name)

        if shape.indexed and not shape.is_static:
            raise ValidationError(f"{shape.name} is dynamic and cannot be indexed")


def _validate_index(index: IndexEnum) -> None:
    keys: set[str] = set()
    values: set[int] = set()
    for entry in index.entries:
        if entry.key in keys:
            raise ValidationError(f"Index {index.name} repeats key {entry.key}")
        if entry.index in values:
            raise ValidationError(f"Index {index.name} repeats slot {entry.index}")
        if entry.index < 0:
            raise ValidationError(f"Index {index.name} has negative slot {entry.index}")
        keys.add(entry.key)
        values.add(entry.index)


def validate(items: list[Any]) -> RegistryDefinition:
    """Validate parsed blocks and fold them into a definition."""
    definition = RegistryDefinition()

    for common in _filter(items, _Common):
        _validate_shapes("common", common.shapes)
        definition.common.extend(common.shapes)

    for block in _filter(items, _TitleBlock):
        try:
            title = Title(block.title)
        except ValueError as exc:
            raise ValidationError(f"Unknown title {block.title}") from exc
        _validate_shapes(f"title {title}", block.shapes)
        definition.titles.setdefault(title, []).extend(block.shapes)

    for structs in _filter(items, _Structs):
        for alias in structs.aliases:
            definition.struct_names[alias.field_name] = alias.struct_name

    names: set[str] = set()
    for index in _filter(items, IndexEnum):
        if index.name in names:
            raise ValidationError(f"Index {index.name} declared more than once")
        names.add(index.name)
        _validate_index(index)
        definition.indices.append(index)

    return definition


def parse(text: str) -> RegistryDefinition:
    """Parse a registry definition file."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/registry.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar)

    try:
        tree = _g_parser.parse(text)
        tree = TreeTransformer().transform(tree)
    except VisitError as exc:
        if isinstance(exc.orig_exc, ValidationError):
            raise exc.orig_exc from None
        raise
    except LarkError as exc:
        raise ValidationError(f"Malformed registry definition: {exc}") from exc

    return validate(list(tree.children))
