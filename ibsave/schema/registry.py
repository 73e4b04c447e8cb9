"""Per-title lookup of array shapes and struct names."""

import logging
import threading
from collections.abc import Iterable, Mapping
from importlib import resources
from types import MappingProxyType

from ..errors import SchemaError
from .parser import parse
from .types import ArrayShape, RegistryDefinition, Title

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "default.registry"


def load_definition(paths: Iterable[str] = ()) -> RegistryDefinition:
    """Parse the built-in registry followed by any extra definition files."""
    text = resources.files(__package__).joinpath(DEFAULT_REGISTRY).read_text(encoding="utf-8")
    definition = parse(text)

    for path in paths:
        with open(path, encoding="utf-8") as f:
            definition.extend(parse(f.read()))
        logger.debug("Merged registry definitions from %s", path)

    return definition


class FormatRegistry:
    """Resolves array shapes by field name for a given title.

    The shared table is merged with the title's overrides on first use and the
    result is cached as a read-only mapping for the rest of the process.
    """

    def __init__(self, definition: RegistryDefinition):
        self.definition = definition
        self._lock = threading.Lock()
        self._merged: dict[Title, Mapping[str, ArrayShape]] = {}

    def shapes(self, title: Title) -> Mapping[str, ArrayShape]:
        """Return every array shape known for a title."""
        cached = self._merged.get(title)
        if cached is not None:
            return cached

        with self._lock:
            if title not in self._merged:
                merged = {shape.name: shape for shape in self.definition.common}
                for shape in self.definition.titles.get(title, []):
                    merged[shape.name] = shape
                self._merged[title] = MappingProxyType(merged)
                logger.debug("Built %d array shapes for %s", len(merged), title)
            return self._merged[title]

    def lookup(self, title: Title, name: str) -> ArrayShape | None:
        """Return the array shape of a field, or None if it is not an array."""
        return self.shapes(title).get(name)

    def require(self, title: Title, name: str) -> ArrayShape:
        """Like lookup(), but an unknown name is a schema error."""
        shape = self.lookup(title, name)
        if shape is None:
            raise SchemaError(f"{name} is not a known array for {title}")
        return shape

    def struct_name(self, title: Title, name: str) -> str:
        """Return the struct name carried by a stand-alone struct field."""
        shape = self.lookup(title, name)
        if shape is not None and shape.alt_name:
            return shape.alt_name
        return self.definition.struct_names.get(name, "")


_g_default: FormatRegistry | None = None
_g_default_lock = threading.Lock()


def default_registry() -> FormatRegistry:
    """Return the process-wide registry built from the built-in table."""
    global _g_default

    if _g_default is None:
        with _g_default_lock:
            if _g_default is None:
                _g_default = FormatRegistry(load_definition())
    return _g_default
