"""Format registry and static array index enumerations."""

from .indices import IndexEnumeration as IndexEnumeration
from .parser import ValidationError as ValidationError
from .parser import parse as parse
from .registry import FormatRegistry as FormatRegistry
from .registry import default_registry as default_registry
from .registry import load_definition as load_definition
from .types import *
