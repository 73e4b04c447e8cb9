"""Conversion between decoded fields and the editable JSON form."""

from .reader import JsonReader as JsonReader
from .reader import from_dict as from_dict
from .reader import from_json as from_json
from .writer import JsonWriter as JsonWriter
from .writer import to_dict as to_dict
from .writer import to_json as to_json
