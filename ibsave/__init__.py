"""ibsave - Save package decoder and encoder."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ibsave")
except PackageNotFoundError:
    __version__ = "(local)"
