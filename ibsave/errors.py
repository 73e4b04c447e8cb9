"""Error taxonomy for save package conversion."""


class SaveCodecError(RuntimeError):
    """Base class for every fatal conversion error."""


class ClassificationError(SaveCodecError):
    """Raised when a package cannot be mapped to a known title."""

    def __init__(self, message: str, save_version: int | None = None, save_magic: int | None = None):
        if save_version is not None and save_magic is not None:
            message = f"{message} (save_version=0x{save_version:08X}, save_magic=0x{save_magic:08X})"
        super().__init__(message)
        self.save_version = save_version
        self.save_magic = save_magic


class CorruptPackageError(SaveCodecError):
    """Raised when the byte stream is truncated or malformed."""

    def __init__(self, message: str, offset: int | None = None):
        if offset is not None:
            message = f"{message} (offset {offset})"
        super().__init__(message)
        self.offset = offset


class SchemaError(SaveCodecError):
    """Raised when a field cannot be shaped from the format registry."""


class PropertyValueError(SaveCodecError):
    """Raised when a value does not fit its declared kind."""


class JsonFormatError(SaveCodecError):
    """Raised when the editable JSON form is malformed."""


class ConfigError(SaveCodecError):
    """Raised when configuration is missing or invalid."""
