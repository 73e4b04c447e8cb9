"""Little-endian primitives for reading and writing package streams."""

import struct

from ..errors import CorruptPackageError

_INT32 = struct.Struct("<i")
_UINT32 = struct.Struct("<I")
_FLOAT32 = struct.Struct("<f")


class PackageReader:
    """Cursor over an in-memory package."""

    def __init__(self, data: bytes, offset: int = 0) -> None:
        if offset < 0 or offset > len(data):
            raise CorruptPackageError(f"Start offset outside of a {len(data)} byte package", offset)
        self._data = memoryview(data)
        self.position = offset

    def __len__(self) -> int:
        return len(self._data)

    def at_end(self) -> bool:
        return self.position >= len(self._data)

    def seek(self, position: int) -> None:
        if position < 0 or position > len(self._data):
            raise CorruptPackageError(f"Cannot seek outside of a {len(self._data)} byte package", position)
        self.position = position

    def read_bytes(self, count: int) -> bytes:
        end = self.position + count
        if count < 0 or end > len(self._data):
            raise CorruptPackageError(
                f"Cannot read {count} bytes, only {len(self._data) - self.position} remain", self.position
            )
        chunk = bytes(self._data[self.position : end])
        self.position = end
        return chunk

    def read_byte(self) -> int:
        return self.read_bytes(1)[0]

    def read_bool(self) -> bool:
        return self.read_byte() != 0

    def read_int32(self) -> int:
        return _INT32.unpack(self.read_bytes(4))[0]

    def read_uint32(self) -> int:
        return _UINT32.unpack(self.read_bytes(4))[0]

    def read_float(self) -> float:
        return _FLOAT32.unpack(self.read_bytes(4))[0]

    def read_string(self) -> str:
        """Read a length-prefixed, NUL-terminated UTF-8 string.

        A length of zero or less is an empty string.
        """
        length = self.read_int32()
        if length <= 0:
            return ""

        start = self.position
        raw = self.read_bytes(length)
        try:
            return raw.decode("utf-8").rstrip("\0")
        except UnicodeDecodeError as exc:
            raise CorruptPackageError(f"String is not valid UTF-8: {exc}", start) from exc

    def peek_string(self) -> str:
        """Read the next string without consuming it."""
        position = self.position
        try:
            return self.read_string()
        finally:
            self.position = position


class PackageWriter:
    """Growable output buffer for a package."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def write_bytes(self, data: bytes) -> None:
        self._buf.extend(data)

    def write_byte(self, value: int) -> None:
        self._buf.append(value)

    def write_bool(self, value: bool) -> None:
        self._buf.append(1 if value else 0)

    def write_int32(self, value: int) -> None:
        self._buf.extend(_INT32.pack(value))

    def write_uint32(self, value: int) -> None:
        self._buf.extend(_UINT32.pack(value))

    def write_float(self, value: float) -> None:
        self._buf.extend(_FLOAT32.pack(value))

    def write_string(self, value: str) -> None:
        """Write a string as length, UTF-8 bytes and NUL; "" is a bare zero length."""
        if not value:
            self.write_int32(0)
            return

        encoded = value.encode("utf-8")
        self.write_int32(len(encoded) + 1)
        self._buf.extend(encoded)
        self._buf.append(0)
