"""Unit tests configuration file."""

import struct

import pytest

from ibsave.config import Config
from ibsave.convert import Converter
from ibsave.schema import IndexEnumeration, default_registry

TEST_KEYS = {
    "IB1": "000102030405060708090a0b0c0d0e0f",
    "IB2": "101112131415161718191a1b1c1d1e1f",
    "VOTE": "202122232425262728292a2b2c2d2e2f",
}


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


class RawFields:
    """Builds property stream bytes by hand, independently of the codec."""

    @staticmethod
    def string(value):
        if not value:
            return struct.pack("<i", 0)
        encoded = value.encode("utf-8")
        return struct.pack("<i", len(encoded) + 1) + encoded + b"\x00"

    @classmethod
    def header(cls, name, type_name, size, index=0):
        return cls.string(name) + cls.string(type_name) + struct.pack("<ii", size, index)

    @classmethod
    def int_field(cls, name, value, index=0):
        return cls.header(name, "IntProperty", 4, index) + struct.pack("<i", value)

    @classmethod
    def float_field(cls, name, value, index=0):
        return cls.header(name, "FloatProperty", 4, index) + struct.pack("<f", value)

    @classmethod
    def bool_field(cls, name, value, index=0):
        return cls.header(name, "BoolProperty", 0, index) + bytes([1 if value else 0])

    @classmethod
    def str_field(cls, name, value, index=0, type_name="StrProperty"):
        payload = cls.string(value)
        return cls.header(name, type_name, len(payload), index) + payload

    @classmethod
    def name_field(cls, name, value, index=0):
        return cls.str_field(name, value, index, "NameProperty")

    @classmethod
    def byte_field(cls, name, value, index=0):
        return cls.header(name, "ByteProperty", 1, index) + cls.string("None") + bytes([value])

    @classmethod
    def enum_field(cls, name, enum_name, enum_value, index=0):
        value = cls.string(enum_value)
        return cls.header(name, "ByteProperty", len(value), index) + cls.string(enum_name) + value

    @classmethod
    def struct_field(cls, name, struct_name, fields, index=0):
        body = b"".join(fields) + cls.string("None")
        return cls.header(name, "StructProperty", len(body), index) + cls.string(struct_name) + body

    @classmethod
    def array_field(cls, name, count, content, index=0):
        payload = struct.pack("<i", count) + content
        return cls.header(name, "ArrayProperty", len(payload), index) + payload

    @classmethod
    def terminator(cls):
        return cls.string("None")

    @classmethod
    def plaintext_package(cls, fields, save_version=5, save_magic=0xFFFFFFFF):
        return struct.pack("<II", save_version, save_magic) + b"".join(fields) + cls.terminator()


@pytest.fixture
def raw():
    return RawFields


@pytest.fixture
def config():
    return Config(keys=dict(TEST_KEYS))


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def indices(registry):
    return IndexEnumeration(registry.definition)


@pytest.fixture
def converter(config, registry):
    return Converter(config, registry)
