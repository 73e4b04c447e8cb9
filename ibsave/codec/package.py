"""Title resolution and whole-package decode and encode."""

import logging
import struct
from dataclasses import dataclass

from dataclasses_json import DataClassJsonMixin

from ..config import Config
from ..errors import ClassificationError, CorruptPackageError
from ..schema.registry import FormatRegistry, default_registry
from ..schema.types import Title
from . import crypto
from .deserializer import Deserializer
from .properties import Property
from .serializer import Serializer
from .stream import PackageReader

logger = logging.getLogger(__name__)

HEADER_SIZE = 8
# Offset from the end of an IB3 package of its trailing engine version field
ENGINE_VERSION_OFFSET = 62
ENGINE_VERSION_FIELD = "CurrentEngineVersion"


@dataclass(frozen=True)
class PackageInfo(DataClassJsonMixin):
    """What the resolver learned about a package from its header."""

    package_name: str
    title: Title
    is_encrypted: bool
    save_version: int
    save_magic: int


def resolve_package(data: bytes, package_name: str, config: Config) -> PackageInfo:
    """Work out the title and encryption state of a package."""
    if len(data) < HEADER_SIZE:
        raise CorruptPackageError(f"Package is {len(data)} bytes, too short for a header", 0)

    save_version, save_magic = struct.unpack_from("<II", data)
    constants = config.constants
    is_encrypted = not (
        save_version in (constants.ib3_version, constants.pc_version) and save_magic == constants.no_magic
    )

    if is_encrypted:
        title = _resolve_encrypted(data, save_version, save_magic, config)
    else:
        title = _resolve_plaintext(data, save_version, save_magic, config)

    logger.info("%s is a%s %s package", package_name, "n encrypted" if is_encrypted else " plaintext", title)
    return PackageInfo(package_name, title, is_encrypted, save_version, save_magic)


def _resolve_encrypted(data: bytes, save_version: int, save_magic: int, config: Config) -> Title:
    constants = config.constants

    if save_magic == constants.ib1_magic:
        return Title.IB1

    if save_version == constants.ib2_magic:
        block = data[4 : 4 + crypto.BLOCK_SIZE]
        if len(block) < crypto.BLOCK_SIZE:
            raise CorruptPackageError("Encrypted package ends before its first block", 4)
        # IB2 and VOTE share a header and differ only in their keys
        if crypto.try_decrypt_block(Title.IB2, block, config):
            return Title.IB2
        return Title.VOTE

    raise ClassificationError("Unrecognized encrypted package", save_version, save_magic)


def _resolve_plaintext(data: bytes, save_version: int, save_magic: int, config: Config) -> Title:
    constants = config.constants

    if save_version == constants.ib3_version:
        if _ends_with_engine_version(data):
            return Title.IB3
        return Title.IB2

    if save_version == constants.pc_version:
        return Title.IB1

    raise ClassificationError("Unrecognized plaintext package", save_version, save_magic)


def _ends_with_engine_version(data: bytes) -> bool:
    start = len(data) - ENGINE_VERSION_OFFSET
    if start < HEADER_SIZE:
        return False

    try:
        return PackageReader(data, start).read_string() == ENGINE_VERSION_FIELD
    except CorruptPackageError as exc:
        logger.debug("No engine version field at offset %d: %s", start, exc)
        return False


def property_stream_offset(info: PackageInfo) -> int:
    """Offset of the first field in the plaintext of a package."""
    if info.is_encrypted and info.title is Title.IB1:
        return 4
    return HEADER_SIZE


def decode_package(
    data: bytes, package_name: str, config: Config, registry: FormatRegistry | None = None
) -> tuple[PackageInfo, list[Property]]:
    """Resolve, decrypt and deserialize a package."""
    info = resolve_package(data, package_name, config)
    plaintext = crypto.decrypt(info.title, data, config) if info.is_encrypted else data

    deserializer = Deserializer(info.title, registry or default_registry())
    properties = deserializer.deserialize(PackageReader(plaintext, property_stream_offset(info)))
    return info, properties


def encode_package(info: PackageInfo, properties: list[Property], config: Config) -> bytes:
    """Serialize and, when the title needs it, encrypt a package."""
    return Serializer(info, config).serialize(properties)
