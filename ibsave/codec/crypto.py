"""Per-title AES encryption of save packages."""

import logging
import struct

from Crypto.Cipher import AES

from ..config import Config
from ..errors import ClassificationError, CorruptPackageError
from ..schema.types import Title

logger = logging.getLogger(__name__)

BLOCK_SIZE = AES.block_size

# Bytes in front of the ciphertext
OUTER_HEADER_SIZES = {
    Title.IB1: 8,
    Title.IB2: 4,
    Title.VOTE: 4,
}


def _cipher(title: Title, config: Config):
    key = config.aes_key(title)
    if title is Title.IB1:
        return AES.new(key, AES.MODE_CBC, iv=bytes(BLOCK_SIZE))
    return AES.new(key, AES.MODE_ECB)


def _zero_pad(data: bytes) -> bytes:
    remainder = len(data) % BLOCK_SIZE
    if remainder == 0:
        return data
    return data + bytes(BLOCK_SIZE - remainder)


def _outer_header_size(title: Title) -> int:
    try:
        return OUTER_HEADER_SIZES[title]
    except KeyError:
        raise ClassificationError(f"{title} packages are never encrypted") from None


def is_plaintext_block(block: bytes, config: Config) -> bool:
    """Check a decrypted block for the header words of a plaintext package."""
    first, second = struct.unpack_from("<II", block)
    no_magic = config.constants.no_magic
    return first in (no_magic, 0) or second == no_magic


def try_decrypt_block(title: Title, block: bytes, config: Config) -> bool:
    """Decrypt one block with a title's key and report whether it looks valid."""
    if len(block) != BLOCK_SIZE:
        raise CorruptPackageError(f"Trial decryption needs {BLOCK_SIZE} bytes, got {len(block)}")
    return is_plaintext_block(_cipher(title, config).decrypt(block), config)


def decrypt(title: Title, data: bytes, config: Config) -> bytes:
    """Strip the outer header of a package and decrypt the remainder."""
    header_size = _outer_header_size(title)
    payload = data[header_size:]
    if len(payload) % BLOCK_SIZE:
        raise CorruptPackageError(
            f"Encrypted payload of {len(payload)} bytes is not a multiple of the AES block size", header_size
        )

    logger.debug("Decrypting %d bytes as %s", len(payload), title)
    return _cipher(title, config).decrypt(payload)


def encrypt(title: Title, plaintext: bytes, save_version: int, save_magic: int, config: Config) -> bytes:
    """Encrypt a serialized package and prepend the title's outer header."""
    _outer_header_size(title)

    ciphertext = _cipher(title, config).encrypt(_zero_pad(plaintext))
    if title is Title.IB1:
        header = struct.pack("<II", save_version, save_magic)
    else:
        header = struct.pack("<I", config.constants.ib2_magic)

    logger.debug("Encrypted %d bytes as %s", len(ciphertext), title)
    return header + ciphertext
