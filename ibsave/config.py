"""Configuration for header constants, AES keys and output paths."""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from dataclasses_json import DataClassJsonMixin

from .errors import ConfigError
from .schema.types import Title

logger = logging.getLogger(__name__)

CONFIG_ENV = "IBSAVE_CONFIG"
DEFAULT_CONFIG_FILE = "ibsave.toml"


@dataclass(frozen=True)
class PackageConstants(DataClassJsonMixin):
    """Header words used to recognise each title.

    - pc_version / ib3_version: save versions of plaintext packages
    - no_magic: magic word of a plaintext package
    - ib1_magic: magic word of an encrypted IB1 package
    - ib2_magic: leading word of an encrypted IB2 or VOTE package
    """

    pc_version: int = 0x00000003
    ib3_version: int = 0x00000005
    no_magic: int = 0xFFFFFFFF
    ib1_magic: int = 0x31534249
    ib2_magic: int = 0x32534249


@dataclass(frozen=True)
class Config(DataClassJsonMixin):
    """Settings shared by every conversion."""

    constants: PackageConstants = field(default_factory=PackageConstants)
    # Title name -> hex encoded AES key
    keys: dict[str, str] = field(default_factory=dict)
    output_dir: str = "output"
    registry_files: list[str] = field(default_factory=list)

    def aes_key(self, title: Title) -> bytes:
        """Return the AES key of a title."""
        hex_key = self.keys.get(str(title))
        if not hex_key:
            raise ConfigError(f"No AES key configured for {title}; add it under [keys] as {title} = \"<hex>\"")

        try:
            key = bytes.fromhex(hex_key)
        except ValueError as exc:
            raise ConfigError(f"AES key for {title} is not valid hex") from exc

        if len(key) not in (16, 24, 32):
            raise ConfigError(f"AES key for {title} must be 16, 24 or 32 bytes, got {len(key)}")
        return key


def load_config(path: str | os.PathLike[str] | None = None) -> Config:
    """Load configuration from a TOML file.

    The file is taken from `path`, then the IBSAVE_CONFIG environment variable,
    then ./ibsave.toml. Defaults apply when none of them exist.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV)
        if path is None and Path(DEFAULT_CONFIG_FILE).is_file():
            path = DEFAULT_CONFIG_FILE

    if path is None:
        return Config()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file {path} does not exist") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid TOML: {exc}") from exc

    unknown = set(data.get("keys", {})) - {str(title) for title in Title}
    if unknown:
        raise ConfigError(f"Unknown title(s) under [keys]: {', '.join(sorted(unknown))}")

    try:
        config = Config.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"Config file {path} is invalid: {exc}") from exc

    logger.debug("Loaded configuration from %s", path)
    return config
