"""File level decode and encode pipelines."""

import logging
import os
from pathlib import Path

from .bridge import from_json, to_json
from .codec import PackageInfo, decode_package, encode_package, resolve_package
from .codec.properties import Property
from .config import Config
from .schema.indices import IndexEnumeration
from .schema.registry import FormatRegistry, default_registry, load_definition

logger = logging.getLogger(__name__)

JSON_OUTPUT_NAME = "Deserialized Save Data.json"
BINARY_SUFFIX = ".bin"


class Converter:
    """Bundles the configuration with the registry it selects."""

    def __init__(self, config: Config, registry: FormatRegistry | None = None):
        self.config = config
        if registry is None:
            if config.registry_files:
                registry = FormatRegistry(load_definition(config.registry_files))
            else:
                registry = default_registry()
        self.registry = registry
        self.indices = IndexEnumeration(registry.definition)

    def decode_bytes(self, data: bytes, package_name: str) -> tuple[PackageInfo, list[Property]]:
        return decode_package(data, package_name, self.config, self.registry)

    def decode_file(self, path: str | os.PathLike[str]) -> tuple[PackageInfo, list[Property]]:
        """Read, resolve and decode a package file."""
        path = Path(path)
        data = path.read_bytes()
        logger.info("Read %d bytes from %s", len(data), path)
        return self.decode_bytes(data, path.stem)

    def encode_properties(self, info: PackageInfo, properties: list[Property]) -> bytes:
        return encode_package(info, properties, self.config)

    def to_json(self, info: PackageInfo, properties: list[Property]) -> str:
        return to_json(properties, info.title, self.registry, self.indices)

    def from_json(self, info: PackageInfo, text: str) -> list[Property]:
        return from_json(text, info.title, self.registry, self.indices)

    def decode_to_json(self, path: str | os.PathLike[str]) -> tuple[PackageInfo, str]:
        info, properties = self.decode_file(path)
        return info, self.to_json(info, properties)

    def package_info(self, path: str | os.PathLike[str]) -> PackageInfo:
        """Resolve the header of a package file without decoding it."""
        path = Path(path)
        return resolve_package(path.read_bytes(), path.stem, self.config)

    def encode_from_json(
        self, json_path: str | os.PathLike[str], package_path: str | os.PathLike[str]
    ) -> tuple[PackageInfo, bytes]:
        """Encode edited JSON using the header of the package it came from."""
        info = self.package_info(package_path)
        text = Path(json_path).read_text(encoding="utf-8")
        return info, self.encode_properties(info, self.from_json(info, text))


def write_json_output(text: str, output_dir: str | os.PathLike[str]) -> Path:
    """Write decoded JSON into the output directory."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / JSON_OUTPUT_NAME
    path.write_text(text, encoding="utf-8")
    logger.info("Wrote %s", path)
    return path


def write_binary_output(data: bytes, package_name: str, output_dir: str | os.PathLike[str]) -> Path:
    """Write an encoded package into the output directory."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / f"{package_name}{BINARY_SUFFIX}"
    path.write_bytes(data)
    logger.info("Wrote %s", path)
    return path
