"""Tests for the file level conversion pipelines."""

import json

from pytest import raises

from ibsave.config import Config
from ibsave.convert import JSON_OUTPUT_NAME, Converter, write_binary_output, write_json_output
from ibsave.errors import JsonFormatError
from ibsave.schema.types import ArrayKind, ElementKind, Title


def describe_converter():
    def decodes_files_named_by_their_stem(expect, converter, raw, tmp_path):
        path = tmp_path / "Slot2.bin"
        path.write_bytes(raw.plaintext_package([raw.int_field("Gold", 7)]))

        info, properties = converter.decode_file(path)

        expect(info.package_name) == "Slot2"
        expect(info.title) == Title.IB2
        expect([p.name for p in properties]) == ["Gold"]

    def resolves_headers_only(expect, converter, raw, tmp_path):
        path = tmp_path / "Slot1.bin"
        path.write_bytes(raw.plaintext_package([], save_version=3))

        expect(converter.package_info(path).title) == Title.IB1

    def encodes_json_with_the_original_header(expect, converter, raw, tmp_path):
        package = tmp_path / "Slot1.bin"
        package.write_bytes(raw.plaintext_package([raw.int_field("Gold", 7)], save_version=3))
        edited = tmp_path / "edited.json"
        edited.write_text(json.dumps({"Gold": 8}))

        info, data = converter.encode_from_json(edited, package)

        expect(info.title) == Title.IB1
        expect(data) == raw.plaintext_package([raw.int_field("Gold", 8)], save_version=3)

    def rejects_bad_json_before_encoding(expect, converter, raw, tmp_path):
        package = tmp_path / "Slot1.bin"
        package.write_bytes(raw.plaintext_package([]))
        edited = tmp_path / "edited.json"
        edited.write_text("{")

        with raises(JsonFormatError):
            converter.encode_from_json(edited, package)

    def merges_configured_registry_files(expect, tmp_path):
        extra = tmp_path / "extra.registry"
        extra.write_text("title IB3 { dynamic SecretList: float }\n")

        converter = Converter(Config(registry_files=[str(extra)]))
        shape = converter.registry.lookup(Title.IB3, "SecretList")

        expect(shape.element_kind) == ElementKind.FLOAT
        expect(shape.array_kind) == ArrayKind.DYNAMIC
        expect(converter.registry.lookup(Title.IB2, "SecretList")) == None


def describe_outputs():
    def writes_json_into_a_new_directory(expect, tmp_path):
        path = write_json_output('{"Gold": 1}', tmp_path / "a" / "b")

        expect(path) == tmp_path / "a" / "b" / JSON_OUTPUT_NAME
        expect(path.read_text(encoding="utf-8")) == '{"Gold": 1}'

    def names_binaries_after_the_package(expect, tmp_path):
        path = write_binary_output(b"\x01", "Slot3", tmp_path)

        expect(path.name) == "Slot3.bin"
        expect(path.read_bytes()) == b"\x01"
