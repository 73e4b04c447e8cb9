"""Tests for rebuilding fields from JSON."""

from pytest import raises

from ibsave.bridge.reader import from_dict, from_json
from ibsave.codec.properties import (
    BoolProperty,
    ByteProperty,
    EnumProperty,
    FloatProperty,
    IntProperty,
    NameProperty,
    StaticArrayProperty,
    StrProperty,
)
from ibsave.errors import JsonFormatError, PropertyValueError, SchemaError
from ibsave.schema import FormatRegistry, IndexEnumeration, parse
from ibsave.schema.types import Title


def read(tree, registry, indices, title=Title.IB3):
    return from_dict(tree, title, registry, indices)


def describe_scalars():
    def reads_plain_values_with_sizes(expect, registry, indices):
        properties = read({"Gold": 100, "Speed": 0.5, "PlayerName": "Siris"}, registry, indices)

        expect(properties) == [
            IntProperty(name="Gold", size=4, value=100),
            FloatProperty(name="Speed", size=4, value=0.5),
            StrProperty(name="PlayerName", size=10, value="Siris"),
        ]

    def checks_booleans_before_integers(expect, registry, indices):
        properties = read({"bIsHardcore": True}, registry, indices)

        expect(properties) == [BoolProperty(name="bIsHardcore", size=0, value=True)]

    def reads_prefixed_bytes_and_names(expect, registry, indices):
        properties = read({"bLevel": 7, "ini_Hero": "Isa"}, registry, indices)

        expect(properties) == [
            ByteProperty(name="Level", size=1, value=7),
            NameProperty(name="Hero", size=8, value="Isa"),
        ]

    def keeps_exempt_ints(expect, registry, indices):
        properties = read({"bWasEncrypted": 1}, registry, indices)

        expect(properties) == [IntProperty(name="bWasEncrypted", size=4, value=1)]

    def reads_enums(expect, registry, indices):
        properties = read(
            {
                "eDifficulty": {"Enum": "EDifficulty", "Enum Value": "Hard"},
                "eCurrentPlayerType": {"Enum": "EPlayerType", "Enum Value": "EPT_Siris"},
            },
            registry,
            indices,
        )

        expect(properties) == [
            EnumProperty(name="Difficulty", size=9, enum_name="EDifficulty", enum_value="Hard"),
            EnumProperty(name="eCurrentPlayerType", size=14, enum_name="EPlayerType", enum_value="EPT_Siris"),
        ]

    def rejects_incomplete_enums(expect, registry, indices):
        with raises(SchemaError, match="Enum Value"):
            read({"eDifficulty": {"Enum": "EDifficulty"}}, registry, indices)

    def rejects_nulls(expect, registry, indices):
        with raises(JsonFormatError, match="null"):
            read({"Gold": None}, registry, indices)

    def checks_ranges(expect, registry, indices):
        with raises(PropertyValueError):
            read({"Gold": 2**31}, registry, indices)
        with raises(PropertyValueError):
            read({"Gold": -(2**31) - 1}, registry, indices)
        with raises(PropertyValueError):
            read({"bLevel": 256}, registry, indices)
        with raises(PropertyValueError):
            read({"Speed": 1e39}, registry, indices)


def describe_structs():
    def derives_struct_names_and_sizes(expect, registry, indices):
        (prop,) = read({"GameOptions": {"bMusic": True}}, registry, indices)

        expect(prop.struct_name) == "PersistGameOptions"
        expect(prop.size) == 37 + 9
        expect(prop.elements[0].element_size) == 37

    def uses_recorded_struct_names(expect, registry, indices):
        (prop,) = read({"Pos": {"$struct": "Vector", "X": 0.5}}, registry, indices)

        expect(prop.struct_name) == "Vector"
        expect([e.name for e in prop.elements]) == ["X"]

    def rejects_struct_names_outside_structs(expect, registry, indices):
        with raises(JsonFormatError):
            read({"$struct": "Vector"}, registry, indices)


def describe_arrays():
    def requires_registered_arrays(expect, registry, indices):
        with raises(SchemaError, match="Mystery"):
            read({"Mystery": [1]}, registry, indices)

    def reads_dynamic_arrays(expect, registry, indices):
        properties = read(
            {"GameFlagList": [1, 2], "BossElementalRandList": [1, 0.5], "PlayerInventory": [{"ini_Item": "Sword"}]},
            registry,
            indices,
        )

        expect(properties[0].elements) == [1, 2]
        expect(properties[0].size) == 12
        expect(properties[1].elements) == [1.0, 0.5]
        expect(properties[2].elements) == [[NameProperty(name="Item", size=10, value="Sword")]]
        expect(properties[2].size) == 4 + 9 + 17 + 8 + 10 + 9

    def rejects_mistyped_elements(expect, registry, indices):
        with raises(JsonFormatError):
            read({"GameFlagList": ["one"]}, registry, indices)
        with raises(JsonFormatError):
            read({"GameFlagList": [True]}, registry, indices)

    def rebuilds_static_arrays_from_keys(expect, registry, indices):
        (prop,) = read({"NumConsumable": [{"2": 9, "0": 3}]}, registry, indices)

        expect(isinstance(prop, StaticArrayProperty)) == True
        expect([(e.array_index, e.value) for e in prop.elements]) == [(2, 9), (0, 3)]
        expect({e.name for e in prop.elements}) == {"NumConsumable"}

    def rebuilds_static_struct_arrays_by_position(expect, registry, indices):
        (prop,) = read({"Currency": [{"Amount": 5}, {"Amount": 6}]}, registry, indices)

        expect([e.array_index for e in prop.elements]) == [0, 1]
        expect({e.struct_name for e in prop.elements}) == {"CurrencyStruct"}

    def rebuilds_static_struct_arrays_from_slot_keys(expect, registry, indices):
        (prop,) = read({"Currency": [{"2": {"Amount": 5}, "0": {"Amount": 6}}]}, registry, indices)

        expect([e.array_index for e in prop.elements]) == [2, 0]
        expect([e.elements[0].value for e in prop.elements]) == [5, 6]

    def keeps_single_struct_lists_positional(expect, registry, indices):
        (prop,) = read({"Currency": [{"Amount": 5}]}, registry, indices)

        expect(prop.elements[0].array_index) == 0
        expect(prop.elements[0].elements[0].name) == "Amount"

    def rebuilds_indexed_struct_arrays_from_keys(expect, registry, indices):
        (prop,) = read({"SavedCheevo": [{"4": {"bDone": True}}]}, registry, indices)

        expect(prop.elements[0].array_index) == 4
        expect(prop.elements[0].struct_name) == "SavedCheevoData"

    def reads_enum_elements_of_static_byte_arrays(expect, registry, indices):
        (prop,) = read(
            {"ShowConsumableBadge": [{"0": 1, "1": {"Enum": "EBadge", "Enum Value": "New"}}]}, registry, indices
        )

        expect(prop.elements[0]) == ByteProperty(name="ShowConsumableBadge", size=1, value=1)
        expect(prop.elements[1].enum_value) == "New"
        expect(prop.elements[1].array_index) == 1

    def translates_enumeration_keys(expect):
        registry = FormatRegistry(parse("common { static NumConsumable: int } index NumConsumable { Potion = 3 }"))
        indices = IndexEnumeration(registry.definition)

        (prop,) = read({"NumConsumable": [{"Potion": 1, "5": 2}]}, registry, indices)

        expect([e.array_index for e in prop.elements]) == [3, 5]

    def rejects_unknown_keys(expect, registry, indices):
        with raises(SchemaError):
            read({"NumConsumable": [{"Potion": 1}]}, registry, indices)

    def rejects_repeated_slots(expect, registry, indices):
        with raises(JsonFormatError, match="more than once"):
            read({"NumConsumable": [{"1": 1}, {"1": 2}]}, registry, indices)


def describe_from_json():
    def parses_text(expect, registry, indices):
        properties = from_json('{"Gold": 100}', Title.IB3, registry, indices)

        expect(properties) == [IntProperty(name="Gold", size=4, value=100)]

    def rejects_invalid_text(expect, registry, indices):
        with raises(JsonFormatError):
            from_json('{"Gold": }', Title.IB3, registry, indices)

    def rejects_duplicate_keys(expect, registry, indices):
        with raises(JsonFormatError, match="Duplicate"):
            from_json('{"Gold": 1, "Gold": 2}', Title.IB3, registry, indices)

    def rejects_non_finite_numbers(expect, registry, indices):
        with raises(JsonFormatError):
            from_json('{"Speed": NaN}', Title.IB3, registry, indices)

    def rejects_non_object_documents(expect, registry, indices):
        with raises(JsonFormatError):
            from_json("[1, 2]", Title.IB3, registry, indices)
