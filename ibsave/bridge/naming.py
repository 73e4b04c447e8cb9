"""Key prefixes that carry property types through the JSON form.

JSON has no byte, enum or localized name types, so those fields are written
under a prefixed key and recognised by the prefix when read back.
"""

NAME_PREFIX = "ini_"
BYTE_PREFIX = "b"
ENUM_PREFIX = "e"

ENUM_NAME_KEY = "Enum"
ENUM_VALUE_KEY = "Enum Value"
# Reserved object key holding a struct name the registry cannot derive
STRUCT_NAME_KEY = "$struct"

# Int fields whose own names start with the byte prefix
BYTE_EXEMPTIONS = frozenset({"bWasEncrypted"})
# Enum fields whose own names start with the enum prefix
ENUM_EXEMPTIONS = frozenset({"eCurrentPlayerType"})


def name_key(name: str) -> str:
    return NAME_PREFIX + name


def byte_key(name: str) -> str:
    return BYTE_PREFIX + name


def enum_key(name: str) -> str:
    if name in ENUM_EXEMPTIONS:
        return name
    return ENUM_PREFIX + name


def is_name_key(key: str) -> bool:
    return key.startswith(NAME_PREFIX)


def is_byte_key(key: str) -> bool:
    return key.startswith(BYTE_PREFIX) and key not in BYTE_EXEMPTIONS


def is_enum_key(key: str) -> bool:
    return key.startswith(ENUM_PREFIX)


def strip_prefix(key: str, prefix: str) -> str:
    if key.startswith(prefix):
        return key[len(prefix) :]
    return key


def field_name_of_enum_key(key: str) -> str:
    if key in ENUM_EXEMPTIONS:
        return key
    return strip_prefix(key, ENUM_PREFIX)
