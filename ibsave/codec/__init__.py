"""Binary side of the save package codec."""

from .deserializer import Deserializer as Deserializer
from .package import PackageInfo as PackageInfo
from .package import decode_package as decode_package
from .package import encode_package as encode_package
from .package import resolve_package as resolve_package
from .properties import *
from .serializer import Serializer as Serializer
from .stream import PackageReader as PackageReader
from .stream import PackageWriter as PackageWriter
