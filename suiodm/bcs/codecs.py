"""BCS codecs for primitive and composite types.

Every codec follows the same contract:

    pack(value) -> bytes
    unpack(data, offset) -> (value, bytes_consumed)
    check(value, path) -> None, raising ValidationError on a shape mismatch

Struct and enum codecs receive their members through a loader callable so
that layouts may reference types registered later (and themselves).
"""

import string
import struct
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from suiodm.errors import DecodeError, EncodeError, SuiOdmError, ValidationError

from .uleb128 import decode_uleb128, encode_uleb128

# Struct format characters for the integer widths struct can pack natively
FORMAT_CHARS = {
    1: "B",
    2: "H",
    4: "I",
    8: "Q",
}

_HEX_DIGITS = frozenset(string.hexdigits)


def _take(data: bytes | memoryview, offset: int, size: int, name: str) -> bytes | memoryview:
    if offset + size > len(data):
        available = max(len(data) - offset, 0)
        raise DecodeError(
            f"Buffer too short for {name}: need {size} bytes at offset {offset}, have {available}"
        )
    return data[offset : offset + size]


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


class Codec:
    """Base class for all codecs."""

    name: str

    def pack(self, value: Any) -> bytes:
        raise NotImplementedError

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[Any, int]:
        raise NotImplementedError

    def check(self, value: Any, path: str = "") -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class BoolCodec(Codec):
    def __init__(self, name: str = "bool") -> None:
        self.name = name

    def pack(self, value: Any) -> bytes:
        if not isinstance(value, bool):
            raise EncodeError(f"{value!r} is not a valid {self.name}")
        return b"\x01" if value else b"\x00"

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[bool, int]:
        byte = _take(data, offset, 1, self.name)[0]
        if byte > 1:
            raise DecodeError(f"Invalid {self.name} byte 0x{byte:02x} at offset {offset}")
        return byte == 1, 1

    def check(self, value: Any, path: str = "") -> None:
        if not isinstance(value, bool):
            raise ValidationError(path, self.name, value)


class UIntCodec(Codec):
    """Fixed-width little-endian unsigned integer."""

    def __init__(self, name: str, size: int) -> None:
        self.name = name
        self.size = size
        self._limit = 1 << (8 * size)
        self._fmt = f"<{FORMAT_CHARS[size]}" if size in FORMAT_CHARS else None

    def _valid(self, value: Any) -> bool:
        # bool is an int subclass but never a valid integer value here
        return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < self._limit

    def pack(self, value: Any) -> bytes:
        if not self._valid(value):
            raise EncodeError(f"{value!r} is not a valid {self.name}")
        if self._fmt:
            return struct.pack(self._fmt, value)
        return value.to_bytes(self.size, byteorder="little")

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[int, int]:
        raw = _take(data, offset, self.size, self.name)
        if self._fmt:
            return struct.unpack_from(self._fmt, data, offset)[0], self.size
        return int.from_bytes(raw, byteorder="little"), self.size

    def check(self, value: Any, path: str = "") -> None:
        if not self._valid(value):
            raise ValidationError(path, self.name, value)


class StringCodec(Codec):
    """ULEB128 length-prefixed text, ASCII or UTF-8."""

    def __init__(self, name: str, encoding: str) -> None:
        self.name = name
        self.encoding = encoding

    def _encode(self, value: Any) -> bytes | None:
        if not isinstance(value, str):
            return None
        try:
            return value.encode(self.encoding)
        except UnicodeEncodeError:
            return None

    def pack(self, value: Any) -> bytes:
        raw = self._encode(value)
        if raw is None:
            raise EncodeError(f"{value!r} is not a valid {self.name} string")
        return encode_uleb128(len(raw)) + raw

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[str, int]:
        length, n = decode_uleb128(data, offset)
        raw = _take(data, offset + n, length, self.name)
        try:
            text = bytes(raw).decode(self.encoding)
        except UnicodeDecodeError as e:
            raise DecodeError(f"Invalid {self.name} string at offset {offset}: {e.reason}") from e
        return text, n + length

    def check(self, value: Any, path: str = "") -> None:
        if self._encode(value) is None:
            raise ValidationError(path, self.name, value)


class AddressCodec(Codec):
    """Fixed-length account address or object id.

    Accepts hex strings (``0x`` prefix optional, left-padded with zeros) or
    raw bytes of exactly ``length``; always decodes to a normalized
    ``0x``-prefixed lowercase hex string.
    """

    def __init__(self, name: str, length: int) -> None:
        self.name = name
        self.length = length

    def _to_bytes(self, value: Any) -> bytes | None:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value) if len(value) == self.length else None
        if not isinstance(value, str):
            return None

        digits = value[2:] if value[:2] in ("0x", "0X") else value
        if not digits or len(digits) > 2 * self.length:
            return None
        if not _HEX_DIGITS.issuperset(digits):
            return None
        return bytes.fromhex(digits.rjust(2 * self.length, "0"))

    def pack(self, value: Any) -> bytes:
        raw = self._to_bytes(value)
        if raw is None:
            raise EncodeError(f"{value!r} is not a valid {self.length}-byte {self.name}")
        return raw

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[str, int]:
        raw = _take(data, offset, self.length, self.name)
        return "0x" + bytes(raw).hex(), self.length

    def check(self, value: Any, path: str = "") -> None:
        if self._to_bytes(value) is None:
            raise ValidationError(path, self.name, value)


class CustomCodec(Codec):
    """A caller-registered leaf codec built from plain callables."""

    def __init__(
        self,
        name: str,
        pack: Callable[[Any], bytes],
        unpack: Callable[[bytes | memoryview, int], tuple[Any, int]],
        is_instance: Callable[[Any], bool],
    ) -> None:
        self.name = name
        self._pack = pack
        self._unpack = unpack
        self._is_instance = is_instance

    def _key(self) -> tuple[Any, ...]:
        return (self.name, self._pack, self._unpack, self._is_instance)

    # Two registrations of the same callables describe the same type
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CustomCodec):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def pack(self, value: Any) -> bytes:
        if not self._is_instance(value):
            raise EncodeError(f"{value!r} is not a valid {self.name}")
        try:
            return bytes(self._pack(value))
        except SuiOdmError:
            raise
        except (ValueError, TypeError, OverflowError, struct.error) as e:
            raise EncodeError(f"Cannot encode {value!r} as {self.name}: {e}") from e

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[Any, int]:
        try:
            return self._unpack(data, offset)
        except SuiOdmError:
            raise
        except (IndexError, ValueError, TypeError, struct.error) as e:
            raise DecodeError(f"Cannot decode {self.name} at offset {offset}: {e}") from e

    def check(self, value: Any, path: str = "") -> None:
        if not self._is_instance(value):
            raise ValidationError(path, self.name, value)


class VectorCodec(Codec):
    """ULEB128 element count followed by each element."""

    def __init__(self, element: Codec) -> None:
        self.name = f"vector<{element.name}>"
        self.element = element
        self._accepts_bytes = element.name == "u8"

    def _items(self, value: Any) -> Sequence[Any] | None:
        if isinstance(value, (list, tuple)):
            return value
        if self._accepts_bytes and isinstance(value, (bytes, bytearray)):
            return list(value)
        return None

    def pack(self, value: Any) -> bytes:
        items = self._items(value)
        if items is None:
            raise EncodeError(f"{value!r} is not a valid {self.name}")

        buf = bytearray(encode_uleb128(len(items)))
        for item in items:
            buf.extend(self.element.pack(item))
        return bytes(buf)

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[list[Any], int]:
        count, n = decode_uleb128(data, offset)
        o = offset + n
        items = []
        for _ in range(count):
            item, consumed = self.element.unpack(data, o)
            o += consumed
            items.append(item)
        return items, o - offset

    def check(self, value: Any, path: str = "") -> None:
        items = self._items(value)
        if items is None:
            raise ValidationError(path, self.name, value)
        for i, item in enumerate(items):
            self.element.check(item, f"{path}[{i}]")


class VecMapCodec(Codec):
    """Sui ``VecMap``: ULEB128 entry count followed by key/value pairs."""

    def __init__(self, key: Codec, value: Codec) -> None:
        self.name = f"VecMap<{key.name},{value.name}>"
        self.key = key
        self.value = value

    def pack(self, value: Any) -> bytes:
        if not isinstance(value, Mapping):
            raise EncodeError(f"{value!r} is not a valid {self.name}")

        buf = bytearray(encode_uleb128(len(value)))
        for k, v in value.items():
            buf.extend(self.key.pack(k))
            buf.extend(self.value.pack(v))
        return bytes(buf)

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[dict[Any, Any], int]:
        count, n = decode_uleb128(data, offset)
        o = offset + n
        result: dict[Any, Any] = {}
        for _ in range(count):
            k, consumed = self.key.unpack(data, o)
            o += consumed
            v, consumed = self.value.unpack(data, o)
            o += consumed

            # vector keys decode as lists, which cannot be dict keys
            if isinstance(k, list):
                k = tuple(k)
            if k in result:
                raise DecodeError(f"Duplicate key {k!r} in {self.name}")
            result[k] = v
        return result, o - offset

    def check(self, value: Any, path: str = "") -> None:
        if not isinstance(value, Mapping):
            raise ValidationError(path, self.name, value)
        for k, v in value.items():
            self.key.check(k, f"{path}[{k!r}]")
            self.value.check(v, f"{path}[{k!r}]")


class StructCodec(Codec):
    """Fields encoded back to back in layout order; values are mappings."""

    def __init__(self, name: str, loader: Callable[[], Sequence[tuple[str, Codec]]]) -> None:
        self.name = name
        self._loader = loader
        self._fields: tuple[tuple[str, Codec], ...] | None = None

    @property
    def fields(self) -> tuple[tuple[str, Codec], ...]:
        if self._fields is None:
            self._fields = tuple(self._loader())
        return self._fields

    def pack(self, value: Any) -> bytes:
        if not isinstance(value, Mapping):
            raise EncodeError(f"{value!r} is not a valid {self.name}")

        buf = bytearray()
        for field_name, codec in self.fields:
            if field_name not in value:
                raise EncodeError(f"{self.name} value is missing field {field_name!r}")
            buf.extend(codec.pack(value[field_name]))
        return bytes(buf)

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[dict[str, Any], int]:
        o = offset
        result: dict[str, Any] = {}
        for field_name, codec in self.fields:
            result[field_name], consumed = codec.unpack(data, o)
            o += consumed
        return result, o - offset

    def check(self, value: Any, path: str = "") -> None:
        if not isinstance(value, Mapping):
            raise ValidationError(path, self.name, value)
        for field_name, codec in self.fields:
            field_path = _join(path, field_name)
            if field_name not in value:
                raise ValidationError(field_path, codec.name, None, reason="missing field")
            codec.check(value[field_name], field_path)


class EnumCodec(Codec):
    """ULEB128 variant index followed by the variant payload.

    Values are single-key mappings ``{variant: payload}``; unit variants carry
    ``None``. ``Option<T>`` is the enum ``{none, some: T}``.
    """

    def __init__(
        self, name: str, loader: Callable[[], Sequence[tuple[str, Codec | None]]]
    ) -> None:
        self.name = name
        self._loader = loader
        self._variants: tuple[tuple[str, Codec | None], ...] | None = None
        self._index: dict[str, int] = {}

    @property
    def variants(self) -> tuple[tuple[str, Codec | None], ...]:
        if self._variants is None:
            variants = tuple(self._loader())
            self._index = {variant: i for i, (variant, _) in enumerate(variants)}
            self._variants = variants
        return self._variants

    def _split(self, value: Any) -> tuple[int, Any] | None:
        if not isinstance(value, Mapping) or len(value) != 1:
            return None
        variant, payload = next(iter(value.items()))
        self.variants  # populate the index
        if variant not in self._index:
            return None
        return self._index[variant], payload

    def pack(self, value: Any) -> bytes:
        split = self._split(value)
        if split is None:
            raise EncodeError(f"{value!r} is not a valid {self.name}")

        index, payload = split
        variant, codec = self.variants[index]
        if codec is None:
            if payload is not None:
                raise EncodeError(f"{self.name} variant {variant!r} carries no value")
            return encode_uleb128(index)
        return encode_uleb128(index) + codec.pack(payload)

    def unpack(self, data: bytes | memoryview, offset: int = 0) -> tuple[dict[str, Any], int]:
        index, n = decode_uleb128(data, offset)
        if index >= len(self.variants):
            raise DecodeError(f"Invalid variant index {index} for {self.name} at offset {offset}")

        variant, codec = self.variants[index]
        if codec is None:
            return {variant: None}, n
        payload, consumed = codec.unpack(data, offset + n)
        return {variant: payload}, n + consumed

    def check(self, value: Any, path: str = "") -> None:
        split = self._split(value)
        if split is None:
            raise ValidationError(path, self.name, value)

        index, payload = split
        variant, codec = self.variants[index]
        if codec is None:
            if payload is not None:
                raise ValidationError(_join(path, variant), "no value", payload)
            return
        codec.check(payload, _join(path, variant))
