r"""ULEB128 length prefixes and variant tags.

BCS uses unsigned LEB128 for sequence lengths and enum variant indexes, both
of which are limited to the ``u32`` range, so an encoding never exceeds five
bytes and must be minimal.

>>> encode_uleb128(624485).hex()
'e58e26'
>>> decode_uleb128(bytes.fromhex('e58e26') + b'test')
(624485, 3)
>>> strip_uleb128(bytes.fromhex('0474657374'))
(4, b'test')
"""

from suiodm.errors import DecodeError, EncodeError

MAX_ULEB128_VALUE = 0xFFFF_FFFF
MAX_ULEB128_BYTES = 5


def encode_uleb128(value: int) -> bytes:
    """Encode an unsigned integer as ULEB128."""
    if value < 0:
        raise EncodeError(f"ULEB128 cannot encode negative value {value}")
    if value > MAX_ULEB128_VALUE:
        raise EncodeError(f"ULEB128 value {value} exceeds u32 range")

    output = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            output.append(byte | 0x80)
        else:
            output.append(byte)
            return bytes(output)


def decode_uleb128(data: bytes | memoryview, offset: int = 0) -> tuple[int, int]:
    """Decode a ULEB128 value starting at ``offset``.

    Returns:
        Tuple of (value, bytes_consumed).
    """
    value = 0
    shift = 0
    consumed = 0

    while True:
        if consumed >= MAX_ULEB128_BYTES:
            raise DecodeError("ULEB128 length prefix overflow")
        if offset + consumed >= len(data):
            raise DecodeError(f"Truncated ULEB128 at offset {offset}")

        byte = data[offset + consumed]
        consumed += 1
        value |= (byte & 0x7F) << shift

        if not byte & 0x80:
            break
        shift += 7

    if value > MAX_ULEB128_VALUE:
        raise DecodeError(f"ULEB128 value {value} exceeds u32 range")
    if consumed > 1 and byte == 0:
        raise DecodeError(f"Non-canonical ULEB128 at offset {offset}")

    return value, consumed


def strip_uleb128(data: bytes | memoryview) -> tuple[int, bytes]:
    """Split a leading ULEB128 value from the rest of the buffer."""
    value, consumed = decode_uleb128(data)
    return value, bytes(data[consumed:])
