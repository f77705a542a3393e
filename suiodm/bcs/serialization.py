"""Field-level serialization of schema records.

Each schema field is encoded into its own buffer rather than one buffer for
the whole record. A remote call can then take a list of ``(key, bytes)``
pairs and rewrite only the fields that changed.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from structlog import get_logger

from suiodm.errors import DecodeError, EncodeError, FieldCountError
from suiodm.schema.schema import Schema
from suiodm.schema.types import TypeExpr

from .codecs import Codec
from .registry import TypeRegistry
from .validation import Validator

logger = get_logger()

Buffer = bytes | bytearray | memoryview | Sequence[int]


def _as_bytes(buf: Buffer, key: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    if isinstance(buf, (list, tuple)):
        try:
            return bytes(buf)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Buffer for field {key!r} is not a byte sequence: {e}") from e
    raise DecodeError(f"Buffer for field {key!r} is not a byte sequence: {type(buf).__name__}")


class FieldSerializer:
    """Encodes and decodes records one schema field at a time.

    Args:
        schema: Field name to type tag mapping; its order is the wire order.
        registry: Registry used to resolve field types.
        validate: Validate values before encoding and after decoding.

    Example:
        serializer = FieldSerializer({"name": "ascii", "power_level": "u64"}, registry)
        buffers = serializer.serialize({"name": "Kyrie", "power_level": 199})
        serializer.deserialize(buffers)  # {"name": "Kyrie", "power_level": 199}

        # Partial update: only the selected fields, in the given order
        buffers = serializer.serialize(value, keys=["power_level"])
        serializer.deserialize(buffers, keys=["power_level"])
    """

    def __init__(
        self,
        schema: Schema | Mapping[str, str],
        registry: TypeRegistry,
        *,
        validate: bool = True,
    ) -> None:
        self.log = logger.new()
        self.schema = Schema.coerce(schema)
        self.registry = registry
        self.validator = Validator(self.schema, registry) if validate else None

    def _codec(self, key: str) -> Codec:
        return self.registry.resolve(self.schema[key])

    def _pack_field(self, key: str, value: Mapping[str, Any]) -> bytes:
        codec = self._codec(key)
        if key not in value:
            raise EncodeError(f"Cannot encode field {key!r} as {codec.name}: value is missing")
        try:
            return codec.pack(value[key])
        except EncodeError as e:
            raise EncodeError(f"Cannot encode field {key!r} as {codec.name}: {e}") from e

    def _unpack_field(self, key: str, data: bytes, offset: int) -> tuple[Any, int]:
        codec = self._codec(key)
        try:
            return codec.unpack(data, offset)
        except DecodeError as e:
            raise DecodeError(f"Cannot decode field {key!r} as {codec.name}: {e}") from e

    def serialize(self, value: Mapping[str, Any], keys: Sequence[str] | None = None) -> list[bytes]:
        """Encode each selected field of ``value`` into its own buffer.

        Args:
            value: The record to encode.
            keys: Fields to encode, in output order. Defaults to every schema
                field in schema order.

        Returns:
            One buffer per selected field.
        """
        selected = self.schema.select(keys)
        if self.validator:
            self.validator.validate(value, selected)
        elif not isinstance(value, Mapping):
            raise EncodeError(f"Record must be a mapping, got {type(value).__name__}")

        buffers = [self._pack_field(key, value) for key in selected]
        self.log.debug("fields serialized", fields=selected, size=sum(len(b) for b in buffers))
        return buffers

    def deserialize(self, buffers: Sequence[Buffer], keys: Sequence[str] | None = None) -> dict[str, Any]:
        """Decode one buffer per selected field back into a record.

        Buffers pair with the selected keys by position. A buffer count that
        does not match the key count raises FieldCountError rather than
        guessing an alignment.
        """
        selected = self.schema.select(keys)
        if len(buffers) != len(selected):
            raise FieldCountError(
                f"Expected {len(selected)} buffers for fields {selected}, got {len(buffers)}"
            )

        result: dict[str, Any] = {}
        for key, buf in zip(selected, buffers):
            data = _as_bytes(buf, key)
            value, consumed = self._unpack_field(key, data, 0)
            if consumed != len(data):
                raise DecodeError(
                    f"Cannot decode field {key!r} as {self._codec(key).name}: "
                    f"{len(data) - consumed} trailing bytes"
                )
            result[key] = value

        if self.validator:
            self.validator.validate(result, selected)
        return result

    def pack_record(self, value: Mapping[str, Any], keys: Sequence[str] | None = None) -> bytes:
        """Encode the selected fields back to back as one buffer."""
        return b"".join(self.serialize(value, keys))

    def split_record(self, data: Buffer, keys: Sequence[str] | None = None) -> list[bytes]:
        """Cut a concatenated record into one buffer per selected field."""
        raw = _as_bytes(data, "<record>")
        buffers: list[bytes] = []
        o = 0
        for key in self.schema.select(keys):
            _, consumed = self._unpack_field(key, raw, o)
            buffers.append(raw[o : o + consumed])
            o += consumed

        if o != len(raw):
            raise DecodeError(f"Record has {len(raw) - o} trailing bytes after the last field")
        return buffers

    def unpack_record(self, data: Buffer, keys: Sequence[str] | None = None) -> dict[str, Any]:
        """Decode a concatenated record (see ``pack_record``)."""
        return self.deserialize(self.split_record(data, keys), keys)


class TypeSerializer:
    """Whole-value serialization bound to a single type expression."""

    def __init__(self, type_expr: str | TypeExpr, registry: TypeRegistry) -> None:
        self.codec = registry.resolve(type_expr)

    def serialize(self, value: Any) -> bytes:
        self.codec.check(value)
        return self.codec.pack(value)

    def deserialize(self, data: Buffer) -> Any:
        raw = _as_bytes(data, self.codec.name)
        value, consumed = self.codec.unpack(raw)
        if consumed != len(raw):
            raise DecodeError(f"{len(raw) - consumed} trailing bytes after {self.codec.name}")
        return value


def serialize_fields(
    registry: TypeRegistry,
    schema: Schema | Mapping[str, str],
    value: Mapping[str, Any],
    keys: Sequence[str] | None = None,
) -> list[bytes]:
    """Encode ``value`` field by field; see FieldSerializer.serialize."""
    return FieldSerializer(schema, registry).serialize(value, keys)


def deserialize_fields(
    registry: TypeRegistry,
    schema: Schema | Mapping[str, str],
    buffers: Sequence[Buffer],
    keys: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Decode per-field buffers; see FieldSerializer.deserialize."""
    return FieldSerializer(schema, registry).deserialize(buffers, keys)
