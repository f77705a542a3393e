"""Check runtime values against a schema before they are encoded."""

from collections.abc import Mapping, Sequence
from typing import Any

from suiodm.errors import ValidationError
from suiodm.schema.schema import Schema

from .registry import TypeRegistry


class Validator:
    """Validates keyed records against a schema.

    Validation stops at the first invalid field, taken in schema order (or
    in the order of ``keys`` when a subset is given). Keys in the value that
    the schema does not declare are ignored. A declared field missing from the
    value is an error for every type, ``Option`` included: an absent field is
    not the same as ``{"none": None}``.
    """

    def __init__(self, schema: Schema | Mapping[str, str], registry: TypeRegistry) -> None:
        self.schema = Schema.coerce(schema)
        self.registry = registry

    def validate(self, value: Any, keys: Sequence[str] | None = None) -> None:
        """Raise ValidationError if ``value`` does not conform to the schema."""
        if not isinstance(value, Mapping):
            raise ValidationError("", "record", value, reason="value must be a mapping")

        for key in self.schema.select(keys):
            self.validate_field(key, value)

    def validate_field(self, key: str, value: Mapping[str, Any]) -> None:
        """Validate a single schema field of ``value``."""
        codec = self.registry.resolve(self.schema[key])
        if key not in value:
            raise ValidationError(key, codec.name, None, reason="missing field")
        codec.check(value[key], key)

    def check(self, value: Any, keys: Sequence[str] | None = None) -> ValidationError | None:
        """Return the first validation error, or None if the value is valid."""
        try:
            self.validate(value, keys)
        except ValidationError as e:
            return e
        return None

    def is_valid(self, value: Any, keys: Sequence[str] | None = None) -> bool:
        return self.check(value, keys) is None


def validate(
    registry: TypeRegistry,
    schema: Schema | Mapping[str, str],
    value: Any,
    keys: Sequence[str] | None = None,
) -> None:
    """Validate ``value`` against ``schema``; raises ValidationError."""
    Validator(schema, registry).validate(value, keys)
