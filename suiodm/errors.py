"""Exception hierarchy shared by the schema, codec and runtime layers."""

from typing import Any


class SuiOdmError(Exception):
    """Base class for all suiodm errors."""


class SchemaError(SuiOdmError):
    """Raised when a schema or type definition is unusable."""


class TypeParseError(SchemaError):
    """Raised when a type expression cannot be parsed."""


class UnknownTypeError(SchemaError):
    """Raised when a type name is not present in the registry."""

    def __init__(self, type_name: str) -> None:
        super().__init__(f"Unknown type: {type_name}")
        self.type_name = type_name


class RegistryError(SchemaError):
    """Raised when a registration conflicts with an existing entry."""


class ValidationError(SuiOdmError, ValueError):
    """Raised when a value does not conform to its declared type.

    Attributes:
        path: Location of the offending value, e.g. ``stats.items[2]``.
        expected: Canonical spelling of the expected type.
        actual: The offending value.
        reason: Optional extra detail (e.g. "missing field").
    """

    def __init__(self, path: str, expected: str, actual: Any, reason: str | None = None) -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        self.reason = reason
        super().__init__(self._message())

    @property
    def field(self) -> str:
        """The top-level field the error belongs to."""
        for i, ch in enumerate(self.path):
            if ch in ".[":
                return self.path[:i]
        return self.path

    def _message(self) -> str:
        where = self.path or "<value>"
        if self.reason:
            return f"{where}: {self.reason} (expected {self.expected})"
        return f"{where}: expected {self.expected}, got {self.actual!r}"


class SerializationError(SuiOdmError):
    """Raised when encoding or decoding fails."""


class EncodeError(SerializationError):
    """Raised when a value cannot be encoded."""


class DecodeError(SerializationError):
    """Raised when bytes cannot be decoded."""


class FieldCountError(SerializationError):
    """Raised when the number of buffers does not match the number of keys."""


class RemoteCallError(SuiOdmError):
    """Raised when a remote response envelope reports an error."""
