"""Suiodm - schema-driven BCS serialization for Sui records."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("suiodm")
except PackageNotFoundError:
    __version__ = "(local)"
