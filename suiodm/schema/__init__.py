"""Schemas and type expressions."""

from .parser import STD_ALIASES as STD_ALIASES
from .parser import parse_declaration as parse_declaration
from .parser import parse_type as parse_type
from .schema import Schema as Schema
from .types import *
