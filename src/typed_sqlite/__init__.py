"""Typed SQLite - typed value marshalling between SQLite cells and Python values."""

from typed_sqlite.cells import CellKind, cell_kind
from typed_sqlite.composite import BinaryType, DateType, DecimalType, URLType, UUIDType
from typed_sqlite.config import (
    DateFormatter,
    DateStorageStyle,
    MarshallingConfig,
    UUIDStorageStyle,
)
from typed_sqlite.enums import EnumType
from typed_sqlite.errors import (
    BindingError,
    LengthMismatchError,
    MalformedTextError,
    MarshallingError,
    OutOfRangeError,
    UnexpectedNullError,
    UnmatchedRawValueError,
    UnsupportedLiteralError,
)
from typed_sqlite.functions import FunctionResult, create_typed_function
from typed_sqlite.integers import IntegerWidth
from typed_sqlite.literals import inline_parameters, quote_text, render_literal
from typed_sqlite.registry import TypeRegistry
from typed_sqlite.statement import Statement, bind_all, typed_rows
from typed_sqlite.types import (
    BlobType,
    BooleanType,
    IntegerType,
    OptionalType,
    RealType,
    TextType,
    ValueType,
)

__all__ = [
    # Main API
    "TypeRegistry",
    "MarshallingConfig",
    "Statement",
    "bind_all",
    "typed_rows",
    "create_typed_function",
    "FunctionResult",
    # Configuration
    "DateFormatter",
    "DateStorageStyle",
    "UUIDStorageStyle",
    # Cells
    "CellKind",
    "cell_kind",
    "IntegerWidth",
    # Value types
    "ValueType",
    "IntegerType",
    "BooleanType",
    "RealType",
    "TextType",
    "BlobType",
    "OptionalType",
    "DateType",
    "UUIDType",
    "BinaryType",
    "URLType",
    "DecimalType",
    "EnumType",
    # Literals
    "quote_text",
    "render_literal",
    "inline_parameters",
    # Errors
    "MarshallingError",
    "MalformedTextError",
    "UnexpectedNullError",
    "OutOfRangeError",
    "LengthMismatchError",
    "UnmatchedRawValueError",
    "UnsupportedLiteralError",
    "BindingError",
]

__version__ = "0.1.0"
