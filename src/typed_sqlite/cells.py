"""Store cells and the coercion rules SQLite applies between them.

A cell is whatever the ``sqlite3`` module hands back for one column or one
function argument: ``int``, ``float``, ``str``, ``bytes`` or ``None``. When
a codec asks for a representation the cell does not hold, the conversion
follows the store's own ``sqlite3_column_*`` rules, never anything more
forgiving.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any

from typed_sqlite.integers import INT64_MAX, INT64_MIN


class CellKind(Enum):
    """Runtime storage classes of a store cell."""

    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BLOB = "blob"
    NULL = "null"


_BLOB_TYPES = (bytes, bytearray, memoryview)

# sqlite3Isspace: space, \t, \n, \v, \f, \r
_INT_PREFIX = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_REAL_PREFIX = re.compile(
    r"[ \t\n\v\f\r]*([+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
)


def cell_kind(cell: Any) -> CellKind:
    """Classify a raw value by the storage class the store would give it."""
    if cell is None:
        return CellKind.NULL
    # bool is an int subclass and binds as one
    if isinstance(cell, int):
        return CellKind.INTEGER
    if isinstance(cell, float):
        return CellKind.REAL
    if isinstance(cell, str):
        return CellKind.TEXT
    if isinstance(cell, _BLOB_TYPES):
        return CellKind.BLOB
    raise TypeError(f"Not a store cell: {type(cell).__name__}")


def real_to_int64(value: float) -> int:
    """Truncate a real toward zero, clamping to the signed 64-bit range."""
    if math.isnan(value):
        return 0
    if value <= INT64_MIN:
        return INT64_MIN
    if value >= INT64_MAX:
        return INT64_MAX
    return int(value)


def text_to_int64(text: str) -> int:
    """Parse the longest leading integer prefix of ``text``, 0 if there is none."""
    match = _INT_PREFIX.match(text)
    if match is None:
        return 0
    value = int(match.group(1))
    return max(INT64_MIN, min(INT64_MAX, value))


def text_to_double(text: str) -> float:
    """Parse the longest leading real-number prefix of ``text``, 0.0 if none."""
    match = _REAL_PREFIX.match(text)
    if match is None:
        return 0.0
    return float(match.group(1))


def format_real(value: float) -> str:
    """Render a real the way the store converts it to text (``%!.15g``)."""
    if math.isinf(value):
        return "Inf" if value > 0 else "-Inf"
    if math.isnan(value):
        return "NaN"
    mantissa, sep, exponent = f"{value:.15g}".partition("e")
    if "." not in mantissa:
        mantissa += ".0"
    return mantissa + sep + exponent


def _blob_text(cell: Any) -> str:
    return bytes(cell).decode("utf-8", errors="replace")


def as_int64(cell: Any) -> int:
    """Coerce a cell the way ``sqlite3_column_int64`` does."""
    kind = cell_kind(cell)
    if kind is CellKind.INTEGER:
        return int(cell)
    if kind is CellKind.REAL:
        return real_to_int64(cell)
    if kind is CellKind.TEXT:
        return text_to_int64(cell)
    if kind is CellKind.BLOB:
        return text_to_int64(_blob_text(cell))
    return 0


def as_double(cell: Any) -> float:
    """Coerce a cell the way ``sqlite3_column_double`` does."""
    kind = cell_kind(cell)
    if kind is CellKind.REAL:
        return cell
    if kind is CellKind.INTEGER:
        return float(cell)
    if kind is CellKind.TEXT:
        return text_to_double(cell)
    if kind is CellKind.BLOB:
        return text_to_double(_blob_text(cell))
    return 0.0


def as_text(cell: Any) -> str:
    """Coerce a cell the way ``sqlite3_column_text`` does (NULL gives "")."""
    kind = cell_kind(cell)
    if kind is CellKind.TEXT:
        return cell
    if kind is CellKind.INTEGER:
        return str(int(cell))
    if kind is CellKind.REAL:
        return format_real(cell)
    if kind is CellKind.BLOB:
        return _blob_text(cell)
    return ""


def as_blob(cell: Any) -> bytes:
    """Coerce a cell the way ``sqlite3_column_blob`` does (NULL gives b"")."""
    kind = cell_kind(cell)
    if kind is CellKind.BLOB:
        return bytes(cell)
    if kind is CellKind.NULL:
        return b""
    return as_text(cell).encode("utf-8")
