"""Value type definitions for the typed_sqlite library.

A value type is a codec for one host type. It decodes store cells (from a
result column or a standalone function argument), renders SQL literals,
and binds values into statement parameter slots for the duration of a
``with`` block.
"""

from __future__ import annotations

import math
import operator
import struct
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator

from typed_sqlite.cells import CellKind, as_blob, as_double, as_int64, as_text, cell_kind
from typed_sqlite.errors import MalformedTextError, UnsupportedLiteralError
from typed_sqlite.integers import IntegerWidth, from_store, to_store
from typed_sqlite.literals import NULL_LITERAL, quote_text

if TYPE_CHECKING:
    from typed_sqlite.statement import ParameterSlots


@dataclass
class ValueType:
    """Base class for all value types."""

    name: str

    def from_column(self, row: Any, column: int) -> Any:
        """Decode the cell at zero-based ``column`` of the current result row.

        ``row`` is anything indexable by column position: a stepped
        ``Statement``, a ``sqlite3.Row`` or a plain tuple. The column index
        is not validated here.
        """
        return self.decode(row[column])

    def from_value(self, value: Any) -> Any:
        """Decode a standalone value, such as a user-defined function argument."""
        return self.decode(value)

    def decode(self, cell: Any) -> Any:
        """Convert a raw store cell into the host value."""
        raise NotImplementedError

    def to_cell(self, value: Any) -> Any:
        """Return the raw store cell ``value`` is written as."""
        raise NotImplementedError

    def sql_literal(self, value: Any) -> str:
        """Return ``value`` as SQL literal text."""
        raise NotImplementedError

    def requires_binding(self, value: Any) -> bool:
        """Return whether ``value`` must be bound rather than inlined."""
        return False

    @contextmanager
    def bind(self, value: Any, statement: ParameterSlots, index: int) -> Iterator[None]:
        """Bind ``value`` to parameter ``index`` for the duration of the block.

        The slot is cleared on every exit path, including exceptions raised
        inside the block. Binding the same slot again inside the block is an
        error.

        Args:
            value: Host value to bind.
            statement: Parameter slots to write into (a ``Statement`` or a
                ``FunctionResult``).
            index: Parameter index, starting at 1.
        """
        statement.bind_cell(index, self.to_cell(value))
        try:
            yield
        finally:
            statement.clear_binding(index)


@dataclass
class IntegerType(ValueType):
    """Integer of a fixed width, stored as the store's signed 64-bit integer.

    Narrower widths truncate silently on decode; unsigned 64-bit values
    round-trip through a bit-pattern reinterpretation.
    """

    width: IntegerWidth = IntegerWidth.INT64

    def decode(self, cell: Any) -> int:
        return from_store(as_int64(cell), self.width)

    def to_cell(self, value: Any) -> int:
        return to_store(operator.index(value), self.width)

    def sql_literal(self, value: Any) -> str:
        value = operator.index(value)
        to_store(value, self.width)
        return str(value)


@dataclass
class BooleanType(ValueType):
    """Boolean stored as integer 0 or 1."""

    def decode(self, cell: Any) -> bool:
        kind = cell_kind(cell)
        if kind in (CellKind.INTEGER, CellKind.REAL):
            return as_int64(cell) != 0
        if kind is CellKind.NULL:
            return False
        return self._parse_text(as_text(cell))

    def _parse_text(self, text: str) -> bool:
        """Decide by the first character of ``text``."""
        if not text:
            return False
        first = text[0]
        if first == "0":
            return False
        if "1" <= first <= "9":
            return True
        if first in "Yy":
            return True
        # Inverted on purpose: N/n decode as True, T/t as False
        if first in "Nn":
            return True
        if first in "Tt":
            return False
        if first in "Ff":
            return False
        raise MalformedTextError(text, self.name)

    def to_cell(self, value: Any) -> int:
        return 1 if value else 0

    def sql_literal(self, value: Any) -> str:
        return "1" if value else "0"


def round_float32(value: float) -> float:
    """Round a double to the nearest single-precision value."""
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


@dataclass
class RealType(ValueType):
    """IEEE floating point, 64-bit or 32-bit, stored as the store's real."""

    bits: int = 64

    def __post_init__(self) -> None:
        if self.bits not in (32, 64):
            raise ValueError(f"Unsupported real width: {self.bits}")

    def _round(self, value: float) -> float:
        return round_float32(value) if self.bits == 32 else value

    def decode(self, cell: Any) -> float:
        return self._round(as_double(cell))

    def to_cell(self, value: Any) -> float:
        return self._round(float(value))

    def sql_literal(self, value: Any) -> str:
        value = self._round(float(value))
        # The store has no NaN and reads out-of-range literals as infinity
        if math.isnan(value):
            return NULL_LITERAL
        if math.isinf(value):
            return "9e999" if value > 0 else "-9e999"
        if self.bits == 64:
            return repr(value)
        for digits in range(1, 10):
            text = f"{value:.{digits}g}"
            if round_float32(float(text)) == value:
                return text
        return repr(value)


@dataclass
class TextType(ValueType):
    """UTF-8 text."""

    def decode(self, cell: Any) -> str:
        return as_text(cell)

    def to_cell(self, value: Any) -> str:
        if not isinstance(value, str):
            raise TypeError(f"Expected str for {self.name}, got {type(value).__name__}")
        return value

    def sql_literal(self, value: Any) -> str:
        return quote_text(self.to_cell(value))

    def requires_binding(self, value: Any) -> bool:
        return True


@dataclass
class BlobType(ValueType):
    """Raw byte sequence. A null cell decodes to empty bytes."""

    def decode(self, cell: Any) -> bytes:
        return as_blob(cell)

    def to_cell(self, value: Any) -> bytes | bytearray | memoryview:
        """Return ``value`` itself for blob cells; other buffers are copied."""
        if isinstance(value, (bytes, bytearray, memoryview)):
            return value
        try:
            return memoryview(value).tobytes()
        except TypeError:
            raise TypeError(
                f"Expected bytes for {self.name}, got {type(value).__name__}"
            ) from None

    def sql_literal(self, value: Any) -> str:
        # No X'..' hex literal form; blobs must be bound
        raise UnsupportedLiteralError(self.name)

    def requires_binding(self, value: Any) -> bool:
        return True


@dataclass
class OptionalType(ValueType):
    """Adds ``None`` (SQL NULL) to any wrapped value type."""

    wrapped: ValueType

    def decode(self, cell: Any) -> Any:
        if cell_kind(cell) is CellKind.NULL:
            return None
        return self.wrapped.decode(cell)

    def to_cell(self, value: Any) -> Any:
        if value is None:
            return None
        return self.wrapped.to_cell(value)

    def sql_literal(self, value: Any) -> str:
        if value is None:
            return NULL_LITERAL
        return self.wrapped.sql_literal(value)

    def requires_binding(self, value: Any) -> bool:
        if value is None:
            return False
        return self.wrapped.requires_binding(value)

    @contextmanager
    def bind(self, value: Any, statement: ParameterSlots, index: int) -> Iterator[None]:
        if value is None:
            statement.bind_null(index)
            try:
                yield
            finally:
                statement.clear_binding(index)
        else:
            with self.wrapped.bind(value, statement, index):
                yield


@dataclass
class DelegatingType(ValueType):
    """Value type that is written as a value of another type.

    Subclasses implement ``decode`` and ``_target``, which maps a host value
    to the (type, value) pair it is encoded as. Literal rendering, binding
    and the binding requirement all follow the target.
    """

    def _target(self, value: Any) -> tuple[ValueType, Any]:
        raise NotImplementedError

    def to_cell(self, value: Any) -> Any:
        target, raw = self._target(value)
        return target.to_cell(raw)

    def sql_literal(self, value: Any) -> str:
        target, raw = self._target(value)
        return target.sql_literal(raw)

    def requires_binding(self, value: Any) -> bool:
        target, raw = self._target(value)
        return target.requires_binding(raw)

    @contextmanager
    def bind(self, value: Any, statement: ParameterSlots, index: int) -> Iterator[None]:
        target, raw = self._target(value)
        with target.bind(raw, statement, index):
            yield
