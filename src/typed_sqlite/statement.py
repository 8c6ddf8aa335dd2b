"""Statements with explicit parameter slots over the ``sqlite3`` module."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import ExitStack, contextmanager
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Sequence

from typed_sqlite.cells import CellKind, cell_kind
from typed_sqlite.errors import BindingError
from typed_sqlite.integers import INT64_MAX, INT64_MIN
from typed_sqlite.parsing.sql_lexer import SQLLexer, number_parameters

if TYPE_CHECKING:
    from typed_sqlite.types import ValueType

logger = logging.getLogger(__name__)


class ParameterSlots:
    """Numbered slots that hold one bound store cell each.

    Subclasses provide ``parameter_count`` and may veto binding through
    ``_check_bindable``. A slot stays bound until ``clear_binding``; binding
    an occupied slot raises ``BindingError``.
    """

    parameter_count = 0

    def __init__(self) -> None:
        self._bindings: dict[int, Any] = {}

    def _check_bindable(self, index: int) -> None:
        if not 1 <= index <= self.parameter_count:
            raise BindingError(
                f"Parameter index {index} out of range [1, {self.parameter_count}]"
            )
        if index in self._bindings:
            raise BindingError(f"Parameter {index} is already bound")

    def bind_int64(self, index: int, value: int) -> None:
        """Bind a signed 64-bit integer."""
        if not isinstance(value, int):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        if not INT64_MIN <= value <= INT64_MAX:
            raise OverflowError(f"{value} does not fit in a 64-bit integer")
        self._check_bindable(index)
        self._bindings[index] = int(value)

    def bind_double(self, index: int, value: float) -> None:
        """Bind a 64-bit real."""
        if not isinstance(value, (int, float)):
            raise TypeError(f"Expected float, got {type(value).__name__}")
        self._check_bindable(index)
        self._bindings[index] = float(value)

    def bind_text(self, index: int, value: str) -> None:
        """Bind text."""
        if not isinstance(value, str):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        self._check_bindable(index)
        self._bindings[index] = value

    def bind_blob(self, index: int, value: bytes | bytearray | memoryview) -> None:
        """Bind a byte buffer. The caller's buffer is referenced, not copied."""
        memoryview(value)
        self._check_bindable(index)
        self._bindings[index] = value

    def bind_null(self, index: int) -> None:
        """Bind NULL."""
        self._check_bindable(index)
        self._bindings[index] = None

    def bind_cell(self, index: int, cell: Any) -> None:
        """Bind a raw store cell with the bind call matching its kind."""
        kind = cell_kind(cell)
        if kind is CellKind.INTEGER:
            self.bind_int64(index, cell)
        elif kind is CellKind.REAL:
            self.bind_double(index, cell)
        elif kind is CellKind.TEXT:
            self.bind_text(index, cell)
        elif kind is CellKind.BLOB:
            self.bind_blob(index, cell)
        else:
            self.bind_null(index)

    def clear_binding(self, index: int) -> None:
        """Release the slot at ``index``."""
        self._bindings.pop(index, None)

    def clear_bindings(self) -> None:
        """Release all slots."""
        self._bindings.clear()

    def is_bound(self, index: int) -> bool:
        return index in self._bindings


class Statement(ParameterSlots):
    """A SQL statement with scoped parameter slots and a current result row.

    Parameters are numbered the way SQLite numbers them. Unbound slots
    execute as NULL. ``step()`` runs the statement on first call and then
    advances one row at a time; after the last row the statement resets
    itself so it can be bound and run again.

    Example:
        with Statement(connection, "SELECT ? + 1") as stmt:
            with int64.bind(41, stmt, 1):
                stmt.step()
                answer = int64.from_column(stmt, 0)
    """

    def __init__(self, connection: sqlite3.Connection, sql: str) -> None:
        super().__init__()
        self.connection = connection
        self.sql = sql

        lexer = SQLLexer()
        lexer.build()
        self._parameters = number_parameters(lexer.tokenize(sql))
        self.parameter_count = max((p.index for p in self._parameters), default=0)
        self._names: dict[int, str] = {
            p.index: p.name for p in self._parameters if p.name is not None
        }
        if self._names and any(p.name is None for p in self._parameters):
            raise ValueError("Statement mixes positional and named parameters")
        # sqlite3 binds by the name without its prefix, so :a and @a share a value
        keys: dict[str, str] = {}
        for name in self._names.values():
            other = keys.setdefault(name[1:], name)
            if other != name:
                raise ValueError(
                    f"Parameters {other} and {name} cannot be bound separately"
                )

        self._cursor: sqlite3.Cursor | None = None
        self._row: Sequence[Any] | None = None

    def parameter_index(self, name: str) -> int:
        """Return the 1-based index of a named parameter, or 0 if absent."""
        for index, param_name in self._names.items():
            if param_name == name:
                return index
        return 0

    def parameter_name(self, index: int) -> str | None:
        """Return the name of the parameter at ``index``, None if positional."""
        return self._names.get(index)

    def _check_bindable(self, index: int) -> None:
        if self._cursor is not None:
            raise BindingError("Statement must be reset before binding")
        super()._check_bindable(index)

    def _execute_parameters(self) -> list[Any] | dict[str, Any]:
        if self._names:
            return {name[1:]: self._bindings.get(index) for index, name in self._names.items()}
        return [self._bindings.get(index) for index in range(1, self.parameter_count + 1)]

    def step(self) -> bool:
        """Advance to the next result row.

        Returns:
            True if a row is available, False when the statement is done.
        """
        if self._cursor is None:
            logger.debug(
                "Executing %r with %d of %d parameters bound",
                self.sql,
                len(self._bindings),
                self.parameter_count,
            )
            self._cursor = self.connection.execute(self.sql, self._execute_parameters())
        row = self._cursor.fetchone()
        if row is None:
            self.reset()
            return False
        self._row = row
        return True

    def reset(self) -> None:
        """Discard the current result, keeping the bindings."""
        if self._cursor is not None:
            self._cursor.close()
        self._cursor = None
        self._row = None

    @property
    def column_count(self) -> int:
        if self._cursor is None or self._cursor.description is None:
            return 0
        return len(self._cursor.description)

    @property
    def column_names(self) -> list[str]:
        if self._cursor is None or self._cursor.description is None:
            return []
        return [column[0] for column in self._cursor.description]

    def column_type(self, column: int) -> CellKind:
        """Return the storage class of a column in the current row."""
        return cell_kind(self[column])

    def __getitem__(self, column: int) -> Any:
        if self._row is None:
            raise IndexError("Statement has no current row")
        return self._row[column]

    def close(self) -> None:
        """Reset the statement and release all bindings."""
        self.reset()
        self.clear_bindings()

    def __enter__(self) -> Statement:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


@contextmanager
def bind_all(
    statement: ParameterSlots, pairs: Iterable[tuple[ValueType, Any]]
) -> Iterator[ParameterSlots]:
    """Bind each (type, value) pair to parameters 1..n for the duration of the block.

    The bindings nest, so every slot is released on exit in reverse order,
    including when binding a later pair fails.
    """
    with ExitStack() as stack:
        for index, (value_type, value) in enumerate(pairs, start=1):
            stack.enter_context(value_type.bind(value, statement, index))
        yield statement


def typed_rows(
    statement: Statement, column_types: Sequence[ValueType]
) -> Iterator[tuple[Any, ...]]:
    """Step ``statement`` to completion, decoding each row with ``column_types``."""
    while statement.step():
        yield tuple(
            value_type.from_column(statement, column)
            for column, value_type in enumerate(column_types)
        )
