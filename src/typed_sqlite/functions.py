"""User-defined SQL functions with typed arguments and results."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable, Sequence

from typed_sqlite.errors import OutOfRangeError
from typed_sqlite.statement import ParameterSlots
from typed_sqlite.types import ValueType

logger = logging.getLogger(__name__)


class FunctionResult(ParameterSlots):
    """The single result slot of a user-defined function call.

    Values are bound into it exactly like a statement parameter at index 1;
    ``value`` holds the bound cell while the binding is active.
    """

    parameter_count = 1

    @property
    def value(self) -> Any:
        cell = self._bindings.get(1)
        if isinstance(cell, (bytearray, memoryview)):
            return bytes(cell)
        return cell


def create_typed_function(
    connection: sqlite3.Connection,
    name: str,
    func: Callable[..., Any],
    arg_types: Sequence[ValueType],
    result_type: ValueType,
    deterministic: bool = False,
) -> None:
    """Register ``func`` as a SQL function taking and returning typed values.

    Each raw argument is decoded with ``from_value`` of the matching entry in
    ``arg_types``; the return value is encoded by binding it with
    ``result_type``. Errors raised while decoding or encoding surface in SQL
    as a failed function call; a result too wide for ``result_type`` raises
    ``OutOfRangeError``.

    Args:
        connection: Connection to register the function on.
        name: SQL name of the function.
        func: Python callable receiving decoded arguments.
        arg_types: One value type per argument.
        result_type: Value type of the return value.
        deterministic: Whether SQLite may treat the function as deterministic.
    """
    arg_types = list(arg_types)

    def call(*args: Any) -> Any:
        decoded = [value_type.from_value(arg) for value_type, arg in zip(arg_types, args)]
        value = func(*decoded)
        result = FunctionResult()
        # sqlite3 reports a raw OverflowError as "string or blob too big"
        try:
            with result_type.bind(value, result, 1):
                return result.value
        except OverflowError:
            raise OutOfRangeError(value, result_type.name) from None

    connection.create_function(name, len(arg_types), call, deterministic=deterministic)
    logger.debug(
        "Registered SQL function %s(%s) -> %s",
        name,
        ", ".join(t.name for t in arg_types),
        result_type.name,
    )
