"""Tests for typed user-defined SQL functions."""

import sqlite3
from datetime import timedelta

import pytest

from typed_sqlite.errors import BindingError
from typed_sqlite.functions import FunctionResult, create_typed_function
from typed_sqlite.registry import TypeRegistry


@pytest.fixture
def registry():
    return TypeRegistry()


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


class TestFunctionResult:
    """Tests for the result slot."""

    def test_single_slot(self):
        result = FunctionResult()
        with pytest.raises(BindingError):
            result.bind_int64(2, 1)

    def test_value(self):
        result = FunctionResult()
        assert result.value is None
        result.bind_blob(1, bytearray(b"ab"))
        assert result.value == b"ab"
        assert isinstance(result.value, bytes)


class TestCreateTypedFunction:
    """Tests for create_typed_function."""

    def test_arguments_are_decoded(self, registry, connection):
        """Arguments arrive as host values, coerced by their types."""
        create_typed_function(
            connection,
            "flip",
            lambda value: not value,
            [registry.get_or_raise("bool")],
            registry.get_or_raise("bool"),
        )
        assert connection.execute("SELECT flip(1)").fetchone()[0] == 0
        assert connection.execute("SELECT flip('F')").fetchone()[0] == 1
        assert connection.execute("SELECT flip('N')").fetchone()[0] == 0

    def test_composite_result(self, registry, connection):
        date = registry.get_or_raise("date")
        create_typed_function(
            connection,
            "add_days",
            lambda when, days: when + timedelta(days=days),
            [date, registry.get_or_raise("int64")],
            date,
        )
        assert connection.execute("SELECT add_days(0, 1)").fetchone()[0] == 86400.0
        text = connection.execute("SELECT add_days('2004-08-19 18:51:06', 2)").fetchone()[0]
        assert date.decode(text) == date.decode("2004-08-21 18:51:06")

    def test_optional_result(self, registry, connection):
        int64 = registry.get_or_raise("int64")
        create_typed_function(
            connection,
            "positive_or_null",
            lambda value: value if value > 0 else None,
            [int64],
            registry.get_optional_type("int64"),
            deterministic=True,
        )
        assert connection.execute("SELECT positive_or_null(3)").fetchone()[0] == 3
        assert connection.execute("SELECT positive_or_null(-3)").fetchone()[0] is None

    def test_blob_result(self, registry, connection):
        blob = registry.get_or_raise("blob")
        create_typed_function(connection, "reverse_bytes", lambda data: data[::-1], [blob], blob)
        assert connection.execute("SELECT reverse_bytes(x'0102')").fetchone()[0] == b"\x02\x01"

    def test_decode_error_fails_the_call(self, registry, connection):
        boolean = registry.get_or_raise("bool")
        create_typed_function(connection, "flip", lambda value: not value, [boolean], boolean)
        with pytest.raises(sqlite3.OperationalError):
            connection.execute("SELECT flip('X')").fetchone()

    def test_encode_error_fails_the_call(self, registry, connection):
        create_typed_function(
            connection,
            "too_big",
            lambda value: value * 100,
            [registry.get_or_raise("int64")],
            registry.get_or_raise("int8"),
        )
        assert connection.execute("SELECT too_big(1)").fetchone()[0] == 100
        # Reported as a failed call, not as "string or blob too big"
        with pytest.raises(sqlite3.OperationalError, match="user-defined function raised exception"):
            connection.execute("SELECT too_big(2)").fetchone()
