"""Tests for the composite value types: dates, UUIDs, binary, URLs and decimals."""

import math
import sqlite3
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from urllib.parse import urlsplit
from uuid import UUID

import pytest

from typed_sqlite.composite import parse_url
from typed_sqlite.config import (
    DateFormatter,
    DateStorageStyle,
    MarshallingConfig,
    UUIDStorageStyle,
)
from typed_sqlite.errors import (
    LengthMismatchError,
    MalformedTextError,
    MarshallingError,
    OutOfRangeError,
    UnexpectedNullError,
    UnsupportedLiteralError,
)
from typed_sqlite.registry import TypeRegistry
from typed_sqlite.statement import Statement

UTC = timezone.utc
SAMPLE_UUID = UUID("12345678-1234-5678-1234-567812345678")


@pytest.fixture
def registry():
    return TypeRegistry()


@pytest.fixture
def formatter_registry():
    return TypeRegistry(MarshallingConfig(date_storage=DateStorageStyle.FORMATTER))


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


def bound_cell(connection, value_type, value):
    """Return the raw cell a value is written as."""
    with Statement(connection, "SELECT ?") as stmt:
        with value_type.bind(value, stmt, 1):
            assert stmt.step()
            return stmt[0]


def roundtrip(connection, value_type, value):
    with Statement(connection, "SELECT ?") as stmt:
        with value_type.bind(value, stmt, 1):
            assert stmt.step()
            return value_type.from_column(stmt, 0)


class TestDateDecode:
    """Tests for DateType decoding, which auto-detects the cell kind."""

    def test_integer_seconds(self, registry):
        date = registry.get_or_raise("date")
        assert date.decode(1724089866) == datetime(2024, 8, 19, 17, 51, 6, tzinfo=UTC)
        assert date.decode(0) == datetime(1970, 1, 1, tzinfo=UTC)

    def test_real_seconds(self, registry):
        date = registry.get_or_raise("date")
        assert date.decode(1.5) == datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=UTC)

    def test_default_text_format(self, registry):
        """Text in SQLite's datetime() format is read as UTC."""
        date = registry.get_or_raise("date")
        assert date.decode("2004-08-19 18:51:06") == datetime(2004, 8, 19, 18, 51, 6, tzinfo=UTC)

    def test_sqlite_datetime_output(self, registry, connection):
        """datetime(..., 'unixepoch') text decodes to the same instant as the number."""
        date = registry.get_or_raise("date")
        text = connection.execute("SELECT datetime(1724089866, 'unixepoch')").fetchone()[0]
        assert date.decode(text) == date.decode(1724089866)

    def test_result_is_aware_utc(self, registry):
        value = registry.get_or_raise("date").decode("2004-08-19 18:51:06")
        assert value.utcoffset() == timedelta(0)

    def test_null_and_empty(self, registry):
        date = registry.get_or_raise("date")
        with pytest.raises(UnexpectedNullError):
            date.decode(None)
        with pytest.raises(UnexpectedNullError):
            date.decode("")

    def test_malformed(self, registry):
        with pytest.raises(MalformedTextError) as exc_info:
            registry.get_or_raise("date").decode("yesterday")
        assert exc_info.value.text == "yesterday"

    def test_non_ascii_digits(self, registry):
        """Only ASCII digits match the date pattern."""
        with pytest.raises(MalformedTextError):
            registry.get_or_raise("date").decode("\uff12\uff10\uff10\uff14-08-19 18:51:06")

    def test_numeric_out_of_range(self, registry):
        """Numbers beyond the datetime range fail inside the error hierarchy."""
        date = registry.get_or_raise("date")
        for cell in (10**15, -(10**15), 1e300, math.inf, -math.inf, math.nan):
            with pytest.raises(OutOfRangeError) as exc_info:
                date.decode(cell)
            assert exc_info.value.value is cell
            assert isinstance(exc_info.value, MarshallingError)

    def test_configured_format_then_default(self):
        """The configured pattern is tried first, then the default one."""
        config = MarshallingConfig(
            date_storage=DateStorageStyle.FORMATTER,
            date_formatter=DateFormatter("dd/MM/yyyy HH:mm"),
        )
        date = TypeRegistry(config).get_or_raise("date")
        assert date.decode("19/08/2004 18:51") == datetime(2004, 8, 19, 18, 51, tzinfo=UTC)
        assert date.decode("2004-08-19 18:51:06") == datetime(2004, 8, 19, 18, 51, 6, tzinfo=UTC)
        assert date.decode(86400) == datetime(1970, 1, 2, tzinfo=UTC)

    def test_configured_format_ignored_under_epoch_policy(self):
        config = MarshallingConfig(date_formatter=DateFormatter("dd/MM/yyyy HH:mm"))
        date = TypeRegistry(config).get_or_raise("date")
        with pytest.raises(MalformedTextError):
            date.decode("19/08/2004 18:51")


class TestDateEncode:
    """Tests for DateType encoding under each storage policy."""

    def test_epoch_binds_fractional_seconds(self, registry, connection):
        date = registry.get_or_raise("date")
        value = datetime(2024, 8, 19, 17, 51, 6, 500000, tzinfo=UTC)
        assert bound_cell(connection, date, value) == 1724089866.5
        assert roundtrip(connection, date, value) == value

    def test_epoch_literal(self, registry):
        date = registry.get_or_raise("date")
        value = datetime(2024, 8, 19, 17, 51, 6, tzinfo=UTC)
        assert date.sql_literal(value) == "1724089866.0"
        assert not date.requires_binding(value)

    def test_naive_is_utc(self, registry):
        date = registry.get_or_raise("date")
        assert date.timestamp(datetime(1970, 1, 1, 0, 0, 10)) == 10.0

    def test_aware_offset(self, registry):
        date = registry.get_or_raise("date")
        plus_two = timezone(timedelta(hours=2))
        assert date.timestamp(datetime(1970, 1, 1, 2, 0, tzinfo=plus_two)) == 0.0

    def test_formatter_binds_text(self, formatter_registry, connection):
        date = formatter_registry.get_or_raise("date")
        value = datetime(2024, 8, 19, 17, 51, 6, tzinfo=UTC)
        assert bound_cell(connection, date, value) == "2024-08-19 17:51:06"
        assert roundtrip(connection, date, value) == value

    def test_formatter_literal(self, formatter_registry):
        date = formatter_registry.get_or_raise("date")
        value = datetime(2024, 8, 19, 17, 51, 6, tzinfo=UTC)
        assert date.sql_literal(value) == "'2024-08-19 17:51:06'"
        assert date.requires_binding(value)

    def test_formatter_text_works_with_sqlite_functions(self, formatter_registry, connection):
        """Text written with the default pattern is understood by SQLite."""
        date = formatter_registry.get_or_raise("date")
        value = datetime(2024, 8, 19, 17, 51, 6, tzinfo=UTC)
        with Statement(connection, "SELECT strftime('%s', ?)") as stmt:
            with date.bind(value, stmt, 1):
                assert stmt.step()
                assert stmt[0] == "1724089866"


class TestUUIDType:
    """Tests for UUIDType."""

    def test_blob_decode(self, registry):
        assert registry.get_or_raise("uuid").decode(SAMPLE_UUID.bytes) == SAMPLE_UUID

    def test_blob_wrong_length(self, registry):
        with pytest.raises(LengthMismatchError) as exc_info:
            registry.get_or_raise("uuid").decode(b"\x00" * 15)
        assert exc_info.value.length == 15
        assert exc_info.value.expected == 16

    def test_text_decode_either_case(self, registry):
        uuid_type = registry.get_or_raise("uuid")
        assert uuid_type.decode(str(SAMPLE_UUID)) == SAMPLE_UUID
        assert uuid_type.decode(str(SAMPLE_UUID).upper()) == SAMPLE_UUID

    def test_text_must_be_canonical(self, registry):
        """Only the hyphenated 8-4-4-4-12 form is accepted."""
        uuid_type = registry.get_or_raise("uuid")
        for text in ("not-a-uuid", SAMPLE_UUID.hex, "{" + str(SAMPLE_UUID) + "}", ""):
            with pytest.raises(MalformedTextError):
                uuid_type.decode(text)

    def test_null(self, registry):
        with pytest.raises(UnexpectedNullError):
            registry.get_or_raise("uuid").decode(None)

    def test_blob_policy(self, registry, connection):
        uuid_type = registry.get_or_raise("uuid")
        assert bound_cell(connection, uuid_type, SAMPLE_UUID) == SAMPLE_UUID.bytes
        assert roundtrip(connection, uuid_type, SAMPLE_UUID) == SAMPLE_UUID

    def test_string_policy(self, connection):
        config = MarshallingConfig(uuid_storage=UUIDStorageStyle.STRING)
        uuid_type = TypeRegistry(config).get_or_raise("uuid")
        assert bound_cell(connection, uuid_type, SAMPLE_UUID) == str(SAMPLE_UUID)
        assert roundtrip(connection, uuid_type, SAMPLE_UUID) == SAMPLE_UUID

    def test_literal_is_text(self, registry):
        """Literals use the quoted string form under either policy."""
        uuid_type = registry.get_or_raise("uuid")
        assert uuid_type.sql_literal(SAMPLE_UUID) == "'12345678-1234-5678-1234-567812345678'"
        assert uuid_type.requires_binding(SAMPLE_UUID)


class TestBinaryType:
    """Tests for BinaryType."""

    def test_decode(self, registry):
        binary = registry.get_or_raise("binary")
        value = binary.decode(b"ab")
        assert value == bytearray(b"ab")
        assert isinstance(value, bytearray)

    def test_null_is_empty(self, registry):
        assert registry.get_or_raise("binary").decode(None) == bytearray()

    def test_no_literal_form(self, registry):
        with pytest.raises(UnsupportedLiteralError) as exc_info:
            registry.get_or_raise("binary").sql_literal(bytearray(b"ab"))
        assert exc_info.value.type_name == "binary"

    def test_roundtrip(self, registry, connection):
        binary = registry.get_or_raise("binary")
        assert roundtrip(connection, binary, bytearray(b"\x00\x10")) == bytearray(b"\x00\x10")


class TestURLType:
    """Tests for URLType and parse_url."""

    def test_decode(self, registry):
        url = registry.get_or_raise("url").decode("https://example.com/a?b=c#d")
        assert url.scheme == "https"
        assert url.netloc == "example.com"
        assert url.path == "/a"
        assert url.query == "b=c"
        assert url.fragment == "d"

    def test_rejects_invalid(self):
        assert parse_url("") is None
        assert parse_url("not a url") is None
        assert parse_url("http://example.com/100%") is None
        assert parse_url("http://example.com/#a#b") is None
        assert parse_url("http://[::1") is None

    def test_accepts_percent_escapes(self):
        assert parse_url("http://example.com/a%20b").path == "/a%20b"

    def test_malformed(self, registry):
        with pytest.raises(MalformedTextError) as exc_info:
            registry.get_or_raise("url").decode("not a url")
        assert exc_info.value.text == "not a url"

    def test_null(self, registry):
        with pytest.raises(UnexpectedNullError):
            registry.get_or_raise("url").decode(None)

    def test_encode(self, registry, connection):
        url_type = registry.get_or_raise("url")
        url = urlsplit("https://example.com/a?b=c#d")
        assert bound_cell(connection, url_type, url) == "https://example.com/a?b=c#d"
        assert roundtrip(connection, url_type, url) == url
        assert url_type.sql_literal("https://example.com/") == "'https://example.com/'"


class TestDecimalType:
    """Tests for DecimalType."""

    def test_numeric_cells(self, registry):
        decimal = registry.get_or_raise("decimal")
        assert decimal.decode(42) == Decimal(42)
        assert decimal.decode(0.1) == Decimal("0.1")

    def test_null_is_zero(self, registry):
        assert registry.get_or_raise("decimal").decode(None) == Decimal(0)

    def test_text(self, registry):
        """Text keeps full precision and tolerates surrounding whitespace."""
        decimal = registry.get_or_raise("decimal")
        assert decimal.decode("3.14159265358979323846") == Decimal("3.14159265358979323846")
        assert decimal.decode(" 2.5 ") == Decimal("2.5")
        assert decimal.decode("-1e3") == Decimal(-1000)

    def test_ascii_only(self, registry):
        """The grammar takes ASCII digits and trims ASCII whitespace only."""
        decimal = registry.get_or_raise("decimal")
        assert decimal.decode("\t2.5\n") == Decimal("2.5")
        for text in ("\u0661\u0662\u0663", "\uff11.5", "\u00a01.5", "1.5\u2003"):
            with pytest.raises(MalformedTextError) as exc_info:
                decimal.decode(text)
            assert exc_info.value.text == text

    def test_malformed(self, registry):
        decimal = registry.get_or_raise("decimal")
        for text in ("1,5", "NaN", "abc", "1.2.3"):
            with pytest.raises(MalformedTextError) as exc_info:
                decimal.decode(text)
            assert exc_info.value.text == text

    def test_literal_is_plain_text(self, registry):
        decimal = registry.get_or_raise("decimal")
        assert decimal.sql_literal(Decimal("1E+2")) == "'100'"
        assert decimal.sql_literal(Decimal("-0.50")) == "'-0.50'"
        assert decimal.requires_binding(Decimal(1))

    def test_roundtrip(self, registry, connection):
        decimal = registry.get_or_raise("decimal")
        value = Decimal("12345678901234567890.123456789")
        assert bound_cell(connection, decimal, value) == "12345678901234567890.123456789"
        assert roundtrip(connection, decimal, value) == value
