"""Composite value types built on top of the scalar types.

Each composite type decodes by inspecting the cell kind it was handed and
encodes by delegating to a scalar type chosen by the registry's
``MarshallingConfig``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from urllib.parse import SplitResult, urlsplit
from uuid import UUID

from typed_sqlite.cells import CellKind, as_text, cell_kind
from typed_sqlite.config import (
    DateFormatter,
    DateStorageStyle,
    MarshallingConfig,
    UUIDStorageStyle,
)
from typed_sqlite.errors import (
    LengthMismatchError,
    MalformedTextError,
    OutOfRangeError,
    UnexpectedNullError,
    UnsupportedLiteralError,
)
from typed_sqlite.types import BlobType, DelegatingType, RealType, TextType, ValueType

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DEFAULT_DATE_FORMATTER = DateFormatter()

UUID_SIZE = 16

_UUID_TEXT = re.compile(
    r"[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}"
)

# RFC 3986 unreserved, reserved and percent characters
_URL_CHARACTERS = re.compile(r"[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+")
_BAD_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# Locale-invariant: ASCII digits, '.' decimal separator, no grouping
_DECIMAL_TEXT = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_ASCII_WHITESPACE = " \t\n\v\f\r"


@dataclass
class DateType(DelegatingType):
    """Point in time, as a UTC-aware ``datetime``.

    Integer and real cells are seconds since 1970-01-01 UTC. Text cells are
    parsed with the configured formatter (when dates are stored as text)
    and then with the default ``yyyy-MM-dd HH:mm:ss`` UTC formatter. There
    is no null variant; wrap in ``OptionalType`` for nullable columns.
    """

    config: MarshallingConfig = field(default_factory=MarshallingConfig)
    text_type: TextType = field(default_factory=lambda: TextType(name="text"))
    epoch_type: RealType = field(default_factory=lambda: RealType(name="float64"))

    def decode(self, cell: Any) -> datetime:
        kind = cell_kind(cell)
        if kind in (CellKind.INTEGER, CellKind.REAL):
            try:
                return EPOCH + timedelta(seconds=cell)
            except (OverflowError, ValueError):
                raise OutOfRangeError(cell, self.name) from None
        if kind is CellKind.NULL:
            raise UnexpectedNullError(self.name)

        text = as_text(cell)
        if not text:
            raise UnexpectedNullError(self.name)
        parsed = None
        if self.config.date_storage is DateStorageStyle.FORMATTER:
            parsed = self.config.date_formatter.parse(text)
        if parsed is None:
            parsed = DEFAULT_DATE_FORMATTER.parse(text)
        if parsed is None:
            raise MalformedTextError(text, self.name)
        return parsed.astimezone(timezone.utc)

    def timestamp(self, value: datetime) -> float:
        """Seconds since the epoch; naive values are read in the formatter's zone."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.config.date_formatter.tz)
        return (value - EPOCH).total_seconds()

    def _target(self, value: datetime) -> tuple[ValueType, Any]:
        if self.config.date_storage is DateStorageStyle.FORMATTER:
            return self.text_type, self.config.date_formatter.format(value)
        return self.epoch_type, self.timestamp(value)


@dataclass
class UUIDType(DelegatingType):
    """128-bit identifier, stored as a 16-byte blob or as canonical text."""

    config: MarshallingConfig = field(default_factory=MarshallingConfig)
    text_type: TextType = field(default_factory=lambda: TextType(name="text"))
    blob_type: BlobType = field(default_factory=lambda: BlobType(name="blob"))

    def decode(self, cell: Any) -> UUID:
        kind = cell_kind(cell)
        if kind is CellKind.NULL:
            raise UnexpectedNullError(self.name)
        if kind is CellKind.BLOB:
            data = self.blob_type.decode(cell)
            if len(data) != UUID_SIZE:
                raise LengthMismatchError(len(data), UUID_SIZE, self.name)
            return UUID(bytes=data)

        text = self.text_type.decode(cell)
        if not _UUID_TEXT.fullmatch(text):
            raise MalformedTextError(text, self.name)
        return UUID(text)

    def _target(self, value: UUID) -> tuple[ValueType, Any]:
        if self.config.uuid_storage is UUIDStorageStyle.STRING:
            return self.text_type, str(value)
        return self.blob_type, value.bytes

    def sql_literal(self, value: UUID) -> str:
        # Blobs have no literal form, so literals always use the text form
        return self.text_type.sql_literal(str(value))

    def requires_binding(self, value: UUID) -> bool:
        return True


@dataclass
class BinaryType(DelegatingType):
    """Mutable binary payload (``bytearray``) over the blob type."""

    blob_type: BlobType = field(default_factory=lambda: BlobType(name="blob"))

    def decode(self, cell: Any) -> bytearray:
        return bytearray(self.blob_type.decode(cell))

    def _target(self, value: Any) -> tuple[ValueType, Any]:
        return self.blob_type, value

    def sql_literal(self, value: Any) -> str:
        raise UnsupportedLiteralError(self.name)


def parse_url(text: str) -> SplitResult | None:
    """Split ``text`` into URL components, or return None if it is not a URL."""
    if not text or not _URL_CHARACTERS.fullmatch(text):
        return None
    if _BAD_PERCENT_ESCAPE.search(text) or text.count("#") > 1:
        return None
    try:
        return urlsplit(text)
    except ValueError:
        return None


@dataclass
class URLType(DelegatingType):
    """URL stored as text, decoded to ``urllib.parse.SplitResult``."""

    text_type: TextType = field(default_factory=lambda: TextType(name="text"))

    def decode(self, cell: Any) -> SplitResult:
        if cell_kind(cell) is CellKind.NULL:
            raise UnexpectedNullError(self.name)
        text = self.text_type.decode(cell)
        url = parse_url(text)
        if url is None:
            raise MalformedTextError(text, self.name)
        return url

    def _target(self, value: Any) -> tuple[ValueType, Any]:
        if isinstance(value, SplitResult):
            return self.text_type, value.geturl()
        return self.text_type, str(value)


@dataclass
class DecimalType(DelegatingType):
    """Arbitrary-precision decimal, written as locale-invariant text.

    Numeric cells convert directly; a null cell decodes to zero.
    """

    text_type: TextType = field(default_factory=lambda: TextType(name="text"))

    def decode(self, cell: Any) -> Decimal:
        kind = cell_kind(cell)
        if kind is CellKind.INTEGER:
            return Decimal(int(cell))
        if kind is CellKind.REAL:
            return Decimal(repr(cell))
        if kind is CellKind.NULL:
            return Decimal(0)

        text = as_text(cell)
        stripped = text.strip(_ASCII_WHITESPACE)
        if not _DECIMAL_TEXT.fullmatch(stripped):
            raise MalformedTextError(text, self.name)
        return Decimal(stripped)

    def _target(self, value: Any) -> tuple[ValueType, Any]:
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return self.text_type, format(value, "f")
