"""Storage representation policy for composite value types.

Some host types have more than one reasonable physical form in the store.
The choice only affects encoding; decoding always inspects the actual cell.
A ``MarshallingConfig`` is built once at startup and handed to a
``TypeRegistry``, which passes it by reference to the codecs that need it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from typed_sqlite.parsing.date_pattern_lexer import DatePatternLexer

# `SELECT datetime();` gives `2004-08-19 18:51:06` in UTC
DEFAULT_DATE_PATTERN = "yyyy-MM-dd HH:mm:ss"

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


class DateStorageStyle(Enum):
    """How dates are written: seconds since the epoch, or formatted text."""

    EPOCH = "epoch"
    FORMATTER = "formatter"


class UUIDStorageStyle(Enum):
    """How UUIDs are written: a 16-byte blob, or canonical text."""

    BLOB = "blob"
    STRING = "string"


# Regex fragment for each pattern token: (token type, token text) -> (group, regex)
_FIELD_PATTERNS: dict[tuple[str, str], tuple[str, str]] = {
    ("YEAR", "yyyy"): ("year", r"[0-9]{4}"),
    ("YEAR", "yy"): ("year2", r"[0-9]{2}"),
    ("MONTH", "MMM"): ("month_abbr", "|".join(MONTH_ABBREVIATIONS)),
    ("MONTH", "MM"): ("month", r"[0-9]{2}"),
    ("MONTH", "M"): ("month", r"[0-9]{1,2}"),
    ("DAY", "dd"): ("day", r"[0-9]{2}"),
    ("DAY", "d"): ("day", r"[0-9]{1,2}"),
    ("HOUR24", "HH"): ("hour", r"[0-9]{2}"),
    ("HOUR24", "H"): ("hour", r"[0-9]{1,2}"),
    ("HOUR12", "hh"): ("hour12", r"[0-9]{2}"),
    ("HOUR12", "h"): ("hour12", r"[0-9]{1,2}"),
    ("MINUTE", "mm"): ("minute", r"[0-9]{2}"),
    ("MINUTE", "m"): ("minute", r"[0-9]{1,2}"),
    ("SECOND", "ss"): ("second", r"[0-9]{2}"),
    ("SECOND", "s"): ("second", r"[0-9]{1,2}"),
    ("AMPM", "a"): ("ampm", "AM|PM|am|pm"),
    ("ZONE", "XXX"): ("zone", r"Z|[+-][0-9]{2}:[0-9]{2}"),
    ("ZONE", "Z"): ("zone", r"[+-][0-9]{4}"),
}

_LITERAL_TOKENS = ("QUOTED", "QUOTE", "LITERAL")


@dataclass(frozen=True)
class DateFormatter:
    """Parses and formats dates with a fixed, locale-invariant pattern.

    Pattern letters follow the Unicode date format conventions
    (``yyyy-MM-dd'T'HH:mm:ss.SSSXXX``). Month names are always English
    abbreviations. Text without a zone field is read in ``tz``.
    """

    pattern: str = DEFAULT_DATE_PATTERN
    tz: tzinfo = timezone.utc
    _tokens: tuple[tuple[str, str], ...] = field(init=False, repr=False, compare=False)
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        lexer = DatePatternLexer()
        lexer.build()
        tokens = tuple((tok.type, tok.value) for tok in lexer.tokenize(self.pattern))
        object.__setattr__(self, "_tokens", tokens)
        object.__setattr__(self, "_regex", re.compile(self._build_regex(tokens)))

    def _build_regex(self, tokens: tuple[tuple[str, str], ...]) -> str:
        parts: list[str] = []
        seen: set[str] = set()
        for kind, text in tokens:
            if kind in _LITERAL_TOKENS:
                parts.append(re.escape(text))
                continue
            if kind == "FRACTION":
                group, regex = "fraction", rf"[0-9]{{{len(text)}}}"
            else:
                group, regex = _FIELD_PATTERNS[(kind, text)]
            if group in seen:
                raise ValueError(f"Date pattern {self.pattern!r} repeats field '{text}'")
            seen.add(group)
            parts.append(f"(?P<{group}>{regex})")
        return "".join(parts)

    def parse(self, text: str) -> datetime | None:
        """Parse ``text`` into an aware datetime, or None if it does not match."""
        match = self._regex.fullmatch(text)
        if match is None:
            return None
        fields = {k: v for k, v in match.groupdict().items() if v is not None}

        if "year" in fields:
            year = int(fields["year"])
        elif "year2" in fields:
            # POSIX pivot: 69-99 -> 19xx, 00-68 -> 20xx
            short = int(fields["year2"])
            year = 1900 + short if short >= 69 else 2000 + short
        else:
            year = 1970

        if "month_abbr" in fields:
            month = MONTH_ABBREVIATIONS.index(fields["month_abbr"]) + 1
        else:
            month = int(fields.get("month", 1))

        if "hour12" in fields:
            hour = int(fields["hour12"]) % 12
            if fields.get("ampm", "AM").upper() == "PM":
                hour += 12
        else:
            hour = int(fields.get("hour", 0))

        microsecond = int((fields.get("fraction", "") + "000000")[:6])
        tz = _parse_zone(fields["zone"]) if "zone" in fields else self.tz

        try:
            return datetime(
                year,
                month,
                int(fields.get("day", 1)),
                hour,
                int(fields.get("minute", 0)),
                int(fields.get("second", 0)),
                microsecond,
                tzinfo=tz,
            )
        except ValueError:
            return None

    def format(self, value: datetime) -> str:
        """Format ``value`` in this formatter's zone (naive values are taken as being in it)."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.tz)
        local = value.astimezone(self.tz)
        return "".join(_format_token(kind, text, local) for kind, text in self._tokens)


def _parse_zone(text: str) -> tzinfo:
    if text == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    minutes = int(digits[:2]) * 60 + int(digits[2:])
    return timezone(timedelta(minutes=sign * minutes))


def _format_zone(value: datetime, with_colon: bool) -> str:
    offset = value.utcoffset() or timedelta(0)
    if with_colon and not offset:
        return "Z"
    total = int(offset.total_seconds()) // 60
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total), 60)
    separator = ":" if with_colon else ""
    return f"{sign}{hours:02d}{separator}{minutes:02d}"


def _format_token(kind: str, text: str, value: datetime) -> str:
    if kind in _LITERAL_TOKENS:
        return text
    width = len(text)
    if kind == "YEAR":
        return f"{value.year:04d}" if width == 4 else f"{value.year % 100:02d}"
    if kind == "MONTH":
        if width == 3:
            return MONTH_ABBREVIATIONS[value.month - 1]
        return f"{value.month:0{width}d}"
    if kind == "DAY":
        return f"{value.day:0{width}d}"
    if kind == "HOUR24":
        return f"{value.hour:0{width}d}"
    if kind == "HOUR12":
        return f"{value.hour % 12 or 12:0{width}d}"
    if kind == "MINUTE":
        return f"{value.minute:0{width}d}"
    if kind == "SECOND":
        return f"{value.second:0{width}d}"
    if kind == "FRACTION":
        return f"{value.microsecond:06d}"[:width].ljust(width, "0")
    if kind == "AMPM":
        return "PM" if value.hour >= 12 else "AM"
    if kind == "ZONE":
        return _format_zone(value, with_colon=(text == "XXX"))
    raise ValueError(f"Unknown date pattern token: {kind}")


@dataclass(frozen=True)
class MarshallingConfig:
    """Write-side defaults for composite types, fixed for the life of a registry."""

    date_storage: DateStorageStyle = DateStorageStyle.EPOCH
    date_formatter: DateFormatter = field(default_factory=DateFormatter)
    uuid_storage: UUIDStorageStyle = UUIDStorageStyle.BLOB

    KEYS = ("date_storage", "date_format", "date_timezone", "uuid_storage")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MarshallingConfig:
        """Build a config from a plain mapping, e.g. loaded from JSON.

        Args:
            data: Mapping with any of ``date_storage`` ("epoch" or
                "formatter"), ``date_format`` (a date pattern),
                ``date_timezone`` (an IANA zone name) and ``uuid_storage``
                ("blob" or "string").

        Returns:
            A new MarshallingConfig; omitted keys keep their defaults.

        Raises:
            ValueError: On unknown keys, style names or time zones.
        """
        unknown = sorted(set(data) - set(cls.KEYS))
        if unknown:
            raise ValueError(f"Unknown marshalling config keys: {', '.join(unknown)}")

        date_storage = _style(DateStorageStyle, data.get("date_storage", "epoch"))
        uuid_storage = _style(UUIDStorageStyle, data.get("uuid_storage", "blob"))

        tz: tzinfo = timezone.utc
        if data.get("date_timezone") not in (None, "UTC"):
            try:
                tz = ZoneInfo(data["date_timezone"])
            except ZoneInfoNotFoundError:
                raise ValueError(
                    f"Unknown date_timezone {data['date_timezone']!r}"
                ) from None
        formatter = DateFormatter(data.get("date_format", DEFAULT_DATE_PATTERN), tz)

        return cls(
            date_storage=date_storage,
            date_formatter=formatter,
            uuid_storage=uuid_storage,
        )


def _style(enum_type: type[Enum], value: Any) -> Any:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        choices = ", ".join(repr(m.value) for m in enum_type)
        raise ValueError(
            f"Invalid {enum_type.__name__} {value!r}, expected one of {choices}"
        ) from None
