"""Integer widths and the signed/unsigned 64-bit adapter.

SQLite stores every integer as a signed 64-bit value. Narrower host widths
are produced by two's-complement truncation, and unsigned 64-bit values
survive the trip by reinterpreting the bit pattern rather than casting.
"""

from __future__ import annotations

import struct
from enum import Enum

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MAX = (1 << 64) - 1

# Native pointer width, the size of a platform ``uint``
PLATFORM_UINT_BITS = struct.calcsize("P") * 8


class IntegerWidth(Enum):
    """Host integer widths that map onto the store's 64-bit integers."""

    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINT = "uint"

    @property
    def bits(self) -> int:
        """Return the width in bits for this integer type."""
        if self is IntegerWidth.UINT:
            return PLATFORM_UINT_BITS
        widths = {
            IntegerWidth.INT8: 8,
            IntegerWidth.INT16: 16,
            IntegerWidth.INT32: 32,
            IntegerWidth.INT64: 64,
            IntegerWidth.UINT8: 8,
            IntegerWidth.UINT16: 16,
            IntegerWidth.UINT32: 32,
            IntegerWidth.UINT64: 64,
        }
        return widths[self]

    @property
    def signed(self) -> bool:
        return self.value.startswith("int")

    @property
    def size_bytes(self) -> int:
        return self.bits // 8

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        if self.signed:
            return (1 << (self.bits - 1)) - 1
        return (1 << self.bits) - 1

    @property
    def reinterprets_bit_pattern(self) -> bool:
        """True for unsigned widths that need all 64 bits of the store value."""
        return not self.signed and self.bits == 64

    def contains(self, value: int) -> bool:
        """Check whether ``value`` is representable in this width."""
        return self.min_value <= value <= self.max_value


# Mapping from width names to IntegerWidth enum values
INTEGER_WIDTH_NAMES: dict[str, IntegerWidth] = {w.value: w for w in IntegerWidth}


def narrow(value: int, width: IntegerWidth) -> int:
    """Truncate ``value`` to ``width`` using two's-complement wrap-around.

    No overflow check is performed: 300 narrowed to int8 is 44 and -1
    narrowed to uint16 is 65535.
    """
    bits = width.bits
    masked = value & ((1 << bits) - 1)
    if width.signed and masked >= 1 << (bits - 1):
        masked -= 1 << bits
    return masked


def to_unsigned64(value: int) -> int:
    """Reinterpret a signed 64-bit value's bit pattern as unsigned."""
    return value & UINT64_MAX


def to_signed64(value: int) -> int:
    """Reinterpret an unsigned 64-bit value's bit pattern as signed."""
    value &= UINT64_MAX
    return value - (1 << 64) if value > INT64_MAX else value


def from_store(value: int, width: IntegerWidth) -> int:
    """Convert the store's signed 64-bit integer into a host value of ``width``."""
    if width.reinterprets_bit_pattern:
        return to_unsigned64(value)
    return narrow(value, width)


def to_store(value: int, width: IntegerWidth) -> int:
    """Convert a host value of ``width`` into the store's signed 64-bit form.

    Raises:
        OverflowError: If ``value`` does not fit in ``width``.
    """
    if not width.contains(value):
        raise OverflowError(f"{value} does not fit in {width.value}")
    if width.reinterprets_bit_pattern:
        return to_signed64(value)
    return value
