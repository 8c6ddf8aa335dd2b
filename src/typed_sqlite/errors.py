"""Exception hierarchy for typed_sqlite value marshalling.

Defines exceptions for:
- Text cells that do not match the grammar of the requested type
- Null cells decoded into types that have no null variant
- Blob cells with the wrong physical size
- Values outside the range of the requested type
- Enumeration raw values that no member claims
- Types without a SQL literal form
- Misuse of statement parameter slots
"""

from __future__ import annotations

from typing import Any


class MarshallingError(Exception):
    """Base exception for all typed_sqlite errors."""

    pass


class MalformedTextError(MarshallingError, ValueError):
    """Raised when a text cell does not parse as the requested type.

    Examples:
        - ``"X"`` decoded as a boolean
        - ``"2004-13-45"`` decoded as a date
        - ``"not-a-uuid"`` decoded as a UUID
    """

    def __init__(self, text: str, type_name: str) -> None:
        super().__init__(f"Could not parse {text!r} as {type_name}")
        self.text = text
        self.type_name = type_name


class UnexpectedNullError(MarshallingError, ValueError):
    """Raised when a null cell is decoded into a type with no null variant.

    Wrap the type in an ``OptionalType`` to accept nulls.
    """

    def __init__(self, type_name: str) -> None:
        super().__init__(f"Unexpected NULL for non-optional {type_name}")
        self.type_name = type_name


class LengthMismatchError(MarshallingError, ValueError):
    """Raised when a blob cell does not have the fixed size a type requires."""

    def __init__(self, length: int, expected: int, type_name: str) -> None:
        super().__init__(
            f"Expected a {expected}-byte blob for {type_name}, got {length} bytes"
        )
        self.length = length
        self.expected = expected
        self.type_name = type_name


class UnmatchedRawValueError(MarshallingError, ValueError):
    """Raised when an enumeration raw value decodes but matches no member.

    The raw value itself was well-formed, so this is distinct from
    ``MalformedTextError``.
    """

    def __init__(self, raw_value: Any, enum_type: type) -> None:
        super().__init__(f"{raw_value!r} is not a valid {enum_type.__name__}")
        self.raw_value = raw_value
        self.enum_type = enum_type


class OutOfRangeError(MarshallingError, ValueError):
    """Raised when a well-formed value does not fit the host or store type.

    Examples:
        - A numeric date cell beyond the ``datetime`` range, or NaN
        - A function result too wide for its declared integer type
    """

    def __init__(self, value: Any, type_name: str) -> None:
        super().__init__(f"{value!r} is out of range for {type_name}")
        self.value = value
        self.type_name = type_name


class UnsupportedLiteralError(MarshallingError, NotImplementedError):
    """Raised when a type with no SQL literal grammar is asked for one.

    Blob-like values must be bound as parameters instead.
    """

    def __init__(self, type_name: str) -> None:
        super().__init__(f"Literal SQL rendering is not supported for {type_name}")
        self.type_name = type_name


class BindingError(MarshallingError):
    """Raised when a statement parameter slot is used incorrectly.

    Examples:
        - Parameter index outside ``1..parameter_count``
        - Binding a slot that is already bound within an active scope
    """

    pass
