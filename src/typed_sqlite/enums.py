"""Enumerations stored through the value type of their raw values."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from typed_sqlite.errors import UnmatchedRawValueError
from typed_sqlite.types import DelegatingType, ValueType


@dataclass
class EnumType(DelegatingType):
    """Value type for an ``Enum`` whose member values are stored as ``raw_type``.

    Example:
        class Body(Enum):
            PLANET = "planet"
            MOON = "moon"

        body_type = EnumType(name="Body", enum_type=Body, raw_type=TextType(name="text"))
    """

    enum_type: type[Enum]
    raw_type: ValueType
    _members_by_raw: dict[Any, Enum] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._members_by_raw = {member.value: member for member in self.enum_type}

    @property
    def members(self) -> list[Enum]:
        return list(self._members_by_raw.values())

    def decode(self, cell: Any) -> Enum:
        raw = self.raw_type.decode(cell)
        member = self._members_by_raw.get(raw)
        if member is None:
            raise UnmatchedRawValueError(raw, self.enum_type)
        return member

    def _target(self, value: Enum) -> tuple[ValueType, Any]:
        return self.raw_type, value.value
