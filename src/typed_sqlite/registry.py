"""Registry of value types bound to one marshalling configuration."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from urllib.parse import SplitResult
from uuid import UUID

from typed_sqlite.composite import BinaryType, DateType, DecimalType, URLType, UUIDType
from typed_sqlite.config import MarshallingConfig
from typed_sqlite.enums import EnumType
from typed_sqlite.integers import IntegerWidth
from typed_sqlite.types import (
    BlobType,
    BooleanType,
    IntegerType,
    OptionalType,
    RealType,
    TextType,
    ValueType,
)

logger = logging.getLogger(__name__)


class TypeRegistry:
    """Registry of all value types.

    The registry owns the ``MarshallingConfig`` and hands the same instance
    to every composite type it builds, so one registry means one storage
    policy. Build it once at startup and share it.
    """

    def __init__(self, config: MarshallingConfig | None = None) -> None:
        self.config = config if config is not None else MarshallingConfig()
        self._types: dict[str, ValueType] = {}
        self._python_types: dict[type, str] = {}
        self._register_builtins()
        logger.debug(
            "TypeRegistry: date storage %s, uuid storage %s",
            self.config.date_storage.value,
            self.config.uuid_storage.value,
        )

    def _register_builtins(self) -> None:
        """Register the scalar and composite types."""
        for width in IntegerWidth:
            self._types[width.value] = IntegerType(name=width.value, width=width)
        self._types["bool"] = BooleanType(name="bool")
        self._types["float32"] = RealType(name="float32", bits=32)
        float64 = RealType(name="float64", bits=64)
        self._types["float64"] = float64
        text = TextType(name="text")
        blob = BlobType(name="blob")
        self._types["text"] = text
        self._types["blob"] = blob

        self._types["date"] = DateType(
            name="date", config=self.config, text_type=text, epoch_type=float64
        )
        self._types["uuid"] = UUIDType(
            name="uuid", config=self.config, text_type=text, blob_type=blob
        )
        self._types["binary"] = BinaryType(name="binary", blob_type=blob)
        self._types["url"] = URLType(name="url", text_type=text)
        self._types["decimal"] = DecimalType(name="decimal", text_type=text)

        self._python_types = {
            bool: "bool",
            int: "int64",
            float: "float64",
            str: "text",
            bytes: "blob",
            bytearray: "binary",
            memoryview: "blob",
            datetime: "date",
            UUID: "uuid",
            Decimal: "decimal",
            SplitResult: "url",
        }

    def register(self, value_type: ValueType) -> None:
        """Register a value type."""
        if value_type.name in self._types:
            raise ValueError(f"Type '{value_type.name}' is already defined")
        self._types[value_type.name] = value_type

    def get(self, name: str) -> ValueType | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> ValueType:
        """Get a type by name, raising if not found."""
        value_type = self._types.get(name)
        if value_type is None:
            raise KeyError(f"Type '{name}' not found")
        return value_type

    def get_optional_type(self, name: str) -> OptionalType:
        """Get or create the nullable variant of the given type."""
        optional_name = f"{name}?"
        existing = self._types.get(optional_name)
        if existing is not None:
            if not isinstance(existing, OptionalType):
                raise TypeError(f"Type '{optional_name}' exists but is not optional")
            return existing

        wrapped = self.get_or_raise(name)
        optional = OptionalType(name=optional_name, wrapped=wrapped)
        self._types[optional_name] = optional
        return optional

    def register_enum(self, enum_type: type[Enum], raw_type_name: str) -> EnumType:
        """Register an enum stored through the named raw value type.

        Args:
            enum_type: The ``Enum`` subclass.
            raw_type_name: Name of the type its member values are stored as.

        Returns:
            The registered EnumType, named after the enum class.
        """
        raw_type = self.get_or_raise(raw_type_name)
        value_type = EnumType(name=enum_type.__name__, enum_type=enum_type, raw_type=raw_type)
        self.register(value_type)
        self._python_types[enum_type] = value_type.name
        logger.debug("Registered enum %s over %s", enum_type.__name__, raw_type_name)
        return value_type

    def for_python_type(self, python_type: type) -> ValueType:
        """Find the value type used for instances of ``python_type``.

        The most specific registered class in the MRO wins, so ``bool`` maps
        to ``bool`` rather than ``int64`` and registered enums win over their
        mixin types.

        Raises:
            KeyError: If no class in the MRO has a registered type.
        """
        for klass in python_type.__mro__:
            name = self._python_types.get(klass)
            if name is not None:
                return self._types[name]
        raise KeyError(f"No value type registered for {python_type.__name__}")

    def for_value(self, value: Any) -> ValueType:
        """Find the value type used for ``value``."""
        return self.for_python_type(type(value))

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._types
