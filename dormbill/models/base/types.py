"""
Custom SQLAlchemy types for specialized data handling.
"""

import enum
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Type

from sqlalchemy import JSON, Enum as SAEnum, Numeric, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Coerce a number to a Decimal rounded to 2 decimal places."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class MoneyType(TypeDecorator):
    """
    Money type with fixed precision (2 decimal places).
    """

    impl = Numeric(12, 2)
    cache_ok = True

    def process_bind_param(self, value: Optional[Any], dialect) -> Optional[Decimal]:
        """Validate and round monetary value."""
        if value is None:
            return value
        return to_money(value)

    def process_result_value(self, value: Optional[Any], dialect) -> Optional[Decimal]:
        if value is None:
            return value
        return to_money(value)


class MeterReadingType(TypeDecorator):
    """Meter readings and usage, kept to 2 decimal places."""

    impl = Numeric(12, 2)
    cache_ok = True

    def process_bind_param(self, value: Optional[Any], dialect) -> Optional[Decimal]:
        if value is None:
            return value
        return to_money(value)

    def process_result_value(self, value: Optional[Any], dialect) -> Optional[Decimal]:
        if value is None:
            return value
        return to_money(value)


class JSONType(TypeDecorator):
    """
    JSON payload column: JSONB on PostgreSQL, plain JSON elsewhere.
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Any, dialect) -> Any:
        if value is None:
            return value
        if not isinstance(value, (dict, list)):
            raise ValueError(f"JSONType requires dict or list, got {type(value)}")
        return value


def enum_column(enum_cls: Type[enum.Enum], name: str) -> SAEnum:
    """Enum column storing the member values rather than their names."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )
