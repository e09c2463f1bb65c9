"""
Base model package.
"""

from dormbill.models.base.base_model import BaseModel, TimestampModel, generate_uuid
from dormbill.models.base.mixins import SoftDeleteMixin
from dormbill.models.base.types import JSONType, MeterReadingType, MoneyType, enum_column, to_money

__all__ = [
    "BaseModel",
    "TimestampModel",
    "generate_uuid",
    "SoftDeleteMixin",
    "JSONType",
    "MeterReadingType",
    "MoneyType",
    "enum_column",
    "to_money",
]
