"""
Standard API response wrappers.
"""

from typing import Any, Dict, Generic, TypeVar, Union

from pydantic import Field

from dormbill.schemas.common.base import BaseSchema

T = TypeVar("T")

__all__ = [
    "SuccessResponse",
    "ErrorBody",
    "ErrorResponse",
]


class SuccessResponse(BaseSchema, Generic[T]):
    """Standard success response."""

    success: bool = Field(default=True, description="Success flag")
    message: str = Field(default="OK", description="Response message")
    data: Union[T, None] = Field(default=None, description="Response data")

    @classmethod
    def create(cls, message: str, data: Union[T, None] = None):
        """Create success response."""
        return cls(success=True, message=message, data=data)


class ErrorBody(BaseSchema):
    code: str = Field(..., description="Application error code")
    message: str = Field(..., description="Error message")
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseSchema):
    """Standard error response, as rendered by the exception handlers."""

    success: bool = Field(default=False, description="Success flag")
    error: ErrorBody
