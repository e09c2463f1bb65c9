from dormbill.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)
from dormbill.schemas.common.response import ErrorBody, ErrorResponse, SuccessResponse

__all__ = [
    "BaseCreateSchema",
    "BaseResponseSchema",
    "BaseSchema",
    "BaseUpdateSchema",
    "ErrorBody",
    "ErrorResponse",
    "SuccessResponse",
]
