from dormbill.schemas.billing.bill import (
    BillCreate,
    BillDetailResponse,
    BillItemCreate,
    BillItemResponse,
    BillResponse,
    BillStatusUpdate,
    GenerateMonthlyBillsRequest,
    GenerationError,
    GenerationResult,
    OverdueBillResponse,
    RateOverrides,
)
from dormbill.schemas.billing.utility import (
    MeterReading,
    UtilityCreate,
    UtilityRates,
    UtilityResponse,
    UtilityUpdate,
)

__all__ = [
    "BillCreate",
    "BillDetailResponse",
    "BillItemCreate",
    "BillItemResponse",
    "BillResponse",
    "BillStatusUpdate",
    "GenerateMonthlyBillsRequest",
    "GenerationError",
    "GenerationResult",
    "OverdueBillResponse",
    "RateOverrides",
    "MeterReading",
    "UtilityCreate",
    "UtilityRates",
    "UtilityResponse",
    "UtilityUpdate",
]
