from dormbill.services.billing.bill_composer import BillComposer, LineSpec, compose_lines, generate_bill_number
from dormbill.services.billing.monthly_bill_generator import MonthlyBillGenerator
from dormbill.services.billing.utility_service import UtilityService, compute_meter

__all__ = [
    "BillComposer",
    "LineSpec",
    "MonthlyBillGenerator",
    "UtilityService",
    "compose_lines",
    "compute_meter",
    "generate_bill_number",
]
