from dormbill.repositories.billing.bill_repository import BillRepository

__all__ = ["BillRepository"]
