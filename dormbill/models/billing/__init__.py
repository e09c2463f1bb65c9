from dormbill.models.billing.bill import Bill, BillItem

__all__ = ["Bill", "BillItem"]
