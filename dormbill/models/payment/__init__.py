from dormbill.models.payment.payment import Payment

__all__ = ["Payment"]
