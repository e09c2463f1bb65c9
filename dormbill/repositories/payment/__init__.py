from dormbill.repositories.payment.payment_repository import PaymentRepository

__all__ = ["PaymentRepository"]
