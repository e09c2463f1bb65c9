from dormbill.schemas.payment.payment import PaymentCreate, PaymentReject, PaymentResponse

__all__ = ["PaymentCreate", "PaymentReject", "PaymentResponse"]
