from dormbill.services.payment.payment_reconciler import PaymentReconciler

__all__ = ["PaymentReconciler"]
