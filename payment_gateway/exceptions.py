"""
Typed failures raised by the payment lifecycle.

None of these are transient; callers decide whether to retry.
"""


class PaymentError(Exception):
    """Base class for payment lifecycle errors."""


class PaymentValidationError(PaymentError):
    """Input failed a static constraint. `field` names the offending input."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class PaymentNotFoundError(PaymentError):
    """No payment exists under the given lookup key."""

    def __init__(self, key: str, value):
        super().__init__(f"Payment not found with {key}: {value}")
        self.key = key
        self.value = value


class InvalidPaymentStateError(PaymentError):
    """The requested operation is not legal from the payment's current status."""

    def __init__(self, current_status: str, operation: str, message: str | None = None):
        message = message or f"Cannot {operation} payment in status {current_status}"
        super().__init__(message)
        self.current_status = current_status
        self.operation = operation
        self.message = message
