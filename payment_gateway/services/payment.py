"""
Payment lifecycle service.

Owns field validation, transaction-id assignment, the status state machine
and statistics. All durable state lives in the PaymentStore; the service
keeps nothing between calls.

    create ──► PENDING ──process──► PROCESSING ──► COMPLETED ──refund──► REFUNDED
                  │                     │
                  └──────cancel─────────┴──► CANCELLED   (also from FAILED / CANCELLED)
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from pydantic.networks import validate_email

from payment_gateway.exceptions import (
    InvalidPaymentStateError,
    PaymentNotFoundError,
    PaymentValidationError,
)
from payment_gateway.models.payment import Payment
from payment_gateway.repositories.payment_store import PaymentStore
from payment_gateway.schemas.schemas import (
    Currency,
    PaymentCreateRequest,
    PaymentMethod,
    PaymentStatistics,
    PaymentStatus,
)

logger = logging.getLogger(__name__)

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000.00")
MAX_DESCRIPTION_LENGTH = 500
MAX_MERCHANT_ID_LENGTH = 255
MAX_EMAIL_LENGTH = 255

# Source statuses each checked operation accepts.
ALLOWED_SOURCES: dict[str, frozenset[PaymentStatus]] = {
    "process": frozenset({PaymentStatus.PENDING}),
    "refund": frozenset({PaymentStatus.COMPLETED}),
    "cancel": frozenset(PaymentStatus) - {PaymentStatus.COMPLETED, PaymentStatus.REFUNDED},
}


def can_apply(operation: str, status: str) -> bool:
    """True if `operation` is a legal transition out of `status`."""
    try:
        current = PaymentStatus(status)
    except ValueError:
        return False
    return current in ALLOWED_SOURCES.get(operation, frozenset())


def generate_transaction_id() -> str:
    """TXN-<epoch millis>-<12 hex chars of a uuid4>."""
    return f"TXN-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12].upper()}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------

def validate_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise PaymentValidationError("amount", "Amount must be a decimal number")
    if not value.is_finite():
        raise PaymentValidationError("amount", "Amount must be a decimal number")
    if value <= 0:
        raise PaymentValidationError("amount", "Payment amount must be greater than zero")
    if value > MAX_AMOUNT:
        raise PaymentValidationError("amount", f"Amount exceeds maximum limit of {MAX_AMOUNT}")
    if value != value.quantize(MIN_AMOUNT):
        raise PaymentValidationError("amount", "Amount must have at most two decimal places")
    return value.quantize(MIN_AMOUNT)


def validate_create_request(request: PaymentCreateRequest) -> Decimal:
    """Checks every creation rule; returns the normalised amount."""
    if not request.merchant_id or not request.merchant_id.strip():
        raise PaymentValidationError("merchant_id", "Merchant ID is required")
    if len(request.merchant_id) > MAX_MERCHANT_ID_LENGTH:
        raise PaymentValidationError(
            "merchant_id", f"Merchant ID must be at most {MAX_MERCHANT_ID_LENGTH} characters"
        )

    amount = validate_amount(request.amount)

    if request.currency not in {c.value for c in Currency}:
        raise PaymentValidationError("currency", "Currency must be USD, EUR, GBP, or INR")
    if request.payment_method not in {m.value for m in PaymentMethod}:
        raise PaymentValidationError("payment_method", "Invalid payment method")

    if not request.customer_email:
        raise PaymentValidationError("customer_email", "Customer email is required")
    try:
        _, email = validate_email(request.customer_email)
    except ValueError:
        raise PaymentValidationError("customer_email", "Invalid email format")
    # display-name forms ("Bob <bob@example.com>") parse but are not a bare address
    if email.lower() != request.customer_email.lower():
        raise PaymentValidationError("customer_email", "Invalid email format")
    if len(request.customer_email) > MAX_EMAIL_LENGTH:
        raise PaymentValidationError(
            "customer_email", f"Customer email must be at most {MAX_EMAIL_LENGTH} characters"
        )

    if request.description is not None and len(request.description) > MAX_DESCRIPTION_LENGTH:
        raise PaymentValidationError(
            "description", f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
        )
    return amount


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class PaymentService:
    def __init__(self, store: PaymentStore):
        self.store = store

    async def create(self, request: PaymentCreateRequest) -> Payment:
        logger.info("Creating payment for merchant: %s", request.merchant_id)
        amount = validate_create_request(request)

        now = _now()
        payment = Payment(
            transaction_id=generate_transaction_id(),
            merchant_id=request.merchant_id,
            amount=amount,
            currency=request.currency,
            payment_method=request.payment_method,
            customer_email=request.customer_email,
            description=request.description,
            status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        saved = await self.store.save(payment)
        logger.info("Payment created: id=%s txn=%s", saved.id, saved.transaction_id)
        return saved

    async def get_by_id(self, payment_id: int) -> Payment:
        logger.info("Fetching payment with ID: %s", payment_id)
        payment = await self.store.find_by_id(payment_id)
        if payment is None:
            raise PaymentNotFoundError("id", payment_id)
        return payment

    async def get_by_transaction_id(self, transaction_id: str) -> Payment:
        logger.info("Fetching payment with transaction ID: %s", transaction_id)
        payment = await self.store.find_by_transaction_id(transaction_id)
        if payment is None:
            raise PaymentNotFoundError("transaction_id", transaction_id)
        return payment

    async def list_all(self) -> list[Payment]:
        return await self.store.find_all()

    async def list_by_merchant(self, merchant_id: str) -> list[Payment]:
        logger.info("Fetching payments for merchant: %s", merchant_id)
        return await self.store.find_by_merchant_id(merchant_id)

    async def list_by_customer(self, email: str) -> list[Payment]:
        logger.info("Fetching payments for customer: %s", email)
        return await self.store.find_by_customer_email(email)

    async def process(self, payment_id: int) -> Payment:
        """
        PENDING -> PROCESSING -> COMPLETED. Both states are saved, so a reader
        polling in between sees PROCESSING. There is no external processor:
        settlement always succeeds.
        """
        logger.info("Processing payment with ID: %s", payment_id)
        payment = await self.get_by_id(payment_id)
        if not can_apply("process", payment.status):
            raise InvalidPaymentStateError(
                payment.status,
                "process",
                f"Payment cannot be processed in current status: {payment.status}",
            )

        payment = await self._transition(payment, PaymentStatus.PROCESSING)
        payment = await self._transition(payment, PaymentStatus.COMPLETED)
        logger.info("Payment processed successfully: %s", payment_id)
        return payment

    async def refund(self, payment_id: int) -> Payment:
        logger.info("Refunding payment with ID: %s", payment_id)
        payment = await self.get_by_id(payment_id)
        if not can_apply("refund", payment.status):
            raise InvalidPaymentStateError(
                payment.status, "refund", "Only completed payments can be refunded"
            )
        payment = await self._transition(payment, PaymentStatus.REFUNDED)
        logger.info("Payment refunded successfully: %s", payment_id)
        return payment

    async def cancel(self, payment_id: int) -> Payment:
        logger.info("Cancelling payment with ID: %s", payment_id)
        payment = await self.get_by_id(payment_id)
        if not can_apply("cancel", payment.status):
            raise InvalidPaymentStateError(
                payment.status, "cancel", "Cannot cancel completed or refunded payments"
            )
        payment = await self._transition(payment, PaymentStatus.CANCELLED)
        logger.info("Payment cancelled successfully: %s", payment_id)
        return payment

    async def set_status(self, payment_id: int, new_status: str) -> Payment:
        """
        Administrative override. Sets any known status without checking the
        state machine; the checked operations above are the normal path.
        """
        try:
            target = PaymentStatus(new_status)
        except ValueError:
            raise PaymentValidationError("status", f"Unknown payment status: {new_status}")

        payment = await self.get_by_id(payment_id)
        logger.warning(
            "Overriding status of payment %s: %s -> %s", payment_id, payment.status, target.value
        )
        return await self._transition(payment, target)

    async def statistics(self) -> PaymentStatistics:
        # Three independent reads; no snapshot consistency across them.
        logger.info("Fetching payment statistics")
        total = await self.store.count()
        pending = await self.store.count_where_status(PaymentStatus.PENDING)
        completed = await self.store.find_by_status(PaymentStatus.COMPLETED)
        return PaymentStatistics(
            total_payments=total,
            pending_payments=pending,
            completed_payments=len(completed),
        )

    async def _transition(self, payment: Payment, status: PaymentStatus) -> Payment:
        payment.status = status.value
        payment.updated_at = _now()
        return await self.store.save(payment)
