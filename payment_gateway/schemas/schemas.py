from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    INR = "INR"


class PaymentMethod(str, Enum):
    CARD = "CARD"
    UPI = "UPI"
    WALLET = "WALLET"
    NET_BANKING = "NET_BANKING"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


# ---------------------------------------------------------------------------
# Payment schemas
# ---------------------------------------------------------------------------

class PaymentCreateRequest(BaseModel):
    """
    Wire shape for a new payment. Only types are checked here; currency,
    method, bounds and email rules are enforced by PaymentService.
    """
    merchant_id: str
    amount: Decimal
    currency: str
    payment_method: str
    customer_email: str
    description: Optional[str] = None


class PaymentStatusUpdateRequest(BaseModel):
    status: str


class PaymentResponse(BaseModel):
    id: int
    transaction_id: str
    merchant_id: str
    amount: Decimal
    currency: str
    payment_method: str
    customer_email: str
    status: PaymentStatus
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    message: Optional[str] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_payment(cls, payment, message: str | None = None) -> "PaymentResponse":
        resp = cls.model_validate(payment)
        resp.message = message
        return resp


class PaymentStatistics(BaseModel):
    total_payments: int = Field(..., ge=0)
    pending_payments: int = Field(..., ge=0)
    completed_payments: int = Field(..., ge=0)


class PingResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime
