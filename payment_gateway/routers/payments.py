"""
Payments router — /v1/payments

Thin mapping between HTTP and PaymentService. Request bodies are checked
for shape only; every business rule is enforced by the service, and its
typed errors are turned into responses by the handlers in main.py.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from payment_gateway.config import get_settings
from payment_gateway.database import get_db
from payment_gateway.middleware.auth import require_admin
from payment_gateway.redis_client import (
    cache_delete,
    cache_get,
    cache_set,
    get_redis,
    payment_cache_key,
)
from payment_gateway.repositories.payment_store import SQLAlchemyPaymentStore
from payment_gateway.schemas.schemas import (
    PaymentCreateRequest,
    PaymentResponse,
    PaymentStatistics,
    PaymentStatus,
    PaymentStatusUpdateRequest,
    PingResponse,
)
from payment_gateway.services.payment import PaymentService

logger = logging.getLogger(__name__)
settings = get_settings()
router = APIRouter(prefix="/v1/payments", tags=["Payments"])


def get_payment_service(db: AsyncSession = Depends(get_db)) -> PaymentService:
    return PaymentService(SQLAlchemyPaymentStore(db))


async def _invalidate(payment_id: int) -> None:
    redis = await get_redis()
    await cache_delete(redis, payment_cache_key(payment_id))


@router.get("/ping", response_model=PingResponse)
async def ping():
    return PingResponse(
        status="UP",
        message=f"{settings.app_name} is running",
        timestamp=datetime.now(timezone.utc),
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PaymentResponse)
async def create_payment(
    payload: PaymentCreateRequest,
    service: PaymentService = Depends(get_payment_service),
):
    logger.info("Received payment creation request from merchant: %s", payload.merchant_id)
    payment = await service.create(payload)
    return PaymentResponse.from_payment(payment, "Payment created successfully")


@router.get("", response_model=list[PaymentResponse])
async def list_payments(service: PaymentService = Depends(get_payment_service)):
    payments = await service.list_all()
    return [PaymentResponse.from_payment(p, "Success") for p in payments]


@router.get("/statistics", response_model=PaymentStatistics)
async def get_statistics(service: PaymentService = Depends(get_payment_service)):
    return await service.statistics()


@router.get("/merchant/{merchant_id}", response_model=list[PaymentResponse])
async def list_merchant_payments(
    merchant_id: str,
    service: PaymentService = Depends(get_payment_service),
):
    payments = await service.list_by_merchant(merchant_id)
    return [PaymentResponse.from_payment(p, "Success") for p in payments]


@router.get("/customer/{email}", response_model=list[PaymentResponse])
async def list_customer_payments(
    email: str,
    service: PaymentService = Depends(get_payment_service),
):
    payments = await service.list_by_customer(email)
    return [PaymentResponse.from_payment(p, "Success") for p in payments]


@router.get("/transaction/{transaction_id}", response_model=PaymentResponse)
async def get_payment_by_transaction(
    transaction_id: str,
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.get_by_transaction_id(transaction_id)
    return PaymentResponse.from_payment(payment, "Payment retrieved successfully")


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: int,
    service: PaymentService = Depends(get_payment_service),
):
    redis = await get_redis()

    # Cache-aside: check Redis first
    cache_key = payment_cache_key(payment_id)
    cached = await cache_get(redis, cache_key)
    if cached:
        return PaymentResponse.model_validate_json(cached)

    payment = await service.get_by_id(payment_id)
    resp = PaymentResponse.from_payment(payment, "Payment retrieved successfully")
    # PROCESSING is transient between the two saves of process(); never cached
    if resp.status != PaymentStatus.PROCESSING:
        await cache_set(redis, cache_key, resp.model_dump_json(), ttl=settings.payment_cache_ttl_seconds)
    return resp


@router.post("/{payment_id}/process", response_model=PaymentResponse)
async def process_payment(
    payment_id: int,
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.process(payment_id)
    await _invalidate(payment_id)
    return PaymentResponse.from_payment(payment, "Payment processed successfully")


@router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: int,
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.refund(payment_id)
    await _invalidate(payment_id)
    return PaymentResponse.from_payment(payment, "Payment refunded successfully")


@router.post("/{payment_id}/cancel", response_model=PaymentResponse)
async def cancel_payment(
    payment_id: int,
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.cancel(payment_id)
    await _invalidate(payment_id)
    return PaymentResponse.from_payment(payment, "Payment cancelled successfully")


@router.patch("/{payment_id}/status", response_model=PaymentResponse)
async def override_payment_status(
    payment_id: int,
    payload: PaymentStatusUpdateRequest,
    service: PaymentService = Depends(get_payment_service),
    admin_id: str = Depends(require_admin),
):
    """Administrative override; bypasses the lifecycle checks."""
    logger.warning("Status override on payment %s requested by %s", payment_id, admin_id)
    payment = await service.set_status(payment_id, payload.status)
    await _invalidate(payment_id)
    return PaymentResponse.from_payment(payment, "Payment status updated successfully")
