"""
Payment persistence.

PaymentStore is the query contract the lifecycle service depends on;
SQLAlchemyPaymentStore implements it over an AsyncSession. The store holds
no business rules and never touches timestamps or status.
"""
import logging
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payment_gateway.models.payment import Payment
from payment_gateway.schemas.schemas import PaymentStatus

logger = logging.getLogger(__name__)


class PaymentStore(Protocol):
    async def save(self, payment: Payment) -> Payment: ...

    async def find_by_id(self, payment_id: int) -> Payment | None: ...

    async def find_by_transaction_id(self, transaction_id: str) -> Payment | None: ...

    async def find_by_merchant_id(self, merchant_id: str) -> list[Payment]: ...

    async def find_by_customer_email(self, email: str) -> list[Payment]: ...

    async def find_by_status(self, status: PaymentStatus) -> list[Payment]: ...

    async def find_all(self) -> list[Payment]: ...

    async def count(self) -> int: ...

    async def count_where_status(self, status: PaymentStatus) -> int: ...


class SQLAlchemyPaymentStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def save(self, payment: Payment) -> Payment:
        """
        Insert when the payment has no id yet (the database assigns one),
        otherwise write the changed columns of the existing row.
        Each save is committed on its own.
        """
        if payment.id is None:
            self.db.add(payment)
        else:
            payment = await self.db.merge(payment)
        await self.db.commit()
        await self.db.refresh(payment)
        logger.debug("Saved payment id=%s status=%s", payment.id, payment.status)
        return payment

    async def find_by_id(self, payment_id: int) -> Payment | None:
        return await self.db.get(Payment, payment_id)

    async def find_by_transaction_id(self, transaction_id: str) -> Payment | None:
        result = await self.db.execute(
            select(Payment).where(Payment.transaction_id == transaction_id)
        )
        return result.scalar_one_or_none()

    async def find_by_merchant_id(self, merchant_id: str) -> list[Payment]:
        result = await self.db.execute(select(Payment).where(Payment.merchant_id == merchant_id))
        return list(result.scalars().all())

    async def find_by_customer_email(self, email: str) -> list[Payment]:
        result = await self.db.execute(select(Payment).where(Payment.customer_email == email))
        return list(result.scalars().all())

    async def find_by_status(self, status: PaymentStatus) -> list[Payment]:
        result = await self.db.execute(
            select(Payment).where(Payment.status == PaymentStatus(status).value)
        )
        return list(result.scalars().all())

    async def find_all(self) -> list[Payment]:
        result = await self.db.execute(select(Payment).order_by(Payment.id))
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Payment))
        return result.scalar_one()

    async def count_where_status(self, status: PaymentStatus) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Payment)
            .where(Payment.status == PaymentStatus(status).value)
        )
        return result.scalar_one()
