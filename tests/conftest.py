"""
Shared fixtures: an in-memory PaymentStore and a ready-to-use service.
"""
from decimal import Decimal

import pytest

from payment_gateway.models.payment import Payment
from payment_gateway.schemas.schemas import PaymentCreateRequest, PaymentStatus
from payment_gateway.services.payment import PaymentService


class InMemoryPaymentStore:
    """Dict-backed store honouring the PaymentStore contract; records every save."""

    def __init__(self):
        self.rows: dict[int, Payment] = {}
        self.saved_statuses: list[tuple[int, str]] = []
        self._next_id = 1

    async def save(self, payment: Payment) -> Payment:
        if payment.id is None:
            payment.id = self._next_id
            self._next_id += 1
        self.rows[payment.id] = payment
        self.saved_statuses.append((payment.id, payment.status))
        return payment

    async def find_by_id(self, payment_id):
        return self.rows.get(payment_id)

    async def find_by_transaction_id(self, transaction_id):
        return next((p for p in self.rows.values() if p.transaction_id == transaction_id), None)

    async def find_by_merchant_id(self, merchant_id):
        return [p for p in self.rows.values() if p.merchant_id == merchant_id]

    async def find_by_customer_email(self, email):
        return [p for p in self.rows.values() if p.customer_email == email]

    async def find_by_status(self, status):
        return [p for p in self.rows.values() if p.status == PaymentStatus(status).value]

    async def find_all(self):
        return list(self.rows.values())

    async def count(self):
        return len(self.rows)

    async def count_where_status(self, status):
        return len(await self.find_by_status(status))


@pytest.fixture
def store():
    return InMemoryPaymentStore()


@pytest.fixture
def service(store):
    return PaymentService(store)


@pytest.fixture
def valid_request():
    return PaymentCreateRequest(
        merchant_id="MERCHANT_123",
        amount=Decimal("100.00"),
        currency="USD",
        payment_method="CARD",
        customer_email="customer@example.com",
        description="Test payment",
    )
