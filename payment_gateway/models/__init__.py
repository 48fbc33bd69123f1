from payment_gateway.models.payment import Payment

__all__ = ["Payment"]
