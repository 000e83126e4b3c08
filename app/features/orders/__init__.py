"""Store orders gated by supplier delivery thresholds."""

from app.features.orders.models import Order, OrderStatus

__all__ = ["Order", "OrderStatus"]
