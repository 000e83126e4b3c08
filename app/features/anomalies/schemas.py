"""Pydantic schemas for order-anomaly endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.features.anomalies.rules import AnomalyType


class AnomalyResponse(BaseModel):
    """A detected order-frequency anomaly."""

    type: AnomalyType
    product_id: int
    product_name: str
    store_name: str
    threshold_days: int
    message: str
    supplier: str | None = None
    current_stock: int | None = None
    anomaly_days: int | None = None
    last_order_date: datetime | None = None
    last_order_quantity: int | None = None
    recent_orders_count: int | None = None
    total_quantity: int | None = None
    period_days: int | None = None
    avg_days_between: float | None = None


class AnomalyCheckResult(BaseModel):
    """Outcome of an anomaly check run."""

    success: bool
    anomalies_found: int = 0
    anomalies: list[AnomalyResponse] = Field(default_factory=list)
    grouped: dict[str, dict[str, list[AnomalyResponse]]] = Field(
        default_factory=dict,
        description="Anomalies by store name, then by anomaly type.",
    )
    checked_at: datetime
    error: str | None = None


class CheckerStatus(BaseModel):
    """Current monitoring state."""

    monitoring_products: int
    recent_anomalies_24h: int
    last_scheduled_check: dict[str, Any] | None = None
    last_scheduled_check_at: datetime | None = None
