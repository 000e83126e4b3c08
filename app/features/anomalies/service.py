"""Service layer for order-frequency anomaly checks.

Checks run on demand (admin endpoints), after each order (background task)
and on a schedule (``scripts/check_order_anomalies.py``). Every anomaly found
is sent to Telegram and recorded as an ``order_anomaly_alert`` audit entry.
"""

from __future__ import annotations

import time
from collections import defaultdict
from datetime import datetime, timedelta

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import get_settings
from app.core.database import get_session_maker
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.features.anomalies.rules import (
    Anomaly,
    OrderSnapshot,
    ProductSnapshot,
    check_product,
)
from app.features.anomalies.schemas import AnomalyCheckResult, AnomalyResponse, CheckerStatus
from app.features.audit.models import SystemLog
from app.features.audit.schemas import SystemLogResponse
from app.features.audit.service import AuditService, parse_details
from app.features.inventory.models import Product
from app.features.notifications.telegram import TelegramNotifier
from app.features.orders.models import ACTIVE_ORDER_STATUSES, Order
from app.features.stores.models import Store
from app.shared.models import utcnow
from app.shared.schemas import PaginatedResponse, PaginationParams

logger = get_logger(__name__)

ALERT_ACTION = "order_anomaly_alert"
SCHEDULED_ACTION = "scheduled_anomaly_check"


def _snapshot(product: Product) -> ProductSnapshot:
    return ProductSnapshot(
        id=product.id,
        name=product.name,
        unit=product.unit,
        created_at=product.created_at,
        frequent_order_days=product.frequent_order_days,
        rare_order_days=product.rare_order_days,
        supplier=product.supplier,
        current_stock=product.current_stock,
    )


def _to_response(anomaly: Anomaly) -> AnomalyResponse:
    return AnomalyResponse.model_validate(anomaly.to_dict())


def _build_result(anomalies: list[Anomaly], checked_at: datetime) -> AnomalyCheckResult:
    items = [_to_response(a) for a in anomalies]
    grouped: dict[str, dict[str, list[AnomalyResponse]]] = defaultdict(lambda: defaultdict(list))
    for item in items:
        grouped[item.store_name][item.type.value].append(item)
    return AnomalyCheckResult(
        success=True,
        anomalies_found=len(items),
        anomalies=items,
        grouped={store: dict(by_type) for store, by_type in grouped.items()},
        checked_at=checked_at,
    )


class AnomalyService:
    """Runs the order-frequency rules and reports their findings."""

    def __init__(self) -> None:
        """Initialize anomaly service."""
        self.settings = get_settings()
        self.audit = AuditService()

    @staticmethod
    def _monitored_filter() -> list:
        return [
            Product.is_active.is_(True),
            or_(Product.frequent_order_days > 0, Product.rare_order_days > 0),
        ]

    async def _recent_orders(self, db: AsyncSession, product_id: int) -> list[OrderSnapshot]:
        stmt = (
            select(Order.requested_at, Order.requested_quantity, Store.name)
            .join(Store, Store.id == Order.store_id)
            .where(Order.product_id == product_id, Order.status.in_(ACTIVE_ORDER_STATUSES))
            .order_by(Order.requested_at.desc(), Order.id.desc())
            .limit(self.settings.anomaly_recent_orders_limit)
        )
        rows = (await db.execute(stmt)).all()
        return [
            OrderSnapshot(requested_at=requested_at, quantity=quantity, store_name=store_name)
            for requested_at, quantity, store_name in rows
        ]

    async def _evaluate(
        self,
        db: AsyncSession,
        products: list[Product],
        notifier: TelegramNotifier,
        now: datetime,
    ) -> list[Anomaly]:
        found: list[Anomaly] = []
        for product in products:
            orders = await self._recent_orders(db, product.id)
            found.extend(check_product(_snapshot(product), orders, now))

        for anomaly in found:
            await self.audit.record(
                db,
                action=ALERT_ACTION,
                target_type="product",
                target_id=anomaly.product_id,
                details=anomaly.message,
            )
        await db.commit()

        for anomaly in found:
            logger.info(
                "anomalies.anomaly_detected",
                product_id=anomaly.product_id,
                anomaly_type=anomaly.type.value,
                store_name=anomaly.store_name,
            )
            await notifier.notify_order_frequency(
                alert_type=anomaly.type.alert_type,
                product_name=anomaly.product_name,
                message=anomaly.message,
                threshold_days=anomaly.threshold_days,
                store_name=anomaly.store_name,
                supplier=anomaly.supplier,
                current_stock=anomaly.current_stock,
                last_order_date=anomaly.last_order_date,
            )
        return found

    async def check_all(
        self,
        db: AsyncSession,
        notifier: TelegramNotifier,
        now: datetime | None = None,
    ) -> AnomalyCheckResult:
        """Check every monitored product.

        Args:
            db: Database session.
            notifier: Telegram notifier.
            now: Override of the current time (UTC).

        Returns:
            Anomalies found, flat and grouped by store and type.
        """
        now = now or utcnow()
        stmt = select(Product).where(*self._monitored_filter()).order_by(Product.id)
        products = list((await db.execute(stmt)).scalars().all())

        anomalies = await self._evaluate(db, products, notifier, now)
        logger.info(
            "anomalies.check_completed",
            products_checked=len(products),
            anomalies_found=len(anomalies),
        )
        return _build_result(anomalies, now)

    async def check_product(
        self,
        db: AsyncSession,
        product_id: int,
        notifier: TelegramNotifier,
        now: datetime | None = None,
    ) -> AnomalyCheckResult:
        """Check a single product.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await db.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}")
        now = now or utcnow()
        anomalies = await self._evaluate(db, [product], notifier, now)
        return _build_result(anomalies, now)

    async def check_product_in_background(
        self,
        product_id: int,
        notifier: TelegramNotifier,
    ) -> None:
        """Check a product after an order, in its own session.

        Runs after the response is sent, so failures are logged only.
        """
        session_maker = get_session_maker()
        try:
            async with session_maker() as db:
                await self.check_product(db, product_id, notifier)
        except (SQLAlchemyError, NotFoundError) as exc:
            logger.error(
                "anomalies.background_check_failed",
                product_id=product_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    async def run_scheduled_check(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        notifier: TelegramNotifier,
        check_type: str = "scheduled",
    ) -> AnomalyCheckResult:
        """Run ``check_all`` and record the run; never raises.

        Args:
            session_maker: Factory for the sessions used by the run.
            notifier: Telegram notifier.
            check_type: Label stored with the run record.

        Returns:
            The check result, or a failure result carrying the error.
        """
        started = time.perf_counter()
        checked_at = utcnow()
        try:
            async with session_maker() as db:
                result = await self.check_all(db, notifier, now=checked_at)
        except SQLAlchemyError as exc:
            logger.error(
                "anomalies.scheduled_check_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            result = AnomalyCheckResult(success=False, checked_at=checked_at, error=str(exc))

        duration = round(time.perf_counter() - started, 3)
        try:
            async with session_maker() as db:
                await self.audit.record(
                    db,
                    action=SCHEDULED_ACTION,
                    target_type="system",
                    details={
                        "check_type": check_type,
                        "success": result.success,
                        "anomalies_found": result.anomalies_found,
                        "duration_seconds": duration,
                        "checked_at": checked_at.isoformat(),
                        "error": result.error,
                    },
                )
                await db.commit()
        except SQLAlchemyError as exc:
            logger.error("anomalies.scheduled_check_not_recorded", error=str(exc))

        logger.info(
            "anomalies.scheduled_check_finished",
            success=result.success,
            anomalies_found=result.anomalies_found,
            duration_seconds=duration,
        )
        return result

    async def history(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        days: int = 7,
    ) -> PaginatedResponse[SystemLogResponse]:
        """Anomaly alerts of the last ``days`` days, newest first."""
        return await self.audit.list_logs(
            db,
            pagination,
            action=ALERT_ACTION,
            since=utcnow() - timedelta(days=days),
        )

    async def status(self, db: AsyncSession) -> CheckerStatus:
        """Monitored product count, last-day alert count and the last scheduled run."""
        monitoring = (
            await db.execute(select(func.count(Product.id)).where(*self._monitored_filter()))
        ).scalar_one()

        recent = (
            await db.execute(
                select(func.count(SystemLog.id)).where(
                    SystemLog.action == ALERT_ACTION,
                    SystemLog.created_at >= utcnow() - timedelta(hours=24),
                )
            )
        ).scalar_one()

        last = (
            await db.execute(self.audit.build_query(action=SCHEDULED_ACTION).limit(1))
        ).scalar_one_or_none()

        details = parse_details(last.details) if last is not None else None
        return CheckerStatus(
            monitoring_products=monitoring,
            recent_anomalies_24h=recent,
            last_scheduled_check=details if isinstance(details, dict) else None,
            last_scheduled_check_at=last.created_at if last is not None else None,
        )
