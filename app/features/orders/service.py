"""Service layer for store orders.

Orders are approved on submission when the delivery threshold is met: stock
is decremented and an outbound inventory transaction is written in the same
database transaction as the order rows.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.core.logging import get_logger
from app.features.audit.service import AuditService
from app.features.auth.service import ClientInfo
from app.features.employees.models import User
from app.features.inventory.models import Product, TransactionType
from app.features.inventory.service import InventoryService, notify_stock_level
from app.features.notifications.telegram import TelegramNotifier
from app.features.orders.delivery import (
    UNASSIGNED_SUPPLIER,
    OrderLine,
    SupplierGroup,
    evaluate_item,
    group_by_supplier,
    threshold_tier,
)
from app.features.orders.models import Order, OrderStatus
from app.features.orders.schemas import (
    BatchOrderCreate,
    BatchOrderCreated,
    DeliveryCheckRequest,
    DeliveryCheckResponse,
    DeliveryInfo,
    DeliveryLine,
    DeliveryThresholdInfo,
    OrderCreate,
    OrderCreated,
    OrderResponse,
    SupplierDeliveryStatus,
    SupplierSummary,
)
from app.features.stores.models import Store
from app.shared.models import utcnow
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import fetch_page, paginate_response, reference_number

logger = get_logger(__name__)


def _line_for(product: Product, quantity: int) -> OrderLine:
    return OrderLine(
        product_id=product.id,
        name=product.name,
        unit=product.unit,
        unit_cost=product.unit_cost,
        quantity=quantity,
        supplier=product.supplier,
        delivery_threshold=product.delivery_threshold,
    )


def _delivery_lines(group: SupplierGroup) -> list[DeliveryLine]:
    return [
        DeliveryLine(
            product_id=line.product_id,
            name=line.name,
            unit=line.unit,
            quantity=line.quantity,
            unit_cost=line.unit_cost,
            line_total=line.line_total,
        )
        for line in group.lines
    ]


class OrderService:
    """Single and batch ordering, delivery checks and order queries."""

    def __init__(self) -> None:
        """Initialize order service."""
        self.settings = get_settings()
        self.audit = AuditService()
        self.inventory = InventoryService()

    @property
    def default_threshold(self) -> Decimal:
        return Decimal(self.settings.order_default_delivery_threshold)

    async def _orderable_product(self, db: AsyncSession, product_id: int) -> Product:
        product = await db.get(Product, product_id)
        if product is None or not product.is_active:
            raise NotFoundError(f"Product not found or inactive: {product_id}")
        return product

    async def _store(self, db: AsyncSession, store_id: int) -> Store:
        store = await db.get(Store, store_id)
        if store is None:
            raise NotFoundError(f"Store not found: {store_id}")
        return store

    @staticmethod
    def _check_stock(product: Product, quantity: int) -> None:
        if product.current_stock < quantity:
            raise BadRequestError(
                f"Insufficient stock for {product.name}: "
                f"{product.current_stock} available, {quantity} requested",
                details={
                    "product_id": product.id,
                    "available": product.current_stock,
                    "requested": quantity,
                },
            )

    async def _place_line(
        self,
        db: AsyncSession,
        product: Product,
        quantity: int,
        order_number: str,
        store: Store,
        user: User,
        delivery_date: date | None,
        notes: str | None,
        reason: str,
    ) -> Order:
        await self.inventory.apply_movement(
            db,
            product,
            TransactionType.OUTBOUND,
            quantity,
            performed_by=user.id,
            reason=reason,
            reference_no=order_number,
            notes=f"Store {store.name}",
        )
        order = Order(
            order_number=order_number,
            product_id=product.id,
            store_id=store.id,
            requested_quantity=quantity,
            approved_quantity=quantity,
            unit_cost=product.unit_cost,
            total_cost=Decimal(product.unit_cost) * quantity,
            supplier=product.supplier,
            status=OrderStatus.APPROVED.value,
            requested_by=user.id,
            requested_at=utcnow(),
            delivery_date=delivery_date,
            notes=notes,
        )
        db.add(order)
        await db.flush()
        return order

    def _local_today(self) -> date:
        return utcnow().astimezone(self.settings.tzinfo).date()

    async def create_order(
        self,
        db: AsyncSession,
        data: OrderCreate,
        user: User,
        client: ClientInfo,
        notifier: TelegramNotifier,
    ) -> OrderCreated:
        """Place a single-product order.

        Args:
            db: Database session.
            data: Product, store and quantity.
            user: Ordering employee.
            client: Request origin.
            notifier: Telegram notifier.

        Returns:
            The approved order with remaining stock and delivery info.

        Raises:
            NotFoundError: If the product is missing/inactive or the store is missing.
            BadRequestError: If stock is insufficient or the order is below the
                delivery threshold.
        """
        product = await self._orderable_product(db, data.product_id)
        store = await self._store(db, data.store_id)
        self._check_stock(product, data.requested_quantity)

        threshold = Decimal(product.delivery_threshold or self.default_threshold)
        check = evaluate_item(product.unit_cost, data.requested_quantity, threshold)
        if not check.qualified:
            logger.info(
                "orders.below_threshold",
                product_id=product.id,
                order_value=str(check.order_value),
                threshold=str(threshold),
            )
            raise BadRequestError(
                f"Order value {check.order_value} is below the delivery threshold {threshold}",
                details={
                    "current_amount": check.order_value,
                    "required_amount": threshold,
                    "shortage": check.shortage,
                    "suggested_additional_quantity": check.suggested_additional_quantity,
                },
            )

        order_number = reference_number("ORD", self._local_today())
        order = await self._place_line(
            db,
            product,
            data.requested_quantity,
            order_number,
            store,
            user,
            data.delivery_date,
            data.notes,
            reason="Store order",
        )
        await self.audit.record(
            db,
            action="create_order",
            user_id=user.id,
            target_type="order",
            target_id=order.id,
            details={
                "order_number": order_number,
                "product_id": product.id,
                "store_id": store.id,
                "quantity": data.requested_quantity,
                "total_cost": str(order.total_cost),
            },
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info(
            "orders.order_created",
            order_number=order_number,
            product_id=product.id,
            store_id=store.id,
            quantity=data.requested_quantity,
            remaining_stock=product.current_stock,
        )

        await notify_stock_level(notifier, product)
        await notifier.notify_order(
            order_number=order_number,
            store_name=store.name,
            requested_by=user.name,
            items_by_supplier=self._items_by_supplier([(product, data.requested_quantity)]),
            total_cost=order.total_cost,
            delivery_date=data.delivery_date.isoformat() if data.delivery_date else None,
        )

        return OrderCreated(
            order_id=order.id,
            order_number=order_number,
            remaining_stock=product.current_stock,
            total_cost=order.total_cost,
            delivery_threshold=threshold,
            delivery_info=DeliveryInfo(
                supplier=product.supplier or UNASSIGNED_SUPPLIER,
                order_value=check.order_value,
                threshold=threshold,
                surplus=check.order_value - threshold,
                tier=threshold_tier(threshold),
            ),
        )

    @staticmethod
    def _items_by_supplier(
        lines: list[tuple[Product, int]],
    ) -> dict[str, list[dict[str, Any]]]:
        grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for product, quantity in lines:
            grouped[product.supplier or UNASSIGNED_SUPPLIER].append(
                {"name": product.name, "quantity": quantity, "unit": product.unit}
            )
        return dict(grouped)

    async def create_batch_order(
        self,
        db: AsyncSession,
        data: BatchOrderCreate,
        user: User,
        client: ClientInfo,
        notifier: TelegramNotifier,
    ) -> BatchOrderCreated:
        """Place a multi-product order; every supplier group must meet its threshold.

        The whole batch is rejected when any group falls short, with a
        per-supplier breakdown in the error details.

        Raises:
            NotFoundError: If a product is missing/inactive or the store is missing.
            BadRequestError: If stock is insufficient for a line or a supplier
                group is below its threshold.
        """
        store = await self._store(db, data.store_id)

        product_ids = [item.product_id for item in data.items]
        if len(set(product_ids)) != len(product_ids):
            raise BadRequestError(
                "Each product may appear only once in a batch order",
                details={"product_ids": product_ids},
            )

        products: list[tuple[Product, int]] = []
        for item in data.items:
            product = await self._orderable_product(db, item.product_id)
            self._check_stock(product, item.quantity)
            products.append((product, item.quantity))

        groups = group_by_supplier(
            (_line_for(p, qty) for p, qty in products), self.default_threshold
        )
        failed = [g for g in groups if not g.can_deliver]
        succeeded = [g for g in groups if g.can_deliver]
        if failed:
            logger.info(
                "orders.batch_below_threshold",
                failed_suppliers=[g.supplier for g in failed],
            )
            raise BadRequestError(
                "Some supplier orders are below the delivery threshold",
                details={
                    "failed_suppliers": [
                        {
                            "supplier": g.supplier,
                            "total": g.total,
                            "threshold": g.threshold,
                            "shortage": -g.difference,
                        }
                        for g in failed
                    ],
                    "successful_suppliers": [
                        {
                            "supplier": g.supplier,
                            "total": g.total,
                            "threshold": g.threshold,
                            "surplus": g.difference,
                        }
                        for g in succeeded
                    ],
                    "summary": {
                        "total_suppliers": len(groups),
                        "failed_count": len(failed),
                        "success_count": len(succeeded),
                    },
                    "suggestions": [
                        f"Add {-g.difference} more to the {g.supplier} order to reach delivery"
                        for g in failed
                    ],
                },
            )

        base_number = reference_number("ORD", self._local_today())
        orders: list[Order] = []
        for product, quantity in products:
            orders.append(
                await self._place_line(
                    db,
                    product,
                    quantity,
                    f"{base_number}-{product.id}",
                    store,
                    user,
                    data.delivery_date,
                    data.notes,
                    reason="Batch store order",
                )
            )

        total_cost = sum((o.total_cost for o in orders), Decimal(0))
        await self.audit.record(
            db,
            action="create_batch_order",
            user_id=user.id,
            target_type="order",
            target_id=base_number,
            details={
                "order_number": base_number,
                "store_id": store.id,
                "items": [{"product_id": p.id, "quantity": q} for p, q in products],
                "total_cost": str(total_cost),
            },
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info(
            "orders.batch_created",
            order_number=base_number,
            store_id=store.id,
            line_count=len(orders),
            supplier_count=len(groups),
        )

        for product, _ in products:
            await notify_stock_level(notifier, product)
        await notifier.notify_order(
            order_number=base_number,
            store_name=store.name,
            requested_by=user.name,
            items_by_supplier=self._items_by_supplier(products),
            total_cost=total_cost,
            delivery_date=data.delivery_date.isoformat() if data.delivery_date else None,
        )

        return BatchOrderCreated(
            order_number=base_number,
            total_items=len(orders),
            total_cost=total_cost,
            orders=[OrderResponse.model_validate(o) for o in orders],
            supplier_summary=[
                SupplierSummary(
                    supplier=g.supplier, total=g.total, threshold=g.threshold, surplus=g.difference
                )
                for g in groups
            ],
        )

    async def check_delivery(
        self, db: AsyncSession, data: DeliveryCheckRequest
    ) -> DeliveryCheckResponse:
        """Evaluate supplier thresholds without placing anything.

        Unknown or inactive products are skipped and reported.
        """
        lines: list[OrderLine] = []
        skipped: list[int] = []
        for item in data.items:
            product = await db.get(Product, item.product_id)
            if product is None or not product.is_active:
                skipped.append(item.product_id)
                continue
            lines.append(_line_for(product, item.quantity))

        groups = group_by_supplier(lines, self.default_threshold)
        suppliers = [
            SupplierDeliveryStatus(
                supplier=g.supplier,
                total=g.total,
                threshold=g.threshold,
                can_deliver=g.can_deliver,
                difference=g.difference,
                items=_delivery_lines(g),
            )
            for g in groups
        ]
        qualified = sum(1 for g in groups if g.can_deliver)
        return DeliveryCheckResponse(
            suppliers=suppliers,
            all_can_deliver=bool(groups) and qualified == len(groups),
            total_suppliers=len(groups),
            qualified_count=qualified,
            failed_count=len(groups) - qualified,
            skipped_product_ids=skipped,
        )

    async def delivery_thresholds(self, db: AsyncSession) -> list[DeliveryThresholdInfo]:
        """Delivery rule of every active product, by supplier then name."""
        stmt = (
            select(Product)
            .where(Product.is_active.is_(True))
            .order_by(Product.supplier, Product.name)
        )
        products = (await db.execute(stmt)).scalars().all()
        result = []
        for p in products:
            threshold = Decimal(p.delivery_threshold or self.default_threshold)
            check = evaluate_item(p.unit_cost, 0, threshold)
            result.append(
                DeliveryThresholdInfo(
                    product_id=p.id,
                    code=p.code,
                    name=p.name,
                    supplier=p.supplier,
                    unit=p.unit,
                    unit_cost=p.unit_cost,
                    delivery_threshold=threshold,
                    minimum_quantity=check.minimum_quantity,
                    tier=threshold_tier(threshold),
                )
            )
        return result

    async def get_order(self, db: AsyncSession, order_id: int, viewer: User) -> OrderResponse:
        """Get an order; staff may only read their own.

        Raises:
            NotFoundError: If the order does not exist.
            ForbiddenError: If a non-manager reads someone else's order.
        """
        order = await db.get(Order, order_id)
        if order is None:
            raise NotFoundError(f"Order not found: {order_id}")
        if not viewer.is_management and order.requested_by != viewer.id:
            raise ForbiddenError("You can only view your own orders")
        return OrderResponse.model_validate(order)

    async def list_orders(
        self,
        db: AsyncSession,
        viewer: User,
        pagination: PaginationParams,
        store_id: int | None = None,
        product_id: int | None = None,
        status: OrderStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PaginatedResponse[OrderResponse]:
        """List orders, newest first; staff see only their own.

        Args:
            db: Database session.
            viewer: Requesting user.
            pagination: Page to return.
            store_id: Filter by store.
            product_id: Filter by product.
            status: Filter by status.
            start_date: Earliest local order date (inclusive).
            end_date: Latest local order date (inclusive).

        Returns:
            Paginated orders.
        """
        stmt = select(Order)
        if not viewer.is_management:
            stmt = stmt.where(Order.requested_by == viewer.id)
        if store_id is not None:
            stmt = stmt.where(Order.store_id == store_id)
        if product_id is not None:
            stmt = stmt.where(Order.product_id == product_id)
        if status is not None:
            stmt = stmt.where(Order.status == status.value)
        tz = self.settings.tzinfo
        if start_date is not None:
            stmt = stmt.where(Order.requested_at >= datetime.combine(start_date, time.min, tz))
        if end_date is not None:
            stmt = stmt.where(Order.requested_at <= datetime.combine(end_date, time.max, tz))
        stmt = stmt.order_by(Order.requested_at.desc(), Order.id.desc())

        rows, total = await fetch_page(db, stmt, pagination)
        return paginate_response([OrderResponse.model_validate(o) for o in rows], total, pagination)
