"""Service layer for the product catalog and stock movements."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.core.logging import get_logger
from app.features.audit.service import AuditService
from app.features.auth.service import ClientInfo
from app.features.employees.models import User
from app.features.inventory.models import (
    InventoryTransaction,
    Product,
    TransactionType,
)
from app.features.inventory.schemas import (
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    StockAlert,
    TransactionCreate,
    TransactionResponse,
)
from app.features.notifications.telegram import TelegramNotifier
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import fetch_page, paginate_response

logger = get_logger(__name__)

# Fields a PATCH may explicitly clear with null
NULLABLE_PRODUCT_FIELDS = frozenset(
    {"category", "description", "selling_price", "supplier", "supplier_contact"}
)


async def notify_stock_level(notifier: TelegramNotifier, product: Product) -> None:
    """Send a low/out-of-stock alert when the product is at or below minimum."""
    level = product.stock_level
    if level is None:
        return
    logger.info(
        "inventory.stock_alert",
        product_id=product.id,
        level=level.value,
        current_stock=product.current_stock,
        min_stock=product.min_stock,
    )
    await notifier.notify_inventory_alert(
        alert_type=level.value,
        product_name=product.name,
        current_stock=product.current_stock,
        min_stock=product.min_stock,
        unit=product.unit,
        supplier=product.supplier,
        supplier_contact=product.supplier_contact,
    )


class ProductService:
    """Product catalog CRUD."""

    def __init__(self) -> None:
        """Initialize product service."""
        self.audit = AuditService()

    async def get_product(self, db: AsyncSession, product_id: int) -> Product:
        """Load a product.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await db.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}")
        return product

    async def _ensure_code_free(
        self, db: AsyncSession, code: str, exclude_id: int | None = None
    ) -> None:
        stmt = select(Product.id).where(Product.code == code)
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        if (await db.execute(stmt)).first() is not None:
            raise ConflictError(f"Product code already exists: {code}")

    async def list_products(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        category: str | None = None,
        low_stock: bool = False,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> PaginatedResponse[ProductResponse]:
        """List products with filters.

        Args:
            db: Database session.
            pagination: Page to return.
            category: Filter by category.
            low_stock: Only products at or below their minimum stock.
            search: Case-insensitive substring of name or code.
            include_inactive: Include soft-deleted products.

        Returns:
            Paginated products ordered by category and name.
        """
        stmt = select(Product)
        if not include_inactive:
            stmt = stmt.where(Product.is_active.is_(True))
        if category is not None:
            stmt = stmt.where(Product.category == category)
        if low_stock:
            stmt = stmt.where(Product.current_stock <= Product.min_stock)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Product.name.ilike(pattern), Product.code.ilike(pattern)))
        stmt = stmt.order_by(Product.category, Product.name, Product.id)

        rows, total = await fetch_page(db, stmt, pagination)
        return paginate_response(
            [ProductResponse.model_validate(p) for p in rows], total, pagination
        )

    async def list_categories(self, db: AsyncSession) -> list[str]:
        """Distinct categories of active products, sorted."""
        stmt = (
            select(Product.category)
            .where(Product.is_active.is_(True), Product.category.is_not(None))
            .distinct()
            .order_by(Product.category)
        )
        return [c for c in (await db.execute(stmt)).scalars().all() if c]

    async def create_product(
        self,
        db: AsyncSession,
        data: ProductCreate,
        actor: User,
        client: ClientInfo,
    ) -> ProductResponse:
        """Create a product.

        Raises:
            ConflictError: If the product code is taken.
        """
        await self._ensure_code_free(db, data.code)

        product = Product(**data.model_dump(), is_active=True)
        db.add(product)
        await db.flush()
        await self.audit.record(
            db,
            action="create_product",
            user_id=actor.id,
            target_type="product",
            target_id=product.id,
            details={"code": product.code, "name": product.name},
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info("inventory.product_created", product_id=product.id, code=product.code)
        return ProductResponse.model_validate(product)

    async def update_product(
        self,
        db: AsyncSession,
        product_id: int,
        data: ProductUpdate,
        actor: User,
        client: ClientInfo,
    ) -> ProductResponse:
        """Partially update a product.

        Raises:
            NotFoundError: If the product does not exist.
            ConflictError: If the new code is taken.
        """
        product = await self.get_product(db, product_id)
        changes: dict[str, Any] = {
            k: v
            for k, v in data.model_dump(exclude_unset=True).items()
            if v is not None or k in NULLABLE_PRODUCT_FIELDS
        }

        if "code" in changes:
            await self._ensure_code_free(db, changes["code"], exclude_id=product.id)

        for field, value in changes.items():
            setattr(product, field, value)

        await self.audit.record(
            db,
            action="update_product",
            user_id=actor.id,
            target_type="product",
            target_id=product.id,
            details={"fields": sorted(changes)},
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info("inventory.product_updated", product_id=product.id, fields=sorted(changes))
        return ProductResponse.model_validate(product)

    async def delete_product(
        self,
        db: AsyncSession,
        product_id: int,
        actor: User,
        client: ClientInfo,
    ) -> None:
        """Soft-delete a product (history and orders keep referencing it).

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.get_product(db, product_id)
        product.is_active = False
        await self.audit.record(
            db,
            action="delete_product",
            user_id=actor.id,
            target_type="product",
            target_id=product.id,
            details={"code": product.code, "name": product.name},
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()
        logger.info("inventory.product_deleted", product_id=product.id)


class InventoryService:
    """Stock movements and stock alerts."""

    @staticmethod
    async def _current_stock(db: AsyncSession, product: Product) -> int:
        return (
            await db.execute(select(Product.current_stock).where(Product.id == product.id))
        ).scalar_one()

    async def apply_movement(
        self,
        db: AsyncSession,
        product: Product,
        transaction_type: TransactionType,
        quantity: int,
        performed_by: int | None,
        reason: str | None = None,
        reference_no: str | None = None,
        notes: str | None = None,
    ) -> InventoryTransaction:
        """Change a product's stock and write the ledger row (no commit).

        Args:
            db: Database session.
            product: Product to move.
            transaction_type: inbound/outbound add or subtract ``quantity``;
                adjustment sets stock to ``quantity``.
            quantity: Units (non-negative).
            performed_by: Acting user.
            reason: Short reason.
            reference_no: Related document.
            notes: Free text.

        Returns:
            The pending transaction row.

        Raises:
            BadRequestError: If stock would go negative.
            ConflictError: If stock changed while an adjustment was applied.
        """
        stock = Product.current_stock
        stmt = update(Product).where(Product.id == product.id)
        if transaction_type == TransactionType.INBOUND:
            stmt = stmt.values(current_stock=stock + quantity)
        elif transaction_type == TransactionType.OUTBOUND:
            # Guard and decrement in one statement: concurrent orders never
            # spend the same units.
            stmt = stmt.where(stock >= quantity).values(current_stock=stock - quantity)
        else:
            # Compare-and-set against the stock the delta is computed from.
            expected = await self._current_stock(db, product)
            stmt = stmt.where(stock == expected).values(current_stock=quantity)

        new_stock = (
            await db.execute(
                stmt.returning(stock).execution_options(synchronize_session=False)
            )
        ).scalar_one_or_none()

        if new_stock is None:
            available = await self._current_stock(db, product)
            if transaction_type == TransactionType.ADJUSTMENT:
                raise ConflictError(
                    f"Stock of {product.name} changed during the adjustment, retry",
                    details={"product_id": product.id, "available": available},
                )
            raise BadRequestError(
                f"Insufficient stock for {product.name}",
                details={
                    "product_id": product.id,
                    "available": available,
                    "requested": quantity,
                },
            )

        if transaction_type == TransactionType.INBOUND:
            delta = quantity
        elif transaction_type == TransactionType.OUTBOUND:
            delta = -quantity
        else:
            delta = quantity - expected

        # Keep the loaded instance in sync without marking it dirty; a later
        # flush must not write the absolute value back.
        set_committed_value(product, "current_stock", new_stock)
        transaction = InventoryTransaction(
            transaction_id=uuid.uuid4().hex,
            product_id=product.id,
            transaction_type=transaction_type.value,
            quantity=delta,
            stock_after=new_stock,
            reason=reason,
            reference_no=reference_no,
            performed_by=performed_by,
            notes=notes,
        )
        db.add(transaction)
        await db.flush()
        return transaction

    async def record_transaction(
        self,
        db: AsyncSession,
        data: TransactionCreate,
        actor: User,
        notifier: TelegramNotifier,
    ) -> TransactionResponse:
        """Apply a manual stock movement and alert on low stock.

        Raises:
            NotFoundError: If the product does not exist.
            BadRequestError: If stock would go negative.
        """
        product = await ProductService().get_product(db, data.product_id)
        transaction = await self.apply_movement(
            db,
            product,
            data.transaction_type,
            data.quantity,
            performed_by=actor.id,
            reason=data.reason,
            reference_no=data.reference_no,
            notes=data.notes,
        )
        await db.commit()

        logger.info(
            "inventory.transaction_recorded",
            product_id=product.id,
            transaction_type=data.transaction_type.value,
            delta=transaction.quantity,
            stock_after=transaction.stock_after,
        )
        await notify_stock_level(notifier, product)
        return TransactionResponse.model_validate(transaction)

    async def list_transactions(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        product_id: int | None = None,
        transaction_type: TransactionType | None = None,
    ) -> PaginatedResponse[TransactionResponse]:
        """List stock movements, newest first."""
        stmt = select(InventoryTransaction)
        if product_id is not None:
            stmt = stmt.where(InventoryTransaction.product_id == product_id)
        if transaction_type is not None:
            stmt = stmt.where(InventoryTransaction.transaction_type == transaction_type.value)
        stmt = stmt.order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())

        rows, total = await fetch_page(db, stmt, pagination)
        return paginate_response(
            [TransactionResponse.model_validate(t) for t in rows], total, pagination
        )

    async def stock_alerts(self, db: AsyncSession) -> list[StockAlert]:
        """Active products at or below minimum stock, emptiest first."""
        stmt = (
            select(Product)
            .where(Product.is_active.is_(True), Product.current_stock <= Product.min_stock)
            .order_by(Product.current_stock, Product.name)
        )
        products = (await db.execute(stmt)).scalars().all()
        return [
            StockAlert(
                product_id=p.id,
                code=p.code,
                name=p.name,
                current_stock=p.current_stock,
                min_stock=p.min_stock,
                level=p.stock_level,
                supplier=p.supplier,
            )
            for p in products
            if p.stock_level is not None
        ]
