"""API routes for products and inventory."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.features.auth.dependencies import Client, CurrentUser, ManagementUser
from app.features.inventory.models import TransactionType
from app.features.inventory.schemas import (
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    StockAlert,
    TransactionCreate,
    TransactionResponse,
)
from app.features.inventory.service import InventoryService, ProductService
from app.features.notifications.telegram import TelegramNotifier, get_notifier
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import pagination_params

products_router = APIRouter(prefix="/products", tags=["products"])
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])


# =============================================================================
# Products
# =============================================================================


@products_router.get(
    "",
    response_model=PaginatedResponse[ProductResponse],
    summary="List products",
    description="""
List active products.

**Filtering**:
- `category`: exact category
- `low_stock`: only products at or below their minimum stock
- `search`: case-insensitive match on name or code
""",
)
async def list_products(
    _user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    category: str | None = Query(None, description="Filter by category"),
    low_stock: bool = Query(False, description="Only low or out-of-stock products"),
    search: str | None = Query(None, max_length=100, description="Search name/code"),
) -> PaginatedResponse[ProductResponse]:
    """List products."""
    return await ProductService().list_products(
        db, pagination, category=category, low_stock=low_stock, search=search
    )


@products_router.get("/categories", response_model=list[str], summary="List categories")
async def list_categories(
    _user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[str]:
    """Distinct categories of active products."""
    return await ProductService().list_categories(db)


@products_router.get("/{product_id}", response_model=ProductResponse, summary="Get a product")
async def get_product(
    product_id: int,
    _user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProductResponse:
    """Get one product."""
    product = await ProductService().get_product(db, product_id)
    return ProductResponse.model_validate(product)


@products_router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
    description="Admin and manager only. Returns **409** when the code is taken.",
)
async def create_product(
    data: ProductCreate,
    user: ManagementUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProductResponse:
    """Create a product."""
    return await ProductService().create_product(db, data, actor=user, client=client)


@products_router.patch("/{product_id}", response_model=ProductResponse, summary="Update a product")
async def update_product(
    product_id: int,
    data: ProductUpdate,
    user: ManagementUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProductResponse:
    """Partially update a product."""
    return await ProductService().update_product(db, product_id, data, actor=user, client=client)


@products_router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
    description="Soft-delete: the product is deactivated and can no longer be ordered.",
)
async def delete_product(
    product_id: int,
    user: ManagementUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Deactivate a product."""
    await ProductService().delete_product(db, product_id, actor=user, client=client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Inventory
# =============================================================================


@inventory_router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a stock movement",
    description="""
Record a stock movement. Admin and manager only.

- `inbound`: adds `quantity`
- `outbound`: subtracts `quantity` (400 if stock would go negative)
- `adjustment`: sets stock to `quantity`

A low-stock alert is sent when the product ends at or below its minimum.
""",
)
async def create_transaction(
    data: TransactionCreate,
    user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> TransactionResponse:
    """Record a stock movement."""
    return await InventoryService().record_transaction(db, data, user, notifier)


@inventory_router.get(
    "/transactions",
    response_model=PaginatedResponse[TransactionResponse],
    summary="List stock movements",
)
async def list_transactions(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    product_id: int | None = Query(None, description="Filter by product"),
    transaction_type: TransactionType | None = Query(None, description="Filter by type"),
) -> PaginatedResponse[TransactionResponse]:
    """List stock movements, newest first."""
    return await InventoryService().list_transactions(
        db, pagination, product_id=product_id, transaction_type=transaction_type
    )


@inventory_router.get("/alerts", response_model=list[StockAlert], summary="Stock alerts")
async def stock_alerts(
    _user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[StockAlert]:
    """Products at or below their minimum stock."""
    return await InventoryService().stock_alerts(db)
