"""API routes for store orders."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.features.anomalies.service import AnomalyService
from app.features.auth.dependencies import Client, CurrentUser
from app.features.notifications.telegram import TelegramNotifier, get_notifier
from app.features.orders.models import OrderStatus
from app.features.orders.schemas import (
    BatchOrderCreate,
    BatchOrderCreated,
    DeliveryCheckRequest,
    DeliveryCheckResponse,
    DeliveryThresholdInfo,
    OrderCreate,
    OrderCreated,
    OrderResponse,
)
from app.features.orders.service import OrderService
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import pagination_params

router = APIRouter(prefix="/orders", tags=["orders"])


def _schedule_anomaly_checks(
    background_tasks: BackgroundTasks,
    product_ids: list[int],
    notifier: TelegramNotifier,
) -> None:
    if not get_settings().anomaly_check_after_order:
        return
    service = AnomalyService()
    for product_id in dict.fromkeys(product_ids):
        background_tasks.add_task(service.check_product_in_background, product_id, notifier)


@router.post(
    "",
    response_model=OrderCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="""
Order one product for a store. The order is approved immediately and stock
is decremented.

**Rejected with 400 when**:
- stock is insufficient (`details.available`, `details.requested`)
- `unit_cost * requested_quantity` is below the product's delivery threshold
  (`details.shortage`, `details.suggested_additional_quantity`)

Example:
```json
{"product_id": 3, "store_id": 1, "requested_quantity": 40}
```
""",
)
async def create_order(
    data: OrderCreate,
    user: CurrentUser,
    client: Client,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> OrderCreated:
    """Place a single-product order."""
    result = await OrderService().create_order(db, data, user, client, notifier)
    _schedule_anomaly_checks(background_tasks, [data.product_id], notifier)
    return result


@router.post(
    "/batch",
    response_model=BatchOrderCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Place a batch order",
    description="""
Order several products at once. Lines are grouped by supplier and every
group must reach its delivery threshold, otherwise nothing is ordered and
the 400 response lists `failed_suppliers`, `successful_suppliers`,
`summary` and `suggestions`.
""",
)
async def create_batch_order(
    data: BatchOrderCreate,
    user: CurrentUser,
    client: Client,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> BatchOrderCreated:
    """Place a multi-product order."""
    result = await OrderService().create_batch_order(db, data, user, client, notifier)
    _schedule_anomaly_checks(background_tasks, [o.product_id for o in result.orders], notifier)
    return result


@router.post(
    "/check-delivery",
    response_model=DeliveryCheckResponse,
    summary="Check delivery thresholds (dry run)",
)
async def check_delivery(
    data: DeliveryCheckRequest,
    _user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DeliveryCheckResponse:
    """Evaluate supplier thresholds without ordering."""
    return await OrderService().check_delivery(db, data)


@router.get(
    "/delivery-thresholds",
    response_model=list[DeliveryThresholdInfo],
    summary="Delivery thresholds of active products",
)
async def delivery_thresholds(
    _user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[DeliveryThresholdInfo]:
    """Threshold, minimum quantity and tier per active product."""
    return await OrderService().delivery_thresholds(db)


@router.get(
    "",
    response_model=PaginatedResponse[OrderResponse],
    summary="List orders",
    description="Admins and managers see every order; other users see their own.",
)
async def list_orders(
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    store_id: int | None = Query(None, description="Filter by store"),
    product_id: int | None = Query(None, description="Filter by product"),
    order_status: OrderStatus | None = Query(None, alias="status", description="Filter by status"),
    start_date: date | None = Query(None, description="Earliest order date (inclusive)"),
    end_date: date | None = Query(None, description="Latest order date (inclusive)"),
) -> PaginatedResponse[OrderResponse]:
    """List orders."""
    return await OrderService().list_orders(
        db,
        user,
        pagination,
        store_id=store_id,
        product_id=product_id,
        status=order_status,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/{order_id}", response_model=OrderResponse, summary="Get an order")
async def get_order(
    order_id: int,
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> OrderResponse:
    """Get one order."""
    return await OrderService().get_order(db, order_id, user)
