"""Service layer for stores and geofence settings."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.core.logging import get_logger
from app.features.audit.service import AuditService, parse_details
from app.features.auth.service import ClientInfo
from app.features.employees.models import User
from app.features.stores.models import Store
from app.features.stores.schemas import (
    BatchRadiusResult,
    BatchRadiusUpdate,
    RadiusChange,
    RadiusHistoryEntry,
    RadiusUpdate,
    SkippedRadiusEntry,
    StoreCreate,
    StoreResponse,
)

logger = get_logger(__name__)


class StoreService:
    """Store listing, creation and clock-in radius management."""

    def __init__(self) -> None:
        """Initialize store service."""
        self.settings = get_settings()
        self.audit = AuditService()

    def _radius_in_range(self, radius: int) -> bool:
        return self.settings.store_radius_min_m <= radius <= self.settings.store_radius_max_m

    async def get_store(self, db: AsyncSession, store_id: int) -> Store:
        """Load a store.

        Raises:
            NotFoundError: If the store does not exist.
        """
        store = await db.get(Store, store_id)
        if store is None:
            raise NotFoundError(f"Store not found: {store_id}")
        return store

    async def list_stores(self, db: AsyncSession, include_inactive: bool = False) -> list[StoreResponse]:
        """List stores ordered by code."""
        stmt = select(Store).order_by(Store.code)
        if not include_inactive:
            stmt = stmt.where(Store.is_active.is_(True))
        result = await db.execute(stmt)
        return [StoreResponse.model_validate(s) for s in result.scalars().all()]

    async def create_store(
        self,
        db: AsyncSession,
        data: StoreCreate,
        actor: User,
        client: ClientInfo,
    ) -> StoreResponse:
        """Create a store.

        Raises:
            ConflictError: If the store code is taken.
            BadRequestError: If the radius is outside the allowed range.
        """
        existing = await db.execute(select(Store.id).where(Store.code == data.code))
        if existing.first() is not None:
            raise ConflictError(f"Store code already exists: {data.code}")

        radius = data.radius_m or self.settings.store_default_radius_m
        if not self._radius_in_range(radius):
            raise BadRequestError(
                "Radius out of range",
                details={
                    "min_radius": self.settings.store_radius_min_m,
                    "max_radius": self.settings.store_radius_max_m,
                },
            )

        store = Store(**data.model_dump(exclude={"radius_m"}), radius_m=radius, is_active=True)
        db.add(store)
        await db.flush()
        await self.audit.record(
            db,
            action="create_store",
            user_id=actor.id,
            target_type="store",
            target_id=store.id,
            details={"code": store.code, "name": store.name},
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info("stores.store_created", store_id=store.id, code=store.code)
        return StoreResponse.model_validate(store)

    async def update_radius(
        self,
        db: AsyncSession,
        store_id: int,
        data: RadiusUpdate,
        actor: User,
        client: ClientInfo,
    ) -> RadiusChange:
        """Change a store's clock-in radius and record the change.

        Args:
            db: Database session.
            store_id: Store to update.
            data: New radius and optional reason.
            actor: User making the change.
            client: Request origin.

        Returns:
            Old and new radius.

        Raises:
            BadRequestError: If the radius is outside the allowed range.
            NotFoundError: If the store does not exist.
        """
        if not self._radius_in_range(data.radius):
            raise BadRequestError(
                f"Radius must be between {self.settings.store_radius_min_m} and "
                f"{self.settings.store_radius_max_m} metres",
                details={
                    "min_radius": self.settings.store_radius_min_m,
                    "max_radius": self.settings.store_radius_max_m,
                    "radius": data.radius,
                },
            )

        store = await self.get_store(db, store_id)
        change = await self._apply_radius(db, store, data.radius, data.reason, actor, client)
        await db.commit()
        return change

    async def _apply_radius(
        self,
        db: AsyncSession,
        store: Store,
        radius: int,
        reason: str | None,
        actor: User,
        client: ClientInfo,
    ) -> RadiusChange:
        old_radius = store.radius_m
        store.radius_m = radius
        await self.audit.record(
            db,
            action="update_store_radius",
            user_id=actor.id,
            target_type="store",
            target_id=store.id,
            details={
                "store_name": store.name,
                "old_radius": old_radius,
                "new_radius": radius,
                "reason": reason,
                "updated_by": actor.name,
            },
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        logger.info(
            "stores.radius_updated",
            store_id=store.id,
            old_radius=old_radius,
            new_radius=radius,
        )
        return RadiusChange(
            store_id=store.id,
            store_name=store.name,
            old_radius=old_radius,
            new_radius=radius,
        )

    async def batch_update_radius(
        self,
        db: AsyncSession,
        data: BatchRadiusUpdate,
        actor: User,
        client: ClientInfo,
    ) -> BatchRadiusResult:
        """Apply several radius changes; invalid entries are skipped, not fatal.

        Returns:
            Applied changes and skipped entries with the reason.
        """
        updated: list[RadiusChange] = []
        skipped: list[SkippedRadiusEntry] = []

        for entry in data.updates:
            if not self._radius_in_range(entry.radius):
                skipped.append(
                    SkippedRadiusEntry(
                        store_id=entry.store_id, radius=entry.radius, reason="radius_out_of_range"
                    )
                )
                continue
            store = await db.get(Store, entry.store_id)
            if store is None:
                skipped.append(
                    SkippedRadiusEntry(
                        store_id=entry.store_id, radius=entry.radius, reason="store_not_found"
                    )
                )
                continue
            updated.append(
                await self._apply_radius(db, store, entry.radius, data.reason, actor, client)
            )

        await self.audit.record(
            db,
            action="batch_update_store_radius",
            user_id=actor.id,
            target_type="store",
            details={
                "updated": [c.model_dump() for c in updated],
                "skipped": [s.model_dump() for s in skipped],
                "reason": data.reason,
                "updated_by": actor.name,
            },
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info(
            "stores.radius_batch_updated",
            updated_count=len(updated),
            skipped_count=len(skipped),
        )
        return BatchRadiusResult(updated=updated, skipped=skipped)

    async def radius_history(self, db: AsyncSession, store_id: int) -> list[RadiusHistoryEntry]:
        """Past radius changes for a store, newest first.

        Raises:
            NotFoundError: If the store does not exist.
        """
        await self.get_store(db, store_id)
        stmt = self.audit.build_query(
            action="update_store_radius", target_type="store", target_id=store_id
        )
        result = await db.execute(stmt)
        return [
            RadiusHistoryEntry(
                changed_at=entry.created_at,
                changed_by=entry.user_id,
                details=parse_details(entry.details),
            )
            for entry in result.scalars().all()
        ]
