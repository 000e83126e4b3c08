"""Service layer for employee management."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from app.core.logging import get_logger
from app.core.security import hash_password_async
from app.features.audit.service import AuditService
from app.features.auth.service import AuthService, ClientInfo
from app.features.employees.models import User, UserRole
from app.features.employees.schemas import (
    EmployeeCreate,
    EmployeeDetailResponse,
    EmployeeStats,
    EmployeeUpdate,
)
from app.features.stores.models import Store
from app.shared.models import utcnow
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import fetch_page, paginate_response, round_half_up

logger = get_logger(__name__)

RECENT_HIRE_DAYS = 30


class EmployeeService:
    """CRUD and statistics for employee accounts."""

    def __init__(self) -> None:
        """Initialize employee service."""
        self.settings = get_settings()
        self.audit = AuditService()

    async def _get(self, db: AsyncSession, employee_id: int) -> User:
        user = await db.get(User, employee_id)
        if user is None:
            raise NotFoundError(f"Employee not found: {employee_id}")
        return user

    async def _ensure_unique(
        self,
        db: AsyncSession,
        username: str | None,
        email: str | None,
        exclude_id: int | None = None,
    ) -> None:
        if username is not None:
            stmt = select(User.id).where(User.username == username)
            if exclude_id is not None:
                stmt = stmt.where(User.id != exclude_id)
            if (await db.execute(stmt)).first() is not None:
                raise ConflictError(f"Username already exists: {username}")
        if email is not None:
            stmt = select(User.id).where(User.email == email)
            if exclude_id is not None:
                stmt = stmt.where(User.id != exclude_id)
            if (await db.execute(stmt)).first() is not None:
                raise ConflictError(f"Email already in use: {email}")

    async def _ensure_store(self, db: AsyncSession, store_id: int | None) -> None:
        if store_id is not None and await db.get(Store, store_id) is None:
            raise NotFoundError(f"Store not found: {store_id}")

    async def list_employees(
        self,
        db: AsyncSession,
        pagination: PaginationParams,
        role: UserRole | None = None,
        store_id: int | None = None,
        department: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> PaginatedResponse[EmployeeDetailResponse]:
        """List employees with filters and pagination.

        Args:
            db: Database session.
            pagination: Page to return.
            role: Filter by role.
            store_id: Filter by primary store.
            department: Filter by department.
            is_active: Filter by active flag.
            search: Case-insensitive substring of name, username or email.

        Returns:
            Paginated employees ordered by name.
        """
        stmt = select(User)
        if role is not None:
            stmt = stmt.where(User.role == role.value)
        if store_id is not None:
            stmt = stmt.where(User.store_id == store_id)
        if department is not None:
            stmt = stmt.where(User.department == department)
        if is_active is not None:
            stmt = stmt.where(User.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    User.name.ilike(pattern),
                    User.username.ilike(pattern),
                    User.email.ilike(pattern),
                )
            )
        stmt = stmt.order_by(User.name, User.id)

        rows, total = await fetch_page(db, stmt, pagination)
        return paginate_response(
            [EmployeeDetailResponse.model_validate(u) for u in rows], total, pagination
        )

    async def get_employee(self, db: AsyncSession, employee_id: int) -> EmployeeDetailResponse:
        """Get one employee.

        Raises:
            NotFoundError: If the employee does not exist.
        """
        return EmployeeDetailResponse.model_validate(await self._get(db, employee_id))

    async def create_employee(
        self,
        db: AsyncSession,
        data: EmployeeCreate,
        actor: User,
        client: ClientInfo,
    ) -> EmployeeDetailResponse:
        """Create an employee account.

        Args:
            db: Database session.
            data: New employee fields.
            actor: Manager or admin performing the action.
            client: Request origin for the audit entry.

        Returns:
            The created employee.

        Raises:
            ForbiddenError: If a manager tries to create an admin.
            ConflictError: If the username or email is taken.
            NotFoundError: If the store does not exist.
        """
        if data.role == UserRole.ADMIN and actor.role != UserRole.ADMIN.value:
            raise ForbiddenError("Only admins can create admin accounts")

        await self._ensure_unique(db, data.username, data.email)
        await self._ensure_store(db, data.store_id)

        fields = data.model_dump(exclude={"password", "role"})
        user = User(
            **fields,
            role=data.role.value,
            password_hash=await hash_password_async(data.password),
            is_active=True,
        )
        if user.hire_date is None:
            user.hire_date = utcnow().astimezone(self.settings.tzinfo).date()

        db.add(user)
        await db.flush()
        await self.audit.record(
            db,
            action="create_employee",
            user_id=actor.id,
            target_type="user",
            target_id=user.id,
            details={"username": user.username, "name": user.name, "role": user.role},
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info("employees.employee_created", employee_id=user.id, role=user.role)
        return EmployeeDetailResponse.model_validate(user)

    async def update_employee(
        self,
        db: AsyncSession,
        employee_id: int,
        data: EmployeeUpdate,
        actor: User,
        client: ClientInfo,
    ) -> EmployeeDetailResponse:
        """Partially update an employee.

        Raises:
            NotFoundError: If the employee or store does not exist.
            ConflictError: If the new username or email is taken.
            ForbiddenError: If a manager edits an admin or grants admin.
        """
        user = await self._get(db, employee_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        for required in ("username", "name", "role", "is_active", "password"):
            if changes.get(required, ...) is None:
                changes.pop(required)

        if actor.role != UserRole.ADMIN.value and (
            user.role == UserRole.ADMIN.value or changes.get("role") == UserRole.ADMIN
        ):
            raise ForbiddenError("Only admins can modify admin accounts")

        await self._ensure_unique(db, changes.get("username"), changes.get("email"), user.id)
        if "store_id" in changes:
            await self._ensure_store(db, changes["store_id"])

        password = changes.pop("password", None)
        if password is not None:
            user.password_hash = await hash_password_async(password)
        if "role" in changes and changes["role"] is not None:
            changes["role"] = UserRole(changes["role"]).value

        for field, value in changes.items():
            setattr(user, field, value)

        if changes.get("is_active") is False:
            await AuthService().revoke_user_sessions(db, user.id)

        await self.audit.record(
            db,
            action="update_employee",
            user_id=actor.id,
            target_type="user",
            target_id=user.id,
            details={
                "fields": sorted(changes) + (["password"] if password is not None else [])
            },
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()

        logger.info("employees.employee_updated", employee_id=user.id, fields=sorted(changes))
        return EmployeeDetailResponse.model_validate(user)

    async def deactivate_employee(
        self,
        db: AsyncSession,
        employee_id: int,
        actor: User,
        client: ClientInfo,
    ) -> None:
        """Soft-delete an employee and revoke their sessions.

        Raises:
            NotFoundError: If the employee does not exist.
            BadRequestError: If an admin tries to deactivate themself.
        """
        user = await self._get(db, employee_id)
        if user.id == actor.id:
            raise BadRequestError("You cannot deactivate your own account")

        user.is_active = False
        await AuthService().revoke_user_sessions(db, user.id)
        await self.audit.record(
            db,
            action="deactivate_employee",
            user_id=actor.id,
            target_type="user",
            target_id=user.id,
            details={"username": user.username, "name": user.name},
            ip_address=client.ip_address,
            user_agent=client.user_agent,
        )
        await db.commit()
        logger.info("employees.employee_deactivated", employee_id=user.id)

    async def get_stats(self, db: AsyncSession) -> EmployeeStats:
        """Headcount overview across roles, stores and departments."""
        total = (await db.execute(select(func.count(User.id)))).scalar_one()
        active = (
            await db.execute(select(func.count(User.id)).where(User.is_active.is_(True)))
        ).scalar_one()

        today = utcnow().astimezone(self.settings.tzinfo).date()
        recent_hires = (
            await db.execute(
                select(func.count(User.id)).where(
                    User.is_active.is_(True),
                    User.hire_date >= today - timedelta(days=RECENT_HIRE_DAYS),
                )
            )
        ).scalar_one()

        average = (
            await db.execute(
                select(func.avg(User.salary)).where(
                    User.is_active.is_(True), User.salary.is_not(None)
                )
            )
        ).scalar_one()

        by_role = dict(
            (
                await db.execute(
                    select(User.role, func.count(User.id))
                    .where(User.is_active.is_(True))
                    .group_by(User.role)
                )
            ).all()
        )
        by_store = dict(
            (
                await db.execute(
                    select(func.coalesce(Store.name, "Unassigned"), func.count(User.id))
                    .select_from(User)
                    .outerjoin(Store, Store.id == User.store_id)
                    .where(User.is_active.is_(True))
                    .group_by(Store.name)
                )
            ).all()
        )
        by_department = dict(
            (
                await db.execute(
                    select(func.coalesce(User.department, "Unassigned"), func.count(User.id))
                    .where(User.is_active.is_(True))
                    .group_by(User.department)
                )
            ).all()
        )

        return EmployeeStats(
            total=total,
            active=active,
            recent_hires=recent_hires,
            average_salary=round_half_up(Decimal(str(average)), 2) if average is not None else None,
            by_role=by_role,
            by_store=by_store,
            by_department=by_department,
        )
