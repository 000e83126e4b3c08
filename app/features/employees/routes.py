"""API routes for employee management."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ForbiddenError
from app.features.auth.dependencies import AdminUser, Client, CurrentUser, ManagementUser
from app.features.employees.models import UserRole
from app.features.employees.schemas import (
    EmployeeCreate,
    EmployeeDetailResponse,
    EmployeeStats,
    EmployeeUpdate,
)
from app.features.employees.service import EmployeeService
from app.shared.schemas import PaginatedResponse, PaginationParams
from app.shared.utils import pagination_params

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get(
    "",
    response_model=PaginatedResponse[EmployeeDetailResponse],
    summary="List employees",
    description="""
List employees with pagination and filtering. Admin and manager only.

**Filtering**:
- `role`: admin, manager, employee, intern
- `store_id`, `department`, `is_active`
- `search`: case-insensitive match on name, username or email
""",
)
async def list_employees(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(pagination_params)],
    role: UserRole | None = Query(None, description="Filter by role"),
    store_id: int | None = Query(None, description="Filter by primary store"),
    department: str | None = Query(None, description="Filter by department"),
    is_active: bool | None = Query(None, description="Filter by active flag"),
    search: str | None = Query(None, max_length=100, description="Search name/username/email"),
) -> PaginatedResponse[EmployeeDetailResponse]:
    """List employees."""
    return await EmployeeService().list_employees(
        db,
        pagination,
        role=role,
        store_id=store_id,
        department=department,
        is_active=is_active,
        search=search,
    )


@router.get(
    "/stats/overview",
    response_model=EmployeeStats,
    summary="Employee statistics",
)
async def employee_stats(
    _user: ManagementUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> EmployeeStats:
    """Headcount by role, store and department, recent hires and average salary."""
    return await EmployeeService().get_stats(db)


@router.post(
    "",
    response_model=EmployeeDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an employee",
    description="""
Create an employee account. Admin and manager only; only admins may create admins.

Returns **409** when the username or email is already taken.
`hire_date` defaults to today.
""",
)
async def create_employee(
    data: EmployeeCreate,
    user: ManagementUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> EmployeeDetailResponse:
    """Create an employee."""
    return await EmployeeService().create_employee(db, data, actor=user, client=client)


@router.get(
    "/{employee_id}",
    response_model=EmployeeDetailResponse,
    summary="Get an employee",
)
async def get_employee(
    employee_id: int,
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> EmployeeDetailResponse:
    """Get one employee. Staff may only read their own record."""
    if not user.is_management and user.id != employee_id:
        raise ForbiddenError("You can only view your own record")
    return await EmployeeService().get_employee(db, employee_id)


@router.patch(
    "/{employee_id}",
    response_model=EmployeeDetailResponse,
    summary="Update an employee",
)
async def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    user: ManagementUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> EmployeeDetailResponse:
    """Partially update an employee; uniqueness is re-checked."""
    return await EmployeeService().update_employee(
        db, employee_id, data, actor=user, client=client
    )


@router.delete(
    "/{employee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate an employee",
    description="Soft-delete: the account is deactivated and its sessions revoked. Admin only.",
)
async def deactivate_employee(
    employee_id: int,
    user: AdminUser,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Deactivate an employee."""
    await EmployeeService().deactivate_employee(db, employee_id, actor=user, client=client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
