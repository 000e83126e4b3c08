"""API routes for login, token verification and logout."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.features.auth.dependencies import Client, CurrentUser, get_bearer_token
from app.features.auth.schemas import (
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    VerifyResponse,
)
from app.features.auth.service import AuthService
from app.features.employees.schemas import UserResponse
from app.features.notifications.telegram import TelegramNotifier, get_notifier
from app.features.stores.models import Store

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in with username and password",
    description="""
Exchange credentials for a bearer token valid for 24 hours (configurable).

Unknown users, inactive accounts and wrong passwords all return **401**
with the same message.

`redirect_url` is `/admin` for admins and managers, `/employee` otherwise.
Each login is written to the audit log and reported to the boss chat.
""",
)
async def login(
    request: LoginRequest,
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[TelegramNotifier, Depends(get_notifier)],
) -> LoginResponse:
    """Authenticate and issue a token."""
    service = AuthService()
    return await service.login(db=db, request=request, client=client, notifier=notifier)


@router.get("/verify", response_model=VerifyResponse, summary="Check a bearer token")
async def verify(user: CurrentUser) -> VerifyResponse:
    """Return the token owner if the token is valid (401 otherwise)."""
    return VerifyResponse(valid=True, user=UserResponse.model_validate(user))


@router.get("/profile", response_model=ProfileResponse, summary="Current user's profile")
async def profile(
    user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Return the caller's profile with their store name."""
    store = await db.get(Store, user.store_id) if user.store_id is not None else None
    base = UserResponse.model_validate(user)
    return ProfileResponse(**base.model_dump(), store_name=store.name if store else None)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke the current token",
)
async def logout(
    _user: CurrentUser,
    token: Annotated[str, Depends(get_bearer_token)],
    client: Client,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Revoke the bearer token used for this request."""
    await AuthService().logout(db, token, client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
