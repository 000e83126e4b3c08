"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import get_settings
from app.core.database import init_db
from app.core.exceptions import register_exception_handlers
from app.core.health import router as health_router
from app.core.logging import configure_logging, get_logger
from app.core.middleware import RequestIdMiddleware
from app.features.anomalies.routes import router as anomalies_router
from app.features.attendance.routes import router as attendance_router
from app.features.audit.routes import router as audit_router
from app.features.auth.routes import router as auth_router
from app.features.dashboard.routes import router as dashboard_router
from app.features.employees.routes import router as employees_router
from app.features.inventory.routes import inventory_router, products_router
from app.features.maintenance.routes import router as maintenance_router
from app.features.notifications.telegram import get_notifier
from app.features.orders.routes import router as orders_router
from app.features.revenue.routes import router as revenue_router
from app.features.stores.routes import admin_router as stores_admin_router
from app.features.stores.routes import router as stores_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown.

    Args:
        _app: FastAPI application instance (unused, required by lifespan protocol).

    Yields:
        None after startup, cleans up on shutdown.
    """
    settings = get_settings()

    # Startup
    configure_logging()
    logger.info(
        "app.startup_started",
        app_name=settings.app_name,
        app_env=settings.app_env,
        debug=settings.debug,
        notifications_enabled=settings.telegram_enabled,
    )
    if settings.database_auto_create:
        await init_db()

    yield

    # Shutdown
    await get_notifier().close()
    logger.info("app.shutdown_completed")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Multi-store employee management: GPS attendance, daily revenue and bonus, "
            "inventory and ordering with delivery thresholds, maintenance requests "
            "and Telegram notifications"
        ),
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Middleware (order matters - first added = outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    # Exception handlers
    register_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(employees_router)
    app.include_router(stores_router)
    app.include_router(stores_admin_router)
    app.include_router(attendance_router)
    app.include_router(revenue_router)
    app.include_router(products_router)
    app.include_router(inventory_router)
    app.include_router(orders_router)
    app.include_router(anomalies_router)
    app.include_router(maintenance_router)
    app.include_router(dashboard_router)
    app.include_router(audit_router)

    return app


app = create_app()
