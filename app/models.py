"""Import every ORM model so Base.metadata knows all tables."""

from app.features.attendance.models import Attendance
from app.features.audit.models import SystemLog
from app.features.auth.models import AuthSession
from app.features.employees.models import User
from app.features.inventory.models import InventoryTransaction, Product
from app.features.maintenance.models import MaintenanceRequest
from app.features.orders.models import Order
from app.features.revenue.models import RevenueRecord
from app.features.stores.models import Store

__all__ = [
    "Attendance",
    "AuthSession",
    "InventoryTransaction",
    "MaintenanceRequest",
    "Order",
    "Product",
    "RevenueRecord",
    "Store",
    "SystemLog",
    "User",
]
