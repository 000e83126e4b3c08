"""Product catalog, stock movements and stock alerts."""

from app.features.inventory.models import InventoryTransaction, Product, StockLevel, TransactionType

__all__ = ["InventoryTransaction", "Product", "StockLevel", "TransactionType"]
