from app.models.inventory.pharmacy_item import PharmacyItem
from app.models.inventory.optical_item import OpticalItem
from app.models.inventory.stock_movement import StockMovement


__all__ = [
    "PharmacyItem",
    "OpticalItem",
    "StockMovement",
]
