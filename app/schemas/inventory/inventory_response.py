from pydantic import BaseModel
from typing import List
from app.models.shared.enums import ItemType

class InventoryMetricsResponse(BaseModel):
    item_type: ItemType
    total_items: int
    low_stock_count: int
    out_of_stock_count: int
    items_above_reorder: int
    total_inventory_value: float
    average_purchase_price: float

class ReconciliationReport(BaseModel):
    item_type: ItemType
    item_id: int
    stock_quantity: int
    ledger_stock: int
    movement_count: int
    inconsistent_movement_ids: List[int] = []
    is_consistent: bool
