from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime, date
from decimal import Decimal
from app.models.shared.enums import ItemType, MovementDirection, StockMovementType

class StockMovementBase(BaseModel):
    item_type: ItemType
    item_id: int
    movement_type: StockMovementType
    movement_date: date = Field(default_factory=date.today)
    quantity: int
    unit_price: Optional[Decimal] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    supplier: Optional[str] = Field(None, max_length=200)
    customer_name: Optional[str] = Field(None, max_length=200)
    invoice_id: Optional[str] = Field(None, max_length=64)
    batch_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None

class StockMovementCreate(StockMovementBase):

    @validator('quantity')
    def validate_quantity(cls, v, values):
        if v == 0:
            raise ValueError('Quantity must be a non-zero integer')
        movement_type = values.get('movement_type')
        if movement_type is not None and movement_type != StockMovementType.ADJUSTMENT and v < 0:
            raise ValueError(f'Quantity for {movement_type.value} must be positive')
        return v

    @validator('unit_price')
    def validate_unit_price(cls, v):
        if v is not None and v < 0:
            raise ValueError('Unit price cannot be negative')
        return v

class StockMovementReverse(BaseModel):
    movement_date: date = Field(default_factory=date.today)
    notes: Optional[str] = None

class StockMovement(StockMovementBase):
    id: int
    item_name: str
    total_value: Optional[Decimal] = None
    previous_stock: int
    new_stock: int
    direction: MovementDirection
    user_id: Optional[str] = None
    reversal_of_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ItemStockView(BaseModel):
    id: int
    item_type: ItemType
    name: str
    sku: str
    stock_quantity: int
    reorder_level: int
    is_low_stock: bool

class StockAdjustmentResponse(BaseModel):
    movement: StockMovement
    item: ItemStockView
    warnings: List[str] = []
