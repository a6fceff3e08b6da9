from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

PRICE_FIELDS = ('purchase_price', 'selling_price', 'mrp', 'gst_percentage')


def _non_negative_price(v):
    if v is not None and v < 0:
        raise ValueError('Price cannot be negative')
    return v


class CatalogItemBase(BaseModel):
    """Fields shared by pharmacy and optical items."""
    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=64)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    supplier: Optional[str] = None
    hsn_code: Optional[str] = None
    image_url: Optional[str] = None
    purchase_price: Decimal = Decimal("0")
    selling_price: Decimal = Decimal("0")
    mrp: Decimal = Decimal("0")
    gst_percentage: Optional[Decimal] = None
    reorder_level: int = Field(0, ge=0)

    @validator(*PRICE_FIELDS)
    def validate_prices(cls, v):
        return _non_negative_price(v)


class CatalogItemCreate(CatalogItemBase):
    # Opening stock, recorded as the item's first ledger movement
    stock_quantity: int = Field(0, ge=0)

    @validator('selling_price')
    def validate_selling_price(cls, v, values):
        purchase_price = values.get('purchase_price')
        if purchase_price is not None and v < purchase_price:
            raise ValueError('selling_price must be greater than or equal to purchase_price')
        return v


class CatalogItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    sku: Optional[str] = Field(None, min_length=1, max_length=64)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    supplier: Optional[str] = None
    hsn_code: Optional[str] = None
    image_url: Optional[str] = None
    purchase_price: Optional[Decimal] = None
    selling_price: Optional[Decimal] = None
    mrp: Optional[Decimal] = None
    gst_percentage: Optional[Decimal] = None
    reorder_level: Optional[int] = Field(None, ge=0)

    @validator(*PRICE_FIELDS)
    def validate_prices(cls, v):
        return _non_negative_price(v)

    class Config:
        # stock_quantity is not editable here
        extra = "forbid"


class CatalogItemInDB(CatalogItemBase):
    id: int
    stock_quantity: int
    is_low_stock: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True
