from pydantic import BaseModel
from typing import Optional
from app.models.shared.enums import OpticalItemType
from app.schemas.inventory.catalog_item import CatalogItemCreate, CatalogItemInDB, CatalogItemUpdate


class OpticalFields(BaseModel):
    optical_type: OpticalItemType
    brand: Optional[str] = None
    model: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    gender: Optional[str] = None
    warranty_months: Optional[int] = None


class OpticalItemCreate(CatalogItemCreate, OpticalFields):
    pass


class OpticalItemUpdate(CatalogItemUpdate):
    optical_type: Optional[OpticalItemType] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    gender: Optional[str] = None
    warranty_months: Optional[int] = None


class OpticalItem(CatalogItemInDB, OpticalFields):
    pass
