from pydantic import BaseModel
from typing import Optional
from datetime import date
from app.schemas.inventory.catalog_item import CatalogItemCreate, CatalogItemInDB, CatalogItemUpdate


class PharmacyFields(BaseModel):
    generic_name: Optional[str] = None
    manufacturer: Optional[str] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    prescription_required: bool = False
    dosage_form: Optional[str] = None
    strength: Optional[str] = None
    storage_instructions: Optional[str] = None


class PharmacyItemCreate(CatalogItemCreate, PharmacyFields):
    pass


class PharmacyItemUpdate(CatalogItemUpdate):
    generic_name: Optional[str] = None
    manufacturer: Optional[str] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    prescription_required: Optional[bool] = None
    dosage_form: Optional[str] = None
    strength: Optional[str] = None
    storage_instructions: Optional[str] = None


class PharmacyItem(CatalogItemInDB, PharmacyFields):
    pass
