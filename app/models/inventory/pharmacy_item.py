from sqlalchemy import Column, String, Text, Boolean, Date
from app.db.base import BaseModel
from app.models.inventory.catalog_item import CatalogItemMixin

class PharmacyItem(CatalogItemMixin, BaseModel):
    __tablename__ = 'pharmacy_items'

    __search_columns__ = ("name", "sku", "generic_name", "manufacturer", "batch_number")

    generic_name = Column(String(200))
    manufacturer = Column(String(200))
    batch_number = Column(String(50))
    expiry_date = Column(Date)
    prescription_required = Column(Boolean, default=False, nullable=False)
    dosage_form = Column(String(50))   # tablet, drops, ointment ...
    strength = Column(String(50))
    storage_instructions = Column(Text)
