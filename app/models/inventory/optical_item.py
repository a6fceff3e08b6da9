from sqlalchemy import Column, String, Integer, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.inventory.catalog_item import CatalogItemMixin
from app.models.shared.enums import OpticalItemType, enum_values

class OpticalItem(CatalogItemMixin, BaseModel):
    __tablename__ = 'optical_items'

    __search_columns__ = ("name", "sku", "brand", "model")

    optical_type = Column(
        SQLEnum(OpticalItemType, name="optical_item_type", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    brand = Column(String(100))
    model = Column(String(100))
    size = Column(String(50))
    color = Column(String(50))
    material = Column(String(100))
    gender = Column(String(20))
    warranty_months = Column(Integer)
