from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Index, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import ItemType, StockMovementType, enum_values, movement_direction

class StockMovement(BaseModel):
    """One immutable ledger row. Corrections are written as new rows."""
    __tablename__ = 'stock_movements'

    item_type = Column(SQLEnum(ItemType, name="inventory_item_type", values_callable=enum_values), nullable=False)
    # Points into pharmacy_items or optical_items depending on item_type
    item_id = Column(Integer, nullable=False)
    item_name = Column(String(200), nullable=False)  # snapshot at write time

    movement_type = Column(
        SQLEnum(StockMovementType, name="stock_movement_type", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    movement_date = Column(Date, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2))
    total_value = Column(Numeric(12, 2))
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)

    reference_number = Column(String(100))
    supplier = Column(String(200))
    customer_name = Column(String(200))
    invoice_id = Column(String(64))
    batch_number = Column(String(50))
    notes = Column(Text)
    user_id = Column(String(64))

    reversal_of_id = Column(Integer, ForeignKey('stock_movements.id'), unique=True, nullable=True)

    __table_args__ = (
        Index("ix_stock_movements_item", "item_type", "item_id", "movement_date"),
    )

    @property
    def direction(self):
        """Increase/decrease classification used by the history view."""
        return movement_direction(self.movement_type, self.quantity)
