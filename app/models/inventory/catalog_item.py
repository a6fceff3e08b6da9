from sqlalchemy import Column, Integer, String, Text, Numeric


class CatalogItemMixin:
    """Columns shared by every stocked item table.

    ``stock_quantity`` is owned by the stock movement ledger: it is only
    written through ``StockMovementService``.
    """

    # Columns matched by the catalog ``search`` filter
    __search_columns__ = ("name", "sku")

    name = Column(String(200), nullable=False, index=True)
    sku = Column(String(64), unique=True, nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text)
    supplier = Column(String(200))
    hsn_code = Column(String(20))
    image_url = Column(String(255))

    purchase_price = Column(Numeric(10, 2), nullable=False, default=0)
    selling_price = Column(Numeric(10, 2), nullable=False, default=0)
    mrp = Column(Numeric(10, 2), nullable=False, default=0)
    gst_percentage = Column(Numeric(5, 2))

    stock_quantity = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=0)

    @property
    def is_low_stock(self) -> bool:
        return (self.stock_quantity or 0) <= (self.reorder_level or 0)
