from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.future import select
from sqlalchemy import and_, asc, case, desc, func, or_
from app.core.exceptions import NotFoundError, PersistenceError, ValidationError
from app.core.logging import log_user_action
from app.models.inventory.registry import InventoryItem, get_item_model
from app.models.shared.enums import ItemType, SortOrder
from app.schemas.inventory.catalog_item import CatalogItemCreate, CatalogItemUpdate
from app.schemas.inventory.inventory_response import InventoryMetricsResponse
from app.services.inventory.stock_movement_service import StockMovementService
import logging

logger = logging.getLogger(__name__)

ITEM_SORT_COLUMNS = (
    "created_at",
    "name",
    "sku",
    "category",
    "purchase_price",
    "selling_price",
    "mrp",
    "stock_quantity",
    "reorder_level",
)


# Columns an update may change but never clear
REQUIRED_FIELDS = (
    "name",
    "sku",
    "category",
    "purchase_price",
    "selling_price",
    "mrp",
    "reorder_level",
    "optical_type",
    "prescription_required",
)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user search text matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CatalogService:
    """CRUD for one item catalog. ``stock_quantity`` is changed only through the ledger."""

    def __init__(self, db: AsyncSession, item_type: ItemType):
        self.db = db
        self.item_type = ItemType(item_type)
        self.model = get_item_model(self.item_type)

    async def create_item(self, item_data: CatalogItemCreate, current_user_id: Optional[str] = None) -> InventoryItem:
        """Create an item; opening stock is written to the ledger in the same transaction."""
        await self._ensure_unique_sku(item_data.sku)

        opening_stock = item_data.stock_quantity
        item = self.model(
            **item_data.dict(exclude={"stock_quantity"}),
            stock_quantity=0,
            created_by=current_user_id,
            updated_by=current_user_id,
        )

        try:
            self.db.add(item)
            await self.db.flush()

            if opening_stock:
                ledger = StockMovementService(self.db)
                await ledger.record_opening_stock(self.item_type, item, opening_stock, current_user_id)

            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError(f"Item with SKU {item_data.sku} already exists") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Create {self.item_type.value} item error: {str(e)}")
            raise PersistenceError(f"Failed to create {self.item_type.value} item") from e

        await self.db.refresh(item)
        log_user_action(current_user_id, "create", f"{self.item_type.value}_item", item.id)
        return item

    async def get_item_by_id(self, item_id: int) -> Optional[InventoryItem]:
        result = await self.db.execute(
            select(self.model).where(and_(self.model.id == item_id, self.model.is_deleted == False))
        )
        return result.scalar_one_or_none()

    async def get_items(
        self,
        page_index: int = 1,
        page_size: int = 50,
        search: Optional[str] = None,
        category: Optional[str] = None,
        low_stock_only: bool = False,
        sort_by: str = "created_at",
        sort_order: SortOrder = SortOrder.DESC,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Get items with pagination"""
        query = select(self.model).where(self.model.is_deleted == False)

        if search:
            pattern = f"%{escape_like(search)}%"
            query = query.where(
                or_(*[
                    getattr(self.model, column).ilike(pattern, escape="\\")
                    for column in self.model.__search_columns__
                ])
            )

        if category:
            query = query.where(self.model.category == category)

        for column, value in (filters or {}).items():
            if value is not None:
                query = query.where(getattr(self.model, column) == value)

        if low_stock_only:
            query = query.where(self.model.stock_quantity <= self.model.reorder_level)

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        if sort_by not in ITEM_SORT_COLUMNS:
            sort_by = "created_at"
        direction = asc if sort_order == SortOrder.ASC else desc
        query = query.order_by(direction(getattr(self.model, sort_by)), direction(self.model.id))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(query.offset(skip).limit(page_size))

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all(),
        }

    async def update_item(
        self,
        item_id: int,
        item_data: CatalogItemUpdate,
        current_user_id: Optional[str] = None,
    ) -> InventoryItem:
        item = await self.get_item_by_id(item_id)
        if not item:
            raise NotFoundError("Item not found")

        updates = item_data.dict(exclude_unset=True)
        cleared = [field for field in REQUIRED_FIELDS if field in updates and updates[field] is None]
        if cleared:
            raise ValidationError(f"Fields cannot be empty: {', '.join(cleared)}")
        if updates.get("sku") and updates["sku"] != item.sku:
            await self._ensure_unique_sku(updates["sku"])

        purchase_price = updates.get("purchase_price", item.purchase_price)
        selling_price = updates.get("selling_price", item.selling_price)
        if purchase_price is not None and selling_price is not None and selling_price < purchase_price:
            raise ValidationError("selling_price must be greater than or equal to purchase_price")

        for field, value in updates.items():
            setattr(item, field, value)
        item.updated_by = current_user_id

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Update {self.item_type.value} item {item_id} error: {str(e)}")
            raise PersistenceError(f"Failed to update {self.item_type.value} item") from e

        await self.db.refresh(item)
        log_user_action(current_user_id, "update", f"{self.item_type.value}_item", item.id)
        return item

    async def delete_item(self, item_id: int, current_user_id: Optional[str] = None) -> bool:
        """Soft delete; ledger rows stay readable."""
        item = await self.get_item_by_id(item_id)
        if not item:
            raise NotFoundError("Item not found")

        item.is_deleted = True
        item.updated_by = current_user_id
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Delete {self.item_type.value} item {item_id} error: {str(e)}")
            raise PersistenceError(f"Failed to delete {self.item_type.value} item") from e

        log_user_action(current_user_id, "delete", f"{self.item_type.value}_item", item_id)
        return True

    async def get_metrics(self) -> InventoryMetricsResponse:
        """Aggregate stock figures for the catalog"""
        model = self.model
        result = await self.db.execute(
            select(
                func.count(model.id).label("total_items"),
                func.sum(case((model.stock_quantity <= model.reorder_level, 1), else_=0)).label("low_stock"),
                func.sum(case((model.stock_quantity <= 0, 1), else_=0)).label("out_of_stock"),
                func.sum(
                    case((model.stock_quantity > 0, model.stock_quantity * model.purchase_price), else_=0)
                ).label("inventory_value"),
                func.avg(model.purchase_price).label("average_price"),
            ).where(model.is_deleted == False)
        )
        row = result.first()

        total_items = int(row.total_items or 0)
        low_stock = int(row.low_stock or 0)

        return InventoryMetricsResponse(
            item_type=self.item_type,
            total_items=total_items,
            low_stock_count=low_stock,
            out_of_stock_count=int(row.out_of_stock or 0),
            items_above_reorder=total_items - low_stock,
            total_inventory_value=round(float(row.inventory_value or 0), 2),
            average_purchase_price=round(float(row.average_price or 0), 2),
        )

    async def _ensure_unique_sku(self, sku: str):
        existing = await self.db.execute(select(self.model.id).where(self.model.sku == sku))
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(f"Item with SKU {sku} already exists")
