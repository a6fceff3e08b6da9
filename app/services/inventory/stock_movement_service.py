from typing import List, Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.future import select
from sqlalchemy import and_, asc, desc, func, update
from app.core.config import settings
from app.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.core.logging import log_user_action
from app.models.inventory.registry import InventoryItem, get_item_model
from app.models.inventory.stock_movement import StockMovement
from app.models.shared.enums import ItemType, SortOrder, StockMovementType
from app.schemas.inventory.inventory_response import ReconciliationReport
from app.schemas.inventory.stock_movement import (
    ItemStockView,
    StockAdjustmentResponse,
    StockMovement as StockMovementSchema,
    StockMovementCreate,
    StockMovementReverse,
)
from app.services.inventory.stock_ledger import (
    compute_total_value,
    find_inconsistent_movements,
    replay_stock,
    signed_delta,
    validate_quantity,
)
from datetime import date
import logging

logger = logging.getLogger(__name__)

MOVEMENT_SORT_COLUMNS = {
    "movement_date": StockMovement.movement_date,
    "created_at": StockMovement.created_at,
    "movement_type": StockMovement.movement_type,
    "item_name": StockMovement.item_name,
    "quantity": StockMovement.quantity,
    "total_value": StockMovement.total_value,
}

# Fields copied verbatim from the request onto the ledger row
PROVENANCE_FIELDS = (
    "reference_number",
    "supplier",
    "customer_name",
    "invoice_id",
    "batch_number",
    "notes",
)


class StockMovementService:
    def __init__(self, db: AsyncSession, allow_negative_stock: Optional[bool] = None):
        self.db = db
        self.allow_negative_stock = (
            settings.ALLOW_NEGATIVE_STOCK if allow_negative_stock is None else allow_negative_stock
        )

    async def create_stock_movement(
        self,
        movement_data: StockMovementCreate,
        current_user_id: Optional[str] = None,
    ) -> StockAdjustmentResponse:
        """Record one movement and apply it to the item's stock in a single transaction."""

        quantity = validate_quantity(movement_data.movement_type, movement_data.quantity)
        if movement_data.unit_price is not None and movement_data.unit_price < 0:
            raise ValidationError("Unit price cannot be negative")

        item = await self._get_item(movement_data.item_type, movement_data.item_id)

        try:
            movement = await self._apply_movement(
                item_type=movement_data.item_type,
                item=item,
                movement_type=movement_data.movement_type,
                quantity=quantity,
                movement_date=movement_data.movement_date,
                unit_price=movement_data.unit_price,
                user_id=current_user_id,
                **{field: getattr(movement_data, field) for field in PROVENANCE_FIELDS},
            )
            await self.db.commit()
        except InsufficientStockError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Stock movement write failed for {movement_data.item_type.value} item {movement_data.item_id}: {str(e)}")
            raise PersistenceError("Failed to record stock movement") from e

        await self.db.refresh(movement)
        await self.db.refresh(item)
        log_user_action(current_user_id, f"stock {movement.movement_type.value}", "stock_movement", movement.id)

        return StockAdjustmentResponse(
            movement=StockMovementSchema.model_validate(movement),
            item=self._stock_view(movement_data.item_type, item),
            warnings=self._stock_warnings(item),
        )

    async def record_opening_stock(
        self,
        item_type: ItemType,
        item: InventoryItem,
        quantity: int,
        current_user_id: Optional[str] = None,
    ) -> StockMovement:
        """Write the opening balance of a new item as its first ledger row.

        Does not commit; the caller owns the transaction.
        """
        return await self._apply_movement(
            item_type=item_type,
            item=item,
            movement_type=StockMovementType.ADJUSTMENT,
            quantity=validate_quantity(StockMovementType.ADJUSTMENT, quantity),
            movement_date=date.today(),
            unit_price=item.purchase_price,
            user_id=current_user_id,
            notes="Opening stock",
        )

    async def reverse_stock_movement(
        self,
        movement_id: int,
        reverse_data: StockMovementReverse,
        current_user_id: Optional[str] = None,
    ) -> StockAdjustmentResponse:
        """Cancel a movement by writing a compensating adjustment."""
        original = await self.get_stock_movement_by_id(movement_id)
        if not original:
            raise NotFoundError("Stock movement not found")

        existing = await self.db.execute(
            select(StockMovement.id).where(StockMovement.reversal_of_id == movement_id)
        )
        if existing.scalar_one_or_none() is not None:
            raise ValidationError("Stock movement has already been reversed")

        item_type = ItemType(original.item_type)
        item = await self._get_item(item_type, original.item_id)

        try:
            reversal = await self._apply_movement(
                item_type=item_type,
                item=item,
                movement_type=StockMovementType.ADJUSTMENT,
                quantity=-signed_delta(original.movement_type, original.quantity),
                movement_date=reverse_data.movement_date,
                unit_price=original.unit_price,
                user_id=current_user_id,
                reference_number=original.reference_number,
                batch_number=original.batch_number,
                notes=reverse_data.notes or f"Reversal of movement #{original.id}",
                reversal_of_id=original.id,
            )
            await self.db.commit()
        except InsufficientStockError:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            # reversal_of_id is unique: a concurrent reversal won
            await self.db.rollback()
            raise ValidationError("Stock movement has already been reversed") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Reversal of stock movement {movement_id} failed: {str(e)}")
            raise PersistenceError("Failed to reverse stock movement") from e

        await self.db.refresh(reversal)
        await self.db.refresh(item)
        log_user_action(current_user_id, "stock reversal", "stock_movement", reversal.id)

        return StockAdjustmentResponse(
            movement=StockMovementSchema.model_validate(reversal),
            item=self._stock_view(item_type, item),
            warnings=self._stock_warnings(item),
        )

    async def get_stock_movements(
        self,
        page_index: int = 1,
        page_size: int = 50,
        item_type: Optional[ItemType] = None,
        item_id: Optional[int] = None,
        movement_type: Optional[StockMovementType] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        sort_by: str = "movement_date",
        sort_order: SortOrder = SortOrder.DESC,
    ) -> Dict[str, Any]:
        """Get stock movements with optional filters and pagination"""

        conditions = []
        if item_type:
            conditions.append(StockMovement.item_type == item_type)
        if item_id:
            conditions.append(StockMovement.item_id == item_id)
        if movement_type:
            conditions.append(StockMovement.movement_type == movement_type)
        if date_from:
            conditions.append(StockMovement.movement_date >= date_from)
        if date_to:
            conditions.append(StockMovement.movement_date <= date_to)

        query = select(StockMovement)
        if conditions:
            query = query.where(and_(*conditions))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        sort_column = MOVEMENT_SORT_COLUMNS.get(sort_by, StockMovement.movement_date)
        direction = asc if sort_order == SortOrder.ASC else desc
        query = query.order_by(direction(sort_column), direction(StockMovement.id))

        skip = (page_index - 1) * page_size
        result = await self.db.execute(query.offset(skip).limit(page_size))

        return {
            "page_index": page_index,
            "page_size": page_size,
            "count": total,
            "data": result.scalars().all(),
        }

    async def get_stock_movement_by_id(self, movement_id: int) -> Optional[StockMovement]:
        result = await self.db.execute(
            select(StockMovement).where(StockMovement.id == movement_id)
        )
        return result.scalar_one_or_none()

    async def get_item_movement_history(
        self,
        item_type: ItemType,
        item_id: int,
        limit: Optional[int] = None,
    ) -> List[StockMovement]:
        """Movement history for one item, most recent first"""

        await self._get_item(item_type, item_id, include_deleted=True)

        result = await self.db.execute(
            select(StockMovement)
            .where(and_(StockMovement.item_type == item_type, StockMovement.item_id == item_id))
            .order_by(desc(StockMovement.movement_date), desc(StockMovement.id))
            .limit(limit or settings.STOCK_HISTORY_LIMIT)
        )
        return result.scalars().all()

    async def reconcile_item(self, item_type: ItemType, item_id: int) -> ReconciliationReport:
        """Fold the item's ledger from zero and compare it with the catalog stock."""
        item = await self._get_item(item_type, item_id, include_deleted=True)

        result = await self.db.execute(
            select(StockMovement)
            .where(and_(StockMovement.item_type == item_type, StockMovement.item_id == item_id))
            .order_by(asc(StockMovement.movement_date), asc(StockMovement.id))
        )
        movements = result.scalars().all()

        ledger_stock = replay_stock(movements)
        inconsistent = find_inconsistent_movements(movements)

        if inconsistent or ledger_stock != item.stock_quantity:
            logger.warning(
                f"Ledger mismatch for {ItemType(item_type).value} item {item_id}: "
                f"catalog={item.stock_quantity} ledger={ledger_stock} "
                f"inconsistent_rows={[m.id for m in inconsistent]}"
            )

        return ReconciliationReport(
            item_type=item_type,
            item_id=item_id,
            stock_quantity=item.stock_quantity,
            ledger_stock=ledger_stock,
            movement_count=len(movements),
            inconsistent_movement_ids=[m.id for m in inconsistent],
            is_consistent=not inconsistent and ledger_stock == item.stock_quantity,
        )

    async def _apply_movement(
        self,
        item_type: ItemType,
        item: InventoryItem,
        movement_type: StockMovementType,
        quantity: int,
        movement_date: date,
        unit_price=None,
        user_id: Optional[str] = None,
        **fields,
    ) -> StockMovement:
        """Increment stock server-side and append the matching ledger row.

        The new stock comes back from the UPDATE itself, so concurrent writers
        never overwrite each other's effect on ``stock_quantity``.
        """
        item_model = get_item_model(item_type)
        delta = signed_delta(movement_type, quantity)

        stmt = (
            update(item_model)
            .where(item_model.id == item.id)
            .values(stock_quantity=item_model.stock_quantity + delta, updated_by=user_id)
            .returning(item_model.stock_quantity)
            .execution_options(synchronize_session=False)
        )
        if delta < 0 and not self.allow_negative_stock:
            stmt = stmt.where(item_model.stock_quantity + delta >= 0)

        new_stock = (await self.db.execute(stmt)).scalar_one_or_none()
        if new_stock is None:
            await self.db.refresh(item, ["stock_quantity"])
            raise InsufficientStockError(
                f"Insufficient stock. Available: {item.stock_quantity}, Requested: {abs(delta)}",
                available_stock=item.stock_quantity,
            )

        movement = StockMovement(
            item_type=item_type,
            item_id=item.id,
            item_name=item.name,
            movement_type=movement_type,
            movement_date=movement_date,
            quantity=quantity,
            unit_price=unit_price,
            total_value=compute_total_value(unit_price, quantity),
            previous_stock=new_stock - delta,
            new_stock=new_stock,
            user_id=user_id,
            created_by=user_id,
            **fields,
        )
        self.db.add(movement)
        await self.db.flush()
        return movement

    async def _get_item(self, item_type: ItemType, item_id: int, include_deleted: bool = False) -> InventoryItem:
        item_model = get_item_model(item_type)
        query = select(item_model).where(item_model.id == item_id)
        if not include_deleted:
            query = query.where(item_model.is_deleted == False)
        item = (await self.db.execute(query)).scalar_one_or_none()
        if not item:
            raise NotFoundError("Item not found")
        return item

    @staticmethod
    def _stock_view(item_type: ItemType, item: InventoryItem) -> ItemStockView:
        return ItemStockView(
            id=item.id,
            item_type=item_type,
            name=item.name,
            sku=item.sku,
            stock_quantity=item.stock_quantity,
            reorder_level=item.reorder_level,
            is_low_stock=item.is_low_stock,
        )

    @staticmethod
    def _stock_warnings(item: InventoryItem) -> List[str]:
        if item.stock_quantity < 0:
            return [f"Stock for {item.name} is negative ({item.stock_quantity})"]
        if item.stock_quantity <= item.reorder_level:
            return [f"Stock for {item.name} is at or below reorder level ({item.stock_quantity} <= {item.reorder_level})"]
        return []
