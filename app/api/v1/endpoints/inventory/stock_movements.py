from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import date
from app.api.dependencies import get_current_user, get_permission_checker_dependency, require_any_permission
from app.auth.permissions import PermissionChecker
from app.core.config import settings
from app.core.database import get_async_session
from app.core.exceptions import InsufficientStockError, NotFoundError, ValidationError
from app.models.shared.enums import ItemType, SortOrder, StockMovementType
from app.schemas.auth.user import CurrentUser
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.inventory.inventory_response import ReconciliationReport
from app.schemas.inventory.stock_movement import (
    StockAdjustmentResponse,
    StockMovement,
    StockMovementCreate,
    StockMovementReverse,
)
from app.services.inventory.stock_movement_service import StockMovementService

router = APIRouter()

VIEW_ANY_ITEM = (("pharmacy", "view"), ("optical_plan", "view"))

@router.post("/", response_model=StockAdjustmentResponse, status_code=status.HTTP_201_CREATED)
async def create_stock_movement(
    movement_data: StockMovementCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(get_current_user),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Record a stock movement and apply it to the item's stock"""
    checker.require_item_access(movement_data.item_type, "create")
    try:
        service = StockMovementService(db)
        return await service.create_stock_movement(movement_data, current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.detail)
    except InsufficientStockError as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.get("/", response_model=PaginatedResponse[StockMovement])
async def get_stock_movements(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    item_type: Optional[ItemType] = Query(None),
    item_id: Optional[int] = Query(None),
    movement_type: Optional[StockMovementType] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    sort_by: str = Query("movement_date"),
    sort_order: SortOrder = Query(SortOrder.DESC),
    db: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency),
    _permission = Depends(require_any_permission(*VIEW_ANY_ITEM))
):
    """Get all stock movements with optional filters"""
    if item_type:
        checker.require_item_access(item_type, "view")
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must be on or before date_to")

    service = StockMovementService(db)
    return await service.get_stock_movements(
        page_index=page_index,
        page_size=page_size,
        item_type=item_type,
        item_id=item_id,
        movement_type=movement_type,
        date_from=date_from,
        date_to=date_to,
        sort_by=sort_by,
        sort_order=sort_order,
    )

@router.get("/history/{item_type}/{item_id}", response_model=List[StockMovement])
async def get_item_movement_history(
    item_type: ItemType,
    item_id: int,
    limit: Optional[int] = Query(None, ge=1, le=settings.STOCK_HISTORY_LIMIT),
    db: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Movement history for one item, most recent first"""
    checker.require_item_access(item_type, "view")
    try:
        service = StockMovementService(db)
        return await service.get_item_movement_history(item_type, item_id, limit)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.detail)

@router.get("/reconcile/{item_type}/{item_id}", response_model=ReconciliationReport)
async def reconcile_item_stock(
    item_type: ItemType,
    item_id: int,
    db: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Compare catalog stock with the stock rebuilt from the item's ledger"""
    checker.require_item_access(item_type, "view")
    try:
        service = StockMovementService(db)
        return await service.reconcile_item(item_type, item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.detail)

@router.get("/{movement_id}", response_model=StockMovement)
async def get_stock_movement(
    movement_id: int,
    db: AsyncSession = Depends(get_async_session),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Get stock movement by ID"""
    service = StockMovementService(db)
    movement = await service.get_stock_movement_by_id(movement_id)
    if not movement:
        raise HTTPException(status_code=404, detail="Stock movement not found")
    checker.require_item_access(movement.item_type, "view")
    return movement

@router.post("/{movement_id}/reverse", response_model=StockAdjustmentResponse, status_code=status.HTTP_201_CREATED)
async def reverse_stock_movement(
    movement_id: int,
    reverse_data: Optional[StockMovementReverse] = None,
    db: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(get_current_user),
    checker: PermissionChecker = Depends(get_permission_checker_dependency)
):
    """Cancel a movement with a compensating adjustment; the original row is kept"""
    service = StockMovementService(db)
    movement = await service.get_stock_movement_by_id(movement_id)
    if not movement:
        raise HTTPException(status_code=404, detail="Stock movement not found")
    checker.require_item_access(movement.item_type, "edit")

    try:
        return await service.reverse_stock_movement(movement_id, reverse_data or StockMovementReverse(), current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.detail)
    except InsufficientStockError as e:
        raise HTTPException(status_code=400, detail=e.detail)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)
