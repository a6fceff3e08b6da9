import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from app.api.dependencies import get_current_user, require_permission
from app.core.config import settings
from app.core.database import get_async_session
from app.core.exceptions import NotFoundError, ValidationError
from app.models.shared.enums import ItemType, OpticalItemType, SortOrder
from app.schemas.auth.user import CurrentUser
from app.schemas.common.pagination import PaginatedResponse
from app.schemas.inventory.inventory_response import InventoryMetricsResponse
from app.schemas.inventory.optical_item import OpticalItem, OpticalItemCreate, OpticalItemUpdate
from app.services.inventory.catalog_service import CatalogService

router = APIRouter()
logger = logging.getLogger(__name__)

RESOURCE = "optical_plan"

@router.post("/", response_model=OpticalItem, status_code=status.HTTP_201_CREATED)
async def create_optical_item(
    item_data: OpticalItemCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(get_current_user),
    _permission = Depends(require_permission(RESOURCE, "create"))
):
    """Create an optical item; a non-zero stock_quantity is recorded as opening stock"""
    try:
        service = CatalogService(db, ItemType.OPTICAL)
        return await service.create_item(item_data, current_user.id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.get("/", response_model=PaginatedResponse[OpticalItem])
async def get_optical_items(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    optical_type: Optional[OpticalItemType] = Query(None),
    low_stock_only: bool = Query(False),
    sort_by: str = Query("created_at"),
    sort_order: SortOrder = Query(SortOrder.DESC),
    db: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission(RESOURCE, "view"))
):
    """Get optical items with optional filters"""
    service = CatalogService(db, ItemType.OPTICAL)
    return await service.get_items(
        page_index=page_index,
        page_size=page_size,
        search=search,
        category=category,
        low_stock_only=low_stock_only,
        sort_by=sort_by,
        sort_order=sort_order,
        filters={"optical_type": optical_type},
    )

@router.get("/metrics", response_model=InventoryMetricsResponse)
async def get_optical_metrics(
    db: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission(RESOURCE, "view"))
):
    """Aggregate optical stock statistics"""
    service = CatalogService(db, ItemType.OPTICAL)
    return await service.get_metrics()

@router.get("/{item_id}", response_model=OpticalItem)
async def get_optical_item(
    item_id: int,
    db: AsyncSession = Depends(get_async_session),
    _permission = Depends(require_permission(RESOURCE, "view"))
):
    service = CatalogService(db, ItemType.OPTICAL)
    item = await service.get_item_by_id(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item

@router.put("/{item_id}", response_model=OpticalItem)
async def update_optical_item(
    item_id: int,
    item_data: OpticalItemUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(get_current_user),
    _permission = Depends(require_permission(RESOURCE, "edit"))
):
    try:
        service = CatalogService(db, ItemType.OPTICAL)
        return await service.update_item(item_id, item_data, current_user.id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Item not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.detail)

@router.delete("/{item_id}")
async def delete_optical_item(
    item_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: CurrentUser = Depends(get_current_user),
    _permission = Depends(require_permission(RESOURCE, "delete"))
):
    """Delete optical item (soft delete)"""
    try:
        service = CatalogService(db, ItemType.OPTICAL)
        await service.delete_item(item_id, current_user.id)
        return {"message": "Item deleted successfully"}
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Item not found")
