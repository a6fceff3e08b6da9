from fastapi import APIRouter
from app.api.v1.endpoints.inventory import optical_items, pharmacy_items, stock_movements

api_router = APIRouter()

# Inventory routes
api_router.include_router(pharmacy_items.router, prefix="/inventory/pharmacy-item", tags=["Inventory"])
api_router.include_router(optical_items.router, prefix="/inventory/optical-item", tags=["Inventory"])
api_router.include_router(stock_movements.router, prefix="/inventory/stock-movement", tags=["Inventory"])
