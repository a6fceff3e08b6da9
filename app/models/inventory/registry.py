"""Maps an ``ItemType`` to the table that stores that kind of item.

The ledger and catalog services resolve models only through here, so every
item kind shares one implementation.
"""
from typing import Dict, Type, Union

from app.models.inventory.optical_item import OpticalItem
from app.models.inventory.pharmacy_item import PharmacyItem
from app.models.shared.enums import ItemType

InventoryItem = Union[PharmacyItem, OpticalItem]

ITEM_MODELS: Dict[ItemType, Type[InventoryItem]] = {
    ItemType.PHARMACY: PharmacyItem,
    ItemType.OPTICAL: OpticalItem,
}


def get_item_model(item_type: ItemType) -> Type[InventoryItem]:
    try:
        return ITEM_MODELS[ItemType(item_type)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown item type: {item_type}")
