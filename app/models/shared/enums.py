from enum import Enum

# Enums
class ItemType(str, Enum):
    PHARMACY = "pharmacy"
    OPTICAL = "optical"

class StockMovementType(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"      # quantity carries its own sign
    RETURN = "return"
    EXPIRED = "expired"
    DAMAGED = "damaged"

class MovementDirection(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"

class OpticalItemType(str, Enum):
    MEDICINE = "medicine"
    FRAMES = "frames"
    LENSES = "lenses"
    ACCESSORIES = "accessories"
    EQUIPMENT = "equipment"
    CONSUMABLES = "consumables"

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


def enum_values(enum_cls):
    """Persist enum values (not member names) in the database."""
    return [member.value for member in enum_cls]


# Movement types whose quantity is a magnitude that adds to stock
INCREASING_TYPES = frozenset({StockMovementType.PURCHASE, StockMovementType.RETURN})
# Movement types whose quantity is a magnitude that removes stock
DECREASING_TYPES = frozenset({
    StockMovementType.SALE,
    StockMovementType.EXPIRED,
    StockMovementType.DAMAGED,
})


def signed_delta(movement_type: StockMovementType, quantity: int) -> int:
    """Effect of one movement on stock."""
    movement_type = StockMovementType(movement_type)
    if movement_type == StockMovementType.ADJUSTMENT:
        return quantity
    if movement_type in INCREASING_TYPES:
        return abs(quantity)
    if movement_type in DECREASING_TYPES:
        return -abs(quantity)
    raise ValueError(f"Unknown movement type: {movement_type}")


def movement_direction(movement_type: StockMovementType, quantity: int) -> MovementDirection:
    if signed_delta(movement_type, quantity) >= 0:
        return MovementDirection.INCREASE
    return MovementDirection.DECREASE
