"""Stock ledger rules, free of any database access.

Every function here works on plain values or on any object exposing the
``movement_type``/``quantity``/``previous_stock``/``new_stock`` attributes of
a ``StockMovement`` row, so the same rules drive the write path, the history
view and reconciliation.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from app.core.exceptions import InvalidQuantityError
from app.models.shared.enums import (  # noqa: F401  re-exported ledger rules
    StockMovementType,
    movement_direction,
    signed_delta,
)

TWO_PLACES = Decimal("0.01")


def validate_quantity(movement_type: StockMovementType, quantity) -> int:
    """Return ``quantity`` as an int or raise ``InvalidQuantityError``.

    Adjustments take a signed quantity; every other type takes a positive
    magnitude and the sign comes from the type.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantityError("Quantity must be a non-zero integer")
    if quantity == 0:
        raise InvalidQuantityError("Quantity must be a non-zero integer")
    if StockMovementType(movement_type) != StockMovementType.ADJUSTMENT and quantity < 0:
        raise InvalidQuantityError(
            f"Quantity for {StockMovementType(movement_type).value} must be positive"
        )
    return quantity


def compute_total_value(unit_price: Optional[Decimal], quantity: int) -> Optional[Decimal]:
    if unit_price is None:
        return None
    return (Decimal(unit_price) * abs(quantity)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def replay_stock(movements: Iterable, baseline: int = 0) -> int:
    """Fold the ledger into a stock level."""
    stock = baseline
    for movement in movements:
        stock += signed_delta(movement.movement_type, movement.quantity)
    return stock


def is_consistent(movement) -> bool:
    """True when the recorded before/after pair matches the movement's delta."""
    expected = signed_delta(movement.movement_type, movement.quantity)
    return movement.new_stock - movement.previous_stock == expected


def find_inconsistent_movements(movements: Iterable) -> List:
    return [movement for movement in movements if not is_consistent(movement)]
