"""Adjustment rules shared by the repository and the adjustment form.

Quantities here are always entered as a positive amount plus a direction.
The functions are pure: no database access, no side effects. Expected,
frequent failures come back as message strings instead of exceptions.
"""
from typing import Dict, List, Optional

from stockroom.models.stock import MovementType

SUGGESTED_REASONS: Dict[MovementType, List[str]] = {
    MovementType.RECEIVED: ["Shipment from supplier", "Restock delivery", "Transfer from warehouse"],
    MovementType.SOLD: ["Customer purchase", "Online order fulfillment", "Bulk sale"],
    MovementType.DAMAGED: ["Package damaged in transit", "Product expired", "Display damage",
                           "Customer return - damaged"],
    MovementType.EXPIRED: ["Past expiry date", "Quality issue", "Recalled product"],
    MovementType.CORRECTION: ["Inventory count correction", "System error fix", "Stock audit adjustment"],
    MovementType.RETURNED: ["Customer return - unused", "Store credit return", "Exchange return"],
    MovementType.TRANSFER_OUT: ["Transfer to other store", "Warehouse return", "Regional redistribution"],
    MovementType.TRANSFER_IN: ["Transfer from other store", "Warehouse allocation", "Regional rebalance"],
}


def _is_whole(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate(quantity: int, current_stock: int, is_addition: bool) -> Optional[str]:
    """Return why the adjustment is illegal, or None when it may be submitted."""
    if not _is_whole(quantity):
        return "Quantity must be a whole number"
    if quantity <= 0:
        return "Quantity must be greater than 0"
    if not is_addition and quantity > current_stock:
        return f"Cannot remove {quantity} units (only {current_stock} available)"
    return None


def preview_new_level(current_stock: int, quantity: int, is_addition: bool) -> Optional[int]:
    """Stock level the ledger would end at, or None if it would reject the change."""
    if not _is_whole(quantity) or quantity <= 0:
        return None
    new_level = current_stock + signed_change(quantity, is_addition)
    return new_level if new_level >= 0 else None


def signed_change(quantity: int, is_addition: bool) -> int:
    return quantity if is_addition else -quantity


def validate_change(quantity_change: int) -> Optional[str]:
    # Signed form used by the repository; the balance check belongs to the ledger
    if not _is_whole(quantity_change):
        return "Quantity must be a whole number"
    if quantity_change == 0:
        return "Quantity must be greater than 0"
    return None


def suggested_reasons(movement_type: MovementType) -> List[str]:
    return list(SUGGESTED_REASONS.get(MovementType(movement_type), []))
