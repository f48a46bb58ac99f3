# stockroom/schemas/stock.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import List, Optional

from stockroom.models.stock import MovementType

# Domain record of one ledger entry
class StockMovementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    product_id: int
    quantity_change: int
    balance_after: int
    movement_type: MovementType
    reason: Optional[str] = None
    staff_member: Optional[str] = None
    timestamp: datetime

# Schema for a signed stock adjustment request
class StockAdjustmentCreate(BaseModel):
    product_id: int
    quantity_change: int
    movement_type: MovementType
    reason: Optional[str] = None
    staff_member: Optional[str] = None

class StockAdjustmentResult(BaseModel):
    product_id: int
    new_stock_qty: int

# Pre-submit check for the adjustment form: quantity is always positive,
# direction comes from is_addition
class AdjustmentPreviewRequest(BaseModel):
    product_id: int
    quantity: int
    is_addition: bool = True

class AdjustmentPreview(BaseModel):
    valid: bool
    message: Optional[str] = None
    current_stock: int
    new_level: Optional[int] = None

class StockMovementList(BaseModel):
    items: List[StockMovementOut]
    total: int

class SuggestedReasons(BaseModel):
    movement_type: MovementType
    display_name: str
    is_addition: bool
    reasons: List[str] = Field(default_factory=list)
