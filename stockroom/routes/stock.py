# stockroom/routes/stock.py
from fastapi import APIRouter, Depends, Query
from typing import Optional

from stockroom.dependencies import get_repository, parse_dt, unwrap
from stockroom.models.stock import MovementType
from stockroom.repository import InventoryRepository
from stockroom.validation import preview_new_level, suggested_reasons, validate
import stockroom.schemas.stock as stock_schemas

router = APIRouter(prefix="/stock", tags=["Stock"])


@router.post("/adjust", response_model=stock_schemas.StockAdjustmentResult)
def adjust_stock(
    payload: stock_schemas.StockAdjustmentCreate,
    repository: InventoryRepository = Depends(get_repository),
):
    new_qty = unwrap(repository.adjust_stock(
        payload.product_id, payload.quantity_change, payload.movement_type,
        reason=payload.reason, staff_member=payload.staff_member,
    ))
    return {"product_id": payload.product_id, "new_stock_qty": new_qty}


@router.post("/preview", response_model=stock_schemas.AdjustmentPreview)
def preview_adjustment(
    payload: stock_schemas.AdjustmentPreviewRequest,
    repository: InventoryRepository = Depends(get_repository),
):
    product = unwrap(repository.get_product_by_id(payload.product_id).current())
    problem = validate(payload.quantity, product.stock_qty, payload.is_addition)
    return {
        "valid": problem is None,
        "message": problem,
        "current_stock": product.stock_qty,
        "new_level": preview_new_level(product.stock_qty, payload.quantity, payload.is_addition),
    }


@router.get("/history/{product_id}", response_model=stock_schemas.StockMovementList)
def stock_history(
    product_id: int,
    movement_type: Optional[MovementType] = Query(None),
    from_dt: Optional[str] = Query(None),
    to_dt: Optional[str] = Query(None),
    repository: InventoryRepository = Depends(get_repository),
):
    items = unwrap(repository.get_stock_history(
        product_id, movement_type=movement_type,
        start=parse_dt(from_dt), end=parse_dt(to_dt, end_of_day=True),
    ).current())
    return {"items": items, "total": len(items)}


@router.get("/recent", response_model=stock_schemas.StockMovementList)
def recent_movements(
    limit: Optional[int] = Query(None, ge=1, le=500),
    repository: InventoryRepository = Depends(get_repository),
):
    items = unwrap(repository.get_recent_movements(limit).current())
    return {"items": items, "total": len(items)}


@router.get("/movements", response_model=stock_schemas.StockMovementList)
def list_movements(
    movement_type: Optional[MovementType] = Query(None),
    staff_member: Optional[str] = Query(None),
    from_dt: Optional[str] = Query(None),
    to_dt: Optional[str] = Query(None),
    repository: InventoryRepository = Depends(get_repository),
):
    if staff_member or movement_type is not None or from_dt or to_dt:
        # Every given filter applies together
        live = repository.find_movements(
            staff_member=staff_member or None, movement_type=movement_type,
            start=parse_dt(from_dt), end=parse_dt(to_dt, end_of_day=True),
        )
    else:
        live = repository.get_recent_movements()
    items = unwrap(live.current())
    return {"items": items, "total": len(items)}


@router.get("/reasons/{movement_type}", response_model=stock_schemas.SuggestedReasons)
def movement_reasons(movement_type: MovementType):
    return {
        "movement_type": movement_type,
        "display_name": movement_type.display_name,
        "is_addition": movement_type.is_addition_by_default,
        "reasons": suggested_reasons(movement_type),
    }
