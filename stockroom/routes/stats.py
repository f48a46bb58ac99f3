# stockroom/routes/stats.py

from fastapi import APIRouter, Depends

from stockroom.dependencies import get_repository, unwrap
from stockroom.repository import InventoryRepository
from stockroom.schemas.reports import InventoryStats

router = APIRouter(
    prefix="/stats",
    tags=["Stats"]
)

# === Dashboard Summary ===

@router.get("/summary", response_model=InventoryStats)
def get_stats_summary(repository: InventoryRepository = Depends(get_repository)):
    # Low stock uses each product's own threshold, out-of-stock included
    return unwrap(repository.get_inventory_stats())
