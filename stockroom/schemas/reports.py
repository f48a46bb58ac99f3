# schemas/reports.py
from decimal import Decimal
from pydantic import BaseModel, ConfigDict

# Summary statistics over the current product set
class InventoryStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_products: int
    low_stock_count: int
    out_of_stock_count: int
    total_inventory_value: Decimal
    total_stock_units: int
