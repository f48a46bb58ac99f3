# stockroom/schemas/product.py
import enum
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, computed_field
from typing import Optional, List


# Display classification of a single product. OUT_OF_STOCK wins over
# LOW_STOCK, so every product shows exactly one badge.
class ProductStockStatus(str, enum.Enum):
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Domain record handed out by the repository; immutable snapshot of a row
class ProductOut(ORMBase):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    sku: str
    name: str
    category: str
    description: Optional[str] = None
    image_uri: Optional[str] = None
    price: Decimal
    opening_stock: int = 0
    stock_qty: int
    min_stock_level: int
    last_stock_update: Optional[datetime] = None
    last_modified: Optional[datetime] = None

    @computed_field
    @property
    def stock_status(self) -> ProductStockStatus:
        if self.stock_qty == 0:
            return ProductStockStatus.OUT_OF_STOCK
        if self.stock_qty <= self.min_stock_level:
            return ProductStockStatus.LOW_STOCK
        return ProductStockStatus.IN_STOCK


# Schema for creating a new product (seeding / catalogue import)
class ProductCreate(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    opening_stock: int = Field(default=0, ge=0)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = None
    image_uri: Optional[str] = None
    staff_member: Optional[str] = None


class MinStockLevelUpdate(BaseModel):
    min_stock_level: int = Field(ge=0, description="Per-product low stock threshold")
    staff_member: Optional[str] = None


# Live inventory listing; `message` explains an empty result
class InventoryPage(BaseModel):
    items: List[ProductOut]
    total: int
    message: Optional[str] = None
