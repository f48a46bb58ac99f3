# stockroom/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, Query

from stockroom.dependencies import get_query_engine, get_repository, unwrap
from stockroom.query import InventoryFilter, InventoryQueryEngine, SortOption, StockStatus, empty_message
from stockroom.repository import InventoryRepository
import stockroom.schemas.product as product_schemas

router = APIRouter(tags=["Products"])


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=product_schemas.InventoryPage)
def list_products(
    search: Optional[str] = Query(None, description="Name or SKU fragment"),
    category: Optional[str] = Query(None),
    stock_status: StockStatus = Query(StockStatus.ALL),
    sort: SortOption = Query(SortOption.NAME),
    engine: InventoryQueryEngine = Depends(get_query_engine),
):
    query = InventoryFilter(
        search_text=search or "", category=category or None,
        stock_status=stock_status, sort=sort,
    )
    items = unwrap(engine.snapshot(query))
    return {
        "items": items,
        "total": len(items),
        "message": None if items else empty_message(query),
    }


# =========================
# LOOKUPS
# =========================
@router.get("/products/categories", response_model=List[str])
def get_product_categories(repository: InventoryRepository = Depends(get_repository)):
    return unwrap(repository.get_categories().current())


@router.get("/products/by-sku/{sku}", response_model=product_schemas.ProductOut)
def get_product_by_sku(sku: str, repository: InventoryRepository = Depends(get_repository)):
    return unwrap(repository.get_product_by_sku(sku))


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, repository: InventoryRepository = Depends(get_repository)):
    return unwrap(repository.get_product_by_id(product_id).current())


@router.post("/products", response_model=product_schemas.ProductOut, status_code=201)
def create_product(
    payload: product_schemas.ProductCreate,
    repository: InventoryRepository = Depends(get_repository),
):
    data = payload.model_dump(exclude={"staff_member"})
    return unwrap(repository.add_product(actor=payload.staff_member, **data))


@router.patch("/products/{product_id}/min-stock-level", response_model=product_schemas.ProductOut)
def update_min_stock_level(
    product_id: int,
    payload: product_schemas.MinStockLevelUpdate,
    repository: InventoryRepository = Depends(get_repository),
):
    unwrap(repository.update_min_stock_level(product_id, payload.min_stock_level,
                                             staff_member=payload.staff_member))
    return unwrap(repository.get_product_by_id(product_id).current())
