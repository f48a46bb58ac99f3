"""Live, filtered and sorted inventory views.

A view is described by an :class:`InventoryFilter`. Exactly one repository
fetch backs it, picked in this order:

1. non-blank search text  -> name/SKU search
2. a category             -> category listing
3. LOW_STOCK/OUT_OF_STOCK -> the repository's bucket listing
4. otherwise              -> every product

When search or category won, an active stock bucket is applied afterwards as a
post-filter. Sorting always comes last and breaks ties on ``id``.
"""
import enum
import logging
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from stockroom.live import LiveResult, Subscription
from stockroom.metrics import is_low_stock, is_out_of_stock
from stockroom.repository import InventoryRepository
from stockroom.schemas.result import Result

logger = logging.getLogger(__name__)


class StockStatus(str, enum.Enum):
    ALL = "ALL"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class SortOption(str, enum.Enum):
    NAME = "NAME"
    STOCK_ASC = "STOCK_ASC"
    STOCK_DESC = "STOCK_DESC"
    CATEGORY = "CATEGORY"
    PRICE_ASC = "PRICE_ASC"
    PRICE_DESC = "PRICE_DESC"


class InventoryFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_text: str = ""
    category: Optional[str] = None
    stock_status: StockStatus = StockStatus.ALL
    sort: SortOption = SortOption.NAME

    @field_validator("category", mode="before")
    @classmethod
    def _blank_category_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def search(self) -> str:
        return self.search_text.strip()


_SORT_KEYS = {
    SortOption.NAME: lambda p: (p.name.casefold(), p.id),
    SortOption.STOCK_ASC: lambda p: (p.stock_qty, p.id),
    SortOption.STOCK_DESC: lambda p: (-p.stock_qty, p.id),
    SortOption.CATEGORY: lambda p: (p.category.casefold(), p.id),
    SortOption.PRICE_ASC: lambda p: (p.price, p.id),
    SortOption.PRICE_DESC: lambda p: (-p.price, p.id),
}


def sort_products(products, sort: SortOption) -> list:
    return sorted(products, key=_SORT_KEYS[SortOption(sort)])


def matches_status(product, status: StockStatus) -> bool:
    if status == StockStatus.LOW_STOCK:
        return is_low_stock(product)
    if status == StockStatus.OUT_OF_STOCK:
        return is_out_of_stock(product)
    return True


def empty_message(query: InventoryFilter) -> str:
    if query.search:
        return f'No products found matching "{query.search}"'
    if query.category is not None:
        return f"No {query.category} products found"
    if query.stock_status == StockStatus.LOW_STOCK:
        return "No low stock products! \U0001F389"
    if query.stock_status == StockStatus.OUT_OF_STOCK:
        return "No out of stock products! ✨"
    return "No products in inventory"


class InventoryQueryEngine:
    def __init__(self, repository: InventoryRepository):
        self.repository = repository

    def _primary(self, query: InventoryFilter) -> LiveResult:
        if query.search:
            return self.repository.search_by_name_or_sku(query.search)
        if query.category is not None:
            return self.repository.by_category(query.category)
        if query.stock_status == StockStatus.LOW_STOCK:
            return self.repository.get_low_stock_products()
        if query.stock_status == StockStatus.OUT_OF_STOCK:
            return self.repository.get_out_of_stock_products()
        return self.repository.get_all_products()

    def _shape(self, query: InventoryFilter) -> Callable[[List], List]:
        post_filter = bool(query.search) or query.category is not None

        def shape(products):
            if post_filter and query.stock_status != StockStatus.ALL:
                products = [p for p in products if matches_status(p, query.stock_status)]
            return sort_products(products, query.sort)

        return shape

    def query(self, query: InventoryFilter) -> LiveResult:
        return self._primary(query).map(self._shape(query))

    def snapshot(self, query: InventoryFilter) -> Result:
        return self.query(query).current()

    def subscribe(self, query: InventoryFilter, callback: Callable[[Result], None]) -> "InventorySubscription":
        subscription = InventorySubscription(self, query, callback)
        subscription.start()
        return subscription


class InventorySubscription(Subscription):
    """Live view whose filter can be changed in place (search box, tabs, sort)."""

    def __init__(self, engine: InventoryQueryEngine, query: InventoryFilter, callback: Callable[[Result], None]):
        super().__init__(engine.query(query), callback)
        self._engine = engine
        self.filter = query

    @property
    def empty_message(self) -> str:
        return empty_message(self.filter)

    def set_filter(self, query: InventoryFilter) -> None:
        with self._lock:
            if query == self.filter:
                return
            logger.debug("Inventory view filter changed to %s", query)
            self.filter = query
            self.replace_source(self._engine.query(query))
