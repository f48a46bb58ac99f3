"""Inventory repository: the API the rest of the system talks to.

Every operation delegates to the :class:`~stockroom.ledger.LedgerStore`, turns
the rows it returns into immutable domain records and wraps the outcome in
``Loading | Success | Error``. Ledger errors never escape from here.

List and history reads return a :class:`~stockroom.live.LiveResult`; call
``current()`` for a snapshot or ``subscribe()`` to follow changes.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from stockroom.errors import InvalidQuantity, LedgerError, ProductNotFound, StorageFailure
from stockroom.ledger import LedgerStore
from stockroom.live import ChangeKind, LiveResult
from stockroom.metrics import compute_inventory_stats
from stockroom.schemas.product import ProductOut
from stockroom.schemas.reports import InventoryStats
from stockroom.schemas.result import Error, Result, Success
from stockroom.schemas.stock import StockMovementOut
from stockroom.validation import validate_change

logger = logging.getLogger(__name__)

# Movement views do not change when only a threshold does
MOVEMENT_CHANGES = frozenset({ChangeKind.STOCK, ChangeKind.RESET})


def to_products(rows) -> List[ProductOut]:
    return [ProductOut.model_validate(row) for row in rows]


def to_movements(rows) -> List[StockMovementOut]:
    return [StockMovementOut.model_validate(row) for row in rows]


class InventoryRepository:
    def __init__(self, store: LedgerStore, recent_limit: int = 50):
        self.store = store
        self.notifier = store.notifier
        self.recent_limit = recent_limit

    def _run(self, action: str, operation: Callable) -> Result:
        try:
            return Success(data=operation())
        except StorageFailure as exc:
            return Error(message=f"Failed to {action}: {exc}", cause=exc)
        except LedgerError as exc:
            logger.warning("Could not %s: %s", action, exc)
            return Error(message=str(exc), cause=exc)

    def _live(self, loader: Callable, product_id: Optional[int] = None, kinds=None) -> LiveResult:
        return LiveResult(loader, self.notifier, product_id=product_id, kinds=kinds)

    # ---- writes ----

    def adjust_stock(
        self,
        product_id: int,
        quantity_change: int,
        movement_type,
        reason: Optional[str] = None,
        staff_member: Optional[str] = None,
    ) -> Result:
        """Apply a signed stock change; Success carries the new stock level."""
        problem = validate_change(quantity_change)
        if problem:
            return Error(message=problem, cause=InvalidQuantity(problem))

        def _apply():
            movement = self.store.append_movement(
                product_id, quantity_change, movement_type, reason=reason, staff_member=staff_member,
            )
            return movement.balance_after

        return self._run("adjust stock", _apply)

    def update_min_stock_level(self, product_id: int, min_stock_level: int,
                               staff_member: Optional[str] = None) -> Result:
        def _apply():
            self.store.update_min_stock_level(product_id, min_stock_level, actor=staff_member)
            return None

        return self._run("update min stock level", _apply)

    def add_product(self, **fields) -> Result:
        return self._run(
            "add product",
            lambda: ProductOut.model_validate(self.store.create_product(**fields)),
        )

    # ---- product reads ----

    def get_all_products(self) -> LiveResult:
        return self._live(lambda: to_products(self.store.list_products()))

    def get_product_by_id(self, product_id: int) -> LiveResult:
        return self._live(
            lambda: ProductOut.model_validate(self.store.get_product(product_id)),
            product_id=product_id,
        )

    def get_product_by_sku(self, sku: str) -> Result:
        def _find():
            row = self.store.find_product_by_sku(sku)
            if row is None:
                raise ProductNotFound(sku)
            return ProductOut.model_validate(row)

        return self._run("look up product", _find)

    def search_by_name_or_sku(self, text: str) -> LiveResult:
        return self._live(lambda: to_products(self.store.search_products(text)))

    def by_category(self, category: str) -> LiveResult:
        return self._live(lambda: to_products(self.store.products_by_category(category)))

    def get_low_stock_products(self) -> LiveResult:
        return self._live(lambda: to_products(self.store.low_stock_products()))

    def get_out_of_stock_products(self) -> LiveResult:
        return self._live(lambda: to_products(self.store.out_of_stock_products()))

    def get_categories(self) -> LiveResult:
        return self._live(self.store.categories, kinds={ChangeKind.PRODUCT_ADDED})

    # ---- movement reads ----

    def get_stock_history(self, product_id: int, movement_type=None,
                          start: Optional[datetime] = None, end: Optional[datetime] = None) -> LiveResult:
        return self._live(
            lambda: to_movements(self.store.get_movements(product_id, start=start, end=end,
                                                          movement_type=movement_type)),
            product_id=product_id,
            kinds=MOVEMENT_CHANGES,
        )

    def get_movements_by_date_range(self, start: datetime, end: datetime) -> LiveResult:
        return self._live(lambda: to_movements(self.store.movements_by_date_range(start, end)),
                          kinds=MOVEMENT_CHANGES)

    def get_recent_movements(self, limit: Optional[int] = None) -> LiveResult:
        limit = self.recent_limit if limit is None else limit
        return self._live(lambda: to_movements(self.store.recent_movements(limit)), kinds=MOVEMENT_CHANGES)

    def get_movements_by_type(self, movement_type) -> LiveResult:
        return self._live(lambda: to_movements(self.store.movements_by_type(movement_type)),
                          kinds=MOVEMENT_CHANGES)

    def get_movements_by_staff(self, staff_member: str) -> LiveResult:
        return self._live(lambda: to_movements(self.store.movements_by_staff(staff_member)),
                          kinds=MOVEMENT_CHANGES)

    def find_movements(self, staff_member: Optional[str] = None, movement_type=None,
                       start: Optional[datetime] = None, end: Optional[datetime] = None) -> LiveResult:
        return self._live(
            lambda: to_movements(self.store.find_movements(staff_member=staff_member, movement_type=movement_type,
                                                           start=start, end=end)),
            kinds=MOVEMENT_CHANGES,
        )

    def verify_balance(self, product_id: int) -> Result:
        return self._run("verify balance", lambda: self.store.verify_balance(product_id))

    # ---- metrics ----

    def _stats(self) -> InventoryStats:
        return compute_inventory_stats(self.store.list_products())

    def get_inventory_stats(self) -> Result:
        return self._run("get inventory stats", self._stats)

    def watch_inventory_stats(self) -> LiveResult:
        return self._live(self._stats)
