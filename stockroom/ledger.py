"""Ledger store: the product balance table plus the append-only movement log.

This is the only code that writes ``products.stock_qty``,
``products.last_stock_update`` or ``stock_movements``. For every product::

    stock_qty == opening_stock + sum(quantity_change of its movements)

and no accepted movement ever leaves ``stock_qty`` below zero. A movement and
the balance update it causes are committed in one transaction, under a lock
held per product, so two adjustments of the same product cannot interleave
their read-modify-write.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stockroom.database import as_utc, utcnow
from stockroom.errors import (
    DuplicateSku,
    InsufficientStock,
    InvalidQuantity,
    InvalidRequest,
    ProductNotFound,
    StorageFailure,
)
from stockroom.live import ChangeEvent, ChangeKind, ChangeNotifier
from stockroom.models.product import Product
from stockroom.models.stock import MovementType, StockMovement
from stockroom.utils.audit import write_log

logger = logging.getLogger(__name__)


def _norm_sku(sku: Optional[str]) -> Optional[str]:
    if sku is None:
        return None
    s = sku.strip().upper()
    return s if s else None


def _search_key(name: str, sku: str) -> str:
    return f"{name.casefold()}\n{sku.casefold()}"


def _whole_number(value, field: str) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantity(f"{field} must be a whole number")
    return value


def _movement_type(value) -> MovementType:
    try:
        return MovementType(value)
    except ValueError:
        raise InvalidRequest(f"Unknown movement type: {value!r}") from None


class LedgerStore:
    def __init__(
        self,
        session_factory: sessionmaker,
        notifier: Optional[ChangeNotifier] = None,
        default_min_stock_level: int = 10,
    ):
        self._session_factory = session_factory
        self.notifier = notifier or ChangeNotifier()
        self.default_min_stock_level = default_min_stock_level
        self._locks_guard = threading.Lock()
        self._locks = {}

    # ---- plumbing ----

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Storage failure during %s", operation)
            raise StorageFailure(f"Storage error during {operation}: {exc}") from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _product_lock(self, product_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(product_id)
            if lock is None:
                lock = self._locks[product_id] = threading.Lock()
            return lock

    @staticmethod
    def _load(db: Session, product_id: int, for_update: bool = False) -> Product:
        query = db.query(Product).filter(Product.id == product_id)
        if for_update:
            query = query.with_for_update()
        product = query.first()
        if product is None:
            raise ProductNotFound(product_id)
        return product

    # ---- products ----

    def create_product(
        self,
        sku: str,
        name: str,
        category: str,
        price=0,
        opening_stock: int = 0,
        min_stock_level: Optional[int] = None,
        description: Optional[str] = None,
        image_uri: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> Product:
        """Insert a product. ``opening_stock`` becomes its fixed balance baseline."""
        code = _norm_sku(sku)
        if not code:
            raise InvalidRequest("SKU is required")
        if not (name or "").strip():
            raise InvalidRequest("Product name is required")
        if not (category or "").strip():
            raise InvalidRequest("Category is required")
        try:
            amount = Decimal(str(price))
        except InvalidOperation:
            raise InvalidQuantity(f"Invalid price: {price!r}") from None
        if not amount.is_finite() or amount < 0:
            raise InvalidQuantity("Price cannot be negative")
        opening_stock = _whole_number(opening_stock, "Opening stock")
        if opening_stock < 0:
            raise InvalidQuantity("Opening stock cannot be negative")
        if min_stock_level is None:
            min_stock_level = self.default_min_stock_level
        min_stock_level = _whole_number(min_stock_level, "Minimum stock level")
        if min_stock_level < 0:
            raise InvalidQuantity("Minimum stock level cannot be negative")

        now = utcnow()
        with self._session("create_product") as db:
            if db.query(Product.id).filter(Product.sku == code).first():
                raise DuplicateSku(code)
            product = Product(
                sku=code, name=name.strip(), category=category.strip(), price=amount,
                search_key=_search_key(name.strip(), code),
                opening_stock=opening_stock, stock_qty=opening_stock,
                min_stock_level=min_stock_level, description=description, image_uri=image_uri,
                last_stock_update=now if opening_stock else None, last_modified=now, created_at=now,
            )
            db.add(product)
            try:
                db.flush()
                write_log(db, actor=actor, action="PRODUCT_CREATE", resource="products",
                          meta={"id": product.id, "sku": code, "opening_stock": opening_stock})
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DuplicateSku(code) from exc

        logger.info("Product #%s %s created with opening stock %s", product.id, code, opening_stock)
        self.notifier.notify(ChangeEvent(product.id, ChangeKind.PRODUCT_ADDED))
        return product

    def get_product(self, product_id: int) -> Product:
        with self._session("get_product") as db:
            return self._load(db, product_id)

    def find_product_by_sku(self, sku: str) -> Optional[Product]:
        code = _norm_sku(sku)
        if not code:
            return None
        with self._session("find_product_by_sku") as db:
            return db.query(Product).filter(Product.sku == code).first()

    def list_products(self) -> List[Product]:
        with self._session("list_products") as db:
            return db.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()

    def search_products(self, text: str) -> List[Product]:
        """Case-insensitive substring match on name or SKU."""
        needle = (text or "").strip().casefold()
        if not needle:
            return self.list_products()
        with self._session("search_products") as db:
            return (
                db.query(Product)
                .filter(Product.search_key.contains(needle, autoescape=True))
                .order_by(Product.name.asc(), Product.id.asc())
                .all()
            )

    def products_by_category(self, category: str) -> List[Product]:
        with self._session("products_by_category") as db:
            return (
                db.query(Product)
                .filter(Product.category == category)
                .order_by(Product.name.asc(), Product.id.asc())
                .all()
            )

    def low_stock_products(self) -> List[Product]:
        # Per-product threshold; includes products that are out of stock
        with self._session("low_stock_products") as db:
            return (
                db.query(Product)
                .filter(Product.stock_qty <= Product.min_stock_level)
                .order_by(Product.stock_qty.asc(), Product.id.asc())
                .all()
            )

    def out_of_stock_products(self) -> List[Product]:
        with self._session("out_of_stock_products") as db:
            return (
                db.query(Product)
                .filter(Product.stock_qty == 0)
                .order_by(Product.name.asc(), Product.id.asc())
                .all()
            )

    def categories(self) -> List[str]:
        with self._session("categories") as db:
            rows = db.query(Product.category).distinct().order_by(Product.category.asc()).all()
            return [r[0] for r in rows]

    def update_min_stock_level(self, product_id: int, min_stock_level: int, actor: Optional[str] = None) -> Product:
        min_stock_level = _whole_number(min_stock_level, "Minimum stock level")
        if min_stock_level < 0:
            raise InvalidQuantity("Minimum stock level cannot be negative")

        with self._product_lock(product_id):
            with self._session("update_min_stock_level") as db:
                product = self._load(db, product_id, for_update=True)
                previous = product.min_stock_level
                product.min_stock_level = min_stock_level
                product.last_modified = utcnow()
                write_log(db, actor=actor, action="MIN_STOCK_UPDATE", resource="products",
                          meta={"id": product_id, "old": previous, "new": min_stock_level})
                db.commit()

        logger.info("Product #%s min stock level %s -> %s", product_id, previous, min_stock_level)
        self.notifier.notify(ChangeEvent(product_id, ChangeKind.THRESHOLD))
        return product

    # ---- movements ----

    def append_movement(
        self,
        product_id: int,
        quantity_change: int,
        movement_type,
        reason: Optional[str] = None,
        staff_member: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> StockMovement:
        """Record one movement and apply it to the product's balance atomically.

        Raises ``InsufficientStock`` without writing anything when the change
        would take the balance below zero. ``timestamp`` is for backfilling
        historical rows; normal writes are stamped with the commit time.
        """
        quantity_change = _whole_number(quantity_change, "Quantity")
        if quantity_change == 0:
            raise InvalidQuantity("Quantity change must not be zero")
        kind = _movement_type(movement_type)
        stamp = as_utc(timestamp) if timestamp is not None else utcnow()

        with self._product_lock(product_id):
            with self._session("append_movement") as db:
                try:
                    product = self._load(db, product_id, for_update=True)
                except ProductNotFound:
                    logger.warning("Movement rejected: product #%s does not exist", product_id)
                    raise

                current = product.stock_qty
                new_qty = current + quantity_change
                if new_qty < 0:
                    logger.warning(
                        "Movement rejected for product #%s: stock %s, attempted removal %s",
                        product_id, current, -quantity_change,
                    )
                    raise InsufficientStock(current=current, requested_removal=-quantity_change)

                movement = StockMovement(
                    product_id=product_id, quantity_change=quantity_change, balance_after=new_qty, movement_type=kind,
                    reason=reason, staff_member=staff_member, timestamp=stamp,
                )
                db.add(movement)
                product.stock_qty = new_qty
                product.last_stock_update = stamp
                product.last_modified = utcnow()
                db.commit()

        logger.info(
            "Movement #%s: product #%s %+d %s, stock %s -> %s",
            movement.id, product_id, quantity_change, kind.value, current, new_qty,
        )
        self.notifier.notify(ChangeEvent(product_id, ChangeKind.STOCK))
        return movement

    def get_balance(self, product_id: int) -> int:
        with self._session("get_balance") as db:
            return self._load(db, product_id).stock_qty

    def get_movements(
        self,
        product_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        movement_type=None,
    ) -> List[StockMovement]:
        """Movements of one product, newest first. Date bounds are inclusive."""
        kind = _movement_type(movement_type) if movement_type is not None else None
        with self._session("get_movements") as db:
            self._load(db, product_id)
            query = db.query(StockMovement).filter(StockMovement.product_id == product_id)
            return self._newest_first(self._filtered(query, kind=kind, start=start, end=end)).all()

    def find_movements(
        self,
        staff_member: Optional[str] = None,
        movement_type=None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[StockMovement]:
        """Movements across all products matching every given filter, newest first."""
        kind = _movement_type(movement_type) if movement_type is not None else None
        with self._session("find_movements") as db:
            query = self._filtered(db.query(StockMovement), kind=kind, start=start, end=end)
            if staff_member is not None:
                query = query.filter(StockMovement.staff_member == staff_member)
            return self._newest_first(query).all()

    def movements_by_date_range(self, start: datetime, end: datetime) -> List[StockMovement]:
        with self._session("movements_by_date_range") as db:
            query = db.query(StockMovement).filter(
                StockMovement.timestamp >= as_utc(start),
                StockMovement.timestamp <= as_utc(end),
            )
            return self._newest_first(query).all()

    def recent_movements(self, limit: int = 50) -> List[StockMovement]:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidRequest("Limit must be a positive whole number")
        with self._session("recent_movements") as db:
            return self._newest_first(db.query(StockMovement)).limit(limit).all()

    def movements_by_type(self, movement_type) -> List[StockMovement]:
        kind = _movement_type(movement_type)
        with self._session("movements_by_type") as db:
            query = db.query(StockMovement).filter(StockMovement.movement_type == kind)
            return self._newest_first(query).all()

    def movements_by_staff(self, staff_member: str) -> List[StockMovement]:
        with self._session("movements_by_staff") as db:
            query = db.query(StockMovement).filter(StockMovement.staff_member == staff_member)
            return self._newest_first(query).all()

    def movement_count(self, product_id: int) -> int:
        with self._session("movement_count") as db:
            return db.query(func.count(StockMovement.id)).filter(StockMovement.product_id == product_id).scalar()

    def total_net_change(self, product_id: int) -> int:
        with self._session("total_net_change") as db:
            total = (
                db.query(func.coalesce(func.sum(StockMovement.quantity_change), 0))
                .filter(StockMovement.product_id == product_id)
                .scalar()
            )
            return int(total)

    def verify_balance(self, product_id: int) -> bool:
        """True when the stored balance equals baseline plus replayed movements."""
        with self._session("verify_balance") as db:
            product = self._load(db, product_id)
            total = (
                db.query(func.coalesce(func.sum(StockMovement.quantity_change), 0))
                .filter(StockMovement.product_id == product_id)
                .scalar()
            )
            return product.opening_stock + int(total) == product.stock_qty

    def reset_movements(self, actor: Optional[str] = None) -> int:
        """Testing/reset escape hatch: wipe the movement log.

        Balances fall back to each product's opening stock so the invariant
        still holds. Not meant to run alongside normal writers.
        """
        with self._session("reset_movements") as db:
            deleted = db.query(StockMovement).delete(synchronize_session=False)
            db.query(Product).update(
                {Product.stock_qty: Product.opening_stock, Product.last_stock_update: utcnow()},
                synchronize_session=False,
            )
            write_log(db, actor=actor, action="LEDGER_RESET", resource="stock_movements",
                      meta={"deleted": deleted})
            db.commit()

        logger.warning("Movement log reset: %s movements deleted", deleted)
        self.notifier.notify(ChangeEvent(None, ChangeKind.RESET))
        return deleted

    @staticmethod
    def _filtered(query, kind=None, start=None, end=None):
        if start is not None:
            query = query.filter(StockMovement.timestamp >= as_utc(start))
        if end is not None:
            query = query.filter(StockMovement.timestamp <= as_utc(end))
        if kind is not None:
            query = query.filter(StockMovement.movement_type == kind)
        return query

    @staticmethod
    def _newest_first(query):
        return query.order_by(StockMovement.timestamp.desc(), StockMovement.id.desc())
