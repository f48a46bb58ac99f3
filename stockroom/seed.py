# stockroom/seed.py
"""Load a starter catalogue through the ledger's own write path.

Each row is a dict with the product fields (``sku``, ``name``, ``category``,
``price``, optional ``min_stock_level``/``description``/``image_uri``), an
initial ``stock_qty`` and optionally a list of historical ``movements``.
Products start from a zero baseline and their stock arrives as a RECEIVED
movement, so the balance invariant holds from the first row on.
"""
import logging
from typing import Iterable, Mapping

from stockroom.database import as_utc, utcnow
from stockroom.errors import LedgerError
from stockroom.ledger import LedgerStore
from stockroom.models.stock import MovementType

logger = logging.getLogger(__name__)

SAMPLE_CATALOG = [
    {"sku": "DOG-001", "name": "Premium Dog Food", "category": "Dog", "price": "24.99", "stock_qty": 40},
    {"sku": "DOG-002", "name": "Rope Chew Toy", "category": "Dog", "price": "6.50", "stock_qty": 8},
    {"sku": "CAT-001", "name": "Cat Litter", "category": "Cat", "price": "9.99", "stock_qty": 25,
     "min_stock_level": 15},
    {"sku": "CAT-002", "name": "Salmon Cat Treats", "category": "Cat", "price": "3.49", "stock_qty": 0},
    {"sku": "FSH-001", "name": "Tropical Fish Flakes", "category": "Fish", "price": "5.25", "stock_qty": 12},
    {"sku": "BRD-001", "name": "Wild Bird Seed Mix", "category": "Bird", "price": "11.00", "stock_qty": 3},
]

_PRODUCT_FIELDS = ("sku", "name", "category", "price", "min_stock_level", "description", "image_uri")


def seed_catalog(store: LedgerStore, rows: Iterable[Mapping], staff_member: str = "seed") -> int:
    """Insert every row whose SKU is new; returns how many products were created."""
    created = 0
    for row in rows:
        if store.find_product_by_sku(row["sku"]) is not None:
            logger.info("Seed: %s already present, skipped", row["sku"])
            continue

        fields = {k: row[k] for k in _PRODUCT_FIELDS if row.get(k) is not None}
        product = store.create_product(opening_stock=0, actor=staff_member, **fields)

        # History replays oldest first; the opening receipt comes before all of it
        history = sorted(row.get("movements") or [], key=lambda m: as_utc(m.get("timestamp") or utcnow()))
        opened_at = as_utc(history[0]["timestamp"]) if history and history[0].get("timestamp") else None

        initial = int(row.get("stock_qty") or 0)
        if initial:
            store.append_movement(product.id, initial, MovementType.RECEIVED,
                                  reason="Opening stock", staff_member=staff_member, timestamp=opened_at)

        for movement in history:
            try:
                store.append_movement(
                    product.id,
                    movement["quantity_change"],
                    movement["movement_type"],
                    reason=movement.get("reason"),
                    staff_member=movement.get("staff_member", staff_member),
                    timestamp=movement.get("timestamp"),
                )
            except LedgerError as exc:
                # Sample history that would break the ledger is dropped, not forced in
                logger.warning("Seed: movement for %s skipped: %s", product.sku, exc)
        created += 1

    logger.info("Seed: %s products created", created)
    return created
