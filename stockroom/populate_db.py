import random
from datetime import timedelta

from stockroom.config import settings
from stockroom.database import init_db, make_engine, make_session_factory, utcnow
from stockroom.ledger import LedgerStore
from stockroom.models.stock import MovementType
from stockroom.seed import SAMPLE_CATALOG, seed_catalog
from stockroom.utils.logging_config import configure_logging

# Configuration
HISTORY_DAYS = 30  # Spread of generated movement history
MOVEMENTS_PER_PRODUCT = 12
RANDOM_SEED = 7  # Same history on every run
STAFF = ["anna", "marek", "seed"]
# End Configuration


def generate_history(rng: random.Random, stock_qty: int) -> list:
    """Synthetic sales/receipts starting from the catalogue's stock level, never below zero."""
    start = utcnow() - timedelta(days=HISTORY_DAYS)
    movements = []
    balance = stock_qty
    for i in range(MOVEMENTS_PER_PRODUCT):
        ts = start + timedelta(days=HISTORY_DAYS * i / MOVEMENTS_PER_PRODUCT, minutes=rng.randint(0, 600))
        if balance > 0 and rng.random() < 0.6:
            qty = -rng.randint(1, max(1, balance // 3))
            kind = rng.choice([MovementType.SOLD, MovementType.SOLD, MovementType.DAMAGED])
        else:
            qty = rng.randint(5, 30)
            kind = rng.choice([MovementType.RECEIVED, MovementType.RETURNED])
        balance += qty
        movements.append({
            "quantity_change": qty,
            "movement_type": kind,
            "reason": f"Sample {kind.display_name.lower()}",
            "staff_member": rng.choice(STAFF),
            "timestamp": ts,
        })
    return movements


def populate_database():
    """Main execution function to populate database."""
    configure_logging(settings.LOG_LEVEL)
    engine = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
    init_db(engine)
    store = LedgerStore(make_session_factory(engine), default_min_stock_level=settings.DEFAULT_MIN_STOCK_LEVEL)

    rng = random.Random(RANDOM_SEED)
    rows = [dict(row, movements=generate_history(rng, row["stock_qty"])) for row in SAMPLE_CATALOG]

    created = seed_catalog(store, rows)
    print(f"Inserted {created} products into {settings.DATABASE_URL}.")


if __name__ == "__main__":
    populate_database()
