"""Starter catalogue loading."""

import random
from datetime import datetime

from stockroom.models.stock import MovementType
from stockroom.populate_db import generate_history
from stockroom.seed import SAMPLE_CATALOG, seed_catalog


class TestSeedCatalog:
    def test_sample_catalog(self, store):
        assert seed_catalog(store, SAMPLE_CATALOG) == len(SAMPLE_CATALOG)

        food = store.find_product_by_sku("DOG-001")
        assert food.stock_qty == 40
        assert food.opening_stock == 0
        assert store.verify_balance(food.id)
        [opening] = store.get_movements(food.id)
        assert opening.movement_type == MovementType.RECEIVED
        assert opening.reason == "Opening stock"

        litter = store.find_product_by_sku("CAT-001")
        assert litter.min_stock_level == 15

        treats = store.find_product_by_sku("CAT-002")
        assert store.movement_count(treats.id) == 0

    def test_seeding_twice_skips_existing(self, store):
        seed_catalog(store, SAMPLE_CATALOG)
        assert seed_catalog(store, SAMPLE_CATALOG) == 0
        assert len(store.list_products()) == len(SAMPLE_CATALOG)

    def test_history_that_would_oversell_is_dropped(self, store):
        rows = [{
            "sku": "FSH-009",
            "name": "Pond Pellets",
            "category": "Fish",
            "stock_qty": 5,
            "movements": [
                {"quantity_change": -3, "movement_type": "SOLD", "timestamp": datetime(2024, 1, 2)},
                {"quantity_change": -9, "movement_type": "SOLD", "timestamp": datetime(2024, 1, 3)},
                {"quantity_change": 4, "movement_type": "RETURNED", "timestamp": datetime(2024, 1, 4)},
            ],
        }]
        seed_catalog(store, rows)
        product = store.find_product_by_sku("FSH-009")
        assert product.stock_qty == 6
        assert store.movement_count(product.id) == 3
        assert store.verify_balance(product.id)

    def test_generated_history_replays_without_going_negative(self, store):
        rows = [dict(row, movements=generate_history(random.Random(7), row["stock_qty"]))
                for row in SAMPLE_CATALOG]
        seed_catalog(store, rows)

        for row in SAMPLE_CATALOG:
            product = store.find_product_by_sku(row["sku"])
            oldest_first = list(reversed(store.get_movements(product.id)))
            if row["stock_qty"]:
                assert oldest_first[0].reason == "Opening stock"

            balance = product.opening_stock
            for movement in oldest_first:
                balance += movement.quantity_change
                assert balance >= 0
                assert movement.balance_after == balance
            assert balance == store.get_balance(product.id)
