"""Ledger store: balances, movement log and its invariants."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from stockroom.errors import (
    DuplicateSku,
    InsufficientStock,
    InvalidQuantity,
    InvalidRequest,
    ProductNotFound,
)
from stockroom.ledger import LedgerStore
from stockroom.live import ChangeKind
from stockroom.models.log import Log
from stockroom.models.stock import MovementType, StockMovement


class TestCreateProduct:
    def test_opening_stock_is_the_starting_balance(self, store):
        product = store.create_product(sku=" dog-001 ", name="Premium Dog Food", category="Dog",
                                       price="24.99", opening_stock=40)
        assert product.sku == "DOG-001"
        assert store.get_balance(product.id) == 40
        assert store.verify_balance(product.id)
        assert store.movement_count(product.id) == 0

    def test_default_threshold_comes_from_the_store(self, session_factory):
        store = LedgerStore(session_factory, default_min_stock_level=7)
        product = store.create_product(sku="A-1", name="A", category="C")
        assert product.min_stock_level == 7

    def test_duplicate_sku_is_rejected(self, store):
        store.create_product(sku="CAT-001", name="Cat Litter", category="Cat")
        with pytest.raises(DuplicateSku):
            store.create_product(sku="cat-001", name="Other", category="Cat")

    @pytest.mark.parametrize(
        "fields",
        [
            {"sku": "  ", "name": "X", "category": "C"},
            {"sku": "X-1", "name": "", "category": "C"},
            {"sku": "X-1", "name": "X", "category": " "},
        ],
    )
    def test_blank_required_fields(self, store, fields):
        with pytest.raises(InvalidRequest):
            store.create_product(**fields)

    def test_negative_values_are_rejected(self, store):
        with pytest.raises(InvalidQuantity):
            store.create_product(sku="X-1", name="X", category="C", price="-1")
        with pytest.raises(InvalidQuantity):
            store.create_product(sku="X-1", name="X", category="C", opening_stock=-5)
        with pytest.raises(InvalidQuantity):
            store.create_product(sku="X-1", name="X", category="C", min_stock_level=-1)

    def test_creation_is_audited(self, store, session_factory):
        store.create_product(sku="A-1", name="A", category="C", actor="anna")
        db = session_factory()
        try:
            entry = db.query(Log).filter(Log.action == "PRODUCT_CREATE").one()
        finally:
            db.close()
        assert entry.actor == "anna"
        assert entry.meta["sku"] == "A-1"


class TestAppendMovement:
    def test_addition_and_removal_update_the_balance(self, store, make_product):
        product = make_product(stock=10)
        store.append_movement(product.id, 5, MovementType.RECEIVED)
        movement = store.append_movement(product.id, -3, MovementType.SOLD, reason="Customer purchase")
        assert movement.balance_after == 12
        assert store.get_balance(product.id) == 12
        assert store.total_net_change(product.id) == 2
        assert store.movement_count(product.id) == 2

    def test_insufficient_stock_writes_nothing(self, store, make_product):
        product = make_product(stock=3)
        with pytest.raises(InsufficientStock) as info:
            store.append_movement(product.id, -5, MovementType.SOLD)
        assert str(info.value) == "Insufficient stock. Current: 3, Attempted removal: 5"
        assert info.value.current == 3
        assert info.value.requested_removal == 5
        assert store.get_balance(product.id) == 3
        assert store.movement_count(product.id) == 0

    def test_removing_everything_reaches_exactly_zero(self, store, make_product):
        product = make_product(stock=7)
        store.append_movement(product.id, -7, MovementType.DAMAGED)
        assert store.get_balance(product.id) == 0
        assert [p.id for p in store.out_of_stock_products()] == [product.id]

    def test_zero_and_fractional_changes_are_rejected(self, store, make_product):
        product = make_product(stock=7)
        with pytest.raises(InvalidQuantity):
            store.append_movement(product.id, 0, MovementType.CORRECTION)
        with pytest.raises(InvalidQuantity):
            store.append_movement(product.id, 1.5, MovementType.RECEIVED)
        assert store.movement_count(product.id) == 0

    def test_unknown_product(self, store):
        with pytest.raises(ProductNotFound):
            store.append_movement(999, 1, MovementType.RECEIVED)

    def test_unknown_movement_type(self, store, make_product):
        product = make_product(stock=1)
        with pytest.raises(InvalidRequest):
            store.append_movement(product.id, 1, "GIFTED")

    def test_movement_type_accepts_its_value(self, store, make_product):
        product = make_product(stock=1)
        movement = store.append_movement(product.id, 2, "TRANSFER_IN")
        assert movement.movement_type is MovementType.TRANSFER_IN

    def test_aware_timestamps_are_stored_as_naive_utc(self, store, make_product):
        product = make_product(stock=1)
        stamp = datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        movement = store.append_movement(product.id, 1, MovementType.RECEIVED, timestamp=stamp)
        assert movement.timestamp == datetime(2024, 3, 1, 10, 0)

    def test_listeners_hear_about_committed_movements(self, store, notifier, make_product):
        product = make_product(stock=1)
        events = []
        notifier.add_listener(events.append)
        store.append_movement(product.id, 1, MovementType.RECEIVED)
        with pytest.raises(InsufficientStock):
            store.append_movement(product.id, -10, MovementType.SOLD)
        assert [(e.product_id, e.kind) for e in events] == [(product.id, ChangeKind.STOCK)]


class TestBalanceInvariant:
    @pytest.mark.parametrize("seed", [7, 1234, 2024])
    def test_random_sequences_keep_the_balance_consistent(self, store, make_product, seed):
        rng = random.Random(seed)
        products = [make_product(stock=rng.randint(0, 20)) for _ in range(4)]
        types = list(MovementType)

        for _ in range(200):
            product = rng.choice(products)
            change = rng.choice([-1, 1]) * rng.randint(1, 15)
            before = store.get_balance(product.id)
            try:
                store.append_movement(product.id, change, rng.choice(types))
            except InsufficientStock:
                assert before + change < 0
                assert store.get_balance(product.id) == before
            else:
                assert store.get_balance(product.id) == before + change

        for product in products:
            balance = store.get_balance(product.id)
            assert balance >= 0
            assert balance == product.opening_stock + store.total_net_change(product.id)
            assert store.verify_balance(product.id)


class TestMovementQueries:
    def _history(self, store, product):
        base = datetime(2024, 1, 1, 9, 0)
        store.append_movement(product.id, 10, MovementType.RECEIVED, staff_member="anna", timestamp=base)
        store.append_movement(product.id, -2, MovementType.SOLD, staff_member="marek",
                              timestamp=base + timedelta(days=1))
        store.append_movement(product.id, -1, MovementType.DAMAGED, staff_member="anna",
                              timestamp=base + timedelta(days=2))
        return base

    def test_history_is_newest_first(self, store, make_product):
        product = make_product()
        self._history(store, product)
        changes = [m.quantity_change for m in store.get_movements(product.id)]
        assert changes == [-1, -2, 10]

    def test_history_filters(self, store, make_product):
        product = make_product()
        base = self._history(store, product)
        in_range = store.get_movements(product.id, start=base + timedelta(days=1),
                                       end=base + timedelta(days=2))
        assert [m.quantity_change for m in in_range] == [-1, -2]
        sold = store.get_movements(product.id, movement_type=MovementType.SOLD)
        assert [m.quantity_change for m in sold] == [-2]

    def test_history_of_unknown_product(self, store):
        with pytest.raises(ProductNotFound):
            store.get_movements(42)

    def test_global_queries(self, store, make_product):
        first, second = make_product(), make_product()
        base = self._history(store, first)
        store.append_movement(second.id, 4, MovementType.RECEIVED, staff_member="marek",
                              timestamp=base + timedelta(days=3))

        assert [m.product_id for m in store.recent_movements(2)] == [second.id, first.id]
        assert len(store.movements_by_date_range(base, base + timedelta(days=1))) == 2
        assert len(store.movements_by_type(MovementType.RECEIVED)) == 2
        assert [m.quantity_change for m in store.movements_by_staff("marek")] == [4, -2]

    def test_find_movements_applies_every_filter(self, store, make_product):
        first, second = make_product(), make_product()
        base = self._history(store, first)
        store.append_movement(second.id, 4, MovementType.RECEIVED, staff_member="anna",
                              timestamp=base + timedelta(days=3))

        anna = store.find_movements(staff_member="anna")
        assert [m.quantity_change for m in anna] == [4, -1, 10]
        anna_received = store.find_movements(staff_member="anna", movement_type=MovementType.RECEIVED)
        assert [m.quantity_change for m in anna_received] == [4, 10]
        windowed = store.find_movements(staff_member="anna", movement_type="RECEIVED",
                                        start=base + timedelta(days=1))
        assert [m.quantity_change for m in windowed] == [4]
        assert store.find_movements(movement_type=MovementType.SOLD, end=base) == []
        assert len(store.find_movements()) == 4

    def test_movement_links_to_its_product(self, store, session_factory, make_product):
        product = make_product(sku="LNK-001")
        store.append_movement(product.id, 1, MovementType.RECEIVED)
        db = session_factory()
        try:
            movement = db.query(StockMovement).filter(StockMovement.product_id == product.id).one()
            assert movement.product.sku == "LNK-001"
        finally:
            db.close()

    def test_recent_limit_must_be_positive(self, store):
        with pytest.raises(InvalidRequest):
            store.recent_movements(0)

    def test_equal_timestamps_fall_back_to_insertion_order(self, store, make_product):
        product = make_product()
        stamp = datetime(2024, 5, 5, 8, 0)
        first = store.append_movement(product.id, 1, MovementType.RECEIVED, timestamp=stamp)
        second = store.append_movement(product.id, 1, MovementType.RECEIVED, timestamp=stamp)
        assert [m.id for m in store.get_movements(product.id)] == [second.id, first.id]


class TestProductQueries:
    def test_low_stock_is_inclusive_and_per_product(self, store, make_product):
        at_threshold = make_product(stock=5, min_level=5)
        above = make_product(stock=6, min_level=5)
        empty = make_product(stock=0, min_level=0)
        low_ids = {p.id for p in store.low_stock_products()}
        assert low_ids == {at_threshold.id, empty.id}
        assert above.id not in low_ids

    def test_threshold_change_moves_a_product_between_buckets(self, store, make_product):
        product = make_product(stock=8, min_level=5)
        assert store.low_stock_products() == []
        store.update_min_stock_level(product.id, 8)
        assert [p.id for p in store.low_stock_products()] == [product.id]

    def test_search_matches_name_or_sku_ignoring_case(self, store, make_product):
        food = make_product(name="Premium Dog Food", sku="DOG-001")
        make_product(name="Cat Litter", sku="CAT-001")
        assert [p.id for p in store.search_products("dog food")] == [food.id]
        assert [p.id for p in store.search_products("dog-0")] == [food.id]
        assert len(store.search_products("  ")) == 2

    def test_search_folds_case_beyond_ascii(self, store, make_product):
        eclair = make_product(name="Éclair Treats")
        street = make_product(name="Straße Cat Mix")
        assert [p.id for p in store.search_products("éclair")] == [eclair.id]
        assert [p.id for p in store.search_products("ÉCLAIR")] == [eclair.id]
        assert [p.id for p in store.search_products("STRASSE")] == [street.id]

    def test_search_treats_wildcards_literally(self, store, make_product):
        make_product(name="Cat Litter")
        assert store.search_products("%") == []

    def test_categories_are_distinct_and_sorted(self, store, make_product):
        make_product(category="Fish")
        make_product(category="Cat")
        make_product(category="Fish")
        assert store.categories() == ["Cat", "Fish"]

    def test_lookup_by_sku(self, store, make_product):
        product = make_product(sku="BRD-001")
        assert store.find_product_by_sku("brd-001").id == product.id
        assert store.find_product_by_sku("NOPE") is None


class TestResetMovements:
    def test_reset_restores_opening_stock(self, store, notifier, make_product):
        product = make_product(stock=5)
        store.append_movement(product.id, 10, MovementType.RECEIVED)
        events = []
        notifier.add_listener(events.append, product_id=product.id)

        assert store.reset_movements(actor="admin") == 1
        assert store.get_balance(product.id) == 5
        assert store.movement_count(product.id) == 0
        assert store.verify_balance(product.id)
        assert events[-1].kind == ChangeKind.RESET
        assert events[-1].product_id is None
