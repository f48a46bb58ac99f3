"""Shared fixtures: a fresh in-memory database per test."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from stockroom.config import Settings
from stockroom.database import init_db, make_engine, make_session_factory
from stockroom.ledger import LedgerStore
from stockroom.live import ChangeNotifier
from stockroom.main import create_app
from stockroom.query import InventoryQueryEngine
from stockroom.repository import InventoryRepository


@pytest.fixture()
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def notifier():
    return ChangeNotifier()


@pytest.fixture()
def store(session_factory, notifier):
    return LedgerStore(session_factory, notifier=notifier, default_min_stock_level=10)


@pytest.fixture()
def repository(store):
    return InventoryRepository(store, recent_limit=50)


@pytest.fixture()
def query_engine(repository):
    return InventoryQueryEngine(repository)


@pytest.fixture()
def make_product(store):
    counter = {"n": 0}

    def _make(name=None, stock=0, min_level=10, category="General", price="1.00", sku=None):
        counter["n"] += 1
        return store.create_product(
            sku=sku or f"SKU-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            category=category,
            price=Decimal(price),
            opening_stock=stock,
            min_stock_level=min_level,
        )

    return _make


@pytest.fixture()
def app():
    return create_app(Settings(DATABASE_URL="sqlite://", LOG_LEVEL="WARNING"))


@pytest.fixture()
def client(app):
    return TestClient(app)
