# stockroom/main.py
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockroom.config import Settings, settings as default_settings
from stockroom.database import init_db, make_engine, make_session_factory
from stockroom.ledger import LedgerStore
from stockroom.live import ChangeNotifier
from stockroom.query import InventoryQueryEngine
from stockroom.repository import InventoryRepository
from stockroom.utils.logging_config import configure_logging

load_dotenv()

# Routers
from stockroom.routes.live import router as live_router
from stockroom.routes.logs import router as logs_router
from stockroom.routes.products import router as products_router
from stockroom.routes.stats import router as stats_router
from stockroom.routes.stock import router as stock_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    # Storage and the single notifier every live view listens on
    engine = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
    init_db(engine)
    session_factory = make_session_factory(engine)

    notifier = ChangeNotifier()
    store = LedgerStore(session_factory, notifier=notifier,
                        default_min_stock_level=settings.DEFAULT_MIN_STOCK_LEVEL)
    repository = InventoryRepository(store, recent_limit=settings.RECENT_MOVEMENTS_LIMIT)

    app = FastAPI(title="Stockroom API", version="1.0.0")

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.store = store
    app.state.repository = repository
    app.state.query_engine = InventoryQueryEngine(repository)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Router registration
    app.include_router(products_router)
    app.include_router(stock_router)
    app.include_router(stats_router)
    app.include_router(logs_router)
    app.include_router(live_router)

    @app.get("/")
    def read_root():
        return {
            "message": "Stockroom API is running",
            "search_debounce_ms": settings.SEARCH_DEBOUNCE_MS,
        }

    logger.info("Stockroom API ready (database: %s)", engine.url.render_as_string(hide_password=True))
    return app
