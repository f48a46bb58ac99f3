# stockroom/dependencies.py
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException, Request

from stockroom.errors import DuplicateSku, InsufficientStock, InvalidRequest, ProductNotFound
from stockroom.query import InventoryQueryEngine
from stockroom.repository import InventoryRepository
from stockroom.schemas.result import Result, Success


def get_repository(request: Request) -> InventoryRepository:
    return request.app.state.repository


def get_query_engine(request: Request) -> InventoryQueryEngine:
    return request.app.state.query_engine


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def parse_dt(raw: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """ISO 8601 query parameter; a bare YYYY-MM-DD upper bound covers the whole day."""
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {raw}")
    if end_of_day and len(raw) == 10:
        value = value + timedelta(days=1) - timedelta(microseconds=1)
    return value


def unwrap(result: Result):
    """Return Success data or raise the HTTP error matching the failure."""
    if isinstance(result, Success):
        return result.data

    message = getattr(result, "message", "Request is still loading")
    cause = getattr(result, "cause", None)
    if isinstance(cause, ProductNotFound):
        raise HTTPException(status_code=404, detail=message)
    if isinstance(cause, DuplicateSku):
        raise HTTPException(status_code=409, detail=message)
    if isinstance(cause, (InsufficientStock, InvalidRequest)):
        raise HTTPException(status_code=400, detail=message)
    raise HTTPException(status_code=500, detail=message)
