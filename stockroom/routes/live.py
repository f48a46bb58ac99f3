# stockroom/routes/live.py
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from stockroom.query import InventoryFilter, InventorySubscription, SortOption, StockStatus
from stockroom.schemas.result import Error, Loading, Result, Success

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Live"])


def _frame(result: Result, subscription: Optional[InventorySubscription]) -> dict:
    if isinstance(result, Loading):
        return {"status": result.status}
    if isinstance(result, Success):
        items = [product.model_dump(mode="json") for product in result.data]
        return {
            "status": result.status,
            "items": items,
            "total": len(items),
            "message": None if items or subscription is None else subscription.empty_message,
        }
    return {"status": result.status, "message": result.message}


# =========================
# LIVE INVENTORY VIEW
# =========================
# Server pushes {status, items, total, message} whenever the view changes.
# Client may send a JSON filter at any time to change search/category/tab/sort.
@router.websocket("/ws/inventory")
async def inventory_feed(
    websocket: WebSocket,
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    stock_status: StockStatus = Query(StockStatus.ALL),
    sort: SortOption = Query(SortOption.NAME),
):
    engine = websocket.app.state.query_engine
    await websocket.accept()

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def push(result: Result) -> None:
        # Ledger writes notify from worker threads
        loop.call_soon_threadsafe(queue.put_nowait, result)

    query = InventoryFilter(search_text=search or "", category=category or None,
                            stock_status=stock_status, sort=sort)
    subscription = await run_in_threadpool(engine.subscribe, query, push)

    async def forward():
        while True:
            result = await queue.get()
            await websocket.send_json(_frame(result, subscription))

    async def watch():
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
            text = message.get("text")
            if not text:
                continue
            try:
                new_filter = InventoryFilter.model_validate_json(text)
            except ValidationError as exc:
                push(Error(message=f"Invalid filter: {exc.error_count()} error(s)", cause=exc))
                continue
            await run_in_threadpool(subscription.set_filter, new_filter)

    tasks = [asyncio.create_task(forward()), asyncio.create_task(watch())]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            if task.exception() is not None:
                logger.warning("Inventory feed ended with error: %s", task.exception())
    finally:
        subscription.close()
        logger.debug("Inventory feed closed (%s)", subscription.filter)
