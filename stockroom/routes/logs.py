# stockroom/routes/logs.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from stockroom.dependencies import get_db, parse_dt
from stockroom.models.log import Log

router = APIRouter(prefix="/logs", tags=["Logs"])

# --- SCHEMAS ---
class LogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor: Optional[str] = None
    action: str
    resource: str
    status: str
    ts: datetime
    meta: Optional[Any] = None

class LogPage(BaseModel):
    items: List[LogResponse]
    total: int
    page: int
    page_size: int

# --- ENDPOINT ---
@router.get("", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Filter by action"),
    actor: Optional[str] = Query(None, description="Filter by staff member"),
    resource: Optional[str] = Query(None, description="Filter by resource"),
    status: Optional[str] = Query(None, description="Filter by status (SUCCESS/FAIL)"),
    date_from: Optional[str] = Query(None, description="Date from (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="Date to (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    query = db.query(Log)

    # 1. Action
    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))

    # 2. Actor
    if actor:
        query = query.filter(Log.actor == actor)

    # 3. Resource
    if resource:
        query = query.filter(Log.resource.ilike(f"%{resource}%"))

    # 4. Status
    if status:
        query = query.filter(Log.status == status)

    # 5. Dates
    dt_from = parse_dt(date_from)
    if dt_from is not None:
        query = query.filter(Log.ts >= dt_from)

    dt_to = parse_dt(date_to, end_of_day=True)
    if dt_to is not None:
        query = query.filter(Log.ts <= dt_to)

    query = query.order_by(Log.ts.desc(), Log.id.desc())

    total = query.count()
    logs = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": logs,
        "total": total,
        "page": page,
        "page_size": page_size,
    }
