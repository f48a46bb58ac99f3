from sqlalchemy.orm import Session
from stockroom.models.log import Log

def write_log(db: Session, *, action, resource, actor=None, status="SUCCESS", meta=None):
    # Joins the caller's transaction; the caller commits or rolls back
    entry = Log(actor=actor, action=action, resource=resource, status=status, meta=meta or {})
    db.add(entry)
    return entry
