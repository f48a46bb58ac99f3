from sqlalchemy import Column, Integer, String, DateTime, JSON
from stockroom.database import Base, utcnow

# Operational audit log for changes that are not stock movements
# (product creation, threshold updates, ledger resets)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    # Event timestamp and core action details
    ts = Column(DateTime, nullable=False, default=utcnow, index=True)
    actor = Column(String(100), nullable=True)
    action = Column(String(50), index=True)
    resource = Column(String(50), index=True)
    status = Column(String(20), index=True)

    # JSON container for flexible context data
    meta = Column(JSON, nullable=True)
