# stockroom/database.py
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def normalize_url(url: str) -> str:
    # Hosted Postgres hands out postgres://, SQLAlchemy wants postgresql://
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def make_engine(url: str, echo: bool = False) -> Engine:
    url = normalize_url(url)
    if "sqlite" not in url:
        return create_engine(url, echo=echo, pool_pre_ping=True)

    connect_args = {"check_same_thread": False}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every session sees an empty database
        return create_engine(url, echo=echo, connect_args=connect_args, poolclass=StaticPool)
    connect_args["timeout"] = 30
    return create_engine(url, echo=echo, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    # Rows stay readable after commit so the repository can convert them
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    import stockroom.models.product  # noqa: F401
    import stockroom.models.stock  # noqa: F401
    import stockroom.models.log  # noqa: F401

    Base.metadata.create_all(bind=engine)


def utcnow() -> datetime:
    """Naive UTC timestamp, the only form written to the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
