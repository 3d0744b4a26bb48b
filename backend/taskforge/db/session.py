"""Async engine and session factory shared by requests and the sweep loop."""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from taskforge.core.config import settings


def _engine_kwargs(url: str) -> dict:
    kwargs: dict = {"echo": settings.DEBUG}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"timeout": 30}
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


def _enable_sqlite_savepoints(sync_engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT nests inside it.

    The sqlite driver otherwise defers BEGIN to the first write, and a
    SAVEPOINT issued before that write would become the outer transaction.
    """

    @event.listens_for(sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))
if engine.dialect.name == "sqlite":
    _enable_sqlite_savepoints(engine.sync_engine)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
