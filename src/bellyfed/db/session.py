"""Engine, session factory and the declarative base for ranking tables."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bellyfed.core.settings import settings


class Base(DeclarativeBase):
    pass


# Registers every table on Base.metadata for Alembic and test fixtures.
import bellyfed.models  # noqa: E402,F401


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy own BEGIN on pysqlite so SAVEPOINTs nest in the transaction.

    Without this, pysqlite defers BEGIN and a released savepoint commits.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, **kwargs: Any) -> Engine:
    """Create an engine for ``url``; SQLite engines get savepoint support."""
    kwargs.setdefault("pool_pre_ping", True)
    new_engine = create_engine(url, **kwargs)
    if new_engine.dialect.name == "sqlite":
        enable_sqlite_savepoints(new_engine)
    return new_engine


engine = build_engine(settings.sqlalchemy_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_db() -> Iterator[Session]:
    """Request-scoped session; services commit or roll back explicitly."""
    with SessionLocal() as db:
        yield db
