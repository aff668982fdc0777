"""
Database engine factory, session factory, and base model.

Every model inherits from Base. The SQL ledger store builds its
sessions from make_session_factory().
"""

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_db_engine(database_url: str, **kwargs) -> Engine:
    """
    Create an engine for the given URL.

    pool_pre_ping=True tests connections before using them,
    which handles cases where the database restarted or a
    connection went stale.

    SQLite does not enforce foreign keys unless asked to on
    every new connection, so the pragma is switched on here.
    """
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})

    engine = create_engine(database_url, pool_pre_ping=True, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """
    Build the session factory used for ledger transactions.

    autoflush=False means SQLAlchemy won't send SQL to the
    database until we explicitly flush or commit.
    expire_on_commit=False keeps the rows returned from a
    committed transaction readable after the session closes.
    """
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


class Base(DeclarativeBase):
    pass
