"""
Database setup for the Narathia backend.
Uses whatever DATABASE_URL points at (Postgres in production, SQLite locally and in tests).
The engine and session factory are built once by the app factory and kept on app.state.
"""

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """Create the engine. SQLite gets check_same_thread=False and enforced foreign keys."""
    is_sqlite = database_url.startswith("sqlite")
    # SQLite needs check_same_thread=False; Postgres does not use that arg
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(database_url, connect_args=connect_args, pool_pre_ping=not is_sqlite)
    if is_sqlite:
        # SQLite ignores FOREIGN KEY / ON DELETE CASCADE unless enabled per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create all tables."""
    from . import models  # noqa: F401  (register tables on Base.metadata)

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    """Dependency that yields a DB session from the app's session factory."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
