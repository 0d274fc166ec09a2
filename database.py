"""
Database connection and session management for AdherenceLens
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, Sequence

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from config import settings


logger = logging.getLogger(__name__)


# Create SQLAlchemy engine
if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite specific configuration
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=settings.DATABASE_ECHO
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
else:
    # PostgreSQL or other databases
    engine = create_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True
    )

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Base class for ORM models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session and close it afterwards.

    Usage:
        for db in get_db():
            db.query(Item).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database session.
    Commits on success, rolls back and re-raises on error.

    Usage:
        with get_db_context() as db:
            db.query(Item).all()
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """
    Initialize database tables.
    Creates all tables defined in models.
    """
    # Import models to register them with Base
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialized at: {settings.DATABASE_URL}")


def upsert(
    session: Session,
    model,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str]
) -> None:
    """
    Insert a row or update the existing one sharing its natural key.

    SQLite and PostgreSQL get a single INSERT ... ON CONFLICT DO UPDATE so
    concurrent writers cannot create duplicates. Other dialects insert inside
    a savepoint and fall back to an UPDATE when the unique key already exists.

    Args:
        session: Database session
        model: ORM model class
        values: Column values for the insert
        conflict_columns: Columns of the unique constraint
        update_columns: Columns overwritten when the row already exists
    """
    table = model.__table__
    dialect = session.get_bind().dialect.name

    if dialect in ("sqlite", "postgresql"):
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            from sqlalchemy.dialects.postgresql import insert

        stmt = insert(table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_={col: stmt.excluded[col] for col in update_columns}
        )
        session.execute(stmt)
        return

    try:
        with session.begin_nested():
            session.execute(table.insert().values(**values))
    except IntegrityError:
        key = {col: values[col] for col in conflict_columns}
        session.execute(
            table.update()
            .where(*[table.c[col] == val for col, val in key.items()])
            .values(**{col: values[col] for col in update_columns})
        )


# Export commonly used items
__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "get_db",
    "get_db_context",
    "init_db",
    "upsert"
]
