import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from order_mgt.core import config
from order_mgt.core.exceptions import InfrastructureFailure

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str = config.DATABASE_URL, echo: bool = config.SQL_ECHO) -> Engine:
    """Create an engine; SQLite connections get foreign key enforcement"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, echo=echo, connect_args=connect_args)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    """Re-raise database errors as InfrastructureFailure after logging them"""
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception(f"Database error during {operation}")
        raise InfrastructureFailure(operation, e) from e


@contextmanager
def unit_of_work(db: Session, operation: str) -> Iterator[Session]:
    """
    Run a block of reads and writes as one transaction.

    Commits when the block finishes, rolls back on any exception. Callers
    never observe a partially applied block.
    """
    try:
        with storage_guard(operation):
            yield db
            db.commit()
    except Exception:
        db.rollback()
        raise
