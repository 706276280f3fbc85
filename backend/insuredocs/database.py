"""Database session factory and configuration.

Provides database connectivity and session management for the document
lifecycle service. A session is the unit of work: every lifecycle operation
runs inside exactly one session transaction.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import settings


def configure_sqlite_engine(engine: Engine) -> Engine:
    """Make a SQLite engine behave like the production store.

    pysqlite defers BEGIN until the first DML statement, which breaks
    SAVEPOINT semantics used by the audit trail. Take over transaction
    control from the driver and turn on foreign key enforcement.

    Args:
        engine: Engine bound to a sqlite:// URL

    Returns:
        Engine: The same engine, with listeners attached
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine with the pool settings appropriate for the backend.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log SQL statements
        **kwargs: Extra keyword arguments forwarded to create_engine

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": echo,
    }

    # Pool settings only apply to server databases
    if not database_url.startswith("sqlite"):
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    engine_kwargs.update(kwargs)
    engine = create_engine(database_url, **engine_kwargs)

    if database_url.startswith("sqlite"):
        configure_sqlite_engine(engine)

    return engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.query(Document).all()

    Automatically commits on success, rolls back on exception.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.get("/documents")
        def list_documents(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
