"""
SQLAlchemy engine singleton with production-ready connection pooling.

Server databases (PostgreSQL) get a sized, pre-pinged pool for concurrent
booking requests. SQLite is accepted for local development and tests; it
gets a thread-shareable connection and explicit BEGIN IMMEDIATE transactions
so SAVEPOINTs work and concurrent writers queue on the database lock.
"""

from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url

from hotel_booking.config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")


def _enable_sqlite_transactions(target: Engine) -> None:
    # pysqlite defers BEGIN until the first DML statement; take over transaction
    # control so every engine.begin() block is one serialized write transaction.
    @event.listens_for(target, "connect")
    def _disable_pysqlite_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine with pool settings appropriate for the URL's backend.

    Args:
        url: SQLAlchemy database URL
        echo: Log every SQL statement (development only)

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    options: dict[str, Any] = {"future": True, "echo": echo}
    is_sqlite = make_url(url).get_backend_name() == "sqlite"

    if is_sqlite:
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
    else:
        options.update(
            pool_size=10,  # Number of connections to maintain in the pool
            max_overflow=20,  # Additional connections when pool is exhausted
            pool_pre_ping=True,  # Detect stale connections before use
            pool_recycle=3600,  # Recycle connections after 1 hour
        )

    new_engine = create_engine(url, **options)
    if is_sqlite:
        _enable_sqlite_transactions(new_engine)
    return new_engine


engine: Engine = build_engine(DATABASE_URL)


def check_engine_health(target: Engine | None = None) -> bool:
    """
    Check if the database is reachable.

    Used by the /ready endpoint before allowing traffic to the service.

    Args:
        target: Engine to probe (defaults to the application engine)

    Returns:
        bool: True if a trivial query succeeds, False otherwise
    """
    try:
        with (target or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
