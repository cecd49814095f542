"""Engine helpers for the shared job store."""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from resumegen.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def create_store_engine(database_url: str, **engine_options) -> Engine:
    """Create an engine for worker processes that run outside a Flask app."""
    if database_url.startswith("sqlite"):
        connect_args = engine_options.setdefault("connect_args", {})
        connect_args.setdefault("timeout", SQLITE_BUSY_TIMEOUT_SECONDS)
    else:
        engine_options.setdefault("pool_pre_ping", True)
    engine = create_engine(database_url, **engine_options)
    return configure_store_engine(engine)


def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


def _begin_immediate(conn):
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def configure_store_engine(engine: Engine) -> Engine:
    """
    Prepare an engine for queue use.

    SQLite has no row locks, so every transaction is opened with
    BEGIN IMMEDIATE: claims from concurrent connections are serialized
    instead of failing on lock upgrade. Other dialects are left untouched.
    """
    if engine.dialect.name != "sqlite" or event.contains(engine, "begin", _begin_immediate):
        return engine

    event.listen(engine, "connect", _disable_pysqlite_transactions)
    event.listen(engine, "begin", _begin_immediate)
    logger.debug("Configured SQLite engine for serialized queue transactions")
    return engine


class StoreSession:
    """Session factory that maps driver failures to StoreUnavailableError."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._factory = sessionmaker(bind=engine, expire_on_commit=False)

    @contextmanager
    def begin(self) -> Iterator[Session]:
        """Open a session with a transaction committed on success."""
        try:
            with self._factory() as session, session.begin():
                yield session
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Job store unreachable: {e}")
            raise StoreUnavailableError(str(e.orig) if e.orig else str(e)) from e
        except DBAPIError as e:
            if e.connection_invalidated:
                logger.error(f"Job store connection lost: {e}")
                raise StoreUnavailableError("connection lost") from e
            raise
