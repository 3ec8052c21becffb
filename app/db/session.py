from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from app.config import Settings
from app.db.models import Base
from app.db.store import UserStore
from app.errors import StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


def get_engine(settings: Settings, **kwargs: Any) -> Engine:
    url = make_url(settings.database_url)
    if url.get_backend_name() == "mysql":
        # pymysql otherwise waits on a stalled server forever.
        timeout = settings.store_timeout_seconds
        kwargs.setdefault(
            "connect_args",
            {"connect_timeout": timeout, "read_timeout": timeout, "write_timeout": timeout},
        )
    return create_engine(url, pool_pre_ping=True, **kwargs)


def sync_schema(engine: Engine) -> list[str]:
    """Create missing tables and add missing columns. Never drops or alters.

    Returns the ``table.column`` names that were added to existing tables.
    """
    Base.metadata.create_all(engine)

    inspector = inspect(engine)
    missing = []
    for table in Base.metadata.sorted_tables:
        existing = {col["name"] for col in inspector.get_columns(table.name)}
        missing.extend((table, column) for column in table.columns if column.name not in existing)
    if not missing:
        return []

    quote = engine.dialect.identifier_preparer.quote
    with engine.begin() as conn:
        for table, column in missing:
            # Added as nullable so rows already in the table stay valid.
            column_type = column.type.compile(dialect=engine.dialect)
            conn.execute(text(f"ALTER TABLE {quote(table.name)} ADD COLUMN {quote(column.name)} {column_type}"))

    added = [f"{table.name}.{column.name}" for table, column in missing]
    logger.info("schema.columns_added", extra={"columns": added})
    return added


def init_store(settings: Settings, engine: Engine | None = None) -> UserStore:
    """Connect to the store and bring the schema up to date.

    The first connection failure is fatal; there is no retry.
    """
    engine = engine or get_engine(settings)
    logger.info("store.connecting", extra={"backend": engine.url.get_backend_name()})
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("store.connect_failed", extra={"error": str(exc)})
        raise StoreUnavailableError(f"Unable to connect to store: {exc}") from exc

    logger.info("store.connected")
    try:
        sync_schema(engine)
    except SQLAlchemyError as exc:
        logger.error("schema.sync_failed", extra={"error": str(exc)})
        raise StoreError("Unable to bring schema up to date", "migrate") from exc
    return UserStore(engine)
