"""
PostgreSQL schema for Arbitrage Hub.

Reference data tables carry no foreign keys: references between records are
weak, and readers treat a dangling reference as "not resolvable" instead of
relying on the database to prevent it.
"""
from __future__ import annotations

import logging

from arbitrage_hub.storage.database import Database

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS exchanges (
    id          CHAR(24) PRIMARY KEY,
    name        TEXT NOT NULL,
    short_name  TEXT NOT NULL,
    url         TEXT NOT NULL DEFAULT '',
    created_at  DOUBLE PRECISION NOT NULL DEFAULT 0,
    updated_at  DOUBLE PRECISION NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS assets (
    id          CHAR(24) PRIMARY KEY,
    exchange_id CHAR(24) NOT NULL,
    name        TEXT NOT NULL,
    short_name  TEXT NOT NULL,
    created_at  DOUBLE PRECISION NOT NULL DEFAULT 0,
    updated_at  DOUBLE PRECISION NOT NULL DEFAULT 0,
    status      BOOLEAN NOT NULL DEFAULT TRUE
);
CREATE INDEX IF NOT EXISTS idx_assets_short_name ON assets (short_name);

CREATE TABLE IF NOT EXISTS market_pairs (
    id              CHAR(24) PRIMARY KEY,
    exchange_id     CHAR(24) NOT NULL,
    base_asset_id   CHAR(24) NOT NULL,
    quote_asset_id  CHAR(24) NOT NULL,
    created_at      DOUBLE PRECISION NOT NULL DEFAULT 0,
    updated_at      DOUBLE PRECISION NOT NULL DEFAULT 0,
    status          BOOLEAN NOT NULL DEFAULT TRUE
);
CREATE INDEX IF NOT EXISTS idx_market_pairs_exchange ON market_pairs (exchange_id);

CREATE TABLE IF NOT EXISTS arbitrage_strategies (
    id              CHAR(24) PRIMARY KEY,
    arbitrage_type  TEXT NOT NULL,
    details         JSONB NOT NULL,
    created_at      DOUBLE PRECISION NOT NULL DEFAULT 0,
    updated_at      DOUBLE PRECISION NOT NULL DEFAULT 0,
    status          BOOLEAN NOT NULL DEFAULT TRUE,
    version         INTEGER NOT NULL DEFAULT 1
);
CREATE INDEX IF NOT EXISTS idx_arbitrage_strategies_type ON arbitrage_strategies (arbitrage_type);
"""


async def apply_schema(db: Database) -> None:
    """Create tables and indexes if they do not exist."""
    await db.execute(SCHEMA_SQL)
    logger.info("Database schema applied")
