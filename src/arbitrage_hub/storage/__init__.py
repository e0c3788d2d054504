"""
Storage Layer - Async PostgreSQL database, schema and record models.

Public API:
    Database, DatabaseConfig - Connection pool management
    apply_schema - Create tables and indexes on startup

    Models:
        Exchange, Asset, MarketPair - Raw reference records
        PopulatedMarketPair - Market pair with exchange and assets expanded

    Identifiers:
        new_record_id, parse_record_id, is_valid_record_id

Repositories live in arbitrage_hub.storage.repositories.
"""
from arbitrage_hub.storage.database import Database, DatabaseConfig
from arbitrage_hub.storage.identifiers import (
    is_valid_record_id,
    new_record_id,
    parse_record_id,
)
from arbitrage_hub.storage.models import (
    Asset,
    Exchange,
    MarketPair,
    PopulatedMarketPair,
)
from arbitrage_hub.storage.schema import apply_schema

__all__ = [
    "Database",
    "DatabaseConfig",
    "apply_schema",
    "Asset",
    "Exchange",
    "MarketPair",
    "PopulatedMarketPair",
    "is_valid_record_id",
    "new_record_id",
    "parse_record_id",
]
