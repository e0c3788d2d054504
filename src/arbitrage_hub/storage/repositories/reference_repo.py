"""
Reference data repositories.

Handles:
- exchanges: trading venues
- assets: tickers listed on an exchange

Only insert and lookup are provided; these records feed the market pair
resolver and the suggestion engine.
"""
from __future__ import annotations

from arbitrage_hub.storage.identifiers import new_record_id, parse_record_id
from arbitrage_hub.storage.models import Asset, Exchange
from arbitrage_hub.storage.repositories.base import BaseRepository, now_ts


class ExchangeRepository(BaseRepository[Exchange]):
    """Repository for exchanges."""

    table_name = "exchanges"
    model_class = Exchange
    entity_name = "Exchange"

    async def create(self, exchange: Exchange) -> Exchange:
        """Insert an exchange, stamping id and timestamps."""
        now = now_ts()
        query = """
            INSERT INTO exchanges (id, name, short_name, url, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING *
        """
        async with self._persisting("insert"):
            record = await self.db.fetchrow(
                query,
                new_record_id(now),
                exchange.name,
                exchange.short_name,
                exchange.url,
                now,
                now,
            )
        return self._record_to_model(record)

    async def list_all(self) -> list[Exchange]:
        query = "SELECT * FROM exchanges ORDER BY created_at, id"
        async with self._persisting("fetch"):
            records = await self.db.fetch(query)
        return self._records_to_models(records)


class AssetRepository(BaseRepository[Asset]):
    """Repository for assets."""

    table_name = "assets"
    model_class = Asset
    entity_name = "Asset"

    async def create(self, asset: Asset) -> Asset:
        """Insert an asset, stamping id and timestamps."""
        now = now_ts()
        query = """
            INSERT INTO assets (id, exchange_id, name, short_name, created_at, updated_at, status)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING *
        """
        async with self._persisting("insert"):
            record = await self.db.fetchrow(
                query,
                new_record_id(now),
                parse_record_id(asset.exchange_id, "exchange_id"),
                asset.name,
                asset.short_name,
                now,
                now,
                asset.status,
            )
        return self._record_to_model(record)

    async def get_by_exchange(self, exchange_id: str) -> list[Asset]:
        query = """
            SELECT * FROM assets
            WHERE exchange_id = $1
            ORDER BY created_at, id
        """
        async with self._persisting("fetch"):
            records = await self.db.fetch(query, parse_record_id(exchange_id, "exchange_id"))
        return self._records_to_models(records)
