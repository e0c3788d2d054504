"""
Market pair repository and resolver.

Raw pairs only hold references (exchange_id, base_asset_id, quote_asset_id).
Every read that returns a PopulatedMarketPair inner-joins the exchange and
both assets, so a pair with a dangling reference never appears in a listing
and is reported as not found on a single-item lookup.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from arbitrage_hub.arbitrage.equivalence import conversion_priority, variants_of
from arbitrage_hub.config import settings
from arbitrage_hub.errors import NotFoundError, ValidationError
from arbitrage_hub.storage.identifiers import new_record_id, parse_record_id
from arbitrage_hub.storage.models import MarketPair, PopulatedMarketPair
from arbitrage_hub.storage.repositories.base import (
    AsyncDatabase,
    BaseRepository,
    PaginatedResult,
    like_pattern,
    now_ts,
    page_offset,
)

logger = logging.getLogger(__name__)

_POPULATED_COLUMNS = """
    mp.id, mp.created_at, mp.updated_at, mp.status,
    ex.id AS ex_id, ex.name AS ex_name, ex.short_name AS ex_short_name, ex.url AS ex_url,
    ex.created_at AS ex_created_at, ex.updated_at AS ex_updated_at,
    ba.id AS base_id, ba.exchange_id AS base_exchange_id, ba.name AS base_name,
    ba.short_name AS base_short_name, ba.created_at AS base_created_at,
    ba.updated_at AS base_updated_at, ba.status AS base_status,
    qa.id AS quote_id, qa.exchange_id AS quote_exchange_id, qa.name AS quote_name,
    qa.short_name AS quote_short_name, qa.created_at AS quote_created_at,
    qa.updated_at AS quote_updated_at, qa.status AS quote_status
"""

_POPULATED_JOINS = """
    FROM market_pairs mp
    JOIN exchanges ex ON ex.id = mp.exchange_id
    JOIN assets ba ON ba.id = mp.base_asset_id
    JOIN assets qa ON qa.id = mp.quote_asset_id
"""

_NATURAL_ORDER = "ORDER BY mp.created_at ASC, mp.id ASC"


@dataclass
class MarketPairFilter:
    """Filter criteria for populated pair listings."""

    exchange_id: Optional[str] = None
    # Case-insensitive substring of the base or quote ticker
    search: Optional[str] = None


def _populated(rows: Iterable[dict[str, Any]]) -> list[PopulatedMarketPair]:
    return [PopulatedMarketPair.from_joined_row(row) for row in rows]


class MarketPairRepository(BaseRepository[MarketPair]):
    """Repository for market pairs, including join-based resolution."""

    table_name = "market_pairs"
    model_class = MarketPair
    entity_name = "Market pair"

    def __init__(self, db: AsyncDatabase, max_per_page: int = settings.max_per_page) -> None:
        super().__init__(db)
        self.max_per_page = max_per_page

    # -------------------------------------------------------------------------
    # Raw record lifecycle
    # -------------------------------------------------------------------------

    @staticmethod
    def _checked_refs(pair: MarketPair) -> tuple[str, str, str]:
        exchange_id = parse_record_id(pair.exchange_id, "exchange_id")
        base_id = parse_record_id(pair.base_asset_id, "base_asset_id")
        quote_id = parse_record_id(pair.quote_asset_id, "quote_asset_id")
        if base_id == quote_id:
            raise ValidationError("Base and quote asset must be different")
        return exchange_id, base_id, quote_id

    async def create(self, pair: MarketPair) -> MarketPair:
        """Insert a market pair, stamping id and timestamps."""
        exchange_id, base_id, quote_id = self._checked_refs(pair)
        now = now_ts()
        query = """
            INSERT INTO market_pairs
            (id, exchange_id, base_asset_id, quote_asset_id, created_at, updated_at, status)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING *
        """
        async with self._persisting("insert"):
            record = await self.db.fetchrow(
                query, new_record_id(now), exchange_id, base_id, quote_id, now, now, pair.status
            )
        return self._record_to_model(record)

    async def update(self, pair_id: str, pair: MarketPair) -> MarketPair:
        """Replace a pair's references and status, refreshing updated_at."""
        pair_id = parse_record_id(pair_id)
        exchange_id, base_id, quote_id = self._checked_refs(pair)
        query = """
            UPDATE market_pairs
            SET exchange_id = $2,
                base_asset_id = $3,
                quote_asset_id = $4,
                status = $5,
                updated_at = $6
            WHERE id = $1
            RETURNING *
        """
        async with self._persisting("update"):
            record = await self.db.fetchrow(
                query, pair_id, exchange_id, base_id, quote_id, pair.status, now_ts()
            )
        if record is None:
            raise NotFoundError("Market pair not found")
        return self._record_to_model(record)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    async def resolve(self, pair_id: str) -> PopulatedMarketPair:
        """Resolve one pair with its exchange and assets.

        Raises:
            NotFoundError: If the pair or any record it references is missing
        """
        query = f"SELECT {_POPULATED_COLUMNS} {_POPULATED_JOINS} WHERE mp.id = $1"
        async with self._persisting("resolve"):
            row = await self.db.fetchrow(query, parse_record_id(pair_id, "pair_id"))
        if row is None:
            raise NotFoundError("Market pair not found")
        return PopulatedMarketPair.from_joined_row(row)

    async def resolve_ids(self, pair_ids: Iterable[str]) -> dict[str, PopulatedMarketPair]:
        """Resolve many pairs in one query. Unresolvable ids are absent from the result."""
        ids = sorted({parse_record_id(p, "pair_id") for p in pair_ids})
        if not ids:
            return {}
        query = f"SELECT {_POPULATED_COLUMNS} {_POPULATED_JOINS} WHERE mp.id = ANY($1::text[])"
        async with self._persisting("resolve"):
            rows = await self.db.fetch(query, ids)
        return {pair.id: pair for pair in _populated(rows)}

    async def resolve_by_exchange(self, exchange_id: str) -> list[PopulatedMarketPair]:
        """All resolvable pairs listed on an exchange, in creation order."""
        query = f"""
            SELECT {_POPULATED_COLUMNS} {_POPULATED_JOINS}
            WHERE mp.exchange_id = $1
            {_NATURAL_ORDER}
        """
        async with self._persisting("resolve"):
            rows = await self.db.fetch(query, parse_record_id(exchange_id, "exchange_id"))
        return _populated(rows)

    async def resolve_many(
        self,
        pair_filter: Optional[MarketPairFilter] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> PaginatedResult[PopulatedMarketPair]:
        """List resolvable pairs with filtering and pagination.

        The total comes from a COUNT over the same joined predicate as the
        page, so pairs with broken references are excluded from both.

        Raises:
            ValueError: If page < 1 or per_page not in valid range
        """
        offset = page_offset(page, per_page, self.max_per_page)

        conditions: list[str] = []
        params: list[Any] = []
        param_idx = 1

        if pair_filter and pair_filter.exchange_id:
            conditions.append(f"mp.exchange_id = ${param_idx}")
            params.append(parse_record_id(pair_filter.exchange_id, "exchange_id"))
            param_idx += 1

        if pair_filter and pair_filter.search:
            conditions.append(
                f"(ba.short_name ILIKE ${param_idx} OR qa.short_name ILIKE ${param_idx})"
            )
            params.append(like_pattern(pair_filter.search))
            param_idx += 1

        where_clause = ""
        if conditions:
            where_clause = "WHERE " + " AND ".join(conditions)

        count_query = f"SELECT COUNT(*) {_POPULATED_JOINS} {where_clause}"
        query = f"""
            SELECT {_POPULATED_COLUMNS} {_POPULATED_JOINS}
            {where_clause}
            {_NATURAL_ORDER}
            LIMIT ${param_idx} OFFSET ${param_idx + 1}
        """

        async with self._persisting("list"):
            total = await self.db.fetchval(count_query, *params)
            rows = await self.db.fetch(query, *params, per_page, offset)

        return PaginatedResult(
            items=_populated(rows),
            total=total or 0,
            page=page,
            per_page=per_page,
        )

    # -------------------------------------------------------------------------
    # Equivalence-aware searches
    # -------------------------------------------------------------------------

    async def find_matching_pair(
        self,
        exchange_id: str,
        base_symbol: str,
        quote_symbols: Iterable[str],
    ) -> Optional[PopulatedMarketPair]:
        """First pair on an exchange trading `base_symbol` against any of `quote_symbols`."""
        query = f"""
            SELECT {_POPULATED_COLUMNS} {_POPULATED_JOINS}
            WHERE mp.exchange_id = $1
              AND ba.short_name = $2
              AND qa.short_name = ANY($3::text[])
            {_NATURAL_ORDER}
            LIMIT 1
        """
        async with self._persisting("search"):
            row = await self.db.fetchrow(
                query,
                parse_record_id(exchange_id, "exchange_id"),
                base_symbol,
                sorted(quote_symbols),
            )
        return PopulatedMarketPair.from_joined_row(row) if row else None

    async def find_conversion_pair(
        self,
        symbols_a: Iterable[str],
        symbols_b: Iterable[str],
    ) -> Optional[PopulatedMarketPair]:
        """Best pair on any exchange bridging a symbol in A with a symbol in B.

        Either orientation qualifies (base in A and quote in B, or the
        reverse). Candidates are ranked by `conversion_priority`; ties go to
        the oldest pair.
        """
        query = f"""
            SELECT {_POPULATED_COLUMNS} {_POPULATED_JOINS}
            WHERE (ba.short_name = ANY($1::text[]) AND qa.short_name = ANY($2::text[]))
               OR (ba.short_name = ANY($2::text[]) AND qa.short_name = ANY($1::text[]))
            {_NATURAL_ORDER}
        """
        async with self._persisting("search"):
            rows = await self.db.fetch(query, sorted(symbols_a), sorted(symbols_b))

        candidates = _populated(rows)
        if not candidates:
            return None
        # min() keeps the first of equal ranks, i.e. the oldest
        return min(
            candidates,
            key=lambda p: conversion_priority(p.base_asset.short_name, p.quote_asset.short_name),
        )

    async def find_conversion_pairs(self, pair1_id: str, pair2_id: str) -> list[PopulatedMarketPair]:
        """All pairs whose assets bridge the quote assets of two given pairs.

        Raises:
            NotFoundError: If either pair does not exist
        """
        pair1 = await self._get_named(pair1_id, "Pair1")
        pair2 = await self._get_named(pair2_id, "Pair2")
        query = f"""
            SELECT {_POPULATED_COLUMNS} {_POPULATED_JOINS}
            WHERE (mp.base_asset_id = $1 AND mp.quote_asset_id = $2)
               OR (mp.base_asset_id = $2 AND mp.quote_asset_id = $1)
            {_NATURAL_ORDER}
        """
        async with self._persisting("search"):
            rows = await self.db.fetch(query, pair1.quote_asset_id, pair2.quote_asset_id)
        return _populated(rows)

    async def find_conversion_pairs_for_symbols(
        self,
        quote_symbol1: str,
        quote_symbol2: str,
    ) -> list[PopulatedMarketPair]:
        """All pairs trading any variant of either quote symbol on either side."""
        symbols = sorted(variants_of(quote_symbol1) | variants_of(quote_symbol2))
        query = f"""
            SELECT {_POPULATED_COLUMNS} {_POPULATED_JOINS}
            WHERE ba.short_name = ANY($1::text[]) OR qa.short_name = ANY($1::text[])
            {_NATURAL_ORDER}
        """
        async with self._persisting("search"):
            rows = await self.db.fetch(query, symbols)
        return _populated(rows)

    async def _get_named(self, pair_id: str, label: str) -> MarketPair:
        try:
            return await self.get(pair_id)
        except NotFoundError:
            raise NotFoundError(f"{label} not found") from None
