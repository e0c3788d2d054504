"""
Arbitrage strategy repository.

Strategies are stored with their details payload as JSONB, references only.
Populated reads resolve every referenced pair in one batched query per page
and drop entries with a dangling reference rather than failing the listing.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Protocol

from arbitrage_hub.arbitrage.models import (
    ArbitrageStrategy,
    ArbitrageType,
    PopulatedArbitrageStrategy,
)
from arbitrage_hub.arbitrage.population import (
    canonical_details,
    pair_references,
    populate_strategy,
)
from arbitrage_hub.arbitrage.validator import validate_strategy
from arbitrage_hub.config import settings
from arbitrage_hub.errors import ConflictError, NotFoundError
from arbitrage_hub.storage.identifiers import new_record_id, parse_record_id
from arbitrage_hub.storage.models import PopulatedMarketPair
from arbitrage_hub.storage.repositories.base import (
    AsyncDatabase,
    BaseRepository,
    PaginatedResult,
    now_ts,
    page_offset,
)
from arbitrage_hub.storage.repositories.market_pair_repo import MarketPairRepository

logger = logging.getLogger(__name__)


class BatchPairResolver(Protocol):
    async def resolve_ids(self, pair_ids) -> dict[str, PopulatedMarketPair]:
        ...


class ArbitrageStrategyRepository(BaseRepository[ArbitrageStrategy]):
    """Repository for arbitrage strategies."""

    table_name = "arbitrage_strategies"
    model_class = ArbitrageStrategy
    entity_name = "Arbitrage strategy"

    def __init__(
        self,
        db: AsyncDatabase,
        pair_resolver: Optional[BatchPairResolver] = None,
        max_per_page: int = settings.max_per_page,
    ) -> None:
        super().__init__(db)
        self.pair_resolver = pair_resolver or MarketPairRepository(db, max_per_page)
        self.max_per_page = max_per_page

    def _record_to_model(self, record) -> Optional[ArbitrageStrategy]:
        """Convert a row to ArbitrageStrategy, decoding the JSONB details."""
        if record is None:
            return None

        data = dict(record)
        details = data.get("details")
        if isinstance(details, str):
            data["details"] = json.loads(details)
        return ArbitrageStrategy.model_validate(data)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, strategy: ArbitrageStrategy) -> ArbitrageStrategy:
        """Validate and insert a strategy, returning the stored form.

        Raises:
            ValidationError: If the strategy fails validation
            PersistError: If the store rejects the insert
        """
        validate_strategy(strategy)
        now = now_ts()
        strategy_id = new_record_id(now)
        details_json = json.dumps(canonical_details(strategy.details).model_dump(mode="json"))

        query = """
            INSERT INTO arbitrage_strategies
            (id, arbitrage_type, details, created_at, updated_at, status, version)
            VALUES ($1, $2, $3::jsonb, $4, $5, $6, 1)
        """
        async with self._persisting("insert"):
            await self.db.execute(
                query,
                strategy_id,
                strategy.arbitrage_type.value,
                details_json,
                now,
                now,
                strategy.status,
            )
        logger.info(f"Created {strategy.arbitrage_type.value} strategy {strategy_id}")
        return await self.get(strategy_id)

    async def update(
        self,
        strategy_id: str,
        strategy: ArbitrageStrategy,
        expected_version: Optional[int] = None,
    ) -> ArbitrageStrategy:
        """Replace type, details and status of a stored strategy.

        The write only lands when the stored version matches
        `expected_version` (when given); the version is bumped on success.

        Raises:
            ValidationError: If the new strategy fails validation
            NotFoundError: If no strategy has this id
            ConflictError: If the stored version differs from expected_version
        """
        strategy_id = parse_record_id(strategy_id)
        validate_strategy(strategy)
        details_json = json.dumps(canonical_details(strategy.details).model_dump(mode="json"))

        query = """
            UPDATE arbitrage_strategies
            SET arbitrage_type = $2,
                details = $3::jsonb,
                status = $4,
                updated_at = $5,
                version = version + 1
            WHERE id = $1
              AND ($6::integer IS NULL OR version = $6::integer)
            RETURNING *
        """
        async with self._persisting("update"):
            record = await self.db.fetchrow(
                query,
                strategy_id,
                strategy.arbitrage_type.value,
                details_json,
                strategy.status,
                now_ts(),
                expected_version,
            )

        if record is None:
            if expected_version is not None and await self.exists(strategy_id):
                raise ConflictError(
                    f"Arbitrage strategy {strategy_id} was modified "
                    f"(expected version {expected_version})"
                )
            raise NotFoundError("Arbitrage strategy not found")
        return self._record_to_model(record)

    async def delete(self, strategy_id: str) -> None:
        """Delete a strategy. Deleting an id that does not exist is not an error."""
        deleted = await super().delete(strategy_id)
        if not deleted:
            logger.debug(f"Delete of missing arbitrage strategy {strategy_id}")

    # -------------------------------------------------------------------------
    # Populated reads
    # -------------------------------------------------------------------------

    async def get_populated(self, strategy_id: str) -> PopulatedArbitrageStrategy:
        """Get a strategy with every referenced pair resolved.

        Raises:
            NotFoundError: If the strategy or any pair it references is missing
        """
        strategy = await self.get(strategy_id)
        pairs = await self.pair_resolver.resolve_ids(pair_references(strategy.details).values())
        populated = populate_strategy(strategy, pairs)
        if populated is None:
            raise NotFoundError("Arbitrage strategy references a missing market pair")
        return populated

    async def list_populated(
        self,
        page: int = 1,
        per_page: int = 20,
        arbitrage_type: Optional[ArbitrageType] = None,
    ) -> PaginatedResult[PopulatedArbitrageStrategy]:
        """List strategies with resolved pairs, oldest first.

        `total` counts every strategy matching the type filter, including
        entries that were dropped from the page for a dangling reference.

        Raises:
            ValueError: If page < 1 or per_page not in valid range
        """
        offset = page_offset(page, per_page, self.max_per_page)

        where_clause = ""
        params: list[Any] = []
        if arbitrage_type is not None:
            where_clause = "WHERE arbitrage_type = $1"
            params.append(ArbitrageType(arbitrage_type).value)
        limit_idx = len(params) + 1

        count_query = f"SELECT COUNT(*) FROM arbitrage_strategies {where_clause}"
        query = f"""
            SELECT * FROM arbitrage_strategies
            {where_clause}
            ORDER BY created_at ASC, id ASC
            LIMIT ${limit_idx} OFFSET ${limit_idx + 1}
        """

        async with self._persisting("list"):
            total, records = await asyncio.gather(
                self.db.fetchval(count_query, *params),
                self.db.fetch(query, *params, per_page, offset),
            )

        strategies = self._records_to_models(records)
        pair_ids = {
            pair_id
            for strategy in strategies
            for pair_id in pair_references(strategy.details).values()
        }
        pairs = await self.pair_resolver.resolve_ids(pair_ids)

        items: list[PopulatedArbitrageStrategy] = []
        for strategy in strategies:
            populated = populate_strategy(strategy, pairs)
            if populated is None:
                logger.debug(f"Skipping strategy {strategy.id}: unresolved market pair")
                continue
            items.append(populated)

        return PaginatedResult(items=items, total=total or 0, page=page, per_page=per_page)
