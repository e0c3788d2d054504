"""
Arbitrage layer test fixtures.

The suggestion engine is tested against an in-memory pair store that answers
the same searches as the market pair repository.
"""
import itertools
from typing import Iterable, Optional

import pytest

from arbitrage_hub.arbitrage.equivalence import conversion_priority
from arbitrage_hub.storage.models import Asset, Exchange, PopulatedMarketPair


class InMemoryPairStore:
    """PairResolver over a list of populated pairs kept in creation order."""

    def __init__(self) -> None:
        self.pairs: list[PopulatedMarketPair] = []
        self.exchanges: dict[str, Exchange] = {}
        self._ids = itertools.count(1)
        self._clock = itertools.count(1700000000)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids):021x}"

    def add_exchange(self, short_name: str) -> str:
        exchange_id = self._next_id("65a")
        self.exchanges[exchange_id] = Exchange(id=exchange_id, name=short_name.title(), short_name=short_name)
        return exchange_id

    def add_pair(self, exchange_id: str, base: str, quote: str) -> PopulatedMarketPair:
        created_at = float(next(self._clock))

        def asset(symbol: str) -> Asset:
            return Asset(
                id=self._next_id("65b"),
                exchange_id=exchange_id,
                name=symbol,
                short_name=symbol,
                created_at=created_at,
                updated_at=created_at,
            )

        pair = PopulatedMarketPair(
            id=self._next_id("65c"),
            exchange=self.exchanges[exchange_id],
            base_asset=asset(base),
            quote_asset=asset(quote),
            created_at=created_at,
            updated_at=created_at,
        )
        self.pairs.append(pair)
        return pair

    async def resolve_by_exchange(self, exchange_id: str) -> list[PopulatedMarketPair]:
        return [p for p in self.pairs if p.exchange.id == exchange_id]

    async def find_matching_pair(
        self,
        exchange_id: str,
        base_symbol: str,
        quote_symbols: Iterable[str],
    ) -> Optional[PopulatedMarketPair]:
        quotes = set(quote_symbols)
        for pair in self.pairs:
            if (
                pair.exchange.id == exchange_id
                and pair.base_asset.short_name == base_symbol
                and pair.quote_asset.short_name in quotes
            ):
                return pair
        return None

    async def find_conversion_pair(
        self,
        symbols_a: Iterable[str],
        symbols_b: Iterable[str],
    ) -> Optional[PopulatedMarketPair]:
        a, b = set(symbols_a), set(symbols_b)
        candidates = [
            p
            for p in self.pairs
            if (p.base_asset.short_name in a and p.quote_asset.short_name in b)
            or (p.base_asset.short_name in b and p.quote_asset.short_name in a)
        ]
        if not candidates:
            return None
        return min(
            candidates,
            key=lambda p: (
                conversion_priority(p.base_asset.short_name, p.quote_asset.short_name),
                p.created_at,
                p.id,
            ),
        )


@pytest.fixture
def pair_store() -> InMemoryPairStore:
    return InMemoryPairStore()


@pytest.fixture
def pair_ids():
    """Three distinct, well-formed pair ids."""
    return (
        "65c000000000000000000001",
        "65c000000000000000000002",
        "65c000000000000000000003",
    )
