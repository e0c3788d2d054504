"""
Strategy suggestion engine.

Given two exchanges, proposes draft strategies by searching the pair store.
Only Geographic arbitrage is implemented: the same base asset quoted on both
exchanges, with the two quote currencies bridged by a conversion pair that
can live on any exchange. Quote currencies are compared through their
equivalence classes, so BTC/USDT on one exchange matches BTC/USDC on the
other.

Suggestions are drafts. Nothing is persisted here.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol, Union

from arbitrage_hub.arbitrage.equivalence import variants_of
from arbitrage_hub.arbitrage.models import ArbitrageStrategy, ArbitrageType, GeographicDetails
from arbitrage_hub.errors import NotImplementedStrategyError
from arbitrage_hub.storage.identifiers import parse_record_id
from arbitrage_hub.storage.models import PopulatedMarketPair

logger = logging.getLogger(__name__)


class PairResolver(Protocol):
    """The pair searches the engine needs. MarketPairRepository satisfies this."""

    async def resolve_by_exchange(self, exchange_id: str) -> list[PopulatedMarketPair]:
        ...

    async def find_matching_pair(
        self,
        exchange_id: str,
        base_symbol: str,
        quote_symbols: Iterable[str],
    ) -> Optional[PopulatedMarketPair]:
        ...

    async def find_conversion_pair(
        self,
        symbols_a: Iterable[str],
        symbols_b: Iterable[str],
    ) -> Optional[PopulatedMarketPair]:
        ...


class SuggestionEngine:
    """Proposes draft arbitrage strategies between two exchanges."""

    def __init__(self, resolver: PairResolver) -> None:
        self.resolver = resolver

    async def suggest(
        self,
        exchange1: str,
        exchange2: str,
        strategy_type: Union[ArbitrageType, str],
    ) -> list[ArbitrageStrategy]:
        """Suggest strategies of one type between two exchanges.

        Raises:
            InvalidReferenceError: If either exchange id is malformed
            NotImplementedStrategyError: For any type other than Geographic
        """
        if strategy_type in (ArbitrageType.GEOGRAPHIC, ArbitrageType.GEOGRAPHIC.value):
            return await self.suggest_geographic(exchange1, exchange2)
        raise NotImplementedStrategyError("Strategy type not implemented")

    async def suggest_geographic(self, exchange1: str, exchange2: str) -> list[ArbitrageStrategy]:
        """Geographic drafts for every pair of exchange1 that has a counterpart on exchange2.

        A pair is skipped when exchange2 has no pair with the same base and an
        equivalent quote, or when no conversion pair links the two quotes.
        """
        exchange1 = parse_record_id(exchange1, "exchange1")
        exchange2 = parse_record_id(exchange2, "exchange2")

        pairs = await self.resolver.resolve_by_exchange(exchange1)
        logger.info(f"Searching geographic arbitrage for {len(pairs)} pairs of exchange {exchange1}")

        suggestions: list[ArbitrageStrategy] = []
        for pair1 in pairs:
            quote_variants = variants_of(pair1.quote_asset.short_name)

            pair2 = await self.resolver.find_matching_pair(
                exchange2, pair1.base_asset.short_name, quote_variants
            )
            if pair2 is None:
                logger.debug(f"No counterpart for {pair1.symbol} on exchange {exchange2}")
                continue

            conversion = await self.resolver.find_conversion_pair(
                quote_variants, variants_of(pair2.quote_asset.short_name)
            )
            if conversion is None:
                logger.debug(f"No conversion pair for {pair1.symbol} -> {pair2.symbol}")
                continue

            logger.info(
                f"Geographic opportunity: {pair1.symbol} / {pair2.symbol} via {conversion.symbol}"
            )
            suggestions.append(
                ArbitrageStrategy.draft(
                    GeographicDetails(
                        pair1=pair1.id,
                        pair2=pair2.id,
                        conversion_pair=conversion.id,
                    )
                )
            )

        logger.info(f"Found {len(suggestions)} geographic suggestions")
        return suggestions
