"""
Integration tests for the strategy lifecycle against PostgreSQL.

Run with:
    ARBHUB_TEST_DATABASE_URL=postgresql://... pytest tests/integration/ -v -m integration

Skip with:
    pytest -m "not integration"
"""

import pytest

from arbitrage_hub.arbitrage.models import (
    ArbitrageStrategy,
    ArbitrageType,
    ExchangeDetails,
    GeographicDetails,
)
from arbitrage_hub.arbitrage.suggestion import SuggestionEngine
from arbitrage_hub.errors import ConflictError, NotFoundError
from arbitrage_hub.storage.models import Asset, MarketPair

pytestmark = pytest.mark.integration


async def _list_pair(repos, exchange, base_symbol, quote_symbol):
    """Create both assets on `exchange` and a pair trading them."""
    base = await repos.assets.create(Asset(exchange_id=exchange.id, name=base_symbol, short_name=base_symbol))
    quote = await repos.assets.create(Asset(exchange_id=exchange.id, name=quote_symbol, short_name=quote_symbol))
    return await repos.pairs.create(
        MarketPair(exchange_id=exchange.id, base_asset_id=base.id, quote_asset_id=quote.id)
    )


@pytest.mark.asyncio
class TestSuggestAndStore:
    async def test_suggest_then_persist(self, repos, market):
        engine = SuggestionEngine(repos.pairs)

        drafts = await engine.suggest(market.binance.id, market.kraken.id, ArbitrageType.GEOGRAPHIC)

        assert len(drafts) == 1
        assert drafts[0].details == GeographicDetails(
            pair1=market.btc_usdt.id,
            pair2=market.btc_usdc.id,
            conversion_pair=market.usdt_usdc.id,
        )

        stored = await repos.strategies.create(drafts[0])
        assert stored.id is not None
        assert stored.version == 1
        assert stored.created_at == stored.updated_at > 0

        populated = await repos.strategies.get_populated(stored.id)
        assert populated.details.pair1.symbol == "BTC/USDT"
        assert populated.details.pair2.exchange.short_name == "KRK"
        assert populated.details.conversion_pair.symbol == "USDT/USDC"

    async def test_listing_drops_strategies_with_deleted_pairs(self, repos, market):
        kept = await repos.strategies.create(
            ArbitrageStrategy.draft(ExchangeDetails(pair1=market.btc_usdt.id, pair2=market.usdt_usdc.id))
        )
        broken = await repos.strategies.create(
            ArbitrageStrategy.draft(
                GeographicDetails(
                    pair1=market.btc_usdt.id,
                    pair2=market.btc_usdc.id,
                    conversion_pair=market.usdt_usdc.id,
                )
            )
        )
        await repos.pairs.delete(market.btc_usdc.id)

        page = await repos.strategies.list_populated(page=1, per_page=10)

        assert [s.id for s in page.items] == [kept.id]
        assert page.total == 2

        with pytest.raises(NotFoundError):
            await repos.strategies.get_populated(broken.id)
        assert (await repos.strategies.get(broken.id)).id == broken.id

    async def test_optimistic_update(self, repos, market):
        stored = await repos.strategies.create(
            ArbitrageStrategy.draft(ExchangeDetails(pair1=market.btc_usdt.id, pair2=market.btc_usdc.id))
        )
        replacement = stored.model_copy(update={"status": False})

        updated = await repos.strategies.update(stored.id, replacement, expected_version=1)
        assert updated.version == 2
        assert updated.status is False

        with pytest.raises(ConflictError):
            await repos.strategies.update(stored.id, replacement, expected_version=1)

    async def test_pagination_is_stable(self, repos, market):
        created = []
        for _ in range(5):
            strategy = await repos.strategies.create(
                ArbitrageStrategy.draft(ExchangeDetails(pair1=market.btc_usdt.id, pair2=market.btc_usdc.id))
            )
            created.append(strategy.id)

        seen = []
        for page_number in (1, 2, 3):
            page = await repos.strategies.list_populated(page=page_number, per_page=2)
            seen.extend(s.id for s in page.items)

        assert seen == created


@pytest.mark.asyncio
class TestConversionRanking:
    async def test_fiat_pair_beats_older_crypto_pair(self, repos, market):
        await _list_pair(repos, market.binance, "WBTC", "ETH")
        fiat = await _list_pair(repos, market.kraken, "USD", "EUR")

        pair = await repos.pairs.find_conversion_pair({"USD", "WBTC"}, {"EUR", "ETH"})

        assert pair.id == fiat.id
        assert pair.symbol == "USD/EUR"

    async def test_crypto_pair_found_in_reverse_orientation(self, repos, market):
        crypto = await _list_pair(repos, market.binance, "ETH", "WBTC")

        pair = await repos.pairs.find_conversion_pair({"WBTC"}, {"ETH"})

        assert pair.id == crypto.id

    async def test_suggestion_prefers_fiat_conversion(self, repos, market):
        # market.usdt_usdc is an older stablecoin-only bridge between USDT and USDC
        fiat = await _list_pair(repos, market.kraken, "USD", "USDC")
        engine = SuggestionEngine(repos.pairs)

        drafts = await engine.suggest(market.binance.id, market.kraken.id, ArbitrageType.GEOGRAPHIC)

        assert len(drafts) == 1
        assert drafts[0].details.pair1 == market.btc_usdt.id
        assert drafts[0].details.pair2 == market.btc_usdc.id
        assert drafts[0].details.conversion_pair == fiat.id
