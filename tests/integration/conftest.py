"""
Integration test fixtures.

These fixtures build real repositories over the test database and seed a
small two-exchange market.
"""

from types import SimpleNamespace

import pytest
import pytest_asyncio

from arbitrage_hub.storage.models import Asset, Exchange, MarketPair
from arbitrage_hub.storage.repositories import (
    ArbitrageStrategyRepository,
    AssetRepository,
    ExchangeRepository,
    MarketPairRepository,
)

# Mark all tests in this directory as integration tests
pytestmark = pytest.mark.integration


@pytest.fixture
def repos(db):
    pairs = MarketPairRepository(db)
    return SimpleNamespace(
        exchanges=ExchangeRepository(db),
        assets=AssetRepository(db),
        pairs=pairs,
        strategies=ArbitrageStrategyRepository(db, pairs),
    )


@pytest_asyncio.fixture
async def market(repos):
    """Binance lists BTC/USDT and USDT/USDC; Kraken lists BTC/USDC."""
    binance = await repos.exchanges.create(Exchange(name="Binance", short_name="BIN"))
    kraken = await repos.exchanges.create(Exchange(name="Kraken", short_name="KRK"))

    async def asset(exchange, symbol):
        return await repos.assets.create(Asset(exchange_id=exchange.id, name=symbol, short_name=symbol))

    async def pair(exchange, base, quote):
        return await repos.pairs.create(
            MarketPair(exchange_id=exchange.id, base_asset_id=base.id, quote_asset_id=quote.id)
        )

    btc_bin = await asset(binance, "BTC")
    usdt_bin = await asset(binance, "USDT")
    usdc_bin = await asset(binance, "USDC")
    btc_krk = await asset(kraken, "BTC")
    usdc_krk = await asset(kraken, "USDC")

    return SimpleNamespace(
        binance=binance,
        kraken=kraken,
        btc_usdt=await pair(binance, btc_bin, usdt_bin),
        usdt_usdc=await pair(binance, usdt_bin, usdc_bin),
        btc_usdc=await pair(kraken, btc_krk, usdc_krk),
    )
