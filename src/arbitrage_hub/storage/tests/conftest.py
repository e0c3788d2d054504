"""
Storage layer test fixtures.

Repository tests run against an AsyncMock database: they check the shape of
the SQL sent and how returned rows are mapped, without a PostgreSQL server.
"""
from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock

EXCHANGE_A = "65a000000000000000000001"
EXCHANGE_B = "65a000000000000000000002"
BTC_A = "65b000000000000000000001"
USDT_A = "65b000000000000000000002"
BTC_B = "65b000000000000000000003"
USDC_B = "65b000000000000000000004"
PAIR_A = "65c000000000000000000001"
PAIR_B = "65c000000000000000000002"
PAIR_CONV = "65c000000000000000000003"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_db():
    """Mock database for unit tests."""
    db = AsyncMock()
    db.execute = AsyncMock(return_value="DELETE 0")
    db.fetch = AsyncMock(return_value=[])
    db.fetchrow = AsyncMock(return_value=None)
    db.fetchval = AsyncMock(return_value=None)
    return db


# =============================================================================
# Row Fixtures
# =============================================================================


@pytest.fixture
def ids():
    """Well-known record ids used by the row fixtures."""
    return SimpleNamespace(
        exchange_a=EXCHANGE_A,
        exchange_b=EXCHANGE_B,
        btc_a=BTC_A,
        usdt_a=USDT_A,
        btc_b=BTC_B,
        usdc_b=USDC_B,
        pair_a=PAIR_A,
        pair_b=PAIR_B,
        pair_conv=PAIR_CONV,
    )


@pytest.fixture
def joined_row():
    """Factory for rows shaped like the market pair join query."""

    def _build(
        pair_id: str = PAIR_A,
        exchange_id: str = EXCHANGE_A,
        base: tuple[str, str] = (BTC_A, "BTC"),
        quote: tuple[str, str] = (USDT_A, "USDT"),
        created_at: float = 1700000000.0,
    ) -> dict:
        base_id, base_symbol = base
        quote_id, quote_symbol = quote
        return {
            "id": pair_id,
            "created_at": created_at,
            "updated_at": created_at,
            "status": True,
            "ex_id": exchange_id,
            "ex_name": f"Exchange {exchange_id[-1]}",
            "ex_short_name": f"EX{exchange_id[-1]}",
            "ex_url": "https://example.com",
            "ex_created_at": 1690000000.0,
            "ex_updated_at": 1690000000.0,
            "base_id": base_id,
            "base_exchange_id": exchange_id,
            "base_name": base_symbol.title(),
            "base_short_name": base_symbol,
            "base_created_at": 1690000000.0,
            "base_updated_at": 1690000000.0,
            "base_status": True,
            "quote_id": quote_id,
            "quote_exchange_id": exchange_id,
            "quote_name": quote_symbol.title(),
            "quote_short_name": quote_symbol,
            "quote_created_at": 1690000000.0,
            "quote_updated_at": 1690000000.0,
            "quote_status": True,
        }

    return _build


@pytest.fixture
def pair_row():
    """A raw market_pairs row."""
    return {
        "id": PAIR_A,
        "exchange_id": EXCHANGE_A,
        "base_asset_id": BTC_A,
        "quote_asset_id": USDT_A,
        "created_at": 1700000000.0,
        "updated_at": 1700000000.0,
        "status": True,
    }


@pytest.fixture
def geographic_row():
    """A raw arbitrage_strategies row; details come back from asyncpg as JSON text."""
    return {
        "id": "65d000000000000000000001",
        "arbitrage_type": "Geographic",
        "details": (
            '{"kind": "Geographic", "pair1": "%s", "pair2": "%s", "conversion_pair": "%s"}'
            % (PAIR_A, PAIR_B, PAIR_CONV)
        ),
        "created_at": 1700000100.0,
        "updated_at": 1700000100.0,
        "status": True,
        "version": 1,
    }
