"""
Exchange and asset repository tests.
"""
import pytest

from arbitrage_hub.errors import InvalidReferenceError, NotFoundError
from arbitrage_hub.storage.models import Asset, Exchange
from arbitrage_hub.storage.repositories import AssetRepository, ExchangeRepository


@pytest.mark.asyncio
class TestExchangeRepository:
    async def test_create(self, mock_db, ids):
        mock_db.fetchrow.return_value = {
            "id": ids.exchange_a,
            "name": "Binance",
            "short_name": "BIN",
            "url": "https://binance.com",
            "created_at": 1700000000.0,
            "updated_at": 1700000000.0,
        }
        repo = ExchangeRepository(mock_db)

        result = await repo.create(Exchange(name="Binance", short_name="BIN", url="https://binance.com"))

        assert result.id == ids.exchange_a
        args = mock_db.fetchrow.call_args[0]
        assert "INSERT INTO exchanges" in args[0]
        assert args[2:5] == ("Binance", "BIN", "https://binance.com")

    async def test_get_missing(self, mock_db, ids):
        repo = ExchangeRepository(mock_db)

        with pytest.raises(NotFoundError, match="Exchange not found"):
            await repo.get(ids.exchange_a)

    async def test_get_malformed_id(self, mock_db):
        repo = ExchangeRepository(mock_db)

        with pytest.raises(InvalidReferenceError):
            await repo.get("binance")

        mock_db.fetchrow.assert_not_called()


@pytest.mark.asyncio
class TestAssetRepository:
    async def test_create_requires_valid_exchange_id(self, mock_db):
        repo = AssetRepository(mock_db)

        with pytest.raises(InvalidReferenceError, match="exchange_id"):
            await repo.create(Asset(exchange_id="bad", name="Tether", short_name="USDT"))

    async def test_get_by_exchange(self, mock_db, ids):
        mock_db.fetch.return_value = [
            {
                "id": ids.usdt_a,
                "exchange_id": ids.exchange_a,
                "name": "Tether",
                "short_name": "USDT",
                "created_at": 1700000000.0,
                "updated_at": 1700000000.0,
                "status": True,
            }
        ]
        repo = AssetRepository(mock_db)

        assets = await repo.get_by_exchange(ids.exchange_a)

        assert [a.short_name for a in assets] == ["USDT"]
        assert mock_db.fetch.call_args[0][1] == ids.exchange_a
