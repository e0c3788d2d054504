"""
Repository exports.
"""
from arbitrage_hub.storage.repositories.base import PaginatedResult
from arbitrage_hub.storage.repositories.market_pair_repo import (
    MarketPairFilter,
    MarketPairRepository,
)
from arbitrage_hub.storage.repositories.reference_repo import (
    AssetRepository,
    ExchangeRepository,
)
from arbitrage_hub.storage.repositories.strategy_repo import ArbitrageStrategyRepository

__all__ = [
    "ArbitrageStrategyRepository",
    "AssetRepository",
    "ExchangeRepository",
    "MarketPairFilter",
    "MarketPairRepository",
    "PaginatedResult",
]
