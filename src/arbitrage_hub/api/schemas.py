"""
Request and response schemas for the HTTP API.

Every response uses the same envelope: {"message": str, "data": payload}.
"""
from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field, model_validator

from arbitrage_hub.arbitrage.models import (
    ArbitrageDetails,
    ArbitrageStrategy,
    ArbitrageType,
    PopulatedArbitrageStrategy,
    normalize_details,
)
from arbitrage_hub.storage.models import Asset, Exchange, MarketPair, PopulatedMarketPair


class ApiResponse(BaseModel):
    """Response envelope."""

    message: str
    data: Any = None


def envelope(message: str, data: Any = None) -> ApiResponse:
    return ApiResponse(message=message, data=jsonable_encoder(data))


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: bool


# =============================================================================
# Request bodies
# =============================================================================


class StrategyRequest(BaseModel):
    """Body of POST/PUT /arbitrage-strategies."""

    arbitrage_type: ArbitrageType
    details: ArbitrageDetails
    status: bool = True

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        return normalize_details(data)

    def to_strategy(self) -> ArbitrageStrategy:
        return ArbitrageStrategy(
            arbitrage_type=self.arbitrage_type,
            details=self.details,
            status=self.status,
        )


class ExchangeRequest(BaseModel):
    name: str = Field(min_length=1)
    short_name: str = Field(min_length=1)
    url: str = ""

    def to_exchange(self) -> Exchange:
        return Exchange(name=self.name, short_name=self.short_name, url=self.url)


class AssetRequest(BaseModel):
    exchange_id: str
    name: str = Field(min_length=1)
    short_name: str = Field(min_length=1)
    status: bool = True

    def to_asset(self) -> Asset:
        return Asset(
            exchange_id=self.exchange_id,
            name=self.name,
            short_name=self.short_name,
            status=self.status,
        )


class MarketPairRequest(BaseModel):
    exchange_id: str
    base_asset_id: str
    quote_asset_id: str
    status: bool = True

    def to_market_pair(self) -> MarketPair:
        return MarketPair(
            exchange_id=self.exchange_id,
            base_asset_id=self.base_asset_id,
            quote_asset_id=self.quote_asset_id,
            status=self.status,
        )


# =============================================================================
# Listing payloads
# =============================================================================


class StrategyPage(BaseModel):
    strategies: list[PopulatedArbitrageStrategy]
    total: int
    page: int
    per_page: int
    total_pages: int


class MarketPairPage(BaseModel):
    market_pairs: list[PopulatedMarketPair]
    total: int
    page: int
    per_page: int
    total_pages: int


class Suggestions(BaseModel):
    strategies: list[ArbitrageStrategy]
