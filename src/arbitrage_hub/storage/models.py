"""
Pydantic models for the reference data collections.

Field names match the PostgreSQL schema in storage/schema.py. Timestamps are
float unix seconds; 0 means "not stamped yet".
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


# =============================================================================
# REFERENCE RECORDS
# =============================================================================


class Exchange(BaseModel):
    """A trading venue."""

    id: Optional[str] = None
    name: str
    short_name: str
    url: str = ""
    created_at: float = 0.0
    updated_at: float = 0.0


class Asset(BaseModel):
    """An asset listed on an exchange. short_name is the ticker (e.g. USDT)."""

    id: Optional[str] = None
    exchange_id: str
    name: str
    short_name: str
    created_at: float = 0.0
    updated_at: float = 0.0
    status: bool = True


class MarketPair(BaseModel):
    """A tradable base/quote pair on one exchange."""

    id: Optional[str] = None
    exchange_id: str
    base_asset_id: str
    quote_asset_id: str
    created_at: float = 0.0
    updated_at: float = 0.0
    status: bool = True


class PopulatedMarketPair(BaseModel):
    """Read-only view of a MarketPair with its references expanded."""

    model_config = ConfigDict(frozen=True)

    id: str
    exchange: Exchange
    base_asset: Asset
    quote_asset: Asset
    created_at: float = 0.0
    updated_at: float = 0.0
    status: bool = True

    @property
    def symbol(self) -> str:
        """Human-readable pair name, e.g. BTC/USDT."""
        return f"{self.base_asset.short_name}/{self.quote_asset.short_name}"

    @classmethod
    def from_joined_row(cls, row: dict[str, Any]) -> "PopulatedMarketPair":
        """Build from a row produced by the market pair join query.

        Joined columns are prefixed ex_, base_ and quote_.
        """
        return cls(
            id=row["id"],
            exchange=Exchange(
                id=row["ex_id"],
                name=row["ex_name"],
                short_name=row["ex_short_name"],
                url=row["ex_url"],
                created_at=row["ex_created_at"],
                updated_at=row["ex_updated_at"],
            ),
            base_asset=Asset(
                id=row["base_id"],
                exchange_id=row["base_exchange_id"],
                name=row["base_name"],
                short_name=row["base_short_name"],
                created_at=row["base_created_at"],
                updated_at=row["base_updated_at"],
                status=row["base_status"],
            ),
            quote_asset=Asset(
                id=row["quote_id"],
                exchange_id=row["quote_exchange_id"],
                name=row["quote_name"],
                short_name=row["quote_short_name"],
                created_at=row["quote_created_at"],
                updated_at=row["quote_updated_at"],
                status=row["quote_status"],
            ),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            status=row["status"],
        )
