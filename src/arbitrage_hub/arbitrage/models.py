"""
Arbitrage strategy models.

`details` is a tagged union: each arbitrage kind has its own payload shape
and the shapes share no fields. Pydantic dispatches on the `kind` literal;
code consuming a payload checks the concrete variant and fails loudly on one
it does not handle (see arbitrage/population.py and arbitrage/validator.py).

Wire format:
    {
        "arbitrage_type": "Geographic",
        "details": {"pair1": "...", "pair2": "...", "conversion_pair": "..."},
        "status": true
    }

`details.kind` may be omitted; it is filled from `arbitrage_type`. The
externally tagged form {"details": {"Geographic": {...}}} is accepted too.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from arbitrage_hub.storage.models import PopulatedMarketPair


class ArbitrageType(str, Enum):
    """Kinds of arbitrage strategy."""

    GEOGRAPHIC = "Geographic"  # Same pair on two exchanges, quotes bridged by a conversion pair
    EXCHANGE = "Exchange"  # Same pair on two exchanges
    TRIANGULAR = "Triangular"  # Three-leg cycle, typically on one exchange
    TRADING_PAIR = "TradingPair"  # Three-leg shape, classified separately


# =============================================================================
# DETAILS (references only)
# =============================================================================


class GeographicDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["Geographic"] = "Geographic"
    pair1: str
    pair2: str
    conversion_pair: str


class ExchangeDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["Exchange"] = "Exchange"
    pair1: str
    pair2: str


class TriangularDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["Triangular"] = "Triangular"
    pair1: str
    pair2: str
    pair3: str


class TradingPairDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["TradingPair"] = "TradingPair"
    pair1: str
    pair2: str
    pair3: str


AnyDetails = Union[GeographicDetails, ExchangeDetails, TriangularDetails, TradingPairDetails]

ArbitrageDetails = Annotated[AnyDetails, Field(discriminator="kind")]


def normalize_details(data: Any) -> Any:
    """Fill details.kind from arbitrage_type and unwrap externally tagged details."""
    if not isinstance(data, dict):
        return data
    details = data.get("details")
    if not isinstance(details, dict):
        return data

    if len(details) == 1:
        tag = next(iter(details))
        payload = details[tag]
        if tag in {t.value for t in ArbitrageType} and isinstance(payload, dict):
            details = {**payload, "kind": tag}

    arbitrage_type = data.get("arbitrage_type")
    if "kind" not in details and arbitrage_type is not None:
        if isinstance(arbitrage_type, ArbitrageType):
            arbitrage_type = arbitrage_type.value
        details = {**details, "kind": arbitrage_type}

    return {**data, "details": details}


class ArbitrageStrategy(BaseModel):
    """A stored (or draft) arbitrage strategy."""

    id: Optional[str] = None
    arbitrage_type: ArbitrageType
    details: ArbitrageDetails
    created_at: float = 0.0
    updated_at: float = 0.0
    status: bool = True
    # 0 for drafts, 1 on insert, +1 per update
    version: int = 0

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        return normalize_details(data)

    @classmethod
    def draft(cls, details: AnyDetails) -> "ArbitrageStrategy":
        """An unsaved strategy: no id, zero timestamps, active."""
        return cls(
            id=None,
            arbitrage_type=ArbitrageType(details.kind),
            details=details,
            created_at=0.0,
            updated_at=0.0,
            status=True,
            version=0,
        )


# =============================================================================
# POPULATED DETAILS (references expanded)
# =============================================================================


class PopulatedGeographicDetails(BaseModel):
    kind: Literal["Geographic"] = "Geographic"
    pair1: PopulatedMarketPair
    pair2: PopulatedMarketPair
    conversion_pair: PopulatedMarketPair


class PopulatedExchangeDetails(BaseModel):
    kind: Literal["Exchange"] = "Exchange"
    pair1: PopulatedMarketPair
    pair2: PopulatedMarketPair


class PopulatedTriangularDetails(BaseModel):
    kind: Literal["Triangular"] = "Triangular"
    pair1: PopulatedMarketPair
    pair2: PopulatedMarketPair
    pair3: PopulatedMarketPair


class PopulatedTradingPairDetails(BaseModel):
    kind: Literal["TradingPair"] = "TradingPair"
    pair1: PopulatedMarketPair
    pair2: PopulatedMarketPair
    pair3: PopulatedMarketPair


AnyPopulatedDetails = Union[
    PopulatedGeographicDetails,
    PopulatedExchangeDetails,
    PopulatedTriangularDetails,
    PopulatedTradingPairDetails,
]

PopulatedArbitrageDetails = Annotated[AnyPopulatedDetails, Field(discriminator="kind")]


class PopulatedArbitrageStrategy(BaseModel):
    """Read projection of a stored strategy with every pair resolved."""

    id: str
    arbitrage_type: ArbitrageType
    details: PopulatedArbitrageDetails
    created_at: float
    updated_at: float
    status: bool
    version: int = 1
