"""
Arbitrage Layer - Strategy models, validation and suggestions.

This module provides:
    - ArbitrageStrategy and its per-kind details payloads
    - Equivalence classes for fiat and stablecoin quote currencies
    - validate_strategy / validate_details: structural checks before writes
    - populate_strategy: expand pair references from a resolved-pair map
    - SuggestionEngine: propose Geographic drafts between two exchanges

Design Principle:
    Nothing here touches the database directly. The suggestion engine
    searches through a PairResolver, which the market pair repository
    implements and tests replace with an in-memory fake.
"""

from .equivalence import (
    EQUIVALENCE_CLASSES,
    FIAT_CODES,
    STABLECOINS,
    conversion_priority,
    variants_of,
)
from .models import (
    ArbitrageDetails,
    ArbitrageStrategy,
    ArbitrageType,
    ExchangeDetails,
    GeographicDetails,
    PopulatedArbitrageStrategy,
    TradingPairDetails,
    TriangularDetails,
)
from .population import pair_references, populate_details, populate_strategy
from .suggestion import PairResolver, SuggestionEngine
from .validator import validate_details, validate_strategy

__all__ = [
    "EQUIVALENCE_CLASSES",
    "FIAT_CODES",
    "STABLECOINS",
    "conversion_priority",
    "variants_of",
    "ArbitrageDetails",
    "ArbitrageStrategy",
    "ArbitrageType",
    "ExchangeDetails",
    "GeographicDetails",
    "PopulatedArbitrageStrategy",
    "TradingPairDetails",
    "TriangularDetails",
    "pair_references",
    "populate_details",
    "populate_strategy",
    "PairResolver",
    "SuggestionEngine",
    "validate_details",
    "validate_strategy",
]
