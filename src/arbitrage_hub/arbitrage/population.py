"""
Per-variant reference extraction and population.

Each arbitrage kind names its pair references differently. The functions
here pick the reference fields from the concrete variant and, given a map of
resolved pairs, build the matching populated variant. Adding a kind means
adding a branch to each function; an unknown variant raises TypeError.
"""
from __future__ import annotations

from typing import Mapping, Optional

from arbitrage_hub.arbitrage.models import (
    AnyDetails,
    AnyPopulatedDetails,
    ArbitrageStrategy,
    ExchangeDetails,
    GeographicDetails,
    PopulatedArbitrageStrategy,
    PopulatedExchangeDetails,
    PopulatedGeographicDetails,
    PopulatedTradingPairDetails,
    PopulatedTriangularDetails,
    TradingPairDetails,
    TriangularDetails,
)
from arbitrage_hub.storage.models import PopulatedMarketPair


def pair_references(details: AnyDetails) -> dict[str, str]:
    """Reference fields of a payload, in declaration order: {field: pair_id}."""
    if isinstance(details, GeographicDetails):
        return {
            "pair1": details.pair1,
            "pair2": details.pair2,
            "conversion_pair": details.conversion_pair,
        }
    if isinstance(details, ExchangeDetails):
        return {"pair1": details.pair1, "pair2": details.pair2}
    if isinstance(details, (TriangularDetails, TradingPairDetails)):
        return {"pair1": details.pair1, "pair2": details.pair2, "pair3": details.pair3}
    raise TypeError(f"Unhandled arbitrage details: {type(details).__name__}")


def canonical_details(details: AnyDetails) -> AnyDetails:
    """Same payload with every reference in canonical lowercase form."""
    refs = pair_references(details)
    return details.model_copy(update={field: value.lower() for field, value in refs.items()})


def populate_details(
    details: AnyDetails,
    pairs: Mapping[str, PopulatedMarketPair],
) -> Optional[AnyPopulatedDetails]:
    """Expand every reference of a payload, or None if any is unresolved."""
    resolved = {}
    for field, pair_id in pair_references(details).items():
        pair = pairs.get(pair_id.lower())
        if pair is None:
            return None
        resolved[field] = pair

    if isinstance(details, GeographicDetails):
        return PopulatedGeographicDetails(**resolved)
    if isinstance(details, ExchangeDetails):
        return PopulatedExchangeDetails(**resolved)
    if isinstance(details, TriangularDetails):
        return PopulatedTriangularDetails(**resolved)
    if isinstance(details, TradingPairDetails):
        return PopulatedTradingPairDetails(**resolved)
    raise TypeError(f"Unhandled arbitrage details: {type(details).__name__}")


def populate_strategy(
    strategy: ArbitrageStrategy,
    pairs: Mapping[str, PopulatedMarketPair],
) -> Optional[PopulatedArbitrageStrategy]:
    """Populated view of a stored strategy, or None if any pair is unresolved."""
    details = populate_details(strategy.details, pairs)
    if details is None:
        return None
    return PopulatedArbitrageStrategy(
        id=strategy.id,
        arbitrage_type=strategy.arbitrage_type,
        details=details,
        created_at=strategy.created_at,
        updated_at=strategy.updated_at,
        status=strategy.status,
        version=strategy.version,
    )
