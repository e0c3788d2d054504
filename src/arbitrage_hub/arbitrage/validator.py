"""
Structural validation of arbitrage strategies before they are written.

Validation checks identifier syntax and, for the three-leg kinds, that the
legs are distinct. It never checks that the referenced pairs exist; a
dangling reference only surfaces when the strategy is populated.
"""
from __future__ import annotations

from arbitrage_hub.arbitrage.models import (
    AnyDetails,
    ArbitrageStrategy,
    ExchangeDetails,
    GeographicDetails,
    TradingPairDetails,
    TriangularDetails,
)
from arbitrage_hub.arbitrage.population import pair_references
from arbitrage_hub.errors import DuplicatePairError, InvalidReferenceError, ValidationError
from arbitrage_hub.storage.identifiers import is_valid_record_id


def validate_details(details: AnyDetails) -> None:
    """Validate a details payload.

    Raises:
        InvalidReferenceError: If any pair reference is not a valid identifier
        DuplicatePairError: If a Triangular/TradingPair payload repeats a pair
    """
    refs = pair_references(details)
    for field, value in refs.items():
        if not is_valid_record_id(value):
            raise InvalidReferenceError(f"Invalid identifier for {details.kind} arbitrage: {field}")

    if isinstance(details, (TriangularDetails, TradingPairDetails)):
        legs = [details.pair1.lower(), details.pair2.lower(), details.pair3.lower()]
        if len(set(legs)) != len(legs):
            raise DuplicatePairError(f"All pairs must be different for {details.kind} arbitrage")
    elif isinstance(details, (GeographicDetails, ExchangeDetails)):
        # No distinctness rule for the two-exchange kinds
        pass
    else:
        raise TypeError(f"Unhandled arbitrage details: {type(details).__name__}")


def validate_strategy(strategy: ArbitrageStrategy) -> None:
    """Validate a full strategy: type/payload agreement plus validate_details."""
    if strategy.arbitrage_type.value != strategy.details.kind:
        raise ValidationError(
            f"arbitrage_type {strategy.arbitrage_type.value} does not match "
            f"details of kind {strategy.details.kind}"
        )
    validate_details(strategy.details)
