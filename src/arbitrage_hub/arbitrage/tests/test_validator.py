"""
Strategy validation tests.
"""
import pytest

from arbitrage_hub.arbitrage.models import (
    ArbitrageStrategy,
    ArbitrageType,
    ExchangeDetails,
    GeographicDetails,
    TradingPairDetails,
    TriangularDetails,
)
from arbitrage_hub.arbitrage.validator import validate_details, validate_strategy
from arbitrage_hub.errors import DuplicatePairError, InvalidReferenceError, ValidationError


class TestReferenceSyntax:
    def test_valid_geographic(self, pair_ids):
        p1, p2, p3 = pair_ids
        validate_details(GeographicDetails(pair1=p1, pair2=p2, conversion_pair=p3))

    @pytest.mark.parametrize("field", ["pair1", "pair2", "conversion_pair"])
    def test_invalid_geographic_reference_names_field(self, pair_ids, field):
        refs = dict(zip(["pair1", "pair2", "conversion_pair"], pair_ids))
        refs[field] = "not-a-pair"

        with pytest.raises(InvalidReferenceError) as exc_info:
            validate_details(GeographicDetails(**refs))

        assert exc_info.value.message == f"Invalid identifier for Geographic arbitrage: {field}"

    def test_all_zero_reference_rejected(self, pair_ids):
        with pytest.raises(InvalidReferenceError):
            validate_details(ExchangeDetails(pair1=pair_ids[0], pair2="0" * 24))

    def test_first_invalid_field_reported(self):
        with pytest.raises(InvalidReferenceError, match="pair1"):
            validate_details(TriangularDetails(pair1="x", pair2="y", pair3="z"))


class TestDistinctness:
    @pytest.mark.parametrize("details_cls", [TriangularDetails, TradingPairDetails])
    @pytest.mark.parametrize(
        "legs",
        [(0, 0, 1), (0, 1, 0), (1, 0, 0), (2, 2, 2)],
    )
    def test_repeated_leg_rejected(self, pair_ids, details_cls, legs):
        p = [pair_ids[i] for i in legs]

        with pytest.raises(DuplicatePairError, match="All pairs must be different"):
            validate_details(details_cls(pair1=p[0], pair2=p[1], pair3=p[2]))

    @pytest.mark.parametrize("details_cls", [TriangularDetails, TradingPairDetails])
    def test_distinct_legs_accepted(self, pair_ids, details_cls):
        validate_details(details_cls(pair1=pair_ids[0], pair2=pair_ids[1], pair3=pair_ids[2]))

    def test_case_variants_count_as_same_pair(self, pair_ids):
        p1, p2, _ = pair_ids
        upper = p1.replace("c", "C")

        with pytest.raises(DuplicatePairError):
            validate_details(TriangularDetails(pair1=p1, pair2=p2, pair3=upper))

    def test_two_exchange_kinds_allow_repeats(self, pair_ids):
        p1, p2, _ = pair_ids
        validate_details(ExchangeDetails(pair1=p1, pair2=p1))
        validate_details(GeographicDetails(pair1=p1, pair2=p2, conversion_pair=p1))


class TestValidateStrategy:
    def test_type_must_match_details(self, pair_ids):
        strategy = ArbitrageStrategy(
            arbitrage_type=ArbitrageType.GEOGRAPHIC,
            details=ExchangeDetails(pair1=pair_ids[0], pair2=pair_ids[1]),
        )

        with pytest.raises(ValidationError):
            validate_strategy(strategy)

    def test_unknown_details_type(self):
        with pytest.raises(TypeError):
            validate_details(object())
