"""
Unit tests for data models.

Tests cover:
- CandidateLeg keys and serialization
- LadderFactor lookup and weight validation
- ScoredLadder properties and serialization
"""

import pytest

from ladder_optimizer.models import (
    FACTOR_WEIGHTS,
    CandidateLeg,
    LadderFactor,
    format_strike,
    validate_weights,
)
from ladder_optimizer.scoring import score_ladder


class TestCandidateLeg:
    """Tests for CandidateLeg."""

    def test_key_and_highlight(self, make_leg):
        """Legs are identified by strike and expiry."""
        leg = make_leg(54000)
        assert leg.key == (54000, "27DEC24")
        assert leg.highlight_key == "HP-54000-27DEC24"

    def test_round_trip(self, make_leg):
        """to_dict output rebuilds the same leg."""
        leg = make_leg(54000)
        assert CandidateLeg.from_dict(leg.to_dict()) == leg

    def test_from_dict_defaults(self):
        """Optional fields default to a put with no instrument."""
        leg = CandidateLeg.from_dict(
            {
                "strike": "54000",
                "expiry": "27DEC24",
                "days_to_expiry": 30,
                "mark_iv": 55,
                "reference_price": 60000,
                "premium": 0.01,
                "premium_quote": 600,
                "probability_of_exercise": 0.28,
                "annualized_yield_pct": 13.5,
            }
        )
        assert leg.strike == 54000.0
        assert leg.option_type == "put"
        assert leg.instrument is None
        assert leg.moneyness_pct == 0.0

    def test_from_dict_option_type_lowercased(self, make_leg):
        """Option type is normalized to lower case."""
        data = make_leg(54000).to_dict()
        data["option_type"] = "PUT"
        assert CandidateLeg.from_dict(data).is_put

    def test_from_dict_missing_field(self, make_leg):
        """Missing required fields raise ValueError."""
        data = make_leg(54000).to_dict()
        del data["strike"]
        with pytest.raises(ValueError, match="missing field"):
            CandidateLeg.from_dict(data)

    def test_from_dict_bad_value(self, make_leg):
        """Non-numeric values raise ValueError."""
        data = make_leg(54000).to_dict()
        data["mark_iv"] = "high"
        with pytest.raises(ValueError, match="Invalid candidate leg"):
            CandidateLeg.from_dict(data)

    @pytest.mark.parametrize("strike,expected", [(54000.0, "54000"), (54000.5, "54000.5")])
    def test_format_strike(self, strike, expected):
        """Whole strikes drop the decimal point."""
        assert format_strike(strike) == expected


class TestLadderFactor:
    """Tests for LadderFactor and the weighting table."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("expected_value", LadderFactor.EXPECTED_VALUE),
            ("VOL_EDGE", LadderFactor.VOL_EDGE),
            ("Risk/Return", LadderFactor.RISK_RETURN),
            (" theta ", LadderFactor.THETA),
        ],
    )
    def test_from_name(self, name, expected):
        """Factors resolve by member name or label."""
        assert LadderFactor.from_name(name) is expected

    def test_from_name_unknown(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown ladder factor"):
            LadderFactor.from_name("momentum")

    def test_weight_order(self):
        """Weights follow the factor order."""
        assert [FACTOR_WEIGHTS[f] for f in LadderFactor] == [0.30, 0.20, 0.20, 0.15, 0.10, 0.05]

    def test_validate_missing(self):
        """Tables without every factor are rejected."""
        weights = dict(FACTOR_WEIGHTS)
        del weights[LadderFactor.KELLY]
        with pytest.raises(ValueError, match="kelly"):
            validate_weights(weights)

    def test_validate_negative(self):
        """Negative weights are rejected."""
        weights = dict(FACTOR_WEIGHTS)
        weights[LadderFactor.KELLY] = -0.1
        weights[LadderFactor.EXPECTED_VALUE] = 0.5
        with pytest.raises(ValueError, match="non-negative"):
            validate_weights(weights)


class TestScoredLadder:
    """Tests for ScoredLadder properties."""

    def test_properties(self, make_leg):
        """Expiries are distinct and in leg order."""
        ladder = score_ladder(
            [
                make_leg(54000, expiry="31JAN25", dte=60),
                make_leg(52000),
                make_leg(50000, expiry="31JAN25", dte=60),
            ],
            57,
        )
        assert ladder.num_legs == 3
        assert ladder.expiries == ["31JAN25", "27DEC24"]
        assert ladder.is_mixed_expiry

    def test_to_dict(self, scenario_legs):
        """Serialization includes legs and rounded metrics."""
        data = score_ladder(scenario_legs[:2], 57).to_dict()

        assert data["num_legs"] == 2
        assert len(data["legs"]) == 2
        assert data["legs"][0]["strike"] == 56000
        assert data["expiries"] == ["27DEC24"]
        assert data["score"] == 0.0
        assert data["top_factor"] is None
        assert "factors" not in data
