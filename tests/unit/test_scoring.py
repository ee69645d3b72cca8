"""
Unit tests for the scoring module.

Tests the additive depeg risk model: per-factor weights, exclusive
thresholds, level bands and the RiskScorer wrapper.
"""

import pytest

from depeg_monitor.core.scoring import (
    RiskScorer,
    explain_factors,
    factor_breached,
    score_observation,
    score_to_level,
)
from depeg_monitor.models import RiskLevel
from depeg_monitor.thresholds import DEFAULT_REASON, RISK_FACTORS


class TestScoreObservation:
    """Tests for the main scoring function."""

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.smoke
    def test_calm_observation_scores_zero(self, observation_factory):
        """All metrics in range: score 0, level Low."""
        risk = score_observation(observation_factory())

        assert risk.score == 0
        assert risk.level == RiskLevel.LOW
        assert risk.factors == ()
        assert risk.reason == DEFAULT_REASON

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.parametrize("fields", [
        {"price": 0.98},
        {"price": 1.02},
        {"on_chain_volume": 1.5e6},
        {"wallet_concentration": 0.08},
        {"market_volatility": 0.04},
        {"social_sentiment": 40},
        {"price": 0.98, "on_chain_volume": 1.5e6, "wallet_concentration": 0.08,
         "market_volatility": 0.04, "social_sentiment": 40},
    ])
    def test_thresholds_are_exclusive(self, observation_factory, fields):
        """Values exactly on a threshold do not breach it."""
        risk = score_observation(observation_factory(**fields))

        assert risk.score == 0
        assert risk.level == RiskLevel.LOW

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.parametrize("fields,expected_score,expected_factor", [
        ({"price": 0.9799}, 2.0, "peg_deviation"),
        ({"price": 1.0201}, 2.0, "peg_deviation"),
        ({"on_chain_volume": 1.5e6 + 1}, 1.5, "on_chain_volume"),
        ({"wallet_concentration": 0.081}, 1.0, "wallet_concentration"),
        ({"market_volatility": 0.041}, 1.0, "market_volatility"),
        ({"social_sentiment": 39.9}, 0.5, "social_sentiment"),
    ])
    def test_single_factor_weights(self, observation_factory, fields, expected_score, expected_factor):
        """Each factor contributes exactly its weight."""
        risk = score_observation(observation_factory(**fields))

        assert risk.score == pytest.approx(expected_score)
        assert risk.factors == (expected_factor,)
        assert risk.level == RiskLevel.LOW

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_fully_stressed_observation_is_high(self, observation_factory, stressed_fields):
        """2.0 + 1.5 + 1.0 + 1.0 + 0.5 = 6.0, which is High (not Critical)."""
        risk = score_observation(observation_factory(**stressed_fields))

        assert risk.score == pytest.approx(6.0)
        assert risk.level == RiskLevel.HIGH
        assert risk.factors == tuple(RISK_FACTORS.keys())

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_peg_break_alone_is_at_least_two(self, observation_factory):
        risk = score_observation(observation_factory(price=1.05))

        assert risk.score >= 2.0

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_peg_and_volume_reach_medium(self, observation_factory):
        risk = score_observation(observation_factory(price=0.95, on_chain_volume=1.9e6))

        assert risk.score == pytest.approx(3.5)
        assert risk.level == RiskLevel.MEDIUM

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_scoring_is_deterministic(self, observation_factory, stressed_fields):
        observation = observation_factory(**stressed_fields)

        assert score_observation(observation) == score_observation(observation)


class TestMonotonicity:
    """Score never decreases as a single factor crosses its threshold."""

    BREACHES = {
        "price": (1.0, 1.03),
        "on_chain_volume": (1.0e6, 1.6e6),
        "wallet_concentration": (0.05, 0.09),
        "market_volatility": (0.02, 0.05),
        "social_sentiment": (70.0, 30.0),
    }

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.parametrize("metric", list(BREACHES.keys()))
    @pytest.mark.parametrize("baseline", ["calm", "stressed"])
    def test_crossing_threshold_never_lowers_score(self, observation_factory, calm_fields,
                                                   stressed_fields, metric, baseline):
        fields = calm_fields if baseline == "calm" else stressed_fields
        inside, outside = self.BREACHES[metric]

        before = score_observation(observation_factory(**{**fields, metric: inside}))
        after = score_observation(observation_factory(**{**fields, metric: outside}))

        assert after.score >= before.score
        assert after.level >= before.level


class TestScoreToLevel:
    """Tests for the level band mapping."""

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.parametrize("score,expected_level", [
        (0.0, RiskLevel.LOW),
        (3.0, RiskLevel.LOW),
        (3.01, RiskLevel.MEDIUM),
        (5.0, RiskLevel.MEDIUM),
        (5.01, RiskLevel.HIGH),
        (6.5, RiskLevel.HIGH),
        (6.51, RiskLevel.CRITICAL),
        (7.0, RiskLevel.CRITICAL),
        (100.0, RiskLevel.CRITICAL),
    ])
    def test_level_boundaries(self, score, expected_level):
        """Boundaries are exclusive; the highest band reached wins."""
        assert score_to_level(score) == expected_level

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_band_order_in_table_does_not_matter(self):
        """Bands are applied in ascending order regardless of how they are listed."""
        levels = [
            {"level": "Critical", "min_score": 6.5},
            {"level": "Medium", "min_score": 3.0},
            {"level": "High", "min_score": 5.0},
        ]
        assert score_to_level(7.0, levels) == RiskLevel.CRITICAL
        assert score_to_level(4.0, levels) == RiskLevel.MEDIUM


class TestFactorBreached:

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_band_factor(self):
        band = {"lower": 0.98, "upper": 1.02}
        assert factor_breached(0.97, band)
        assert factor_breached(1.03, band)
        assert not factor_breached(1.0, band)

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_unknown_operator_raises(self):
        with pytest.raises(ValueError):
            factor_breached(1.0, {"operator": "!=", "threshold": 1.0})


class TestRiskScorer:
    """Tests for the configurable scorer."""

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_default_scorer_matches_function(self, observation_factory, stressed_fields):
        observation = observation_factory(**stressed_fields)

        assert RiskScorer()(observation) == score_observation(observation)

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_default_model_cannot_reach_critical(self):
        assert RiskScorer().max_score == pytest.approx(6.0)

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_reweighted_factors_reach_critical(self, critical_scorer, observation_factory, stressed_fields):
        risk = critical_scorer(observation_factory(**stressed_fields))

        assert risk.score == pytest.approx(7.0)
        assert risk.level == RiskLevel.CRITICAL

    @pytest.mark.unit
    @pytest.mark.scoring
    @pytest.mark.parametrize("factor", [
        {"metric": "price", "operator": "!=", "threshold": 1.0, "weight": 1.0},
        {"metric": "price", "operator": ">", "weight": 1.0},
        {"metric": "price", "operator": ">", "threshold": 1.0, "weight": -1.0},
    ])
    def test_invalid_factor_rejected(self, factor):
        with pytest.raises(ValueError):
            RiskScorer(factors={"bad": factor})


class TestExplainFactors:

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_no_factors(self, observation_factory):
        risk = score_observation(observation_factory())

        assert explain_factors(risk) == "All metrics within normal ranges"

    @pytest.mark.unit
    @pytest.mark.scoring
    def test_lists_fired_factors_with_weights(self, observation_factory):
        risk = score_observation(observation_factory(price=0.9, social_sentiment=10))
        explanation = explain_factors(risk)

        assert RISK_FACTORS["peg_deviation"]["label"] in explanation
        assert "(+2.0)" in explanation
        assert "(+0.5)" in explanation
