"""
Depeg Risk Scoring.

Additive multi-factor model: each factor is an independent deviation check
that contributes its weight when breached. The total is mapped onto the
ascending RISK_LEVELS bands, highest band reached wins.

Scoring is pure: the same observation always yields the same RiskScore.
"""

from typing import Dict, List, Optional, Tuple, Any

from ..models import Observation, RiskLevel, RiskScore
from ..thresholds import RISK_FACTORS, RISK_LEVELS, DEFAULT_REASON


# Operator mapping for threshold comparisons
OPERATORS = {
    '<': lambda v, t: v < t,
    '>': lambda v, t: v > t,
    '<=': lambda v, t: v <= t,
    '>=': lambda v, t: v >= t,
}


def factor_breached(value: float, factor: Dict[str, Any]) -> bool:
    """
    Check whether a metric value breaches a factor definition.

    Band factors (with 'lower'/'upper') breach outside the band, exclusive.
    Threshold factors breach when `value <operator> threshold` holds.
    """
    if "lower" in factor or "upper" in factor:
        lower = factor.get("lower", float("-inf"))
        upper = factor.get("upper", float("inf"))
        return value < lower or value > upper

    operator = factor.get("operator", ">")
    if operator not in OPERATORS:
        raise ValueError(f"Unsupported operator: {operator}")
    return OPERATORS[operator](value, factor["threshold"])


def score_to_level(score: float, levels: Optional[List[Dict]] = None) -> RiskLevel:
    """
    Map a score onto a risk level.

    Bands are checked in ascending order and every match overrides the
    previous one, so the highest band reached wins. Boundaries are exclusive.
    """
    level = RiskLevel.LOW
    for band in sorted(levels or RISK_LEVELS, key=lambda b: b["min_score"]):
        if score > band["min_score"]:
            level = RiskLevel.from_label(band["level"])
    return level


def evaluate_factors(observation: Observation,
                     factors: Optional[Dict[str, Dict]] = None) -> Tuple[float, Tuple[str, ...]]:
    """
    Sum the weights of all breached factors.

    Returns:
        Tuple of (score, names of breached factors in definition order)
    """
    score = 0.0
    fired = []
    for name, factor in (factors or RISK_FACTORS).items():
        value = getattr(observation, factor["metric"])
        if factor_breached(value, factor):
            score += factor["weight"]
            fired.append(name)
    return score, tuple(fired)


def score_observation(observation: Observation,
                      factors: Optional[Dict[str, Dict]] = None,
                      levels: Optional[List[Dict]] = None) -> RiskScore:
    """
    Calculate the depeg risk score for one observation.

    Args:
        observation: Market sample to score
        factors: Optional factor table (defaults to RISK_FACTORS)
        levels: Optional level bands (defaults to RISK_LEVELS)

    Returns:
        RiskScore with score, level, reason and fired factors
    """
    score, fired = evaluate_factors(observation, factors)
    return RiskScore(
        score=score,
        level=score_to_level(score, levels),
        reason=DEFAULT_REASON,
        factors=fired,
    )


def explain_factors(risk: RiskScore, factors: Optional[Dict[str, Dict]] = None) -> str:
    """Render the fired factors of a score as a readable sentence."""
    table = factors or RISK_FACTORS
    if not risk.factors:
        return "All metrics within normal ranges"
    parts = [
        f"{table[name].get('label', name)} (+{table[name]['weight']:.1f})"
        for name in risk.factors if name in table
    ]
    return "; ".join(parts)


class RiskScorer:
    """
    Scorer bound to a factor table and level bands.

    Instances are callable so the engine can accept either a RiskScorer
    or any plain `Observation -> RiskScore` function.
    """

    def __init__(self, factors: Optional[Dict[str, Dict]] = None,
                 levels: Optional[List[Dict]] = None):
        self.factors = dict(factors or RISK_FACTORS)
        self.levels = list(levels or RISK_LEVELS)

        for name, factor in self.factors.items():
            if factor.get("weight", 0) < 0:
                raise ValueError(f"Factor {name} has a negative weight")
            if "lower" not in factor and "upper" not in factor:
                if factor.get("operator", ">") not in OPERATORS:
                    raise ValueError(f"Factor {name} has an unsupported operator")
                if "threshold" not in factor:
                    raise ValueError(f"Factor {name} has no threshold")

    @property
    def max_score(self) -> float:
        return sum(f["weight"] for f in self.factors.values())

    def score(self, observation: Observation) -> RiskScore:
        return score_observation(observation, self.factors, self.levels)

    def __call__(self, observation: Observation) -> RiskScore:
        return self.score(observation)
