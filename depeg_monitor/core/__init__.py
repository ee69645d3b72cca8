"""Core monitoring components."""

from .scoring import (
    RiskScorer,
    score_observation,
    score_to_level,
    evaluate_factors,
    factor_breached,
    explain_factors,
)

from .alerts import (
    AlertGenerator,
    AlertStore,
    ProbabilityGate,
    CooldownGate,
)

from .subscriptions import SubscriberRegistry, Subscription

from .metrics import simulate_performance_metrics

from .engine import MonitoringEngine, EngineConfig

__all__ = [
    # Scoring
    "RiskScorer",
    "score_observation",
    "score_to_level",
    "evaluate_factors",
    "factor_breached",
    "explain_factors",
    # Alerts
    "AlertGenerator",
    "AlertStore",
    "ProbabilityGate",
    "CooldownGate",
    # Subscriptions
    "SubscriberRegistry",
    "Subscription",
    # Metrics
    "simulate_performance_metrics",
    # Engine
    "MonitoringEngine",
    "EngineConfig",
]
