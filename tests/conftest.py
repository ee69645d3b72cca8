"""
Pytest configuration and fixtures for the Stablecoin Depeg Monitor.

This file contains shared fixtures used across all test modules.
Fixtures follow the pattern: factory functions with auto-cleanup.
"""

import pytest
import sys
import time
from pathlib import Path
from typing import Dict, Any, Callable

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from depeg_monitor.core.alerts import AlertGenerator, AlertStore, ProbabilityGate
from depeg_monitor.core.engine import EngineConfig, MonitoringEngine
from depeg_monitor.core.scoring import RiskScorer, score_observation
from depeg_monitor.fetchers import StaticMarketSource
from depeg_monitor.models import Analysis, Observation, RiskLevel, RiskScore
from depeg_monitor.thresholds import RISK_FACTORS


# =============================================================================
# OBSERVATION FIXTURES
# =============================================================================

CALM_FIELDS = {
    "price": 1.0,
    "on_chain_volume": 1.0e6,
    "wallet_concentration": 0.05,
    "market_volatility": 0.02,
    "social_sentiment": 70.0,
}

# Every default factor breached: 2.0 + 1.5 + 1.0 + 1.0 + 0.5 = 6.0 -> High
STRESSED_FIELDS = {
    "price": 1.05,
    "on_chain_volume": 2.0e6,
    "wallet_concentration": 0.1,
    "market_volatility": 0.05,
    "social_sentiment": 10.0,
}


@pytest.fixture
def calm_fields() -> Dict[str, float]:
    """Field values inside every threshold."""
    return dict(CALM_FIELDS)


@pytest.fixture
def stressed_fields() -> Dict[str, float]:
    """Field values breaching every default threshold."""
    return dict(STRESSED_FIELDS)


@pytest.fixture
def observation_factory():
    """
    Factory fixture for creating observations.

    Usage:
        def test_something(observation_factory):
            obs = observation_factory(price=0.97)
    """
    def _create(name: str = "USDT", **overrides) -> Observation:
        fields = dict(CALM_FIELDS)
        fields.update(overrides)
        return Observation(name=name, **fields)

    return _create


@pytest.fixture
def analysis_factory(observation_factory):
    """
    Factory fixture for analyses.

    The risk is scored from the observation unless `score`/`level` are given,
    which allows building Critical analyses the default model cannot reach.
    """
    def _create(name: str = "USDT", score: float = None, level: RiskLevel = None,
                **overrides) -> Analysis:
        observation = observation_factory(name, **overrides)
        risk = score_observation(observation)
        if score is not None or level is not None:
            risk = RiskScore(
                score=score if score is not None else risk.score,
                level=level if level is not None else risk.level,
                reason=risk.reason,
                factors=risk.factors,
            )
        return Analysis(observation=observation, risk=risk)

    return _create


# =============================================================================
# SCORING FIXTURES
# =============================================================================

@pytest.fixture
def critical_scorer() -> RiskScorer:
    """
    Scorer whose peg factor weighs 3.0, so a fully stressed observation
    scores 7.0 and reaches Critical.
    """
    factors = {name: dict(factor) for name, factor in RISK_FACTORS.items()}
    factors["peg_deviation"]["weight"] = 3.0
    return RiskScorer(factors=factors)


# =============================================================================
# ALERT FIXTURES
# =============================================================================

@pytest.fixture
def open_generator() -> AlertGenerator:
    """Generator whose warning and volume gates always open."""
    return AlertGenerator(warning_gate=ProbabilityGate(1.0), volume_gate=ProbabilityGate(1.0))


@pytest.fixture
def closed_generator() -> AlertGenerator:
    """Generator whose warning and volume gates never open."""
    return AlertGenerator(warning_gate=ProbabilityGate(0.0), volume_gate=ProbabilityGate(0.0))


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@pytest.fixture
def fast_config() -> EngineConfig:
    """Engine config with a short tick interval for loop tests."""
    return EngineConfig(tick_interval=0.02, alert_capacity=10, callback_timeout=2.0, max_workers=4)


@pytest.fixture
def static_source_factory():
    """Factory for StaticMarketSource with calm defaults for every asset."""
    def _create(values: Dict[str, Dict[str, Any]] = None, default: Dict[str, Any] = None):
        return StaticMarketSource(values=values, default=default if default is not None else dict(CALM_FIELDS))

    return _create


@pytest.fixture
def engine_factory(fast_config, closed_generator, static_source_factory):
    """
    Factory for engines, closed automatically after the test.

    Defaults: calm static source, gates closed, fast config.
    """
    engines = []

    def _create(**kwargs) -> MonitoringEngine:
        kwargs.setdefault("source", static_source_factory())
        kwargs.setdefault("generator", closed_generator)
        kwargs.setdefault("config", fast_config)
        engine = MonitoringEngine(**kwargs)
        engines.append(engine)
        return engine

    yield _create

    for engine in engines:
        engine.close()


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Poll a predicate until it holds or the timeout expires."""
    def _wait(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait


@pytest.fixture
def alert_store() -> AlertStore:
    return AlertStore(capacity=10)
