"""
Stablecoin Depeg Monitor.

Periodically samples per-asset market data, scores depeg risk, derives
alerts and publishes both to subscribers.

Quick Start:
    from depeg_monitor import MonitoringEngine

    engine = MonitoringEngine()
    unsubscribe = engine.subscribe_analyses(lambda snapshot: print(snapshot))
    engine.start(["USDT", "USDC"])
    ...
    engine.stop()
"""

__version__ = "1.0.0"

# Data model
from .models import (
    Observation,
    RiskScore,
    RiskLevel,
    Analysis,
    Alert,
    AlertType,
)

# Core components
from .core import (
    # Engine
    MonitoringEngine,
    EngineConfig,
    # Scoring
    RiskScorer,
    score_observation,
    score_to_level,
    explain_factors,
    # Alerts
    AlertGenerator,
    AlertStore,
    ProbabilityGate,
    CooldownGate,
)

# Sources
from .fetchers import (
    DataSource,
    DataSourceError,
    SimulatedMarketSource,
    StaticMarketSource,
)

# Notifications
from .notifications import SlackAlertNotifier

__all__ = [
    # Version
    "__version__",
    # Data model
    "Observation",
    "RiskScore",
    "RiskLevel",
    "Analysis",
    "Alert",
    "AlertType",
    # Engine
    "MonitoringEngine",
    "EngineConfig",
    # Scoring
    "RiskScorer",
    "score_observation",
    "score_to_level",
    "explain_factors",
    # Alerts
    "AlertGenerator",
    "AlertStore",
    "ProbabilityGate",
    "CooldownGate",
    # Sources
    "DataSource",
    "DataSourceError",
    "SimulatedMarketSource",
    "StaticMarketSource",
    # Notifications
    "SlackAlertNotifier",
]
