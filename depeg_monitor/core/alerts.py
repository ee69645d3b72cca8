"""
Alert System - Derive alerts from analyses and keep the active alert list.

Rules (first match wins, at most one alert per asset per tick):
- Critical level: always a 'critical' alert
- High level: 'warning' alert, throttled by the warning gate
- Elevated on-chain volume: 'info' alert, throttled by the volume gate

Gates are callables `(analysis) -> bool`. ProbabilityGate reproduces the
dashboard's random throttling; CooldownGate is the deterministic variant.
"""

import itertools
import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, List, Optional

import numpy as np

from ..models import Alert, AlertType, Analysis, RiskLevel, utc_now
from ..thresholds import ALERT_RULES, ALERT_STORE_CAPACITY

logger = logging.getLogger(__name__)

Gate = Callable[[Analysis], bool]


# =============================================================================
# GATES
# =============================================================================

class ProbabilityGate:
    """Opens with a fixed probability on each evaluation."""

    def __init__(self, probability: float, rng: Optional[np.random.Generator] = None):
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"Probability must be within [0, 1], got {probability}")
        self.probability = probability
        self._rng = rng if rng is not None else np.random.default_rng()
        self._lock = threading.Lock()

    def __call__(self, analysis: Analysis) -> bool:
        if self.probability >= 1.0:
            return True
        if self.probability <= 0.0:
            return False
        with self._lock:
            return bool(self._rng.random() < self.probability)


class CooldownGate:
    """
    Opens on the first qualifying evaluation for an asset, then once every
    `every_n` qualifying evaluations of that asset.
    """

    def __init__(self, every_n: int):
        if every_n < 1:
            raise ValueError(f"every_n must be >= 1, got {every_n}")
        self.every_n = every_n
        self._seen: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def __call__(self, analysis: Analysis) -> bool:
        with self._lock:
            count = self._seen[analysis.name]
            self._seen[analysis.name] = count + 1
        return count % self.every_n == 0

    def reset(self, asset: Optional[str] = None) -> None:
        """Forget the history of one asset, or of all assets."""
        with self._lock:
            if asset is None:
                self._seen.clear()
            else:
                self._seen.pop(asset, None)


# =============================================================================
# GENERATOR
# =============================================================================

class AlertGenerator:
    """
    Maps an analysis to zero or one alert.

    Args:
        warning_gate: Gate for High-level warnings (default 30% probability)
        volume_gate: Gate for elevated-volume info alerts (default 20% probability)
        volume_threshold: On-chain volume above which the info rule applies
        seed: Seed for the default probability gates
    """

    def __init__(self,
                 warning_gate: Optional[Gate] = None,
                 volume_gate: Optional[Gate] = None,
                 volume_threshold: float = ALERT_RULES["elevated_volume"]["threshold"],
                 seed: Optional[int] = None):
        rng = np.random.default_rng(seed)
        self.warning_gate = warning_gate or ProbabilityGate(ALERT_RULES["high_level"]["probability"], rng)
        self.volume_gate = volume_gate or ProbabilityGate(ALERT_RULES["elevated_volume"]["probability"], rng)
        self.volume_threshold = volume_threshold
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

    def _next_id(self) -> int:
        with self._id_lock:
            return next(self._ids)

    def _build(self, alert_type: AlertType, title: str, message: str, coin: str) -> Alert:
        return Alert(
            id=self._next_id(),
            type=alert_type,
            title=title,
            message=message,
            coin=coin,
            timestamp=utc_now(),
        )

    def generate(self, analysis: Analysis) -> Optional[Alert]:
        """
        Evaluate the alert rules for one analysis.

        Args:
            analysis: Freshly computed analysis

        Returns:
            Alert, or None if no rule fired
        """
        data = analysis.observation
        risk = analysis.risk

        if risk.level == RiskLevel.CRITICAL:
            return self._build(
                AlertType.CRITICAL,
                f"{data.name} Critical Risk Detected",
                f"Risk score: {risk.score:.2f} - Immediate attention required",
                data.name,
            )

        if risk.level == RiskLevel.HIGH and self.warning_gate(analysis):
            return self._build(
                AlertType.WARNING,
                f"{data.name} High Risk Alert",
                f"Price deviation: {data.peg_deviation_pct:.3f}%",
                data.name,
            )

        if data.on_chain_volume > self.volume_threshold and self.volume_gate(analysis):
            return self._build(
                AlertType.INFO,
                f"{data.name} High Volume Activity",
                f"Unusual on-chain volume detected: {data.on_chain_volume / 1e6:.2f}M",
                data.name,
            )

        return None

    __call__ = generate


# =============================================================================
# STORE
# =============================================================================

class AlertStore:
    """
    Bounded newest-first list of active alerts.

    Not locked: the engine is the single writer and serialises every
    mutation through its own lock.
    """

    def __init__(self, capacity: int = ALERT_STORE_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Alert store capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._alerts: List[Alert] = []

    def push(self, alert: Alert) -> Optional[Alert]:
        """
        Add an alert at the front, evicting the oldest beyond capacity.

        Returns:
            The evicted alert, if any
        """
        self._alerts.insert(0, alert)
        evicted = None
        while len(self._alerts) > self.capacity:
            evicted = self._alerts.pop()
            logger.debug(f"Evicted alert {evicted.id} ({evicted.coin}) at capacity {self.capacity}")
        return evicted

    def dismiss(self, alert_id: int) -> bool:
        """Remove an alert by id. Returns False if the id is not present."""
        for index, alert in enumerate(self._alerts):
            if alert.id == alert_id:
                del self._alerts[index]
                return True
        return False

    def list(self) -> List[Alert]:
        return list(self._alerts)

    def reset(self) -> None:
        self._alerts.clear()

    def __len__(self) -> int:
        return len(self._alerts)

    def __contains__(self, alert_id: int) -> bool:
        return any(alert.id == alert_id for alert in self._alerts)
