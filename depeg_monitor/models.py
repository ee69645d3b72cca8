"""
Data Model - Observations, risk scores, analyses and alerts.

All records are immutable. Observations and analyses are recreated every
tick; alerts live in the AlertStore until dismissed or evicted.

Wire format (to_dict / to_json):
- camelCase field names, as consumed by the dashboard
- timestamps as ISO-8601 strings
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Tuple
import json


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class RiskLevel(Enum):
    """Ordered risk classification: LOW < MEDIUM < HIGH < CRITICAL."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    @classmethod
    def from_label(cls, label: str) -> "RiskLevel":
        """Look up a level by its display label (case-insensitive)."""
        for level in cls:
            if level.value.lower() == str(label).lower():
                return level
        raise ValueError(f"Unknown risk level: {label!r}")

    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_LEVEL_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]


class AlertType(Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Observation:
    """Raw market sample for one asset at one tick."""
    name: str
    price: float
    on_chain_volume: float
    wallet_concentration: float
    market_volatility: float
    social_sentiment: float

    @property
    def peg_deviation_pct(self) -> float:
        """Signed deviation from the $1.00 peg, in percent."""
        return (self.price - 1.0) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "onChainVolume": self.on_chain_volume,
            "walletConcentration": self.wallet_concentration,
            "marketVolatility": self.market_volatility,
            "socialSentiment": self.social_sentiment,
        }


@dataclass(frozen=True)
class RiskScore:
    """Score derived purely from an Observation."""
    score: float
    level: RiskLevel
    reason: str
    factors: Tuple[str, ...] = field(default_factory=tuple)  # names of factors that fired

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Analysis:
    """An observation with its risk score and the time it was computed."""
    observation: Observation
    risk: RiskScore
    timestamp: datetime = field(default_factory=utc_now)

    @property
    def name(self) -> str:
        return self.observation.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.observation.to_dict(),
            "risk": self.risk.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass(frozen=True)
class Alert:
    """A user-facing alert, unique by id for the lifetime of its generator."""
    id: int
    type: AlertType
    title: str
    message: str
    coin: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "coin": self.coin,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
