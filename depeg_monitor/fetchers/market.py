"""
Market Sources - Default and fixed-value observation sources.

- SimulatedMarketSource: randomized-but-bounded values (default)
- StaticMarketSource: fixed values per asset, for injection and testing
"""

import logging
import threading
from typing import Dict, Any, Optional

import numpy as np

from .base import DataSource, DataSourceError
from ..models import Observation
from ..thresholds import SIMULATION_RANGES

logger = logging.getLogger(__name__)

OBSERVATION_FIELDS = (
    "price",
    "on_chain_volume",
    "wallet_concentration",
    "market_volatility",
    "social_sentiment",
)


class SimulatedMarketSource(DataSource):
    """
    Synthesizes observations uniformly within SIMULATION_RANGES.

    Args:
        seed: Optional seed for reproducible runs
        ranges: Optional per-field (low, high) overrides
    """

    name = "simulated"

    def __init__(self, seed: Optional[int] = None, ranges: Optional[Dict[str, tuple]] = None):
        self.ranges = dict(SIMULATION_RANGES)
        if ranges:
            unknown = set(ranges) - set(OBSERVATION_FIELDS)
            if unknown:
                raise ValueError(f"Unknown observation fields: {sorted(unknown)}")
            self.ranges.update(ranges)

        for metric, (low, high) in self.ranges.items():
            if low > high:
                raise ValueError(f"Invalid range for {metric}: {low} > {high}")

        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def fetch(self, asset: str) -> Observation:
        with self._lock:
            values = {
                metric: float(self._rng.uniform(*self.ranges[metric]))
                for metric in OBSERVATION_FIELDS
            }
        return Observation(name=asset, **values)


class StaticMarketSource(DataSource):
    """
    Returns the same values for an asset on every fetch.

    Args:
        values: Mapping of asset name to a dict of observation fields
        default: Optional fields used for assets missing from `values`
    """

    name = "static"

    def __init__(self, values: Optional[Dict[str, Dict[str, Any]]] = None,
                 default: Optional[Dict[str, Any]] = None):
        self.values = {asset: _validate_fields(asset, fields) for asset, fields in (values or {}).items()}
        self.default = _validate_fields("default", default) if default is not None else None
        self._lock = threading.Lock()

    def set(self, asset: str, **fields) -> None:
        """Replace the values returned for an asset."""
        with self._lock:
            self.values[asset] = _validate_fields(asset, fields)

    def fetch(self, asset: str) -> Observation:
        with self._lock:
            fields = self.values.get(asset, self.default)
        if fields is None:
            raise DataSourceError(f"No data configured for {asset}")
        return Observation(name=asset, **fields)


def _validate_fields(asset: str, fields: Dict[str, Any]) -> Dict[str, float]:
    """Check a field dict has exactly the observation fields, as floats."""
    missing = [f for f in OBSERVATION_FIELDS if f not in fields]
    extra = [f for f in fields if f not in OBSERVATION_FIELDS]
    if missing or extra:
        raise ValueError(f"{asset}: missing fields {missing}, unexpected fields {extra}")
    return {f: float(fields[f]) for f in OBSERVATION_FIELDS}
