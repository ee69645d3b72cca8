"""
Observation sources.

Each source provides:
- fetch(asset) - Produce one Observation for an asset

Available sources:
- SimulatedMarketSource: bounded random values (default)
- StaticMarketSource: fixed values per asset
"""

from .base import DataSource, DataSourceError
from .market import SimulatedMarketSource, StaticMarketSource, OBSERVATION_FIELDS

__all__ = [
    "DataSource",
    "DataSourceError",
    "SimulatedMarketSource",
    "StaticMarketSource",
    "OBSERVATION_FIELDS",
]
