"""
Data source interface.

A data source produces one Observation for one asset on demand. The engine
calls fetch() from worker threads, so implementations must be thread-safe.
"""

from abc import ABC, abstractmethod

from ..models import Observation


class DataSourceError(Exception):
    """Raised when a source cannot produce an observation for an asset."""


class DataSource(ABC):
    """Base class for pluggable market data sources."""

    name = "base"

    @abstractmethod
    def fetch(self, asset: str) -> Observation:
        """
        Produce the current observation for an asset.

        Args:
            asset: Asset identifier (e.g. 'USDT')

        Returns:
            Observation for the asset

        Raises:
            DataSourceError: If no observation can be produced
        """
