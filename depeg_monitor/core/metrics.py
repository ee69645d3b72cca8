"""
Performance Metrics - Simulated throughput, latency and source health.

The figures are illustrative dashboard values, not measurements of the
pipeline.
"""

from typing import Dict, Any, Optional

import numpy as np

from ..thresholds import PERFORMANCE_RANGES, DATA_SOURCES


def simulate_performance_metrics(rng: Optional[np.random.Generator] = None) -> Dict[str, Any]:
    """
    Produce one set of synthetic performance figures.

    Returns:
        Dict with data_processing_speed (points/sec), alert_latency_ms,
        prediction_accuracy_pct and a data_sources health table
    """
    rng = rng if rng is not None else np.random.default_rng()

    metrics = {
        name: float(rng.uniform(low, high))
        for name, (low, high) in PERFORMANCE_RANGES.items()
    }

    metrics["data_sources"] = [
        {
            "name": source["name"],
            "status": "warning" if rng.random() < source["warning_probability"] else "healthy",
            "uptime": source["uptime"],
        }
        for source in DATA_SOURCES
    ]

    return metrics
