"""
Depeg Risk Thresholds and Justifications.

Every number the scoring model and alert rules depend on lives here so the
model can be reviewed in one place.

Each entry includes:
- threshold / weight: The numeric parameter
- justification: Why the parameter was chosen
"""

# =============================================================================
# RISK FACTORS (additive model)
# =============================================================================

RISK_FACTORS = {
    "peg_deviation": {
        "metric": "price",
        "lower": 0.98,
        "upper": 1.02,
        "weight": 2.0,
        "label": "price outside the 2% peg band",
        "justification": "A 2% move away from $1.00 is outside normal market-maker "
                        "arbitrage ranges for fiat-backed stablecoins and historically "
                        "precedes larger depegs (USDC March 2023, UST May 2022).",
    },
    "on_chain_volume": {
        "metric": "on_chain_volume",
        "operator": ">",
        "threshold": 1.5e6,
        "weight": 1.5,
        "label": "elevated on-chain volume",
        "justification": "Redemption waves show up as on-chain transfer spikes before "
                        "price moves; 1.5M is above the simulated baseline activity.",
    },
    "wallet_concentration": {
        "metric": "wallet_concentration",
        "operator": ">",
        "threshold": 0.08,
        "weight": 1.0,
        "label": "concentrated holder base",
        "justification": "When the largest wallets hold more than 8% of supply a single "
                        "holder exiting can move the peg.",
    },
    "market_volatility": {
        "metric": "market_volatility",
        "operator": ">",
        "threshold": 0.04,
        "weight": 1.0,
        "label": "high market volatility",
        "justification": "Stablecoin volatility above 4% signals stressed liquidity "
                        "conditions across venues.",
    },
    "social_sentiment": {
        "metric": "social_sentiment",
        "operator": "<",
        "threshold": 40,
        "weight": 0.5,
        "label": "negative social sentiment",
        "justification": "Sentiment is a noisy leading indicator, weighted lowest. "
                        "Below 40/100 reflects sustained negative coverage.",
    },
}

DEFAULT_REASON = "Calculated based on multi-factor model"

# =============================================================================
# RISK LEVEL BANDS
# =============================================================================

# Applied in ascending order, later matches override earlier ones.
RISK_LEVELS = [
    {
        "level": "Medium",
        "min_score": 3.0,
        "justification": "Several independent stress factors firing together; no "
                        "single factor reaches this band on its own.",
    },
    {
        "level": "High",
        "min_score": 5.0,
        "justification": "Peg deviation and elevated volume with both concentration "
                        "and volatility firing (the default model tops out at 6.0).",
    },
    {
        "level": "Critical",
        "min_score": 6.5,
        "justification": "Unreachable with the default weights (max 6.0); reserved "
                        "for factor tables that add or reweight factors.",
    },
]

# =============================================================================
# ALERT RULES
# =============================================================================

ALERT_RULES = {
    "critical_level": {
        "type": "critical",
        "probability": 1.0,
        "justification": "Critical risk is always surfaced.",
    },
    "high_level": {
        "type": "warning",
        "probability": 0.3,
        "justification": "High risk persists across ticks; throttled to avoid "
                        "flooding operators with repeats.",
    },
    "elevated_volume": {
        "type": "info",
        "threshold": 1.8e6,
        "probability": 0.2,
        "justification": "Informational only, volume spikes are frequent.",
    },
}

# Default capacity of the active alert list
ALERT_STORE_CAPACITY = 10

# =============================================================================
# SIMULATED SOURCE RANGES
# =============================================================================

SIMULATION_RANGES = {
    "price": (0.95, 1.05),
    "on_chain_volume": (0.8e6, 2.0e6),
    "wallet_concentration": (0.05, 0.12),
    "market_volatility": (0.02, 0.08),
    "social_sentiment": (20.0, 100.0),
}

# =============================================================================
# SYNTHETIC PERFORMANCE FIGURES
# =============================================================================

PERFORMANCE_RANGES = {
    "data_processing_speed": (4800.0, 4900.0),   # points/sec
    "alert_latency_ms": (2.0, 3.0),
    "prediction_accuracy_pct": (94.0, 96.0),
}

DATA_SOURCES = [
    {"name": "Price Feeds", "uptime": "99.9%", "warning_probability": 0.0},
    {"name": "On-chain Data", "uptime": "99.7%", "warning_probability": 0.0},
    {"name": "Social Sentiment", "uptime": "97.2%", "warning_probability": 0.2},
    {"name": "DeFi Protocols", "uptime": "99.8%", "warning_probability": 0.0},
]
