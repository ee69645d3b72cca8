"""
Depeg Monitor - Command line runner.

Runs the monitoring engine against the simulated source, logging every
analysis and alert, then prints a summary of the final snapshot.

Usage:
    python -m depeg_monitor --assets USDT USDC --interval 1 --ticks 5
    python -m depeg_monitor --ticks 3 --json --output snapshot.json
"""

import argparse
import json
import logging
import threading
from typing import Dict, Any, List, Optional

from .config.logging_config import setup_logging
from .config.settings import DEFAULT_ASSETS, ENGINE_CONFIG, ALERT_CONFIG, LOG_CONFIG
from .core.alerts import AlertGenerator, CooldownGate
from .core.engine import EngineConfig, MonitoringEngine
from .core.scoring import explain_factors
from .fetchers import SimulatedMarketSource
from .notifications import SlackAlertNotifier

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="depeg-monitor",
        description="Stablecoin Depeg Monitor - periodic risk scoring and alerting"
    )
    parser.add_argument("--assets", "-a", nargs="+", default=None,
                        help=f"Assets to track (default: {' '.join(DEFAULT_ASSETS)})")
    parser.add_argument("--interval", "-i", type=float, default=ENGINE_CONFIG["tick_interval"],
                        help="Seconds between ticks")
    parser.add_argument("--ticks", "-n", type=int, default=None,
                        help="Stop after this many ticks (default: run until Ctrl-C)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs")
    parser.add_argument("--cooldown", type=int, default=None,
                        help="Use deterministic alert throttling: at most one warning/info "
                             "alert per N qualifying ticks per asset")
    parser.add_argument("--log-level", default=LOG_CONFIG["level"], help="Console log level")
    parser.add_argument("--log-file", default=LOG_CONFIG["file"], help="Append logs to this file")
    parser.add_argument("--json", action="store_true", help="Print final snapshot and alerts as JSON")
    parser.add_argument("--output", "-o", type=str, help="Write final JSON to this file")
    return parser


def build_engine(args: argparse.Namespace) -> MonitoringEngine:
    """Construct an engine from parsed arguments."""
    config = EngineConfig.from_settings(tick_interval=args.interval)

    if args.cooldown is not None:
        generator = AlertGenerator(
            warning_gate=CooldownGate(args.cooldown),
            volume_gate=CooldownGate(args.cooldown),
        )
    else:
        generator = AlertGenerator(seed=args.seed)

    return MonitoringEngine(
        source=SimulatedMarketSource(seed=args.seed),
        generator=generator,
        config=config,
        seed=args.seed,
    )


def collect_results(engine: MonitoringEngine) -> Dict[str, Any]:
    """Final engine state as a JSON-ready dict."""
    return {
        "ticks": engine.tick_count,
        "analyses": {name: a.to_dict() for name, a in engine.current_analyses().items()},
        "alerts": [alert.to_dict() for alert in engine.current_alerts()],
        "performance": engine.performance_metrics(),
    }


def print_summary(engine: MonitoringEngine) -> None:
    """Print the final snapshot and active alerts as tables."""
    analyses = engine.current_analyses()
    alerts = engine.current_alerts()

    print("\n" + "=" * 80)
    print(f"SNAPSHOT ({engine.tick_count} ticks)")
    print("=" * 80)
    print(f"{'Asset':<8} {'Price':>8} {'Score':>6} {'Level':<9} Factors")
    print("-" * 80)
    for name, analysis in analyses.items():
        risk = analysis.risk
        print(
            f"{name:<8} {analysis.observation.price:>8.4f} {risk.score:>6.2f} "
            f"{risk.level.value:<9} {explain_factors(risk)}"
        )

    print("\n" + "=" * 80)
    print(f"ACTIVE ALERTS ({len(alerts)})")
    print("=" * 80)
    if not alerts:
        print("  None")
    for alert in alerts:
        print(f"  #{alert.id:<4} [{alert.type.value:<8}] {alert.title}: {alert.message}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.ticks is not None and args.ticks < 1:
        parser.error("--ticks must be >= 1")
    if args.interval <= 0:
        parser.error("--interval must be positive")

    setup_logging(args.log_level, args.log_file)

    engine = build_engine(args)
    done = threading.Event()
    published = {"count": 0}

    def on_analyses(snapshot):
        published["count"] += 1
        if args.ticks is not None and published["count"] >= args.ticks:
            done.set()

    with engine:
        if ALERT_CONFIG.get("slack_webhook"):
            engine.subscribe_alerts(SlackAlertNotifier())
            logger.info("Slack notifications enabled")

        engine.subscribe_analyses(on_analyses)
        engine.start(args.assets)

        try:
            while not done.wait(0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping")

        engine.stop()
        results = collect_results(engine)

        if args.json or args.output:
            output_json = json.dumps(results, indent=2, default=str)
            if args.output:
                with open(args.output, "w") as f:
                    f.write(output_json)
                print(f"\nResults written to: {args.output}")
            else:
                print(output_json)
        else:
            print_summary(engine)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
