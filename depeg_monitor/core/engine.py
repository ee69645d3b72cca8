"""
Monitoring Engine - Periodic fetch, score, alert and publish cycle.

Each tick:
1. Fetch and score every tracked asset (concurrently, joined before use)
2. Swap in the new snapshot as a whole
3. Generate at most one alert per asset and push it into the AlertStore
4. Publish the snapshot to analysis subscribers and the alert list to
   alert subscribers

A failure for one asset is logged and recorded in the tick result; the
other assets publish normally.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from ..config.settings import DEFAULT_ASSETS, ENGINE_CONFIG
from ..fetchers import DataSource, SimulatedMarketSource
from ..models import Alert, Analysis, Observation, RiskScore, utc_now
from .alerts import AlertGenerator, AlertStore
from .metrics import simulate_performance_metrics
from .scoring import RiskScorer
from .subscriptions import SubscriberRegistry

logger = logging.getLogger(__name__)

AnalysesCallback = Callable[[Dict[str, Analysis]], None]
AlertsCallback = Callable[[List[Alert]], None]


@dataclass
class EngineConfig:
    """Engine timing and capacity settings."""
    tick_interval: float = 3.0      # seconds between ticks
    alert_capacity: int = 10
    callback_timeout: float = 1.0   # seconds a publish waits on subscribers
    max_workers: int = 4            # per-asset fetch/score workers

    def __post_init__(self):
        if self.tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.alert_capacity < 1:
            raise ValueError(f"alert_capacity must be >= 1, got {self.alert_capacity}")
        if self.callback_timeout <= 0:
            raise ValueError(f"callback_timeout must be positive, got {self.callback_timeout}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_settings(cls, **overrides) -> "EngineConfig":
        """Build from ENGINE_CONFIG, with keyword overrides."""
        values = dict(ENGINE_CONFIG)
        values.update(overrides)
        return cls(**values)


class MonitoringEngine:
    """
    Owns the tick schedule, the latest snapshot, the alert store and the
    subscriber registries.

    Args:
        source: Observation source (default SimulatedMarketSource)
        scorer: Callable Observation -> RiskScore (default RiskScorer)
        generator: Callable Analysis -> Optional[Alert] (default AlertGenerator)
        store: AlertStore (default sized from config.alert_capacity)
        config: EngineConfig (default from settings)
        seed: Seed for the default source, gates and synthetic metrics
    """

    def __init__(self,
                 source: Optional[DataSource] = None,
                 scorer: Optional[Callable[[Observation], RiskScore]] = None,
                 generator: Optional[Callable[[Analysis], Optional[Alert]]] = None,
                 store: Optional[AlertStore] = None,
                 config: Optional[EngineConfig] = None,
                 seed: Optional[int] = None):
        self.config = config or EngineConfig.from_settings()
        self.source = source or SimulatedMarketSource(seed=seed)
        self.scorer = scorer or RiskScorer()
        self.generator = generator or AlertGenerator(seed=seed)
        self.store = store or AlertStore(self.config.alert_capacity)

        self._snapshot: Dict[str, Analysis] = {}
        self._assets: List[str] = []
        self.tick_count = 0

        # _publish_lock orders snapshot swaps against subscriber queues;
        # _state_lock guards the snapshot and the alert store.
        self._state_lock = threading.Lock()
        self._publish_lock = threading.RLock()
        self._tick_lock = threading.Lock()
        self._lifecycle_lock = threading.Lock()

        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._closed = False

        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="depeg-monitor-worker"
        )
        self._analysis_subscribers = SubscriberRegistry("analyses", self.config.callback_timeout)
        self._alert_subscribers = SubscriberRegistry("alerts", self.config.callback_timeout)
        self._metrics_rng = np.random.default_rng(seed)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def tracked_assets(self) -> List[str]:
        return list(self._assets)

    def start(self, assets: Optional[Sequence[str]] = None) -> None:
        """
        Begin ticking every config.tick_interval seconds.

        No effect if already running (the asset list is not updated).
        """
        with self._lifecycle_lock:
            if self._closed:
                raise RuntimeError("Monitoring engine is closed")
            if self.is_running:
                logger.debug("start() called while running, ignoring")
                return

            self._assets = _unique_assets(assets if assets is not None else DEFAULT_ASSETS)

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="depeg-monitor-engine",
                daemon=True
            )
            self._stop_event = stop_event
            self._thread = thread
            thread.start()

        logger.info(
            f"Starting stablecoin monitoring: {', '.join(self._assets) or 'no assets'} "
            f"every {self.config.tick_interval:.2f}s"
        )

    def stop(self) -> None:
        """
        Stop ticking. A tick already in progress completes before this returns.

        No effect if already stopped.
        """
        with self._lifecycle_lock:
            thread, stop_event = self._thread, self._stop_event
            if thread is None:
                return
            stop_event.set()
            self._thread = None
            self._stop_event = None

        if thread is not threading.current_thread():
            thread.join()
        logger.info("Stopped stablecoin monitoring")

    def close(self) -> None:
        """Stop, drop all subscribers and release worker threads."""
        self.stop()
        with self._lifecycle_lock:
            if self._closed:
                return
            self._closed = True
        self._analysis_subscribers.close()
        self._alert_subscribers.close()
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "MonitoringEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _run(self, stop_event: threading.Event) -> None:
        # wait() returns True once stop is requested; checked between ticks only
        while not stop_event.wait(self.config.tick_interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Tick failed")

    # =========================================================================
    # TICK
    # =========================================================================

    def tick(self, assets: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        """
        Run one full fetch, score, alert and publish cycle synchronously.

        Args:
            assets: Optional asset list for this tick only. Defaults to the
                    tracked assets, or DEFAULT_ASSETS if never started.

        Returns:
            Dict with tick results
        """
        with self._tick_lock:
            if assets is not None:
                asset_list = _unique_assets(assets)
            else:
                asset_list = self._assets or list(DEFAULT_ASSETS)

            result = {
                "timestamp": utc_now().isoformat(),
                "assets_processed": len(asset_list),
                "analyses_published": 0,
                "alerts_triggered": 0,
                "errors": []
            }

            analyses = self._collect(asset_list, result["errors"])
            snapshot = {analysis.name: analysis for analysis in analyses}

            new_alerts = []
            for analysis in analyses:
                try:
                    alert = self.generator(analysis)
                except Exception as e:
                    logger.warning(f"{analysis.name}: alert evaluation failed: {e}")
                    result["errors"].append(f"{analysis.name}: alert evaluation failed: {e}")
                    continue
                if alert is not None:
                    new_alerts.append(alert)

            with self._publish_lock:
                with self._state_lock:
                    self._snapshot = snapshot
                    for alert in new_alerts:
                        self.store.push(alert)
                    alerts = self.store.list()
                    self.tick_count += 1
                analysis_futures = self._analysis_subscribers.submit(dict(snapshot))
                alert_futures = self._alert_subscribers.submit(alerts)

            for analysis in analyses:
                data, risk = analysis.observation, analysis.risk
                logger.info(f"[{data.name}] Price: {data.price:.4f}, Risk: {risk.score:.2f} ({risk.level.value})")
            for alert in new_alerts:
                logger.info(f"Alert {alert.id} [{alert.type.value}] {alert.title}: {alert.message}")

            self._analysis_subscribers.wait(analysis_futures)
            self._alert_subscribers.wait(alert_futures)

            result["analyses_published"] = len(snapshot)
            result["alerts_triggered"] = len(new_alerts)
            if result["errors"]:
                logger.warning(f"Tick completed with {len(result['errors'])} error(s)")
            return result

    def _analyze(self, asset: str) -> Analysis:
        observation = self.source.fetch(asset)
        risk = self.scorer(observation)
        return Analysis(observation=observation, risk=risk, timestamp=utc_now())

    def _collect(self, assets: List[str], errors: List[str]) -> List[Analysis]:
        """Fetch and score assets concurrently. Returns analyses in asset order."""
        futures = {self._executor.submit(self._analyze, asset): asset for asset in assets}

        results = {}
        for future in as_completed(futures):
            asset = futures[future]
            try:
                results[asset] = future.result()
            except Exception as e:
                logger.warning(f"{asset}: analysis failed, skipping this tick: {e}")
                errors.append(f"{asset}: {str(e)}")

        return [results[asset] for asset in assets if asset in results]

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe_analyses(self, callback: AnalysesCallback) -> Callable[[], None]:
        """
        Register for snapshot updates.

        The current snapshot is delivered before this returns if it is
        non-empty. Returns a function that removes exactly this listener.
        """
        with self._publish_lock:
            subscription = self._analysis_subscribers.register(callback)
            snapshot = self.current_analyses()
            futures = []
            if snapshot:
                future = subscription.submit(snapshot)
                if future is not None:
                    futures.append(future)
        self._analysis_subscribers.wait(futures)
        return self._unsubscriber(self._analysis_subscribers, subscription.handle)

    def subscribe_alerts(self, callback: AlertsCallback) -> Callable[[], None]:
        """
        Register for alert list updates.

        The current alert list (possibly empty) is delivered before this
        returns. Returns a function that removes exactly this listener.
        """
        with self._publish_lock:
            subscription = self._alert_subscribers.register(callback)
            future = subscription.submit(self.current_alerts())
        self._alert_subscribers.wait([future] if future is not None else [])
        return self._unsubscriber(self._alert_subscribers, subscription.handle)

    @staticmethod
    def _unsubscriber(registry: SubscriberRegistry, handle: int) -> Callable[[], None]:
        def unsubscribe() -> None:
            registry.unregister(handle)
        return unsubscribe

    @property
    def subscriber_counts(self) -> Dict[str, int]:
        return {
            "analyses": len(self._analysis_subscribers),
            "alerts": len(self._alert_subscribers),
        }

    # =========================================================================
    # ALERTS
    # =========================================================================

    def dismiss_alert(self, alert_id: int) -> bool:
        """
        Remove an alert and notify alert subscribers.

        Unknown ids are ignored. Returns True if an alert was removed.
        """
        with self._publish_lock:
            with self._state_lock:
                removed = self.store.dismiss(alert_id)
                alerts = self.store.list()
            futures = self._alert_subscribers.submit(alerts) if removed else []
        self._alert_subscribers.wait(futures)
        if removed:
            logger.debug(f"Dismissed alert {alert_id}")
        return removed

    def clear_alerts(self) -> None:
        """Remove every active alert and notify alert subscribers."""
        with self._publish_lock:
            with self._state_lock:
                self.store.reset()
            futures = self._alert_subscribers.submit([])
        self._alert_subscribers.wait(futures)

    # =========================================================================
    # READS
    # =========================================================================

    def current_analyses(self) -> Dict[str, Analysis]:
        """Latest completed snapshot, keyed by asset."""
        with self._state_lock:
            return dict(self._snapshot)

    def current_alerts(self) -> List[Alert]:
        """Active alerts, newest first."""
        with self._state_lock:
            return self.store.list()

    def performance_metrics(self) -> Dict[str, Any]:
        """Synthetic throughput, latency, accuracy and source health figures."""
        return simulate_performance_metrics(self._metrics_rng)


def _unique_assets(assets: Sequence[str]) -> List[str]:
    """Deduplicate preserving order. A bare string is one asset."""
    if isinstance(assets, str):
        assets = [assets]
    return list(dict.fromkeys(assets))
