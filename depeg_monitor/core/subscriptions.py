"""
Subscriber Registry - Handle-keyed listeners with isolated delivery.

Each subscriber owns a daemon delivery thread and a single pending slot, so:
- deliveries to one subscriber arrive in submission order
- a subscriber that falls behind only receives the newest payload; an
  undelivered older payload is replaced, never queued
- every subscriber receives its own shallow copy of the payload
- a slow subscriber only delays itself; publishers wait at most
  `callback_timeout` seconds for a round of deliveries
- an exception in one callback is logged and never reaches the publisher
"""

import itertools
import logging
import threading
from concurrent.futures import Future, wait
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


class Delivery(Future):
    """Future for one queued payload, tagged with the subscription it targets."""

    def __init__(self, subscription: "Subscription"):
        super().__init__()
        self.subscription = subscription


def _detach(payload: Any) -> Any:
    """Shallow copy of a published container. Records inside are immutable."""
    if isinstance(payload, dict):
        return dict(payload)
    if isinstance(payload, list):
        return list(payload)
    return payload


class Subscription:
    """One registered listener and its pending delivery."""

    def __init__(self, handle: int, callback: Callback, topic: str):
        self.handle = handle
        self.callback = callback
        self.topic = topic
        self.active = True
        self.superseded = 0

        self._pending: Optional[Any] = None
        self._has_pending = False
        self._waiters: List[Delivery] = []
        self._condition = threading.Condition()
        self._thread = threading.Thread(
            target=self._run,
            name=f"{topic}-subscriber-{handle}",
            daemon=True
        )
        self._thread.start()

    @property
    def backlog(self) -> int:
        """Payloads waiting for delivery (0 or 1)."""
        with self._condition:
            return 1 if self._has_pending else 0

    def on_delivery_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def submit(self, payload: Any) -> Optional[Delivery]:
        """
        Queue a copy of the payload, replacing any undelivered one.

        Returns None if the subscription is closed. A replaced payload's
        future completes when the newer payload is delivered.
        """
        delivery = Delivery(self)
        with self._condition:
            if not self.active:
                return None
            if self._has_pending:
                self.superseded += 1
            self._pending = _detach(payload)
            self._has_pending = True
            self._waiters.append(delivery)
            self._condition.notify()
        return delivery

    def _run(self) -> None:
        while True:
            with self._condition:
                while self.active and not self._has_pending:
                    self._condition.wait()
                if not self.active:
                    return
                payload, waiters = self._pending, self._waiters
                self._pending, self._has_pending, self._waiters = None, False, []

            delivered = self._invoke(payload)
            for waiter in waiters:
                waiter.set_result(delivered)

    def _invoke(self, payload: Any) -> bool:
        try:
            self.callback(payload)
            return True
        except Exception:
            logger.exception(f"{self.topic} subscriber {self.handle} raised during delivery")
            return False

    def close(self) -> None:
        with self._condition:
            self.active = False
            waiters, self._waiters = self._waiters, []
            self._pending, self._has_pending = None, False
            self._condition.notify()
        for waiter in waiters:
            waiter.cancel()


class SubscriberRegistry:
    """
    Registry of subscriptions for one topic (e.g. 'analyses', 'alerts').

    Args:
        topic: Name used in logs and worker thread names
        callback_timeout: Seconds a publisher waits for a delivery round
    """

    def __init__(self, topic: str, callback_timeout: float = 1.0):
        self.topic = topic
        self.callback_timeout = callback_timeout
        self._subscriptions: Dict[int, Subscription] = {}
        self._handles = itertools.count(1)
        self._lock = threading.Lock()

    def register(self, callback: Callback) -> Subscription:
        """Add a listener and return its subscription."""
        if not callable(callback):
            raise TypeError(f"{self.topic} callback must be callable, got {type(callback).__name__}")
        with self._lock:
            subscription = Subscription(next(self._handles), callback, self.topic)
            self._subscriptions[subscription.handle] = subscription
        logger.debug(f"Registered {self.topic} subscriber {subscription.handle}")
        return subscription

    def unregister(self, handle: int) -> bool:
        """Remove a listener. Returns False if the handle is unknown."""
        with self._lock:
            subscription = self._subscriptions.pop(handle, None)
        if subscription is None:
            return False
        subscription.close()
        logger.debug(f"Unregistered {self.topic} subscriber {handle}")
        return True

    def get(self, handle: int) -> Optional[Subscription]:
        with self._lock:
            return self._subscriptions.get(handle)

    def submit(self, payload: Any) -> List[Delivery]:
        """Queue a payload for every current subscriber."""
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        deliveries = []
        for subscription in subscriptions:
            delivery = subscription.submit(payload)
            if delivery is not None:
                deliveries.append(delivery)
        return deliveries

    def wait(self, deliveries: List[Delivery]) -> int:
        """
        Wait for queued deliveries, bounded by callback_timeout.

        A delivery to the subscriber whose callback is the caller is not
        waited on; it runs once that callback returns.

        Returns:
            Number of deliveries that did not finish in time
        """
        deliveries = [d for d in deliveries if not d.subscription.on_delivery_thread()]
        if not deliveries:
            return 0
        _, not_done = wait(deliveries, timeout=self.callback_timeout)
        if not_done:
            logger.warning(
                f"{len(not_done)} {self.topic} subscriber(s) still running after "
                f"{self.callback_timeout:.2f}s, continuing without them"
            )
        return len(not_done)

    def close(self) -> None:
        """Remove every listener and stop its delivery thread."""
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def __contains__(self, handle: int) -> bool:
        with self._lock:
            return handle in self._subscriptions
