from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Callable, Optional, Protocol

from ..core.exceptions import SubscriptionDropped
from .model import CompanyWorkConfig

logger = logging.getLogger(__name__)

ChangeListener = Callable[[CompanyWorkConfig], None]
DropListener = Callable[[SubscriptionDropped], None]


class ChannelHandle:
    """Cancellable subscription to one company's config changes."""

    def __init__(
        self,
        channel: "InMemoryModeChannel",
        company_id: str,
        on_change: ChangeListener,
        on_drop: Optional[DropListener] = None,
    ):
        self._channel = channel
        self.company_id = company_id
        self.on_change = on_change
        self.on_drop = on_drop
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._channel._remove(self)


class ModeChannel(Protocol):
    def subscribe(
        self,
        company_id: str,
        on_change: ChangeListener,
        *,
        on_drop: Optional[DropListener] = None,
    ) -> ChannelHandle:
        raise NotImplementedError

    def publish(self, config: CompanyWorkConfig) -> int:
        """Deliver the post-update row to every subscriber of its company.

        Returns the number of subscribers notified.
        """

        raise NotImplementedError


class InMemoryModeChannel(ModeChannel):
    """Process-local pub/sub broker.

    Delivery is synchronous in the publisher's thread. A failing listener is
    logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._subscribers: dict[str, list[ChannelHandle]] = defaultdict(list)
        self._lock = threading.Lock()
        self._available = True

    def set_available(self, available: bool) -> None:
        self._available = bool(available)

    def subscribe(
        self,
        company_id: str,
        on_change: ChangeListener,
        *,
        on_drop: Optional[DropListener] = None,
    ) -> ChannelHandle:
        if not self._available:
            raise SubscriptionDropped("Mode channel is unavailable")

        handle = ChannelHandle(self, str(company_id), on_change, on_drop)
        with self._lock:
            self._subscribers[handle.company_id].append(handle)
        logger.debug("Subscribed to company=%s", handle.company_id)
        return handle

    def _remove(self, handle: ChannelHandle) -> None:
        with self._lock:
            handles = self._subscribers.get(handle.company_id, [])
            if handle in handles:
                handles.remove(handle)

    def subscriber_count(self, company_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(str(company_id), []))

    def publish(self, config: CompanyWorkConfig) -> int:
        with self._lock:
            handles = list(self._subscribers.get(config.company_id, []))

        delivered = 0
        for handle in handles:
            if handle.closed:
                continue
            try:
                handle.on_change(config)
                delivered += 1
            except Exception:
                logger.exception("Error in mode change listener (company=%s)", config.company_id)
        return delivered

    def disconnect(self, company_id: Optional[str] = None) -> int:
        """Drop subscriptions (all, or one company's) as a lost connection would."""
        with self._lock:
            if company_id is None:
                dropped = [h for hs in self._subscribers.values() for h in hs]
                self._subscribers.clear()
            else:
                dropped = self._subscribers.pop(str(company_id), [])

        for handle in dropped:
            handle.closed = True
            if handle.on_drop is None:
                continue
            try:
                handle.on_drop(SubscriptionDropped(f"Subscription for company {handle.company_id} was dropped"))
            except Exception:
                logger.exception("Error in drop listener (company=%s)", handle.company_id)
        if dropped:
            logger.warning("Dropped %d mode channel subscription(s)", len(dropped))
        return len(dropped)
