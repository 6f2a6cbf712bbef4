from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from ..core.constants import RECONNECT_BASE_DELAY, RECONNECT_MAX_ATTEMPTS, RECONNECT_MAX_DELAY
from ..core.enums import SubscriptionState
from ..core.exceptions import SubscriptionDropped
from .channel import ChangeListener, ChannelHandle
from .model import CompanyWorkConfig
from .store import ConfigStore

logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, *, base_delay: float, max_delay: float) -> float:
    """Exponential backoff: base, 2*base, 4*base, ... capped at max_delay."""
    return min(float(max_delay), float(base_delay) * (2 ** max(0, int(attempt))))


def _run_in_thread(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, name="mode-channel-reconnect", daemon=True).start()


class ResilientSubscription:
    """Change-feed subscription that reconnects with backoff after a drop.

    Lifecycle: PENDING -> OPEN -> RECONNECTING -> OPEN | FAILED; CLOSED is terminal.
    After each successful reconnect `on_reconnect` runs so the owner can reload
    whatever it missed while disconnected.
    """

    def __init__(
        self,
        store: ConfigStore,
        company_id: str,
        on_change: ChangeListener,
        *,
        on_reconnect: Optional[Callable[[], None]] = None,
        base_delay: float = RECONNECT_BASE_DELAY,
        max_delay: float = RECONNECT_MAX_DELAY,
        max_attempts: int = RECONNECT_MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
        scheduler: Callable[[Callable[[], None]], None] = _run_in_thread,
    ):
        self._store = store
        self._company_id = str(company_id)
        self._on_change = on_change
        self._on_reconnect = on_reconnect
        self._base_delay = float(base_delay)
        self._max_delay = float(max_delay)
        self._max_attempts = int(max_attempts)
        self._sleep = sleep
        self._scheduler = scheduler
        self._handle: Optional[ChannelHandle] = None
        self._lock = threading.Lock()
        self.state = SubscriptionState.PENDING
        self.reconnect_count = 0

    @property
    def company_id(self) -> str:
        return self._company_id

    def open(self) -> "ResilientSubscription":
        with self._lock:
            if self.state is SubscriptionState.OPEN:
                return self
            if self.state is SubscriptionState.CLOSED:
                raise SubscriptionDropped("Subscription is closed")
            self._handle = self._store.subscribe(self._company_id, self._deliver, on_drop=self._handle_drop)
            self.state = SubscriptionState.OPEN
        logger.info("Mode subscription open (company=%s)", self._company_id)
        return self

    def close(self) -> None:
        with self._lock:
            self.state = SubscriptionState.CLOSED
            handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()

    def _deliver(self, config: CompanyWorkConfig) -> None:
        if self.state is not SubscriptionState.OPEN:
            return
        self._on_change(config)

    def _handle_drop(self, error: SubscriptionDropped) -> None:
        with self._lock:
            if self.state is not SubscriptionState.OPEN:
                return
            self.state = SubscriptionState.RECONNECTING
            self._handle = None
        logger.warning("Mode subscription dropped (company=%s): %s", self._company_id, error)
        self._scheduler(self._reconnect)

    def _reconnect(self) -> None:
        attempt = 0
        while self.state is SubscriptionState.RECONNECTING:
            self._sleep(backoff_delay(attempt, base_delay=self._base_delay, max_delay=self._max_delay))
            if self.state is not SubscriptionState.RECONNECTING:
                return

            try:
                handle = self._store.subscribe(self._company_id, self._deliver, on_drop=self._handle_drop)
            except (SubscriptionDropped, ConnectionError, OSError) as e:
                attempt += 1
                logger.warning("Reconnect attempt %d failed (company=%s): %s", attempt, self._company_id, e)
                if self._max_attempts and attempt >= self._max_attempts:
                    self.state = SubscriptionState.FAILED
                    logger.error("Giving up on mode subscription (company=%s)", self._company_id)
                    return
                continue
            except Exception:
                logger.exception("Unexpected error while resubscribing (company=%s)", self._company_id)
                with self._lock:
                    if self.state is SubscriptionState.RECONNECTING:
                        self.state = SubscriptionState.FAILED
                return

            with self._lock:
                if self.state is not SubscriptionState.RECONNECTING:
                    handle.close()
                    return
                self._handle = handle
                self.state = SubscriptionState.OPEN
                self.reconnect_count += 1
            logger.info("Mode subscription re-established (company=%s)", self._company_id)

            if self._on_reconnect is not None:
                try:
                    self._on_reconnect()
                except Exception:
                    logger.exception("Reconciling reload failed after reconnect (company=%s)", self._company_id)
            return
