from __future__ import annotations

import logging
import threading
from typing import Optional

from ..core.constants import SESSION_TICK_SECONDS
from .registry import ClientSessionRegistry

logger = logging.getLogger(__name__)


class SessionTicker:
    """Background thread that advances every open session timer once per interval."""

    def __init__(self, registry: ClientSessionRegistry, *, interval: float = SESSION_TICK_SECONDS):
        self._registry = registry
        self._interval = float(interval)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            logger.warning("Session ticker is already running.")
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="session-ticker", daemon=True)
        self._thread.start()
        logger.info("Session ticker started (every %.1fs).", self._interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Session ticker stopped.")

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._registry.tick_all()
            except Exception:
                logger.exception("Session tick failed")
