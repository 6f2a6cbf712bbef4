from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local, parse_hhmm
from ..core.enums import WorkMode
from ..core.exceptions import ValidationError
from ..leave_requests.model import LeaveRequest
from ..leave_requests.service import LeaveRequestService
from ..users.model import Actor
from ..worktime.coordinator import WorkTimeCoordinator
from ..worktime.model import CompanyWorkConfig
from .timer import SessionTimer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeWorkStatus:
    user_id: str
    name: str
    mode: WorkMode
    work_seconds: int
    break_seconds: int

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "mode": self.mode.value,
            "work_seconds": self.work_seconds,
            "break_seconds": self.break_seconds,
        }


class ClientSession:
    """One connected employee: coordinator view, local timer and leave requests.

    Company-wide mode changes are mirrored onto the timer only while the
    employee has a session running.
    """

    def __init__(
        self,
        actor: Actor,
        coordinator: WorkTimeCoordinator,
        leave_requests: LeaveRequestService,
        *,
        timer: Optional[SessionTimer] = None,
        enforce_work_start_time: bool = True,
        clock: Callable[[], datetime] = now_local,
    ):
        self.actor = actor
        self.coordinator = coordinator
        self.timer = timer or SessionTimer()
        self._leave_requests = leave_requests
        self._enforce_work_start_time = enforce_work_start_time
        self._clock = clock
        self._lock = threading.RLock()
        coordinator.add_listener(self._on_global_mode)

    def open(self, **subscription_options) -> "ClientSession":
        self.coordinator.load_config()
        self.coordinator.subscribe_to_mode_changes(**subscription_options)
        return self

    def close(self) -> None:
        self.coordinator.remove_listener(self._on_global_mode)
        self.coordinator.close()

    def _on_global_mode(self, previous: WorkMode, current: WorkMode, config: CompanyWorkConfig) -> None:
        with self._lock:
            if self.timer.mirror_global(current):
                logger.info(
                    "User %s session follows company mode %s -> %s",
                    self.actor.user_id,
                    previous.value,
                    self.timer.local_mode.value,
                )

    # -------- employee actions --------
    def start_work(self, now: Optional[datetime] = None) -> None:
        now = now or self._clock()
        start = self.coordinator.config.work_start_time
        if self._enforce_work_start_time and now.time() < parse_hhmm(start):
            raise ValidationError(f"You cannot start work before {start}")
        with self._lock:
            self.timer.start_work()

    def take_break(self) -> None:
        with self._lock:
            self.timer.take_break()

    def resume_work(self) -> None:
        with self._lock:
            self.timer.resume_work()
        self.coordinator.dismiss_break_alert()

    def end_work(self) -> None:
        with self._lock:
            self.timer.end_work()
        self.coordinator.dismiss_break_alert()
        self.coordinator.dismiss_work_end_alert()

    def start_new_session(self) -> None:
        with self._lock:
            self.timer.start_new_session()

    def tick(self) -> None:
        with self._lock:
            self.timer.tick()

    def request_early_leave(self, reason: str) -> LeaveRequest:
        with self._lock:
            if not self.timer.is_active:
                raise ValidationError("Start a work session before requesting to leave early")
            hours = self.timer.work_hours
        return self._leave_requests.submit(self.actor, reason, hours)

    # -------- read models --------
    def status(self) -> EmployeeWorkStatus:
        with self._lock:
            return EmployeeWorkStatus(
                user_id=self.actor.user_id,
                name=self.actor.name,
                mode=self.timer.local_mode,
                work_seconds=self.timer.work_seconds,
                break_seconds=self.timer.break_seconds,
            )

    def snapshot(self) -> dict:
        with self._lock:
            data = self.timer.snapshot()
        data.update(self.coordinator.snapshot())
        return data
