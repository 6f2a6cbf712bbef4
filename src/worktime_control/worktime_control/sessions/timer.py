from __future__ import annotations

from ..common.datetime_utils import format_seconds_hms
from ..core.enums import WorkMode
from ..core.exceptions import ValidationError


class SessionTimer:
    """One employee's locally counted work and break seconds.

    Each tick adds exactly one second to the counter of the active sub-state;
    there is no correction against wall-clock time.
    """

    def __init__(self):
        self.local_mode = WorkMode.IDLE
        self.work_seconds = 0
        self.break_seconds = 0

    @property
    def is_active(self) -> bool:
        return self.local_mode in (WorkMode.WORKING, WorkMode.BREAK)

    @property
    def work_hours(self) -> float:
        return self.work_seconds / 3600

    def _require(self, *modes: WorkMode, action: str) -> None:
        if self.local_mode not in modes:
            raise ValidationError(f"Cannot {action} while {self.local_mode.value}")

    def start_work(self) -> None:
        self._require(WorkMode.IDLE, WorkMode.ENDED, action="start work")
        if self.local_mode is WorkMode.ENDED:
            self._reset_counters()
        self.local_mode = WorkMode.WORKING

    def take_break(self) -> None:
        self._require(WorkMode.WORKING, action="take a break")
        self.local_mode = WorkMode.BREAK

    def resume_work(self) -> None:
        self._require(WorkMode.BREAK, action="resume work")
        self.local_mode = WorkMode.WORKING

    def end_work(self) -> None:
        self._require(WorkMode.WORKING, WorkMode.BREAK, action="end work")
        self.local_mode = WorkMode.ENDED

    def start_new_session(self) -> None:
        self._require(WorkMode.ENDED, action="start a new session")
        self._reset_counters()
        self.local_mode = WorkMode.IDLE

    def tick(self) -> None:
        if self.local_mode is WorkMode.WORKING:
            self.work_seconds += 1
        elif self.local_mode is WorkMode.BREAK:
            self.break_seconds += 1

    def mirror_global(self, mode: WorkMode) -> bool:
        """Follow a company-wide mode change while a session is running.

        Employees who have not started (idle) or already finished (ended) are
        left alone. Returns True when the local mode changed.
        """

        if not self.is_active:
            return False

        if mode is WorkMode.BREAK and self.local_mode is WorkMode.WORKING:
            self.local_mode = WorkMode.BREAK
        elif mode is WorkMode.WORKING and self.local_mode is WorkMode.BREAK:
            self.local_mode = WorkMode.WORKING
        elif mode is WorkMode.ENDED:
            self.local_mode = WorkMode.ENDED
        else:
            return False
        return True

    def _reset_counters(self) -> None:
        self.work_seconds = 0
        self.break_seconds = 0

    def snapshot(self) -> dict:
        return {
            "local_mode": self.local_mode.value,
            "work_seconds": self.work_seconds,
            "break_seconds": self.break_seconds,
            "work_time": format_seconds_hms(self.work_seconds),
            "break_time": format_seconds_hms(self.break_seconds),
        }
