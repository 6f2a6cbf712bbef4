from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from ..core.constants import (
    DEFAULT_AUTO_BREAK_ENABLED,
    DEFAULT_BREAK_END_TIME,
    DEFAULT_BREAK_START_TIME,
    DEFAULT_WORK_END_TIME,
    DEFAULT_WORK_START_TIME,
)
from ..core.enums import WorkMode, WriteStatus

SCHEDULE_FIELDS = (
    "work_start_time",
    "work_end_time",
    "break_start_time",
    "break_end_time",
    "auto_break_enabled",
)
MODE_FIELDS = ("current_mode", "active_break_reason")


@dataclass(frozen=True)
class CompanyWorkConfig:
    """Company-wide work schedule plus the shared work mode.

    `version` grows by one on every write so clients can discard stale
    change notifications.
    """

    company_id: str
    work_start_time: str = DEFAULT_WORK_START_TIME
    work_end_time: str = DEFAULT_WORK_END_TIME
    break_start_time: str = DEFAULT_BREAK_START_TIME
    break_end_time: str = DEFAULT_BREAK_END_TIME
    auto_break_enabled: bool = DEFAULT_AUTO_BREAK_ENABLED
    current_mode: WorkMode = WorkMode.IDLE
    active_break_reason: Optional[str] = None
    version: int = 0
    updated_at: Optional[datetime] = None

    @classmethod
    def defaults(cls, company_id: str) -> "CompanyWorkConfig":
        return cls(company_id=str(company_id))

    def with_changes(self, changes: dict[str, Any], *, updated_at: Optional[datetime] = None) -> "CompanyWorkConfig":
        return replace(self, **changes, version=self.version + 1, updated_at=updated_at)

    def to_dict(self) -> dict:
        return {
            "company_id": self.company_id,
            "work_start_time": self.work_start_time,
            "work_end_time": self.work_end_time,
            "break_start_time": self.break_start_time,
            "break_end_time": self.break_end_time,
            "auto_break_enabled": self.auto_break_enabled,
            "current_mode": self.current_mode.value,
            "active_break_reason": self.active_break_reason,
            "version": self.version,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class WriteResult:
    status: WriteStatus
    config: Optional[CompanyWorkConfig] = None

    @classmethod
    def applied(cls, config: CompanyWorkConfig) -> "WriteResult":
        return cls(WriteStatus.APPLIED, config)

    @classmethod
    def denied(cls) -> "WriteResult":
        return cls(WriteStatus.DENIED)

    @classmethod
    def conflict(cls, current: Optional[CompanyWorkConfig] = None) -> "WriteResult":
        return cls(WriteStatus.CONFLICT, current)
