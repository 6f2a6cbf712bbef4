from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    """An employee's request to leave before the end of the work day."""

    request_id: int
    company_id: str
    employee_id: str
    employee_name: str
    reason: str
    requested_at: datetime
    status: RequestStatus
    work_hours_logged: float
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "company_id": self.company_id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "reason": self.reason,
            "requested_at": self.requested_at.isoformat(),
            "status": self.status.value,
            "work_hours_logged": round(self.work_hours_logged, 2),
            "decided_by": self.decided_by,
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }
