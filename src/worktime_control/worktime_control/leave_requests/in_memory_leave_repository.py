from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from .model import LeaveRequest
from .repository import LeaveRequestRepository


class InMemoryLeaveRequestRepository(LeaveRequestRepository):
    """Ephemeral leave-request list; contents are lost on restart."""

    def __init__(self):
        self._items: dict[int, LeaveRequest] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(
        self,
        *,
        company_id: str,
        employee_id: str,
        employee_name: str,
        reason: str,
        work_hours_logged: float,
        requested_at: datetime,
    ) -> LeaveRequest:
        with self._lock:
            rid = self._next_id
            self._next_id += 1
            req = LeaveRequest(
                request_id=rid,
                company_id=str(company_id),
                employee_id=str(employee_id),
                employee_name=employee_name,
                reason=reason,
                requested_at=requested_at,
                status=RequestStatus.PENDING,
                work_hours_logged=float(work_hours_logged),
            )
            self._items[rid] = req
            return req

    def get(self, *, request_id: int) -> Optional[LeaveRequest]:
        with self._lock:
            return self._items.get(int(request_id))

    def list_requests(
        self,
        *,
        company_id: str,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        with self._lock:
            items = [r for r in self._items.values() if r.company_id == str(company_id)]
        if status is not None:
            items = [r for r in items if r.status == status]
        if employee_id is not None:
            items = [r for r in items if r.employee_id == str(employee_id)]
        items.sort(key=lambda r: (r.requested_at, r.request_id), reverse=True)
        return items[: int(limit)]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
    ) -> bool:
        with self._lock:
            req = self._items.get(int(request_id))
            if not req or req.status != RequestStatus.PENDING:
                return False
            self._items[req.request_id] = replace(
                req,
                status=status,
                decided_by=str(decided_by),
                decided_at=decided_at,
            )
            return True
