from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRequestRepository

_SELECT_COLUMNS = """
    request_id, company_id, employee_id, employee_name, reason, requested_at,
    status, work_hours_logged, decided_by, decided_at
"""


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> LeaveRequest:
        return LeaveRequest(
            request_id=int(r["request_id"]),
            company_id=str(r["company_id"]),
            employee_id=str(r["employee_id"]),
            employee_name=r["employee_name"],
            reason=r["reason"],
            requested_at=r["requested_at"],
            status=RequestStatus(r["status"]),
            work_hours_logged=float(r.get("work_hours_logged") or 0),
            decided_by=r.get("decided_by"),
            decided_at=r.get("decided_at"),
        )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    company_id, employee_id, employee_name, reason, requested_at, status, work_hours_logged
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    str(company_id),
                    str(employee_id),
                    employee_name,
                    reason,
                    requested_at,
                    RequestStatus.PENDING.value,
                    float(work_hours_logged),
                ),
            )
            request_id = int(cur.lastrowid)

        return LeaveRequest(
            request_id=request_id,
            company_id=str(company_id),
            employee_id=str(employee_id),
            employee_name=employee_name,
            reason=reason,
            requested_at=requested_at,
            status=RequestStatus.PENDING,
            work_hours_logged=float(work_hours_logged),
        )

    def get(self, *, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SELECT_COLUMNS} FROM leave_requests WHERE request_id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def list_requests(
        self,
        *,
        company_id: str,
        status: Optional[RequestStatus] = None,
        employee_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        clauses = ["company_id=%s"]
        params: list[object] = [str(company_id)]

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(str(employee_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SELECT_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY requested_at DESC, request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, decided_by=%s, decided_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, str(decided_by), decided_at, int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
