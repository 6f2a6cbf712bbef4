from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, require_non_negative
from ..core.constants import DEFAULT_LEAVE_LIST_LIMIT
from ..core.enums import Capability, RequestStatus
from ..core.exceptions import ValidationError
from ..users.model import Actor
from ..users.permissions import require_capability
from .model import LeaveRequest
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)


class LeaveRequestService:
    """Early-leave requests raised during a work session and reviewed by managers.

    Deciding a request never touches the employee's timer or the company mode.
    """

    def __init__(self, requests: LeaveRequestRepository, *, clock: Callable = now_local):
        self._requests = requests
        self._clock = clock

    def submit(self, actor: Actor, reason: str, work_hours_logged: float) -> LeaveRequest:
        reason = require_non_empty(reason, "Leave reason")
        hours = require_non_negative(work_hours_logged, "Logged work hours")
        require_capability(actor, Capability.TRACK_WORK_SESSION, "You cannot submit leave requests")

        req = self._requests.create(
            company_id=actor.company_id,
            employee_id=actor.user_id,
            employee_name=actor.name,
            reason=reason,
            work_hours_logged=hours,
            requested_at=self._clock(),
        )
        logger.info("Leave request %s submitted by user=%s", req.request_id, actor.user_id)
        return req

    def approve(self, actor: Actor, request_id: int) -> LeaveRequest:
        return self._decide(actor, request_id, RequestStatus.APPROVED)

    def reject(self, actor: Actor, request_id: int) -> LeaveRequest:
        return self._decide(actor, request_id, RequestStatus.REJECTED)

    def _decide(self, actor: Actor, request_id: int, status: RequestStatus) -> LeaveRequest:
        require_capability(actor, Capability.REVIEW_LEAVE_REQUESTS, "You cannot review leave requests")

        req = self._requests.get(request_id=int(request_id))
        if not req or req.company_id != actor.company_id:
            raise ValidationError("Leave request not found")
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Leave request has already been processed")

        ok = self._requests.decide(
            request_id=req.request_id,
            status=status,
            decided_by=actor.user_id,
            decided_at=self._clock(),
        )
        if not ok:
            raise ValidationError("Leave request has already been processed")

        logger.info("Leave request %s %s by user=%s", req.request_id, status.value, actor.user_id)
        return self._requests.get(request_id=req.request_id)

    def list_for_company(
        self,
        actor: Actor,
        *,
        status: Optional[RequestStatus] = None,
        limit: int = DEFAULT_LEAVE_LIST_LIMIT,
    ) -> Sequence[LeaveRequest]:
        require_capability(actor, Capability.REVIEW_LEAVE_REQUESTS, "You cannot review leave requests")
        return self._requests.list_requests(company_id=actor.company_id, status=status, limit=limit)

    def list_mine(self, actor: Actor, *, limit: int = DEFAULT_LEAVE_LIST_LIMIT) -> Sequence[LeaveRequest]:
        return self._requests.list_requests(company_id=actor.company_id, employee_id=actor.user_id, limit=limit)
