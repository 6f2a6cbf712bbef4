from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """System roles; each maps to a default permission set."""

    CEO = "ceo"
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class WorkMode(str, Enum):
    """Company-wide (global) or per-employee (local) work phase."""

    IDLE = "idle"
    WORKING = "working"
    BREAK = "break"
    ENDED = "ended"


class RequestStatus(str, Enum):
    """Review state of an early-leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Capability(str, Enum):
    CONTROL_GLOBAL_WORK_MODE = "control_global_work_mode"
    UPDATE_WORK_SCHEDULE = "update_work_schedule"
    REVIEW_LEAVE_REQUESTS = "review_leave_requests"
    TRACK_WORK_SESSION = "track_work_session"


class Authorization(str, Enum):
    AUTHORIZED = "authorized"
    DENIED = "denied"


class WriteStatus(str, Enum):
    """Outcome of a conditional write against the config store."""

    APPLIED = "applied"
    DENIED = "denied"
    CONFLICT = "conflict"


class SubscriptionState(str, Enum):
    PENDING = "pending"
    OPEN = "open"
    RECONNECTING = "reconnecting"
    FAILED = "failed"
    CLOSED = "closed"
