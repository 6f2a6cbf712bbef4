from __future__ import annotations

import logging
from typing import FrozenSet, Iterable

from ..core.enums import Authorization, Capability, Role
from ..core.exceptions import PermissionDenied
from .model import Actor

logger = logging.getLogger(__name__)

ALL_PERMISSIONS = "all"

DEFAULT_ROLE_PERMISSIONS: dict[Role, FrozenSet[str]] = {
    Role.CEO: frozenset({ALL_PERMISSIONS}),
    Role.ADMIN: frozenset(
        {
            "dashboard",
            "manager-dashboard",
            "team",
            "reports",
            "company-settings",
            "salary-config",
            "staff-requests",
            "salary",
            "work-time-control",
            "leave-requests",
            "announcements",
        }
    ),
    Role.MANAGER: frozenset(
        {
            "dashboard",
            "manager-dashboard",
            "team",
            "reports",
            "salary",
            "work-time-control",
            "leave-requests",
        }
    ),
    Role.EMPLOYEE: frozenset({"dashboard", "attendance", "salary", "profile", "work-session", "verification"}),
}

PERMISSION_CAPABILITIES: dict[str, FrozenSet[Capability]] = {
    "work-time-control": frozenset({Capability.CONTROL_GLOBAL_WORK_MODE, Capability.UPDATE_WORK_SCHEDULE}),
    "company-settings": frozenset({Capability.UPDATE_WORK_SCHEDULE}),
    "leave-requests": frozenset({Capability.REVIEW_LEAVE_REQUESTS}),
    "work-session": frozenset({Capability.TRACK_WORK_SESSION}),
}


def permissions_for_role(role: Role) -> FrozenSet[str]:
    return DEFAULT_ROLE_PERMISSIONS.get(Role(role), frozenset())


def capabilities_for(permissions: Iterable[str]) -> FrozenSet[Capability]:
    keys = set(permissions)
    if ALL_PERMISSIONS in keys:
        return frozenset(Capability)

    caps: set[Capability] = set()
    for key in keys:
        caps |= PERMISSION_CAPABILITIES.get(key, frozenset())
    return frozenset(caps)


def authorize(actor: Actor, capability: Capability) -> Authorization:
    return Authorization.AUTHORIZED if actor.can(capability) else Authorization.DENIED


def require_capability(actor: Actor, capability: Capability, message: str = "You do not have permission for this action") -> None:
    if authorize(actor, capability) is Authorization.DENIED:
        logger.warning("Denied %s for user=%s role=%s", capability.value, actor.user_id, actor.role.value)
        raise PermissionDenied(message)
