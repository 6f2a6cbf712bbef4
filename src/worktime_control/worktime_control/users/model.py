from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from ..core.enums import Capability, Role


@dataclass(frozen=True)
class Actor:
    """The signed-in user acting on a company.

    Identity comes from the external identity provider; `permissions` holds the
    permission keys of the user's (possibly custom) role. An empty set means the
    role's default permissions apply.
    """

    user_id: str
    company_id: str
    name: str
    role: Role
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def effective_permissions(self) -> FrozenSet[str]:
        from .permissions import permissions_for_role

        return self.permissions or permissions_for_role(self.role)

    def can(self, capability: Capability) -> bool:
        from .permissions import capabilities_for

        return capability in capabilities_for(self.effective_permissions())
