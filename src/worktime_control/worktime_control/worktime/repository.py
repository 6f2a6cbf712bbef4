from __future__ import annotations

from typing import Any, Optional, Protocol

from .model import CompanyWorkConfig, WriteResult


class WorkConfigRepository(Protocol):
    def get(self, company_id: str) -> Optional[CompanyWorkConfig]:
        raise NotImplementedError

    def create_default(self, company_id: str) -> CompanyWorkConfig:
        """Insert the default config row for a newly registered company.

        Returns the existing row if the company already has one.
        """

        raise NotImplementedError

    def update(
        self,
        company_id: str,
        changes: dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> WriteResult:
        """Apply a partial update and bump the version.

        DENIED means zero rows were affected; CONFLICT means `expected_version`
        did not match the stored version.
        """

        raise NotImplementedError
