from __future__ import annotations

import threading
from typing import Any, Optional

from ..common.datetime_utils import now_local
from .model import CompanyWorkConfig, WriteResult
from .repository import WorkConfigRepository


class InMemoryWorkConfigRepository(WorkConfigRepository):
    """Process-local store used by the `memory` backend and in tests."""

    def __init__(self, configs: Optional[dict[str, CompanyWorkConfig]] = None):
        self._configs: dict[str, CompanyWorkConfig] = dict(configs or {})
        self._lock = threading.Lock()

    def get(self, company_id: str) -> Optional[CompanyWorkConfig]:
        with self._lock:
            return self._configs.get(str(company_id))

    def create_default(self, company_id: str) -> CompanyWorkConfig:
        with self._lock:
            existing = self._configs.get(str(company_id))
            if existing:
                return existing
            config = CompanyWorkConfig.defaults(str(company_id))
            self._configs[config.company_id] = config
            return config

    def update(
        self,
        company_id: str,
        changes: dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> WriteResult:
        with self._lock:
            current = self._configs.get(str(company_id))
            if current is None:
                return WriteResult.denied()
            if expected_version is not None and current.version != int(expected_version):
                return WriteResult.conflict(current)

            updated = current.with_changes(changes, updated_at=now_local())
            self._configs[updated.company_id] = updated
            return WriteResult.applied(updated)
