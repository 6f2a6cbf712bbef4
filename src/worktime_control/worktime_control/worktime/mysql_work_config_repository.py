from __future__ import annotations

import logging
from typing import Any, Optional

from ..core.constants import (
    DEFAULT_BREAK_END_TIME,
    DEFAULT_BREAK_START_TIME,
    DEFAULT_WORK_END_TIME,
    DEFAULT_WORK_START_TIME,
)
from ..core.enums import WorkMode
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, mysql_time_to_hhmm
from .model import MODE_FIELDS, SCHEDULE_FIELDS, CompanyWorkConfig, WriteResult
from .repository import WorkConfigRepository

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = """
    company_id, work_start_time, work_end_time, break_start_time, break_end_time,
    auto_break_enabled, current_mode, active_break_reason, version, updated_at
"""

_WRITABLE_COLUMNS = frozenset(SCHEDULE_FIELDS + MODE_FIELDS)


class MySQLWorkConfigRepository(WorkConfigRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> CompanyWorkConfig:
        return CompanyWorkConfig(
            company_id=str(r["company_id"]),
            work_start_time=mysql_time_to_hhmm(r.get("work_start_time"), DEFAULT_WORK_START_TIME),
            work_end_time=mysql_time_to_hhmm(r.get("work_end_time"), DEFAULT_WORK_END_TIME),
            break_start_time=mysql_time_to_hhmm(r.get("break_start_time"), DEFAULT_BREAK_START_TIME),
            break_end_time=mysql_time_to_hhmm(r.get("break_end_time"), DEFAULT_BREAK_END_TIME),
            auto_break_enabled=bool(r.get("auto_break_enabled", 1)),
            current_mode=WorkMode(r.get("current_mode") or WorkMode.IDLE.value),
            active_break_reason=r.get("active_break_reason"),
            version=int(r.get("version") or 0),
            updated_at=r.get("updated_at"),
        )

    @staticmethod
    def _to_db_value(column: str, value: Any) -> Any:
        if column == "current_mode":
            return WorkMode(value).value
        if column == "auto_break_enabled":
            return 1 if value else 0
        return value

    def _select(self, cur, company_id: str) -> Optional[CompanyWorkConfig]:
        cur.execute(
            f"SELECT {_SELECT_COLUMNS} FROM company_work_config WHERE company_id=%s",
            (str(company_id),),
        )
        r = fetchone(cur)
        return self._to_model(r) if r else None

    def get(self, company_id: str) -> Optional[CompanyWorkConfig]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select(cur, company_id)

    def create_default(self, company_id: str) -> CompanyWorkConfig:
        defaults = CompanyWorkConfig.defaults(company_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO company_work_config(
                    company_id, work_start_time, work_end_time, break_start_time, break_end_time,
                    auto_break_enabled, current_mode, active_break_reason, version, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,NULL,0,NOW())
                """,
                (
                    defaults.company_id,
                    defaults.work_start_time,
                    defaults.work_end_time,
                    defaults.break_start_time,
                    defaults.break_end_time,
                    1 if defaults.auto_break_enabled else 0,
                    defaults.current_mode.value,
                ),
            )
            return self._select(cur, company_id) or defaults

    def update(
        self,
        company_id: str,
        changes: dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> WriteResult:
        unknown = set(changes) - _WRITABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported config columns: {sorted(unknown)}")

        columns = sorted(changes)
        assignments = [f"{c}=%s" for c in columns] + ["version=version+1", "updated_at=NOW()"]
        params: list[object] = [self._to_db_value(c, changes[c]) for c in columns]

        clauses = ["company_id=%s"]
        params.append(str(company_id))
        if expected_version is not None:
            clauses.append("version=%s")
            params.append(int(expected_version))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE company_work_config SET {', '.join(assignments)} WHERE {' AND '.join(clauses)}",
                tuple(params),
            )
            affected = cur.rowcount
            current = self._select(cur, company_id)

        if affected and current is not None:
            return WriteResult.applied(current)

        if expected_version is not None and current is not None and current.version != int(expected_version):
            logger.info(
                "Stale write for company=%s (expected v%s, stored v%s)",
                company_id,
                expected_version,
                current.version,
            )
            return WriteResult.conflict(current)

        return WriteResult.denied()
