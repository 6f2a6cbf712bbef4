from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Optional

from .core.constants import (
    RECONNECT_BASE_DELAY,
    RECONNECT_MAX_ATTEMPTS,
    RECONNECT_MAX_DELAY,
    SESSION_TICK_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .leave_requests.in_memory_leave_repository import InMemoryLeaveRequestRepository
from .leave_requests.mysql_leave_repository import MySQLLeaveRequestRepository
from .leave_requests.repository import LeaveRequestRepository
from .leave_requests.service import LeaveRequestService
from .sessions.client import ClientSession
from .sessions.registry import ClientSessionRegistry
from .sessions.ticker import SessionTicker
from .users.model import Actor
from .worktime.channel import InMemoryModeChannel, ModeChannel
from .worktime.coordinator import WorkTimeCoordinator
from .worktime.in_memory_work_config_repository import InMemoryWorkConfigRepository
from .worktime.mysql_work_config_repository import MySQLWorkConfigRepository
from .worktime.repository import WorkConfigRepository
from .worktime.store import ConfigStore
from .worktime.subscription import ResilientSubscription

BACKENDS = ("mysql", "memory")


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    work_config_repo: WorkConfigRepository
    leave_requests_repo: LeaveRequestRepository
    mode_channel: ModeChannel

    config_store: ConfigStore
    leave_request_service: LeaveRequestService
    sessions: ClientSessionRegistry
    ticker: SessionTicker


def _check_backend(name: str, value: str) -> str:
    value = (value or "").lower()
    if value not in BACKENDS:
        raise ValueError(f"{name} must be one of {BACKENDS}, got {value!r}")
    return value


def build_container(
    *,
    db_config: Optional[dict] = None,
    work_config_backend: str = "mysql",
    leave_request_backend: str = "memory",
    work_config_repo: Optional[WorkConfigRepository] = None,
    leave_requests_repo: Optional[LeaveRequestRepository] = None,
    mode_channel: Optional[ModeChannel] = None,
    enforce_work_start_time: bool = True,
    tick_seconds: float = SESSION_TICK_SECONDS,
    reconnect_base_delay: float = RECONNECT_BASE_DELAY,
    reconnect_max_delay: float = RECONNECT_MAX_DELAY,
    reconnect_max_attempts: int = RECONNECT_MAX_ATTEMPTS,
) -> Container:
    work_config_backend = _check_backend("work_config_backend", work_config_backend)
    leave_request_backend = _check_backend("leave_request_backend", leave_request_backend)

    conn = None
    if db_config and "mysql" in (work_config_backend, leave_request_backend):
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    if work_config_repo is None:
        if work_config_backend == "mysql":
            if conn is None:
                raise ValueError("db_config is required for the mysql work config backend")
            work_config_repo = MySQLWorkConfigRepository(conn)
        else:
            work_config_repo = InMemoryWorkConfigRepository()

    if leave_requests_repo is None:
        if leave_request_backend == "mysql":
            if conn is None:
                raise ValueError("db_config is required for the mysql leave request backend")
            leave_requests_repo = MySQLLeaveRequestRepository(conn)
        else:
            leave_requests_repo = InMemoryLeaveRequestRepository()

    mode_channel = mode_channel or InMemoryModeChannel()
    config_store = ConfigStore(work_config_repo, mode_channel)
    leave_request_service = LeaveRequestService(leave_requests_repo)

    subscription_factory = partial(
        ResilientSubscription,
        base_delay=reconnect_base_delay,
        max_delay=reconnect_max_delay,
        max_attempts=reconnect_max_attempts,
    )

    def open_client_session(actor: Actor) -> ClientSession:
        coordinator = WorkTimeCoordinator(config_store, actor, subscription_factory=subscription_factory)
        return ClientSession(
            actor,
            coordinator,
            leave_request_service,
            enforce_work_start_time=enforce_work_start_time,
        )

    sessions = ClientSessionRegistry(open_client_session)
    ticker = SessionTicker(sessions, interval=tick_seconds)

    return Container(
        conn=conn,
        work_config_repo=work_config_repo,
        leave_requests_repo=leave_requests_repo,
        mode_channel=mode_channel,
        config_store=config_store,
        leave_request_service=leave_request_service,
        sessions=sessions,
        ticker=ticker,
    )
