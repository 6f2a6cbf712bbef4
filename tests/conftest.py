from __future__ import annotations

from functools import partial

import pytest

from worktime_control.core.enums import Role
from worktime_control.users.model import Actor
from worktime_control.worktime.channel import InMemoryModeChannel
from worktime_control.worktime.coordinator import WorkTimeCoordinator
from worktime_control.worktime.in_memory_work_config_repository import InMemoryWorkConfigRepository
from worktime_control.worktime.model import CompanyWorkConfig
from worktime_control.worktime.store import ConfigStore
from worktime_control.worktime.subscription import ResilientSubscription

COMPANY = "acme"


@pytest.fixture
def manager():
    return Actor(user_id="m1", company_id=COMPANY, name="Mai", role=Role.MANAGER)


@pytest.fixture
def employee():
    return Actor(user_id="e1", company_id=COMPANY, name="Binh", role=Role.EMPLOYEE)


@pytest.fixture
def other_employee():
    return Actor(user_id="e2", company_id=COMPANY, name="Chi", role=Role.EMPLOYEE)


@pytest.fixture
def channel():
    return InMemoryModeChannel()


@pytest.fixture
def repo():
    return InMemoryWorkConfigRepository({COMPANY: CompanyWorkConfig(company_id=COMPANY)})


@pytest.fixture
def store(repo, channel):
    return ConfigStore(repo, channel)


@pytest.fixture
def make_coordinator(store):
    """Loaded and subscribed coordinator whose reconnects run inline without sleeping."""

    def _make(actor, *, subscribe=True, scheduler=None, sleeps=None, max_attempts=3):
        factory = partial(
            ResilientSubscription,
            base_delay=0.5,
            max_delay=4.0,
            max_attempts=max_attempts,
            sleep=sleeps.append if sleeps is not None else (lambda seconds: None),
            scheduler=scheduler or (lambda fn: fn()),
        )
        coordinator = WorkTimeCoordinator(store, actor, subscription_factory=factory)
        coordinator.load_config()
        if subscribe:
            coordinator.subscribe_to_mode_changes()
        return coordinator

    return _make
