from __future__ import annotations

from dataclasses import replace

import pytest

from worktime_control.core.enums import Role, SubscriptionState, WorkMode
from worktime_control.core.exceptions import ConfigUnavailable, PermissionDenied, ValidationError, WriteConflict
from worktime_control.users.model import Actor
from worktime_control.worktime.coordinator import WorkTimeCoordinator
from worktime_control.worktime.in_memory_work_config_repository import InMemoryWorkConfigRepository
from worktime_control.worktime.model import CompanyWorkConfig, WriteResult
from worktime_control.worktime.store import ConfigStore


class RecordingRepo(InMemoryWorkConfigRepository):
    def __init__(self, configs=None):
        super().__init__(configs)
        self.update_calls = 0

    def update(self, company_id, changes, *, expected_version=None):
        self.update_calls += 1
        return super().update(company_id, changes, expected_version=expected_version)


class DenyingRepo(InMemoryWorkConfigRepository):
    def update(self, company_id, changes, *, expected_version=None):
        return WriteResult.denied()


class BrokenRepo(InMemoryWorkConfigRepository):
    def get(self, company_id):
        raise RuntimeError("connection refused")


def test_break_reaches_every_subscribed_client(make_coordinator, manager, employee, other_employee):
    boss = make_coordinator(manager)
    first = make_coordinator(employee)
    second = make_coordinator(other_employee)

    boss.start_global_work()
    boss.start_global_break("Lunch")

    for client in (boss, first, second):
        assert client.global_mode is WorkMode.BREAK
        assert client.active_break_reason == "Lunch"
        assert client.break_alert_active is True


def test_end_break_clears_reason_and_alert(make_coordinator, manager, employee):
    boss = make_coordinator(manager)
    staff = make_coordinator(employee)
    boss.start_global_break("Fire drill")

    boss.end_global_break()

    assert staff.global_mode is WorkMode.WORKING
    assert staff.active_break_reason is None
    assert staff.break_alert_active is False


def test_end_all_work_then_new_day(make_coordinator, manager, employee):
    boss = make_coordinator(manager)
    staff = make_coordinator(employee)
    boss.start_global_work()

    boss.end_all_work()
    assert staff.global_mode is WorkMode.ENDED
    assert staff.work_end_alert_active is True

    boss.start_new_work_day()
    assert staff.global_mode is WorkMode.IDLE
    assert staff.work_end_alert_active is False
    assert staff.break_alert_active is False


def test_employee_cannot_change_mode_and_store_is_untouched(channel, employee):
    repo = RecordingRepo({"acme": CompanyWorkConfig(company_id="acme")})
    coordinator = WorkTimeCoordinator(ConfigStore(repo, channel), employee)
    coordinator.load_config()

    with pytest.raises(PermissionDenied):
        coordinator.start_global_break("Coffee")
    with pytest.raises(PermissionDenied):
        coordinator.end_all_work()

    assert repo.update_calls == 0
    assert repo.get("acme").version == 0


def test_custom_role_permissions_override_role_defaults(store):
    settings_only = Actor(
        user_id="a9", company_id="acme", name="Dao", role=Role.ADMIN, permissions=frozenset({"company-settings"})
    )
    coordinator = WorkTimeCoordinator(store, settings_only)

    config = coordinator.update_config({"work_start_time": "08:30"})
    assert config.work_start_time == "08:30"

    with pytest.raises(PermissionDenied):
        coordinator.start_global_work()


@pytest.mark.parametrize("user_id, role", [("m1", Role.MANAGER), ("e1", Role.EMPLOYEE)])
@pytest.mark.parametrize("reason", ["", "   ", None, 123])
def test_break_without_reason_fails_for_every_actor_before_the_store(channel, user_id, role, reason):
    repo = RecordingRepo({"acme": CompanyWorkConfig(company_id="acme")})
    actor = Actor(user_id=user_id, company_id="acme", name="Tester", role=role)
    coordinator = WorkTimeCoordinator(ConfigStore(repo, channel), actor)

    with pytest.raises(ValidationError):
        coordinator.start_global_break(reason)

    assert repo.update_calls == 0
    assert coordinator.global_mode is WorkMode.IDLE


def test_employee_start_work_during_break_is_denied(make_coordinator, manager, employee):
    boss = make_coordinator(manager)
    staff = make_coordinator(employee)
    boss.start_global_break("Lunch")

    with pytest.raises(PermissionDenied):
        staff.start_global_work()


def test_unknown_mode_is_rejected(make_coordinator, manager):
    boss = make_coordinator(manager)

    with pytest.raises(ValidationError):
        boss.set_global_mode("lunch")


def test_illegal_transitions_are_rejected(make_coordinator, manager):
    boss = make_coordinator(manager)
    boss.start_global_work()

    with pytest.raises(ValidationError):
        boss.start_global_work()

    boss.end_all_work()
    with pytest.raises(ValidationError):
        boss.start_global_break("Too late")
    with pytest.raises(ValidationError):
        boss.end_global_break()


def test_start_global_work_refused_during_break(make_coordinator, manager):
    boss = make_coordinator(manager)
    boss.start_global_break("Lunch")

    with pytest.raises(ValidationError):
        boss.start_global_work()
    assert boss.global_mode is WorkMode.BREAK


def test_stale_and_foreign_notifications_are_ignored(make_coordinator, manager, employee, store):
    boss = make_coordinator(manager)
    staff = make_coordinator(employee)
    boss.start_global_work()
    boss.start_global_break("Lunch")

    current = store.read("acme")
    stale = replace(current, current_mode=WorkMode.WORKING, active_break_reason=None, version=current.version - 1)
    foreign = replace(current, company_id="globex", current_mode=WorkMode.ENDED, version=current.version + 5)

    assert staff.apply_change(stale) is False
    assert staff.apply_change(foreign) is False
    assert staff.global_mode is WorkMode.BREAK
    assert staff.version == current.version


def test_duplicate_delivery_notifies_listeners_once(make_coordinator, manager, employee, store):
    boss = make_coordinator(manager)
    staff = make_coordinator(employee)
    seen = []
    staff.add_listener(lambda previous, current, config: seen.append((previous, current)))

    boss.start_global_break("Lunch")
    staff.apply_change(store.read("acme"))

    assert seen == [(WorkMode.IDLE, WorkMode.BREAK)]


def test_schedule_change_alone_does_not_fire_alerts(make_coordinator, manager, employee):
    boss = make_coordinator(manager)
    staff = make_coordinator(employee)
    seen = []
    staff.add_listener(lambda previous, current, config: seen.append(current))

    boss.update_config({"break_start_time": "11:45", "auto_break_enabled": False})

    assert staff.config.break_start_time == "11:45"
    assert staff.config.auto_break_enabled is False
    assert seen == []
    assert staff.break_alert_active is False


def test_stale_mode_write_raises_conflict(make_coordinator, manager, store):
    first = make_coordinator(manager)
    second = WorkTimeCoordinator(store, Actor(user_id="m2", company_id="acme", name="Lan", role=Role.MANAGER))
    second.load_config()

    first.start_global_work()

    with pytest.raises(WriteConflict):
        second.start_global_break("Lunch")
    assert store.read("acme").current_mode is WorkMode.WORKING


def test_zero_rows_affected_is_permission_denied(channel, manager):
    repo = DenyingRepo({"acme": CompanyWorkConfig(company_id="acme")})
    coordinator = WorkTimeCoordinator(ConfigStore(repo, channel), manager)

    with pytest.raises(PermissionDenied):
        coordinator.start_global_work()
    assert coordinator.global_mode is WorkMode.IDLE


def test_missing_or_unreachable_config_is_unavailable(channel, manager):
    empty = WorkTimeCoordinator(ConfigStore(InMemoryWorkConfigRepository(), channel), manager)
    with pytest.raises(ConfigUnavailable):
        empty.load_config()
    assert empty.is_loading is True

    broken = WorkTimeCoordinator(ConfigStore(BrokenRepo(), channel), manager)
    with pytest.raises(ConfigUnavailable):
        broken.load_config()


def test_update_config_validation(make_coordinator, manager, employee):
    boss = make_coordinator(manager)
    staff = make_coordinator(employee)

    with pytest.raises(ValidationError):
        boss.update_config({"work_end_time": "25:00"})
    with pytest.raises(ValidationError):
        boss.update_config({"lunch": "12:00"})
    with pytest.raises(ValidationError):
        boss.update_config({})
    with pytest.raises(PermissionDenied):
        staff.update_config({"work_start_time": "07:00"})

    config = boss.update_config({"work_start_time": "8:05"})
    assert config.work_start_time == "08:05"
    assert staff.config.work_start_time == "08:05"


def test_subscribe_is_idempotent_and_close_releases(make_coordinator, manager, channel):
    boss = make_coordinator(manager)
    again = boss.subscribe_to_mode_changes()

    assert again.state is SubscriptionState.OPEN
    assert channel.subscriber_count("acme") == 1

    boss.close()
    assert channel.subscriber_count("acme") == 0
    assert boss.subscription_state is SubscriptionState.PENDING


def test_failing_listener_does_not_block_others(make_coordinator, manager, employee):
    boss = make_coordinator(manager)
    staff = make_coordinator(employee)
    seen = []

    def broken(previous, current, config):
        raise RuntimeError("boom")

    staff.add_listener(broken)
    staff.add_listener(lambda previous, current, config: seen.append(current))

    boss.start_global_work()

    assert seen == [WorkMode.WORKING]


def test_saved_schedule_is_returned_by_later_loads(make_coordinator, manager, store):
    boss = make_coordinator(manager, subscribe=False)
    boss.update_config({"work_start_time": "07:45", "break_end_time": "12:30"})

    fresh = WorkTimeCoordinator(store, Actor(user_id="e7", company_id="acme", name="Huy", role=Role.EMPLOYEE))
    loaded = fresh.load_config()
    assert (loaded.work_start_time, loaded.break_end_time) == ("07:45", "12:30")

    refreshed = boss.refresh_config()
    assert refreshed.work_start_time == "07:45"


@pytest.mark.parametrize(
    "partial",
    [
        {"auto_break_enabled": "false"},
        {"auto_break_enabled": 0},
        {"work_start_time": 830},
        {"break_end_time": ["13:00"]},
        ["08:30"],
    ],
)
def test_schedule_values_must_have_json_types(channel, manager, partial):
    repo = RecordingRepo({"acme": CompanyWorkConfig(company_id="acme")})
    coordinator = WorkTimeCoordinator(ConfigStore(repo, channel), manager)

    with pytest.raises(ValidationError):
        coordinator.update_config(partial)
    assert repo.update_calls == 0
