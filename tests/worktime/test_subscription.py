from __future__ import annotations

from functools import partial

import pytest

from worktime_control.core.enums import SubscriptionState, WorkMode
from worktime_control.core.exceptions import SubscriptionDropped
from worktime_control.worktime.coordinator import WorkTimeCoordinator
from worktime_control.worktime.subscription import ResilientSubscription, backoff_delay


def test_backoff_doubles_and_caps():
    delays = [backoff_delay(n, base_delay=1.0, max_delay=30.0) for n in range(7)]
    assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]


def test_reconnect_reloads_changes_missed_while_dropped(make_coordinator, manager, employee, store, channel):
    pending = []
    sleeps = []
    staff = make_coordinator(employee, scheduler=pending.append, sleeps=sleeps)
    boss = WorkTimeCoordinator(store, manager)

    channel.disconnect("acme")
    assert staff.subscription_state is SubscriptionState.RECONNECTING

    boss.start_global_work()
    boss.start_global_break("Fire drill")
    assert staff.global_mode is WorkMode.IDLE

    pending.pop()()

    assert sleeps == [0.5]
    assert staff.subscription_state is SubscriptionState.OPEN
    assert staff.global_mode is WorkMode.BREAK
    assert staff.active_break_reason == "Fire drill"
    assert staff.break_alert_active is True
    assert channel.subscriber_count("acme") == 1


def test_live_updates_resume_after_reconnect(make_coordinator, manager, employee, channel):
    boss = make_coordinator(manager)
    staff = make_coordinator(employee)

    channel.disconnect()
    boss.start_global_work()

    assert staff.global_mode is WorkMode.WORKING
    assert staff._subscription.reconnect_count == 1


def test_gives_up_after_max_attempts(make_coordinator, employee, channel):
    sleeps = []
    staff = make_coordinator(employee, sleeps=sleeps, max_attempts=3)

    channel.set_available(False)
    channel.disconnect("acme")

    assert staff.subscription_state is SubscriptionState.FAILED
    assert sleeps == [0.5, 1.0, 2.0]


def test_close_while_reconnecting_stops_retries(store, channel):
    pending = []
    received = []
    sub = ResilientSubscription(store, "acme", received.append, scheduler=pending.append, sleep=lambda s: None)
    sub.open()

    channel.disconnect("acme")
    sub.close()
    pending.pop()()

    assert sub.state is SubscriptionState.CLOSED
    assert channel.subscriber_count("acme") == 0
    with pytest.raises(SubscriptionDropped):
        sub.open()


def test_open_fails_when_channel_unavailable(store, channel):
    channel.set_available(False)
    sub = ResilientSubscription(store, "acme", lambda config: None)

    with pytest.raises(SubscriptionDropped):
        sub.open()
    assert sub.state is SubscriptionState.PENDING


class FlakyStore:
    def __init__(self, store):
        self._store = store
        self.fail_with = None

    def read(self, company_id):
        return self._store.read(company_id)

    def subscribe(self, company_id, on_change, *, on_drop=None):
        if self.fail_with is not None:
            raise self.fail_with
        return self._store.subscribe(company_id, on_change, on_drop=on_drop)


def test_unexpected_resubscribe_error_fails_and_can_be_reopened(store, channel, employee):
    flaky = FlakyStore(store)
    factory = partial(ResilientSubscription, max_attempts=0, sleep=lambda s: None, scheduler=lambda fn: fn())
    staff = WorkTimeCoordinator(flaky, employee, subscription_factory=factory)
    staff.load_config()
    staff.subscribe_to_mode_changes()

    flaky.fail_with = RuntimeError("driver bug")
    channel.disconnect("acme")
    assert staff.subscription_state is SubscriptionState.FAILED

    flaky.fail_with = None
    staff.subscribe_to_mode_changes()
    assert staff.subscription_state is SubscriptionState.OPEN
    assert channel.subscriber_count("acme") == 1
