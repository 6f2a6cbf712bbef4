"""Example: drive the work-time control plane without Flask.

A manager starts the day and calls a lunch break; the employee's open session
follows the company mode, then asks to leave early.
"""

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src" / "worktime_control"))

from worktime_control.common.logging_utils import configure_logging
from worktime_control.container import build_container
from worktime_control.core.enums import Role
from worktime_control.users.model import Actor


def main():
    configure_logging("INFO")
    container = build_container(
        work_config_backend="memory",
        leave_request_backend="memory",
        enforce_work_start_time=False,
    )
    container.config_store.create_default("acme")

    manager = Actor(user_id="m1", company_id="acme", name="Mai", role=Role.MANAGER)
    employee = Actor(user_id="e1", company_id="acme", name="Binh", role=Role.EMPLOYEE)

    boss = container.sessions.open(manager)
    worker = container.sessions.open(employee)

    boss.coordinator.start_global_work()
    worker.start_work()
    for _ in range(90):
        container.sessions.tick_all()

    boss.coordinator.start_global_break("Lunch")
    print("employee after break call:", worker.snapshot()["local_mode"], worker.coordinator.break_alert_active)

    boss.coordinator.end_global_break()
    request = worker.request_early_leave("Doctor's appointment")
    print("leave request:", request.to_dict())

    approved = container.leave_request_service.approve(manager, request.request_id)
    print("decision:", approved.status.value)

    container.sessions.close_all()


if __name__ == "__main__":
    main()
