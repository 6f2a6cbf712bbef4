from __future__ import annotations

import json
import queue

from flask import Flask, Response, jsonify, stream_with_context

from ..common.web import api_view, current_actor, json_body
from ..core.constants import STREAM_KEEPALIVE_SECONDS
from ..core.enums import Capability
from ..core.exceptions import SubscriptionDropped
from ..users.permissions import require_capability
from ..container import Container


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


def register(app: Flask, container: Container) -> None:
    def _coordinator():
        return container.sessions.open(current_actor()).coordinator

    def _mode_response(config, message: str):
        return jsonify({"success": True, "message": message, "config": config.to_dict()})

    @app.route("/api/work-time/config", methods=["GET"], endpoint="work_time_config")
    @api_view
    def work_time_config():
        return jsonify({"success": True, **_coordinator().snapshot()})

    @app.route("/api/work-time/config/refresh", methods=["POST"], endpoint="work_time_refresh")
    @api_view
    def work_time_refresh():
        coordinator = _coordinator()
        coordinator.refresh_config()
        return jsonify({"success": True, **coordinator.snapshot()})

    @app.route("/api/work-time/config", methods=["PATCH"], endpoint="work_time_update_config")
    @api_view
    def work_time_update_config():
        config = _coordinator().update_config(json_body())
        return _mode_response(config, "Work time settings saved.")

    @app.route("/api/work-time/mode", methods=["POST"], endpoint="work_time_set_mode")
    @api_view
    def work_time_set_mode():
        body = json_body()
        config = _coordinator().set_global_mode(body.get("mode") or "", body.get("reason"))
        return _mode_response(config, f"Work mode set to {config.current_mode.value}.")

    @app.route("/api/work-time/break/start", methods=["POST"], endpoint="work_time_start_break")
    @api_view
    def work_time_start_break():
        config = _coordinator().start_global_break(json_body().get("reason") or "")
        return _mode_response(config, f"Break started: {config.active_break_reason}")

    @app.route("/api/work-time/break/end", methods=["POST"], endpoint="work_time_end_break")
    @api_view
    def work_time_end_break():
        return _mode_response(_coordinator().end_global_break(), "Work has resumed.")

    @app.route("/api/work-time/start", methods=["POST"], endpoint="work_time_start")
    @api_view
    def work_time_start():
        return _mode_response(_coordinator().start_global_work(), "Work day started.")

    @app.route("/api/work-time/end", methods=["POST"], endpoint="work_time_end")
    @api_view
    def work_time_end():
        return _mode_response(_coordinator().end_all_work(), "The work day has officially ended.")

    @app.route("/api/work-time/new-day", methods=["POST"], endpoint="work_time_new_day")
    @api_view
    def work_time_new_day():
        return _mode_response(_coordinator().start_new_work_day(), "Ready for a new work day.")

    @app.route("/api/work-time/employees", methods=["GET"], endpoint="work_time_employees")
    @api_view
    def work_time_employees():
        actor = current_actor()
        require_capability(actor, Capability.CONTROL_GLOBAL_WORK_MODE, "You cannot view employee work status")
        statuses = container.sessions.employee_statuses(actor.company_id)
        return jsonify({"success": True, "employees": [s.to_dict() for s in statuses]})

    @app.route("/api/work-time/stream", methods=["GET"], endpoint="work_time_stream")
    @api_view
    def work_time_stream():
        """Server-Sent Events feed of the company's config rows after each write."""

        actor = current_actor()
        events: queue.Queue = queue.Queue()
        handle = container.config_store.subscribe(actor.company_id, events.put, on_drop=events.put)
        try:
            initial = container.config_store.read(actor.company_id)
        except Exception:
            handle.close()
            raise

        def generate():
            if initial is not None:
                yield _sse("config", initial.to_dict())
            while True:
                try:
                    item = events.get(timeout=STREAM_KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                if isinstance(item, SubscriptionDropped):
                    yield _sse("dropped", {"message": str(item)})
                    return
                yield _sse("config", item.to_dict())

        response = Response(
            stream_with_context(generate()),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )
        # Runs even when the client goes away before the first chunk.
        response.call_on_close(handle.close)
        return response
