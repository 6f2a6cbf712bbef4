from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import api_view, current_actor
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _session():
        return container.sessions.open(current_actor())

    def _state(message: str | None = None):
        payload = {"success": True, **_session().snapshot()}
        if message:
            payload["message"] = message
        return jsonify(payload)

    @app.route("/api/work-session", methods=["GET"], endpoint="work_session")
    @api_view
    def work_session():
        return _state()

    @app.route("/api/work-session", methods=["DELETE"], endpoint="work_session_close")
    @api_view
    def work_session_close():
        closed = container.sessions.close(current_actor())
        return jsonify({"success": True, "closed": closed})

    @app.route("/api/work-session/start", methods=["POST"], endpoint="work_session_start")
    @api_view
    def work_session_start():
        _session().start_work()
        return _state("Work session started.")

    @app.route("/api/work-session/break", methods=["POST"], endpoint="work_session_break")
    @api_view
    def work_session_break():
        _session().take_break()
        return _state("Break started. Enjoy your break!")

    @app.route("/api/work-session/resume", methods=["POST"], endpoint="work_session_resume")
    @api_view
    def work_session_resume():
        _session().resume_work()
        return _state("Welcome back!")

    @app.route("/api/work-session/end", methods=["POST"], endpoint="work_session_end")
    @api_view
    def work_session_end():
        session = _session()
        session.end_work()
        return _state(f"Work session ended. Total work time: {session.timer.snapshot()['work_time']}")

    @app.route("/api/work-session/new", methods=["POST"], endpoint="work_session_new")
    @api_view
    def work_session_new():
        _session().start_new_session()
        return _state()

    @app.route("/api/work-session/alerts/break/dismiss", methods=["POST"], endpoint="work_session_dismiss_break")
    @api_view
    def work_session_dismiss_break():
        _session().coordinator.dismiss_break_alert()
        return _state()

    @app.route("/api/work-session/alerts/work-end/dismiss", methods=["POST"], endpoint="work_session_dismiss_work_end")
    @api_view
    def work_session_dismiss_work_end():
        _session().coordinator.dismiss_work_end_alert()
        return _state()
