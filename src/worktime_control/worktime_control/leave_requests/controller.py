from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import api_view, current_actor, json_body
from ..core.enums import RequestStatus
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _parse_status(value: str | None) -> RequestStatus | None:
        if not value:
            return None
        try:
            return RequestStatus(value.lower())
        except ValueError:
            raise ValidationError(f"Unknown status: {value}")

    @app.route("/api/leave-requests", methods=["GET"], endpoint="leave_requests")
    @api_view
    def leave_requests():
        items = container.leave_request_service.list_for_company(
            current_actor(),
            status=_parse_status(request.args.get("status")),
        )
        return jsonify({"success": True, "leave_requests": [r.to_dict() for r in items]})

    @app.route("/api/leave-requests/mine", methods=["GET"], endpoint="my_leave_requests")
    @api_view
    def my_leave_requests():
        items = container.leave_request_service.list_mine(current_actor())
        return jsonify({"success": True, "leave_requests": [r.to_dict() for r in items]})

    @app.route("/api/leave-requests", methods=["POST"], endpoint="new_leave_request")
    @api_view
    def new_leave_request():
        session = container.sessions.open(current_actor())
        req = session.request_early_leave(json_body().get("reason") or "")
        return (
            jsonify(
                {
                    "success": True,
                    "message": "Leave request submitted. Your manager will review your request.",
                    "leave_request": req.to_dict(),
                }
            ),
            201,
        )

    @app.route("/api/leave-requests/<int:request_id>/approve", methods=["POST"], endpoint="approve_leave_request")
    @api_view
    def approve_leave_request(request_id: int):
        req = container.leave_request_service.approve(current_actor(), request_id)
        return jsonify({"success": True, "message": "Leave request approved.", "leave_request": req.to_dict()})

    @app.route("/api/leave-requests/<int:request_id>/reject", methods=["POST"], endpoint="reject_leave_request")
    @api_view
    def reject_leave_request(request_id: int):
        req = container.leave_request_service.reject(current_actor(), request_id)
        return jsonify({"success": True, "message": "Leave request rejected.", "leave_request": req.to_dict()})
