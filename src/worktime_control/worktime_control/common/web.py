from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    ConfigUnavailable,
    DomainError,
    PermissionDenied,
    ValidationError,
    WriteConflict,
)
from ..users.model import Actor

logger = logging.getLogger(__name__)

SESSION_KEYS = ("user_id", "company_id", "role")

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (PermissionDenied, 403),
    (WriteConflict, 409),
    (ConfigUnavailable, 503),
)


def current_actor() -> Actor:
    """Build the acting user from the session set up by the identity provider."""
    try:
        role = Role(session["role"])
    except ValueError:
        raise PermissionDenied("Unknown role")
    return Actor(
        user_id=str(session["user_id"]),
        company_id=str(session["company_id"]),
        name=session.get("name") or "Unknown",
        role=role,
        permissions=frozenset(session.get("permissions") or ()),
    )


def json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def error_response(error: DomainError):
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return jsonify({"success": False, "message": str(error)}), status
    return jsonify({"success": False, "message": str(error)}), 400


def api_view(view):
    """Require a signed-in user and turn domain errors into JSON responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if any(k not in session for k in SESSION_KEYS):
            return jsonify({"success": False, "message": "Please sign in to continue"}), 401
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error in %s", request.path)
            return jsonify({"success": False, "message": "Internal server error"}), 500

    return wrapper
