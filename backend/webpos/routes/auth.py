# Overview: Flask API routes for login and password changes.

# backend/webpos/routes/auth.py
"""
Authentication API routes

- POST /auth/login            public; returns a 12-hour bearer token
- GET  /auth/me               echo the caller's claims
- POST /auth/change-password  re-verifies the old password first
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import InternalError, InvalidCredentials, PosError, ValidationError
from ..decorators import require_auth
from ..services.container import get_services
from ..time_utils import to_utc_z
from ..validation import normalize_keys, required_strings


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")
@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue a token.

    Body: {"username": "...", "password": "..."}
    """
    username = None
    try:
        username, password = required_strings(
            request.get_json(silent=True), ("username", "password")
        )

        issued = get_services().authority.authenticate(username, password)
        current_app.logger.info("User %s logged in", issued.claims.username)
        return jsonify(issued.to_dict()), 200

    except InvalidCredentials as e:
        current_app.logger.warning("Failed login for %r from %s", username, request.remote_addr)
        return jsonify(e.to_dict()), e.status_code
    except ValidationError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify(InternalError("Internal server error").to_dict()), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    try:
        claims = g.claims
        return jsonify({
            "user": claims.user_dict(),
            "expires_at": to_utc_z(claims.expires_at),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to describe current user")
        return jsonify(InternalError("Internal server error").to_dict()), 500


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """
    Change the caller's password.

    Body: {"oldPassword": "...", "newPassword": "..."} (snake_case accepted)

    A wrong old password answers 400, not 401: the caller is authenticated,
    the request itself is what is wrong.
    """
    try:
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            data = normalize_keys(data)
        old_password, new_password = required_strings(data, ("old_password", "new_password"))

        get_services().authority.change_password(g.claims.user_id, old_password, new_password)
        current_app.logger.info("User %s changed password", g.claims.username)
        return jsonify({"ok": True}), 200

    except InvalidCredentials as e:
        current_app.logger.warning("Rejected password change for user %s", g.claims.user_id)
        return jsonify(e.to_dict()), 400
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify(InternalError("Internal server error").to_dict()), 500
