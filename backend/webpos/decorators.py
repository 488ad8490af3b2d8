# Overview: Access gate decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import Forbidden, InvalidToken, TokenExpired, Unauthorized
from .services.container import get_services
from .services.session_service import TOKEN_EXPIRED


def bearer_token() -> str | None:
    """Token from ``Authorization: Bearer <token>``, or None."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(f):
    """
    Validate the bearer token before the view runs.

    Sets g.claims (Claims: user_id, username, role, expires_at).

    Returns 401 if:
    - No Authorization header, or not a Bearer token
    - Signature invalid, token malformed, or expired
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            error = Unauthorized("Authentication required")
            return jsonify(error.to_dict()), error.status_code

        check = get_services().authority.validate(token)
        if not check.ok:
            if check.error == TOKEN_EXPIRED:
                error = TokenExpired("Token expired")
            else:
                error = InvalidToken("Invalid token")
            return jsonify(error.to_dict()), error.status_code

        g.claims = check.claims
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the authenticated user's role to be one of ``roles``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            claims = getattr(g, "claims", None)
            if claims is None:
                error = Unauthorized("Authentication required")
                return jsonify(error.to_dict()), error.status_code

            if claims.role not in roles:
                error = Forbidden(
                    "Permission denied",
                    details={"required_roles": list(roles)},
                )
                return jsonify(error.to_dict()), error.status_code

            return f(*args, **kwargs)

        return decorated_function
    return decorator
