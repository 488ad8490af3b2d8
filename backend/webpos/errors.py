# Overview: Typed business errors shared by services and routes.

"""
Error taxonomy for the checkout and auth core.

Services raise these; routes translate them to JSON with ``to_dict()`` and
``status_code``. Anything that is not a PosError is treated as an internal
error by the routes.
"""


class PosError(Exception):
    """Base class for errors surfaced to API callers."""
    code = "error"
    status_code = 400

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidCredentials(PosError):
    code = "invalid_credentials"
    status_code = 401


class Unauthorized(PosError):
    code = "unauthorized"
    status_code = 401


class InvalidToken(PosError):
    code = "invalid_token"
    status_code = 401


class TokenExpired(InvalidToken):
    code = "token_expired"


class Forbidden(PosError):
    code = "forbidden"
    status_code = 403


class ValidationError(PosError):
    """400-level input problem."""
    code = "validation_error"
    status_code = 400


class NotFound(PosError):
    code = "not_found"
    status_code = 404


class InsufficientStock(PosError):
    """Requested quantity exceeds stock on hand."""
    code = "insufficient_stock"
    status_code = 409


class InternalError(PosError):
    code = "internal_error"
    status_code = 500
