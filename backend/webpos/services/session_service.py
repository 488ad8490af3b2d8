# Overview: Session authority: issues and validates signed, time-bounded tokens.

"""
Session Authority

Tokens are stateless HS256 JWTs (PyJWT) carrying the user's id, username
and role. There is no server-side session table and no revocation list:
a token is good until it expires.

SECURITY FEATURES:
- Fixed validity window (TOKEN_TTL_HOURS, 12 hours)
- Signature, structure and expiry all checked by PyJWT with zero leeway
- validate() reports failures as values (TokenCheck) rather than raising,
  so the access gate has a single code path for every bad token
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt

from ..errors import InvalidCredentials
from ..models import User
from webpos.time_utils import as_utc, from_timestamp, to_utc_z, utcnow
from .auth_service import CredentialStore


TOKEN_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL = timedelta(hours=12)

TOKEN_INVALID = "invalid_token"
TOKEN_EXPIRED = "token_expired"


@dataclass(frozen=True)
class Claims:
    user_id: int
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime

    def user_dict(self) -> dict:
        return {"id": self.user_id, "username": self.username, "role": self.role}


@dataclass(frozen=True)
class IssuedToken:
    token: str
    claims: Claims

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "user": self.claims.user_dict(),
            "expires_at": to_utc_z(self.claims.expires_at),
        }


@dataclass(frozen=True)
class TokenCheck:
    """Outcome of validate(): exactly one of claims / error is set."""
    claims: Claims | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


class SessionAuthority:
    def __init__(self, credentials: CredentialStore, secret: str, ttl: timedelta = DEFAULT_TOKEN_TTL):
        if not secret:
            raise ValueError("a signing secret is required")
        self.credentials = credentials
        self._secret = secret
        self.ttl = ttl

    def authenticate(self, username: str, password: str) -> IssuedToken:
        """
        Verify credentials and issue a token.

        Unknown usernames and wrong passwords fail identically.
        """
        user = self.credentials.get_by_username(username)
        if not self.credentials.check(user, password):
            raise InvalidCredentials("Invalid credentials")
        return self.issue_token(user)

    def issue_token(self, user: User, issued_at: datetime | None = None) -> IssuedToken:
        issued_at = (issued_at or utcnow()).replace(microsecond=0)
        expires_at = issued_at + self.ttl

        payload = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role,
            "iat": int(as_utc(issued_at).timestamp()),
            "exp": int(as_utc(expires_at).timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=TOKEN_ALGORITHM)

        claims = Claims(
            user_id=user.id,
            username=user.username,
            role=user.role,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        return IssuedToken(token=token, claims=claims)

    def validate(self, token: str | None) -> TokenCheck:
        if not token:
            return TokenCheck(error=TOKEN_INVALID)

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["sub", "iat", "exp"]},
                leeway=0,
            )
        except jwt.ExpiredSignatureError:
            return TokenCheck(error=TOKEN_EXPIRED)
        except jwt.InvalidTokenError:
            return TokenCheck(error=TOKEN_INVALID)

        username = payload.get("username")
        role = payload.get("role")
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            return TokenCheck(error=TOKEN_INVALID)
        if not isinstance(username, str) or not isinstance(role, str):
            return TokenCheck(error=TOKEN_INVALID)

        return TokenCheck(claims=Claims(
            user_id=user_id,
            username=username,
            role=role,
            issued_at=from_timestamp(payload["iat"]),
            expires_at=from_timestamp(payload["exp"]),
        ))

    def change_password(self, user_id: int, old_password: str, new_password: str) -> None:
        """
        Re-verify the old password, then store a new hash.

        Tokens issued before the change remain valid until they expire.
        """
        user = self.credentials.get_by_id(user_id)
        if not self.credentials.check(user, old_password):
            raise InvalidCredentials("Invalid password")
        self.credentials.set_password(user, new_password)
