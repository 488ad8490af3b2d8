# Overview: Credential store: user lookup and bcrypt password hashing.

"""
Credential Store

Holds user identity and password hashes. Leaf component: it knows nothing
about tokens or requests.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, 12 by default)
- bcrypt.checkpw() compares in constant time
- No password strength policy is enforced beyond "not blank".
"""

import bcrypt

from ..errors import ValidationError
from ..models import User
from ..models.auth import ROLES
from webpos.time_utils import utcnow


BCRYPT_MAX_BYTES = 72


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash password using bcrypt; stored as a UTF-8 string."""
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for malformed hashes instead of raising, so a corrupt row
    reads as "wrong password" rather than a 500.
    """
    if not isinstance(password, str) or not isinstance(password_hash, str):
        return False
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


class CredentialStore:
    """User records and their password hashes, bound to one SQLAlchemy session."""

    def __init__(self, session, bcrypt_rounds: int = 12):
        self.session = session
        self.bcrypt_rounds = bcrypt_rounds
        # Burned on unknown usernames so both login failure paths cost one checkpw.
        self.dummy_hash = hash_password("not-a-real-password", rounds=bcrypt_rounds)

    def get_by_username(self, username: str) -> User | None:
        if not username:
            return None
        return self.session.query(User).filter_by(username=username).first()

    def get_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def hash(self, password: str) -> str:
        # bcrypt only sees the first 72 bytes; newer releases refuse longer input.
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationError(f"password cannot exceed {BCRYPT_MAX_BYTES} bytes")
        return hash_password(password, rounds=self.bcrypt_rounds)

    def check(self, user: User | None, password: str) -> bool:
        """Constant-work password check; ``user`` may be None."""
        if user is None:
            verify_password(password or "", self.dummy_hash)
            return False
        return verify_password(password, user.password_hash)

    def create_user(self, username: str, password: str, role: str = "cashier") -> User:
        """
        Create a user and commit.

        Raises ValidationError for blank fields, unknown roles or a username
        that is already taken.
        """
        username = username.strip() if isinstance(username, str) else ""
        if not username:
            raise ValidationError("username is required")
        if not isinstance(password, str) or not password:
            raise ValidationError("password is required")
        if role not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

        if self.get_by_username(username) is not None:
            raise ValidationError("username already exists", details={"username": username})

        user = User(username=username, password_hash=self.hash(password), role=role)
        self.session.add(user)
        self.session.commit()
        return user

    def set_password(self, user: User, new_password: str) -> None:
        if not isinstance(new_password, str) or not new_password:
            raise ValidationError("new password is required")
        user.password_hash = self.hash(new_password)
        user.password_changed_at = utcnow()
        self.session.commit()

    def ensure_default_admin(self, username: str, password: str | None) -> tuple[User, bool]:
        """
        Create the bootstrap administrator if no user has that name.

        Returns (user, created). An existing account is left untouched so a
        changed password survives restarts.
        """
        existing = self.get_by_username(username)
        if existing is not None:
            return existing, False
        if not isinstance(password, str) or not password:
            raise ValidationError("an admin password is required to bootstrap the default administrator")
        return self.create_user(username, password, role="admin"), True
