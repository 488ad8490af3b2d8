from __future__ import annotations

from ..extensions import db


ROLES = ("admin", "cashier")


class User(db.Model):
    """
    Staff account used to sign in to the POS.

    The password is stored only as a bcrypt hash. Users are never deleted;
    the only mutation after creation is a password change.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    # admin | cashier
    role = db.Column(db.String(16), nullable=False, default="cashier")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    password_changed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
        }

    def __repr__(self) -> str:
        return f"<User {self.id} {self.username!r} role={self.role}>"
