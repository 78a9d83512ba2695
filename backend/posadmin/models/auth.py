from __future__ import annotations

from ..extensions import db
from ..time_utils import localnow, to_iso


class User(db.Model):
    """
    Employee accounts for authentication and attribution.

    Role is a name, not a foreign key: it names either one of the fixed
    system roles or a row in `roles`. Users are deactivated, never deleted,
    so orders and shifts stay attributable.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        db.Index("ix_users_role", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    display_name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(64), nullable=False, default="cashier")
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    store_id = db.Column(db.Integer, db.ForeignKey("store_settings.id"), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=localnow)
    last_login_at = db.Column(db.DateTime, nullable=True)

    store = db.relationship("StoreSettings", backref=db.backref("users", lazy=True))

    def to_dict(self) -> dict:
        # password_hash never leaves the model
        return {
            "id": self.id,
            "username": self.username,
            "displayName": self.display_name,
            "role": self.role,
            "email": self.email,
            "phone": self.phone,
            "storeId": self.store_id,
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
            "lastLoginAt": to_iso(self.last_login_at),
        }


class Role(db.Model):
    """
    Named permission bundle.

    Rows flagged is_system mirror the built-in roles for listing only; the
    evaluator never reads them. `permissions` holds the closed flag record.
    """
    __tablename__ = "roles"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_roles_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    is_system = db.Column(db.Boolean, nullable=False, default=False)
    permissions = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime, nullable=False, default=localnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=localnow, onupdate=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "isSystem": self.is_system,
            "permissions": dict(self.permissions or {}),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }


class RefreshToken(db.Model):
    """
    Server-side record of an issued refresh token.

    SECURITY: Only the SHA-256 hash of the token is stored. A token is usable
    once: refreshing stamps used_at and issues a successor (replaced_by_id).
    """
    __tablename__ = "refresh_tokens"
    __table_args__ = (
        db.UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
        db.Index("ix_refresh_tokens_user", "user_id"),
        db.Index("ix_refresh_tokens_expires", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    token_hash = db.Column(db.String(64), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=localnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    used_at = db.Column(db.DateTime, nullable=True)
    revoked_at = db.Column(db.DateTime, nullable=True)
    revoked_reason = db.Column(db.String(64), nullable=True)
    replaced_by_id = db.Column(db.Integer, db.ForeignKey("refresh_tokens.id"), nullable=True)

    user = db.relationship("User", backref=db.backref("refresh_tokens", lazy=True))

    def is_live(self, now) -> bool:
        return self.used_at is None and self.revoked_at is None and self.expires_at > now
