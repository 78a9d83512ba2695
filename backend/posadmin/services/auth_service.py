# Overview: Service-layer operations for auth; password hashing and credential checks.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, 12 by default)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Unknown username, wrong password and deactivated account all produce the
  same failure so login cannot be used to enumerate accounts
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..time_utils import localnow
from . import token_service

# Dummy hashes per cost factor, checked for unknown usernames so that path
# costs the same as a wrong password
_dummy_hashes: dict[int, str] = {}


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str):
        raise PasswordValidationError("Password is required")

    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>_\-+=?]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def dummy_hash() -> str:
    """bcrypt hash at the configured cost, generated on first use."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    if rounds not in _dummy_hashes:
        salt = bcrypt.gensalt(rounds=rounds)
        _dummy_hashes[rounds] = bcrypt.hashpw(b"posadmin-dummy-password", salt).decode("utf-8")
    return _dummy_hashes[rounds]


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() compares in constant time.
    """
    if not isinstance(password, str) or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Not a bcrypt hash
        return False


def authenticate(username: str, password: str) -> User | None:
    """
    Return the user when username/password match an active account, else None.
    """
    user = db.session.query(User).filter_by(username=username).first()

    if user is None:
        verify_password(password, dummy_hash())
        return None

    if not verify_password(password, user.password_hash):
        return None

    if not user.is_active:
        return None

    user.last_login_at = localnow()
    db.session.commit()
    return user


def login(username: str, password: str) -> dict | None:
    """
    Authenticate and issue both tokens.

    Returns the login response body (user fields plus accessToken and
    refreshToken) or None when the credentials are rejected.
    """
    user = authenticate(username, password)
    if user is None:
        current_app.logger.warning("Failed login for username %r", username)
        return None

    access_token = token_service.issue_access_token(user)
    _, refresh_token = token_service.issue_refresh_token(user.id)

    body = user.to_dict()
    body["accessToken"] = access_token
    body["refreshToken"] = refresh_token
    return body


def refresh(refresh_token: str) -> dict:
    """
    Exchange a refresh token for a new access token and refresh token.

    Raises token_service.RefreshTokenError on rejection.
    """
    user, new_refresh_token = token_service.rotate_refresh_token(refresh_token)
    return {
        "accessToken": token_service.issue_access_token(user),
        "refreshToken": new_refresh_token,
    }
