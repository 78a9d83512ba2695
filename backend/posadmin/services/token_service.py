# Overview: Service-layer operations for access and refresh tokens; signing, verification and rotation.

"""
Access and refresh token management.

ACCESS TOKENS: HS256 JWTs (python-jose) carrying
{sub, username, role, iat, exp}. They are self-contained: verification
needs only the signing secret, never the database.

REFRESH TOKENS: opaque random values. Only their SHA-256 hash is stored
(refresh_tokens table), each with an expiry. A refresh token is usable
exactly once; using it returns a new access token and a new refresh token.
Presenting an already-used token is treated as theft: every live refresh
token of that user is revoked.

SECURITY NOTES:
- Verification fails closed: bad signature, non-canonical signature
  encoding, wrong algorithm, missing claims or expiry all reject.
- Lifetimes are parsed strictly; an unparsable override is an error, not a
  silent fallback to the default.
"""

from __future__ import annotations

import calendar
import hashlib
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from flask import current_app
from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode
from sqlalchemy import select

from ..extensions import db
from ..models import RefreshToken, User
from ..time_utils import localnow

DEFAULT_ACCESS_LIFETIME = timedelta(hours=24)
DEFAULT_REFRESH_LIFETIME = timedelta(days=7)

_LIFETIME_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_LIFETIME_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class TokenError(Exception):
    """Access token is invalid, expired or malformed."""


class RefreshTokenError(Exception):
    """Refresh token is unknown, expired, revoked or already used."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    role: str
    issued_at: int
    expires_at: int


def parse_lifetime(value) -> timedelta:
    """
    Accepts a timedelta, integer seconds, a digit string, or "<n>s|m|h|d".

    Examples: 3600, "3600", "30m", "24h", "7d".
    Raises ValueError for anything else or for non-positive lifetimes.
    """
    if isinstance(value, timedelta):
        lifetime = value
    elif isinstance(value, int) and not isinstance(value, bool):
        lifetime = timedelta(seconds=value)
    elif isinstance(value, str):
        match = _LIFETIME_PATTERN.match(value.lower())
        if not match:
            raise ValueError(f"Unrecognised token lifetime: {value!r}")
        amount, unit = match.groups()
        lifetime = timedelta(seconds=int(amount) * _LIFETIME_UNITS[unit])
    else:
        raise ValueError(f"Unrecognised token lifetime: {value!r}")

    if lifetime <= timedelta(0):
        raise ValueError("Token lifetime must be positive")
    return lifetime


def _unix(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return calendar.timegm(dt.utctimetuple())


def _signing_config(secret: str | None, algorithm: str | None) -> tuple[str, str]:
    if secret is None:
        secret = current_app.config["JWT_SECRET"]
    if algorithm is None:
        algorithm = current_app.config.get("JWT_ALGORITHM", "HS256")
    return secret, algorithm


def issue_access_token(
    user,
    *,
    lifetime=None,
    issued_at: datetime | None = None,
    secret: str | None = None,
    algorithm: str | None = None,
) -> str:
    """
    Sign an access token for a verified user.

    `lifetime` overrides ACCESS_TOKEN_LIFETIME (default 24h).
    `issued_at` is an aware UTC datetime; defaults to now.
    """
    secret, algorithm = _signing_config(secret, algorithm)
    if lifetime is None:
        try:
            configured = current_app.config.get("ACCESS_TOKEN_LIFETIME")
        except RuntimeError:
            configured = None
        lifetime = configured or DEFAULT_ACCESS_LIFETIME
    lifetime = parse_lifetime(lifetime)

    iat = _unix(issued_at or datetime.now(timezone.utc))
    claims = {
        # RFC 7519: sub is a string
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
        "iat": iat,
        "exp": iat + int(lifetime.total_seconds()),
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def _has_canonical_signature(token: str) -> bool:
    """
    Reject signature segments whose base64url encoding is not canonical.

    base64url leaves spare bits in the last character, so two different
    strings can decode to the same MAC bytes. Requiring the canonical form
    means any edited character fails verification.
    """
    parts = token.split(".")
    if len(parts) != 3 or not parts[2]:
        return False
    signature = parts[2].encode("ascii", errors="strict")
    try:
        return base64url_encode(base64url_decode(signature)) == signature
    except (ValueError, TypeError):
        return False


def verify_access_token(
    token: str,
    *,
    now: datetime | None = None,
    secret: str | None = None,
    algorithm: str | None = None,
) -> TokenClaims:
    """
    Verify signature and expiry and return the claims.

    Raises TokenError on any failure. `now` (aware UTC) adds an explicit
    expiry check against a caller-supplied clock.
    """
    secret, algorithm = _signing_config(secret, algorithm)

    if not isinstance(token, str) or not token:
        raise TokenError("Missing token")
    try:
        if not _has_canonical_signature(token):
            raise TokenError("Malformed token signature")
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require_exp": True, "require_iat": True, "require_sub": True},
        )
    except UnicodeEncodeError:
        raise TokenError("Malformed token")
    except JWTError as exc:
        raise TokenError(str(exc) or "Invalid token") from exc

    try:
        claims = TokenClaims(
            user_id=int(payload["sub"]),
            username=str(payload["username"]),
            role=str(payload["role"]),
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TokenError("Token is missing required claims") from exc

    if now is not None and _unix(now) >= claims.expires_at:
        raise TokenError("Signature has expired.")
    return claims


# -- Refresh tokens --

def generate_token() -> str:
    """64 hex chars (32 bytes) from the OS CSPRNG."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 hex digest for storage.

    WHY SHA-256 not bcrypt: refresh tokens are already high-entropy.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _refresh_lifetime() -> timedelta:
    configured = current_app.config.get("REFRESH_TOKEN_LIFETIME")
    return parse_lifetime(configured or DEFAULT_REFRESH_LIFETIME)


def issue_refresh_token(user_id: int, *, now: datetime | None = None) -> tuple[RefreshToken, str]:
    """
    Create and persist a refresh token for a user.

    Returns (record, plaintext). Only the hash is stored.
    """
    now = now or localnow()
    plaintext = generate_token()
    record = RefreshToken(
        user_id=user_id,
        token_hash=hash_token(plaintext),
        created_at=now,
        expires_at=now + _refresh_lifetime(),
    )
    db.session.add(record)
    db.session.commit()
    return record, plaintext


def revoke_all_for_user(user_id: int, reason: str, *, now: datetime | None = None) -> int:
    now = now or localnow()
    count = (
        db.session.query(RefreshToken)
        .filter(
            RefreshToken.user_id == user_id,
            RefreshToken.used_at.is_(None),
            RefreshToken.revoked_at.is_(None),
        )
        .update({"revoked_at": now, "revoked_reason": reason}, synchronize_session=False)
    )
    db.session.commit()
    return count


def rotate_refresh_token(plaintext: str, *, now: datetime | None = None) -> tuple[User, str]:
    """
    Consume a refresh token and issue its successor.

    Returns (user, new_plaintext). Raises RefreshTokenError when the token is
    unknown, expired, revoked, already used, or its user is deactivated.
    """
    if not isinstance(plaintext, str) or not plaintext:
        raise RefreshTokenError("Refresh token required")

    now = now or localnow()
    record = db.session.query(RefreshToken).filter_by(token_hash=hash_token(plaintext)).first()
    if record is None:
        raise RefreshTokenError("Invalid refresh token")

    if record.used_at is not None:
        # Replay of a consumed token: assume it leaked
        current_app.logger.warning("Refresh token reuse detected for user %s", record.user_id)
        revoke_all_for_user(record.user_id, "reuse detected", now=now)
        raise RefreshTokenError("Refresh token already used")

    if record.revoked_at is not None:
        raise RefreshTokenError("Refresh token revoked")

    if record.expires_at <= now:
        raise RefreshTokenError("Refresh token expired")

    user = db.session.get(User, record.user_id)
    if user is None or not user.is_active:
        revoke_all_for_user(record.user_id, "user deactivated", now=now)
        raise RefreshTokenError("User account is not active")

    # Conditional update: only one concurrent caller can consume the token
    consumed = (
        db.session.query(RefreshToken)
        .filter(
            RefreshToken.id == record.id,
            RefreshToken.used_at.is_(None),
            RefreshToken.revoked_at.is_(None),
        )
        .update({"used_at": now}, synchronize_session=False)
    )
    if consumed != 1:
        db.session.rollback()
        raise RefreshTokenError("Refresh token already used")

    new_plaintext = generate_token()
    successor = RefreshToken(
        user_id=user.id,
        token_hash=hash_token(new_plaintext),
        created_at=now,
        expires_at=now + _refresh_lifetime(),
    )
    db.session.add(successor)
    db.session.flush()
    record.replaced_by_id = successor.id
    db.session.commit()
    return user, new_plaintext


def revoke_refresh_token(plaintext: str, reason: str = "logout", *, now: datetime | None = None) -> bool:
    """Revoke one refresh token. Returns False if it was unknown or not live."""
    if not isinstance(plaintext, str) or not plaintext:
        return False
    now = now or localnow()
    count = (
        db.session.query(RefreshToken)
        .filter(
            RefreshToken.token_hash == hash_token(plaintext),
            RefreshToken.used_at.is_(None),
            RefreshToken.revoked_at.is_(None),
        )
        .update({"revoked_at": now, "revoked_reason": reason}, synchronize_session=False)
    )
    db.session.commit()
    return count == 1


def purge_expired(*, now: datetime | None = None) -> int:
    """Delete refresh tokens past their expiry. Returns the number removed."""
    now = now or localnow()
    expired_ids = select(RefreshToken.id).where(RefreshToken.expires_at <= now)
    # replaced_by_id is a foreign key; drop links into the rows being deleted
    (
        db.session.query(RefreshToken)
        .filter(RefreshToken.replaced_by_id.in_(expired_ids))
        .update({"replaced_by_id": None}, synchronize_session=False)
    )
    count = (
        db.session.query(RefreshToken)
        .filter(RefreshToken.expires_at <= now)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return count
