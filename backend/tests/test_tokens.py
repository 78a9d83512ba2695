"""
Token service tests.

Verifies:
- Access tokens round-trip and reject any tampering, expiry or wrong key
- Lifetimes parse strictly
- Refresh tokens are single use, rotate, and a replay revokes the family
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from jose import jwt

from posadmin.models import RefreshToken
from posadmin.services import token_service
from posadmin.time_utils import localnow

SECRET = "test-secret"
BASE64URL = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"

PRINCIPAL = SimpleNamespace(id=7, username="alice", role="manager")


def _issue(**kwargs):
    kwargs.setdefault("secret", SECRET)
    kwargs.setdefault("algorithm", "HS256")
    return token_service.issue_access_token(PRINCIPAL, **kwargs)


def _verify(token, **kwargs):
    kwargs.setdefault("secret", SECRET)
    kwargs.setdefault("algorithm", "HS256")
    return token_service.verify_access_token(token, **kwargs)


# =============================================================================
# ACCESS TOKENS
# =============================================================================


class TestAccessTokens:

    def test_round_trip(self, app):
        claims = _verify(_issue(lifetime="1h"))
        assert claims.user_id == 7
        assert claims.username == "alice"
        assert claims.role == "manager"
        assert claims.expires_at - claims.issued_at == 3600

    def test_default_lifetime_from_config(self, app):
        app.config["ACCESS_TOKEN_LIFETIME"] = "30m"
        claims = _verify(_issue())
        assert claims.expires_at - claims.issued_at == 1800

    def test_sub_is_string(self, app):
        payload = jwt.get_unverified_claims(_issue())
        assert payload["sub"] == "7"

    def test_every_signature_character_is_checked(self, app):
        token = _issue()
        head, body, signature = token.split(".")
        for i, char in enumerate(signature):
            for replacement in (c for c in BASE64URL if c != char):
                tampered = f"{head}.{body}.{signature[:i]}{replacement}{signature[i + 1:]}"
                with pytest.raises(token_service.TokenError):
                    _verify(tampered)
                break

    def test_last_signature_character_variants_rejected(self, app):
        token = _issue()
        head, body, signature = token.split(".")
        for replacement in BASE64URL:
            if replacement == signature[-1]:
                continue
            with pytest.raises(token_service.TokenError):
                _verify(f"{head}.{body}.{signature[:-1]}{replacement}")

    def test_tampered_payload_rejected(self, app):
        forged = jwt.encode(
            {"sub": "7", "username": "alice", "role": "admin", "iat": 0, "exp": 2**31},
            "attacker-secret",
            algorithm="HS256",
        )
        head, _, signature = _issue().split(".")
        _, body, _ = forged.split(".")
        with pytest.raises(token_service.TokenError):
            _verify(f"{head}.{body}.{signature}")

    def test_wrong_secret_rejected(self, app):
        with pytest.raises(token_service.TokenError):
            _verify(_issue(), secret="another-secret")

    def test_wrong_algorithm_rejected(self, app):
        token = _issue(algorithm="HS512")
        with pytest.raises(token_service.TokenError):
            _verify(token)

    def test_unsigned_token_rejected(self, app):
        head, body, _ = _issue().split(".")
        with pytest.raises(token_service.TokenError):
            _verify(f"{head}.{body}.")

    @pytest.mark.parametrize("token", ["", "garbage", "a.b", "a.b.c.d", "é.é.é", None])
    def test_malformed_rejected(self, app, token):
        with pytest.raises(token_service.TokenError):
            _verify(token)

    def test_expired_rejected(self, app):
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        with pytest.raises(token_service.TokenError):
            _verify(_issue(lifetime="1h", issued_at=issued))

    def test_explicit_clock(self, app):
        issued = datetime.now(timezone.utc)
        token = _issue(lifetime="1h", issued_at=issued)
        assert _verify(token, now=issued + timedelta(minutes=59)).user_id == 7
        with pytest.raises(token_service.TokenError):
            _verify(token, now=issued + timedelta(hours=1))

    def test_missing_claims_rejected(self, app):
        token = jwt.encode({"sub": "7", "iat": 0, "exp": 2**31}, SECRET, algorithm="HS256")
        with pytest.raises(token_service.TokenError):
            _verify(token)


class TestParseLifetime:

    @pytest.mark.parametrize("value,seconds", [
        (3600, 3600),
        ("3600", 3600),
        ("45s", 45),
        ("30m", 1800),
        ("24h", 86400),
        ("7d", 604800),
        (" 2H ", 7200),
        (timedelta(minutes=5), 300),
    ])
    def test_valid(self, value, seconds):
        assert token_service.parse_lifetime(value) == timedelta(seconds=seconds)

    @pytest.mark.parametrize("value", ["", "abc", "1w", "-5m", "1.5h", 0, "0", True, None, 3.5])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            token_service.parse_lifetime(value)


# =============================================================================
# REFRESH TOKENS
# =============================================================================


class TestRefreshTokens:

    def test_only_hash_is_stored(self, db_session, cashier_user):
        record, plaintext = token_service.issue_refresh_token(cashier_user.id)
        assert len(plaintext) == 64
        assert record.token_hash == token_service.hash_token(plaintext)
        assert db_session.query(RefreshToken).filter_by(token_hash=plaintext).first() is None

    def test_rotation(self, db_session, cashier_user):
        _, first = token_service.issue_refresh_token(cashier_user.id)
        user, second = token_service.rotate_refresh_token(first)
        assert user.id == cashier_user.id
        assert second != first

        old = db_session.query(RefreshToken).filter_by(token_hash=token_service.hash_token(first)).one()
        new = db_session.query(RefreshToken).filter_by(token_hash=token_service.hash_token(second)).one()
        assert old.used_at is not None
        assert old.replaced_by_id == new.id

    def test_reuse_revokes_all(self, db_session, cashier_user):
        _, first = token_service.issue_refresh_token(cashier_user.id)
        _, second = token_service.rotate_refresh_token(first)

        with pytest.raises(token_service.RefreshTokenError):
            token_service.rotate_refresh_token(first)

        # The legitimate successor is gone too
        with pytest.raises(token_service.RefreshTokenError):
            token_service.rotate_refresh_token(second)

    def test_unknown_token(self, db_session, cashier_user):
        with pytest.raises(token_service.RefreshTokenError):
            token_service.rotate_refresh_token("0" * 64)

    def test_expired_token(self, db_session, cashier_user):
        _, plaintext = token_service.issue_refresh_token(cashier_user.id, now=localnow() - timedelta(days=8))
        with pytest.raises(token_service.RefreshTokenError):
            token_service.rotate_refresh_token(plaintext)

    def test_deactivated_user(self, db_session, cashier_user):
        _, plaintext = token_service.issue_refresh_token(cashier_user.id)
        cashier_user.is_active = False
        db_session.commit()
        with pytest.raises(token_service.RefreshTokenError):
            token_service.rotate_refresh_token(plaintext)

    def test_revoke(self, db_session, cashier_user):
        _, plaintext = token_service.issue_refresh_token(cashier_user.id)
        assert token_service.revoke_refresh_token(plaintext) is True
        assert token_service.revoke_refresh_token(plaintext) is False
        with pytest.raises(token_service.RefreshTokenError):
            token_service.rotate_refresh_token(plaintext)

    def test_purge_expired(self, db_session, cashier_user):
        past = localnow() - timedelta(days=30)
        _, stale = token_service.issue_refresh_token(cashier_user.id, now=past)
        token_service.rotate_refresh_token(stale, now=past + timedelta(minutes=1))
        _, live = token_service.issue_refresh_token(cashier_user.id)

        assert token_service.purge_expired() == 2
        remaining = db_session.query(RefreshToken).all()
        assert [r.token_hash for r in remaining] == [token_service.hash_token(live)]
