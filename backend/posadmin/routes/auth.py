# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/posadmin/routes/auth.py
"""
Authentication API routes

- POST /login           username + password -> user, accessToken, refreshToken
- POST /refresh-token   refreshToken -> new accessToken + new refreshToken
- POST /logout          revokes the presented refreshToken
- GET  /current         the authenticated user
- GET  /permissions     the caller's role and evaluated permission set
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..extensions import db
from ..models import User
from ..services import auth_service, permission_service, token_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and issue tokens.

    SECURITY: unknown user, wrong password and deactivated account share
    one 401 response.
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid login data"}), 400

        username = data.get("username")
        password = data.get("password")
        missing = [k for k, v in (("username", username), ("password", password)) if not isinstance(v, str) or not v]
        if missing:
            return jsonify({
                "error": "Invalid login data",
                "details": {k: "required" for k in missing},
            }), 400

        body = auth_service.login(username.strip(), password)
        if body is None:
            return jsonify({"error": "Invalid username or password"}), 401

        return jsonify(body), 200

    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/refresh-token")
def refresh_route():
    """Exchange a refresh token (one-time use) for a fresh token pair."""
    data = request.get_json(silent=True) or {}
    refresh_token = data.get("refreshToken") if isinstance(data, dict) else None
    if not refresh_token:
        return jsonify({"error": "Refresh token required"}), 400

    try:
        tokens = auth_service.refresh(refresh_token)
    except token_service.RefreshTokenError as e:
        return jsonify({"error": "Invalid refresh token", "message": str(e)}), 401

    return jsonify(tokens), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    data = request.get_json(silent=True) or {}
    refresh_token = data.get("refreshToken") if isinstance(data, dict) else None
    if refresh_token:
        token_service.revoke_refresh_token(refresh_token, "logout")
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/current")
@require_auth
def current_user_route():
    user = db.session.get(User, g.user_id)
    if user is None or not user.is_active:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_dict()), 200


@auth_bp.get("/permissions")
@require_auth
def permissions_route():
    """
    The caller's effective permissions, evaluated exactly as the server
    enforces them. The frontend gates its UI with this.
    """
    return jsonify({
        "role": g.role,
        "permissions": permission_service.resolve_permissions(g.role),
    }), 200
