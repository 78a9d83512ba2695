# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .services import permission_service, token_service

_VERIFIED_KEY = "posadmin.token_verified"


def _is_authenticated() -> bool:
    return getattr(g, "token_claims", None) is not None


def _authenticate():
    """
    Verify the bearer token and attach its claims to g.

    Returns None on success, or the 401 response to send.
    """
    # Stacked decorators verify once per request
    if request.environ.get(_VERIFIED_KEY):
        return None
    # g can outlive a request when an app context is already pushed
    g.pop("token_claims", None)
    auth_header = request.headers.get("Authorization")

    if not auth_header or not auth_header.startswith("Bearer "):
        return jsonify({"error": "Authentication required"}), 401

    token = auth_header.split(" ", 1)[1].strip()

    try:
        claims = token_service.verify_access_token(token)
    except token_service.TokenError:
        return jsonify({"error": "Invalid or expired token"}), 401

    g.token_claims = claims
    g.user_id = claims.user_id
    g.role = claims.role
    request.environ[_VERIFIED_KEY] = True
    return None


def require_auth(f):
    """
    Require a valid access token.

    Sets g.token_claims (TokenClaims), g.user_id and g.role. No database
    access: the signed claims are trusted until they expire.

    SECURITY: Returns 401 when the header is missing, the token is
    malformed, the signature does not verify, or it has expired.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        failure = _authenticate()
        if failure is not None:
            return failure
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific permission.

    Authentication always runs first, even when stacked under require_auth;
    a request without valid credentials gets 401 before any permission logic.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            failure = _authenticate()
            if failure is not None:
                return failure

            if not permission_service.evaluate(g.role, permission_code):
                current_app.logger.warning(
                    "Permission denied: user=%s role=%r needs %s for %s %s",
                    g.user_id, g.role, permission_code, request.method, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": f"Requires permission: {permission_code}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(*permission_codes):
    """
    Require any of the specified permissions.

    Candidates are checked in the order given and checking stops at the
    first one held. A failed lookup for one candidate does not stop the
    others from being tried.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            failure = _authenticate()
            if failure is not None:
                return failure

            granted = permission_service.first_granted(g.role, permission_codes)
            if granted is None:
                current_app.logger.warning(
                    "Permission denied: user=%s role=%r needs any of %s for %s %s",
                    g.user_id, g.role, ",".join(permission_codes), request.method, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permissions": list(permission_codes),
                    "message": f"Requires any of: {', '.join(permission_codes)}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def current_user_can(permission_code: str) -> bool:
    """In-handler check for the authenticated caller."""
    return _is_authenticated() and permission_service.evaluate(g.role, permission_code)
