# Overview: Request authentication decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets:
    - g.current_user: the authenticated User
    - g.session_token: the SessionToken record

    Returns 401 when the header is missing or the token is invalid,
    expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        session = session_service.validate_session(token)
        if not session:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = session.user
        g.session_token = session

        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Must be stacked under @require_auth. Returns 403 for non-admins."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = getattr(g, "current_user", None)
        if not user or not user.is_admin:
            return jsonify({"error": "Admin access required"}), 403
        return f(*args, **kwargs)

    return decorated_function
