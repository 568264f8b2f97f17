# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/warehub/routes/auth.py
"""
Authentication API routes

- Self-registration returns a session token immediately
- Login/logout manage opaque bearer sessions (see session_service.py)
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import bearer_token, require_auth
from ..extensions import db
from ..services import auth_service
from ..services import session_service
from ..validation import ConflictError, ValidationError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, message: str, status: int):
    session, token = session_service.create_session(
        user_id=user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return jsonify({
        "message": message,
        "token": token,
        "user": user.to_dict(),
        "session": session.to_dict(),
    }), status


@auth_bp.post("/register")
def register_route():
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.create_user(
            data.get("email"),
            data.get("password"),
            data.get("name"),
        )
        return _session_response(user, "User registered successfully", 201)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400
    if not isinstance(email, str) or not isinstance(password, str):
        return jsonify({"error": "Email and password must be strings"}), 400

    try:
        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401
        return _session_response(user, "Login successful", 200)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authorization header required"}), 401

    try:
        if not session_service.revoke_session(token):
            return jsonify({"error": "Invalid or expired token"}), 401
        return jsonify({"message": "Logout successful"}), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
