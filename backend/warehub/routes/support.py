# Overview: Flask API routes for support comments; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..extensions import db
from ..services import support_service
from ..validation import ValidationError


support_bp = Blueprint("support", __name__, url_prefix="/api/support")


@support_bp.post("/comments")
@require_auth
def create_comment():
    data = request.get_json(silent=True)
    try:
        comment = support_service.create_comment(g.current_user, data)
        return jsonify({"message": "Comment submitted successfully", "comment": comment.to_dict()}), 201
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create support comment")
        return jsonify({"error": "Internal server error"}), 500
