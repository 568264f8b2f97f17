# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify

from ..decorators import require_admin, require_auth
from ..extensions import db
from ..services import support_service
from ..services.support_service import SupportCommentNotFoundError


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/comments")
@require_auth
@require_admin
def list_comments():
    try:
        comments = support_service.list_comments()
        return jsonify({"comments": [c.to_dict() for c in comments]}), 200
    except Exception:
        current_app.logger.exception("Failed to list support comments")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.delete("/comments/<int:comment_id>")
@require_auth
@require_admin
def delete_comment(comment_id: int):
    try:
        support_service.delete_comment(comment_id)
        return jsonify({"message": "Comment deleted successfully"}), 200
    except SupportCommentNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete support comment")
        return jsonify({"error": "Internal server error"}), 500
