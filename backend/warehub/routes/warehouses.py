# Overview: Flask API routes for warehouse CRUD and inventory writes; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..extensions import db
from ..services import warehouse_service
from ..services.warehouse_service import WarehouseNotFoundError
from ..validation import ValidationError


warehouses_bp = Blueprint("warehouses", __name__, url_prefix="/api/warehouses")


@warehouses_bp.get("")
@require_auth
def list_warehouses():
    try:
        warehouses = warehouse_service.list_warehouses(g.current_user.id)
        return jsonify({"warehouses": [w.to_dict() for w in warehouses]}), 200
    except Exception:
        current_app.logger.exception("Failed to list warehouses")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.post("")
@require_auth
def create_warehouse():
    data = request.get_json(silent=True)
    try:
        warehouse = warehouse_service.create_warehouse(g.current_user.id, data)
        return jsonify({
            "message": "Warehouse created successfully",
            "warehouse": warehouse.to_dict(),
        }), 201
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create warehouse")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.get("/<int:warehouse_id>")
@require_auth
def get_warehouse(warehouse_id: int):
    try:
        warehouse = warehouse_service.get_owned_warehouse(warehouse_id, g.current_user.id)
        return jsonify({"warehouse": warehouse.to_detail_dict()}), 200
    except WarehouseNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to get warehouse")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.put("/<int:warehouse_id>")
@require_auth
def update_warehouse(warehouse_id: int):
    data = request.get_json(silent=True)
    try:
        warehouse = warehouse_service.update_warehouse(warehouse_id, g.current_user.id, data)
        return jsonify({
            "message": "Warehouse updated successfully",
            "warehouse": warehouse.to_dict(),
        }), 200
    except WarehouseNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update warehouse")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.delete("/<int:warehouse_id>")
@require_auth
def delete_warehouse(warehouse_id: int):
    try:
        warehouse_service.delete_warehouse(warehouse_id, g.current_user.id)
        return jsonify({"message": "Warehouse deleted successfully"}), 200
    except WarehouseNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete warehouse")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.patch("/<int:warehouse_id>/inventory")
@require_auth
def replace_inventory(warehouse_id: int):
    """Replace the whole inventory list. Not recorded in the flow ledger."""
    data = request.get_json(silent=True) or {}
    try:
        warehouse = warehouse_service.replace_inventory(
            warehouse_id, g.current_user.id, data.get("inventory")
        )
        return jsonify({
            "message": "Inventory updated successfully",
            "warehouse": warehouse.to_detail_dict(),
        }), 200
    except WarehouseNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update inventory")
        return jsonify({"error": "Internal server error"}), 500


@warehouses_bp.post("/<int:warehouse_id>/inventory/upload")
@require_auth
def upload_inventory_csv(warehouse_id: int):
    """
    Merge a CSV (multipart field "file") into the inventory.

    Header needs a type/typeName column and a count/quantity column.
    Counts are added to existing stock.
    """
    max_bytes = current_app.config["CSV_UPLOAD_MAX_BYTES"]

    upload = request.files.get("file")
    if upload is None:
        return jsonify({"error": "No file uploaded"}), 400

    raw = upload.read(max_bytes + 1)
    if len(raw) > max_bytes:
        return jsonify({"error": f"CSV file exceeds {max_bytes} bytes"}), 413

    content = raw.decode("utf-8", errors="replace")
    if not content.strip():
        return jsonify({"error": "CSV file is empty"}), 400

    try:
        warehouse, message = warehouse_service.import_inventory_csv(
            warehouse_id, g.current_user.id, content
        )
        return jsonify({"message": message, "warehouse": warehouse.to_detail_dict()}), 200
    except WarehouseNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to import inventory CSV")
        return jsonify({"error": "Internal server error"}), 500
