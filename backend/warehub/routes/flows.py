# Overview: Flask API routes for load/unload flows; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..extensions import db
from ..services import ledger_service, warehouse_service
from ..services.inventory_service import InsufficientStockError
from ..services.ledger_service import FlowValidationError
from ..services.warehouse_service import WarehouseNotFoundError


flows_bp = Blueprint("flows", __name__, url_prefix="/api/warehouses")


@flows_bp.get("/<int:warehouse_id>/flow")
@require_auth
def list_flows(warehouse_id: int):
    """Newest first. Query: page (default 1), limit (default 20, max 100)."""
    try:
        warehouse = warehouse_service.get_owned_warehouse(warehouse_id, g.current_user.id)
        page = ledger_service.normalize_page(request.args.get("page"))
        limit = ledger_service.normalize_limit(request.args.get("limit"))
        flows, total = ledger_service.list_flows(warehouse_id=warehouse.id, page=page, limit=limit)
        return jsonify({
            "flows": [f.to_dict() for f in flows],
            "total": total,
            "page": page,
            "limit": limit,
        }), 200
    except WarehouseNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list flows")
        return jsonify({"error": "Internal server error"}), 500


@flows_bp.post("/<int:warehouse_id>/flow")
@require_auth
def create_flow(warehouse_id: int):
    """
    Record a load or unload.

    Body: {"operation": "load"|"unload", "items": [{typeName, count, unitPrice}]}
    An unload exceeding stock is rejected whole with 409.
    """
    data = request.get_json(silent=True) or {}
    try:
        warehouse, flow = warehouse_service.create_flow(
            warehouse_id=warehouse_id,
            owner_id=g.current_user.id,
            operation=data.get("operation"),
            raw_items=data.get("items"),
            performed_by=g.current_user.id,
        )
        message = "Load operation recorded" if flow.operation == "load" else "Unload operation recorded"
        return jsonify({
            "message": message,
            "warehouse": warehouse.to_detail_dict(),
            "flow": flow.to_dict(),
        }), 201
    except FlowValidationError as e:
        return jsonify(e.to_dict()), 400
    except WarehouseNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify(e.to_dict()), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to record flow")
        return jsonify({"error": "Internal server error"}), 500
