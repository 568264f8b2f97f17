# Overview: Flask API routes for warehouse analytics and AI advice; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import advice_service, analytics_service, warehouse_service
from ..services.advice_service import (
    AdviceNotConfiguredError,
    AdviceRateLimitedError,
    AdviceServiceError,
)
from ..services.analytics_service import AnalyticsError
from ..services.warehouse_service import WarehouseNotFoundError
from warehub.time_utils import utcnow


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/warehouses")

ADVICE_PERIOD = "month"
ADVICE_PERIODS = 6


@analytics_bp.get("/<int:warehouse_id>/analytics")
@require_auth
def get_analytics(warehouse_id: int):
    """Query: period=day|week|month (default month), periods=1..24 (default 6)."""
    try:
        warehouse = warehouse_service.get_owned_warehouse(warehouse_id, g.current_user.id)
        data = analytics_service.get_warehouse_analytics(
            warehouse,
            period=request.args.get("period"),
            periods=request.args.get("periods"),
        )
        return jsonify(data), 200
    except WarehouseNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except AnalyticsError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to compute analytics")
        return jsonify({"error": "Internal server error"}), 500


@analytics_bp.get("/<int:warehouse_id>/ai-advice")
@require_auth
def get_ai_advice(warehouse_id: int):
    """Buy/sell advice over the last 6 months of flows."""
    try:
        warehouse = warehouse_service.get_owned_warehouse(warehouse_id, g.current_user.id)

        now = utcnow()
        analytics = analytics_service.get_warehouse_analytics(
            warehouse, period=ADVICE_PERIOD, periods=ADVICE_PERIODS, now=now
        )
        context = advice_service.build_advice_context(warehouse, analytics, now)

        config = current_app.config
        advice = advice_service.request_advice(
            context,
            api_key=config.get("GEMINI_API_KEY"),
            model=config["GEMINI_MODEL"],
            base_url=config["GEMINI_BASE_URL"],
            timeout=config["AI_ADVICE_TIMEOUT_SECONDS"],
        )
        return jsonify(advice), 200
    except WarehouseNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (AdviceNotConfiguredError, AdviceRateLimitedError) as e:
        current_app.logger.warning("AI advice unavailable for warehouse %s: %s", warehouse_id, e)
        return jsonify({"error": str(e)}), 503
    except AdviceServiceError as e:
        current_app.logger.warning("AI advice failed for warehouse %s: %s", warehouse_id, e)
        return jsonify({"error": "AI advice service error"}), 502
    except Exception:
        current_app.logger.exception("Failed to get AI advice")
        return jsonify({"error": "Internal server error"}), 500
