# Overview: Flask API routes for daily cash reconciliation.

from flask import Blueprint, current_app, jsonify, request

from ..services import closing_service
from ..validation import ValidationError, to_int

closings_bp = Blueprint("closings", __name__, url_prefix="/api/closings")


@closings_bp.get("/<day>")
def daily_summary_route(day: str):
    """Opening float, payment-method totals, expected cash and closing state for a day."""
    try:
        return jsonify(closing_service.daily_summary(day)), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@closings_bp.get("/<day>/float")
def get_float_route(day: str):
    try:
        key = closing_service.normalize_day(day)
        closing = closing_service.get_closing(key)
        initial = closing_service.get_opening_float(key)
        expected = closing_service.compute_expected_cash(key)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({
        "date": key,
        "initial_cash_cents": initial,
        "is_default": closing is None,
        "is_closed": bool(closing and closing.is_closed),
        "expected_cash_cents": expected,
    }), 200


@closings_bp.put("/<day>/float")
def set_float_route(day: str):
    """
    Save the opening float.

    Request body:
    {
        "initial_cash_cents": 100000
    }

    A closed day keeps its float; the stored row is returned unchanged.
    """
    data = request.get_json(silent=True) or {}
    try:
        raw = data.get("initial_cash_cents")
        if raw is None:
            return jsonify({"error": "initial_cash_cents required"}), 400
        closing = closing_service.set_opening_float(day, to_int(raw, "initial_cash_cents"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to save opening float")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"closing": closing.to_dict()}), 200


@closings_bp.post("/<day>/close")
def close_day_route(day: str):
    """
    Record the counted cash and close the day.

    Request body:
    {
        "final_cash_actual_cents": 125000
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        raw = data.get("final_cash_actual_cents")
        if raw is None:
            return jsonify({"error": "final_cash_actual_cents required"}), 400
        result = closing_service.close_day(day, to_int(raw, "final_cash_actual_cents"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to close day")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 200
