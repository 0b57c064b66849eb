# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/boutique_pos/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, current_app, jsonify, request

from ..services import sales_service
from ..validation import NotFoundError, ValidationError, to_int

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
def commit_sale_route():
    """
    Commit a checkout.

    Request body:
    {
        "items": [{"sku": "X1", "name": "Blusa", "price_cents": 1000, "quantity": 2}],
        "payment_method": "cash",
        "amount_paid_cents": 3000   // optional, cash only
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        amount_paid = data.get("amount_paid_cents")
        if amount_paid is not None:
            amount_paid = to_int(amount_paid, "amount_paid_cents")
        sale = sales_service.commit_sale(
            data.get("items"),
            data.get("payment_method"),
            amount_paid_cents=amount_paid,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to commit sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "sale": sale.to_dict(),
        "receipt": sales_service.receipt_payload(sale, amount_paid),
    }), 201


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.get("/<int:sale_id>/receipt")
def receipt_route(sale_id: int):
    """Receipt data for reprint (?amount_paid_cents= for change due)."""
    amount_paid = request.args.get("amount_paid_cents", type=int)
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(sales_service.receipt_payload(sale, amount_paid)), 200
