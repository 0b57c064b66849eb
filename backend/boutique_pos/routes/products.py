# Overview: Flask API routes for catalog operations; parses input and returns JSON responses.

# backend/boutique_pos/routes/products.py
"""
Catalog routes.

Amounts are integer cents. stock_details is {store, warehouse, display};
when it is sent, stock is recomputed from it.
"""
from datetime import date

from flask import Blueprint, current_app, jsonify, request, send_file

from ..models import Product
from ..services import import_service, products_service
from ..services.import_service import EXPORT_HEADERS, ImportFileError
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"sku", "name", "price_cents", "stock"},
    required_on_create={"name", "price_cents"},
    extra_fields={"stock_details"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products.

    Query params:
    - q: str (optional) - name or SKU substring
    """
    search = request.args.get("q")
    products = products_service.list_products(search=search)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/restock")
def restock_route():
    threshold = request.args.get("threshold", type=int)
    products = products_service.restock_list(threshold=threshold)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"product": product.to_dict()}), 200


@products_bp.get("/by-code/<path:code>")
def find_by_code_route(code: str):
    """
    Exact SKU lookup. A miss answers 404 with quick_create so the caller can
    offer to create the product with this code.
    """
    product = products_service.find_by_code(code)
    if product is None:
        return jsonify({"error": "Product not found", "code": code, "quick_create": True}), 404
    return jsonify({"product": product.to_dict()}), 200


@products_bp.post("")
def create_product_route():
    """Create a product. sku is optional (generated when blank)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": created.to_dict()}), 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": updated.to_dict()}), 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        deleted = products_service.delete_product(product_id=product_id)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500

    if not deleted:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"ok": True}), 200


@products_bp.post("/import")
def import_products_route():
    """
    Bulk create from a CSV upload with columns SKU?, Nombre, Precio, Stock?.
    Rows missing Nombre or Precio are skipped.
    """
    if "file" not in request.files:
        return jsonify({"error": "file is required"}), 400
    file = request.files["file"]

    try:
        rows = import_service.read_rows(file.stream, file.filename or "")
        result = import_service.import_csv_rows(rows)
    except (ImportFileError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to import products")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 201


@products_bp.post("/bulk-upsert")
def bulk_upsert_route():
    """
    Upsert by SKU from a spreadsheet (.xlsx/.csv upload) or JSON {"rows": [...]}
    using the export column names.
    """
    try:
        if "file" in request.files:
            file = request.files["file"]
            rows = import_service.read_rows(file.stream, file.filename or "")
        else:
            data = request.get_json(silent=True) or {}
            rows = import_service.validate_upsert_payload(data.get("rows"))
        result = import_service.upsert_sheet_rows(rows)
    except (ImportFileError, ValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to bulk upsert products")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 200


@products_bp.get("/export")
def export_products_route():
    """Catalog export (?format=xlsx default, or csv)."""
    fmt = request.args.get("format", "xlsx").lower()
    rows = import_service.export_rows()
    stamp = date.today().isoformat()

    if fmt == "csv":
        body = import_service.write_csv(rows, headers=EXPORT_HEADERS)
        return current_app.response_class(
            body.encode("utf-8"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=inventario_{stamp}.csv"},
        )
    if fmt != "xlsx":
        return jsonify({"error": "format must be xlsx or csv"}), 400

    out = import_service.write_xlsx(rows, headers=EXPORT_HEADERS, sheet_name="Inventario")
    return send_file(
        out,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name=f"inventario_{stamp}.xlsx",
    )


@products_bp.post("/labels")
def labels_route():
    """Label data for the given product ids (all products when omitted)."""
    data = request.get_json(silent=True) or {}
    ids = data.get("product_ids")
    if ids is not None and (not isinstance(ids, list) or not all(isinstance(i, int) for i in ids)):
        return jsonify({"error": "product_ids must be a list of integers"}), 400
    labels = products_service.label_payloads(ids)
    return jsonify({"labels": labels, "count": len(labels)}), 200
