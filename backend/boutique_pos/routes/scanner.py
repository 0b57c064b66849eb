# Overview: Flask API routes for scanner input; classifies keystroke batches and resolves codes.

from flask import Blueprint, current_app, jsonify, request

from ..services import products_service
from ..services.scanner_service import KeyEvent, classifier_from_config

scanner_bp = Blueprint("scanner", __name__, url_prefix="/api/scanner")


@scanner_bp.get("/config")
def scanner_config_route():
    return jsonify({
        "min_length": current_app.config["SCANNER_MIN_LENGTH"],
        "time_threshold_ms": current_app.config["SCANNER_TIME_THRESHOLD_MS"],
        "terminator": "Enter",
    }), 200


@scanner_bp.post("/keystrokes")
def keystrokes_route():
    """
    Classify a batch of key events captured by the host.

    Request body:
    {
        "events": [{"key": "A", "t": 1000}, {"key": "B", "t": 1040}, {"key": "Enter", "t": 1080}]
    }

    Each emitted scan token is looked up by SKU. Unknown codes come back with
    quick_create so the caller can offer to add the product.
    """
    data = request.get_json(silent=True) or {}
    raw_events = data.get("events")
    if not isinstance(raw_events, list):
        return jsonify({"error": "events must be a list"}), 400

    events = []
    for raw in raw_events:
        if not isinstance(raw, dict) or not isinstance(raw.get("key"), str):
            return jsonify({"error": "each event needs a string key"}), 400
        t = raw.get("t")
        if isinstance(t, bool) or not isinstance(t, (int, float)):
            return jsonify({"error": "each event needs a numeric t (milliseconds)"}), 400
        events.append(KeyEvent(key=raw["key"], timestamp_ms=float(t)))

    classifier = classifier_from_config(current_app.config)
    tokens = classifier.feed(events)

    scans = []
    for code in tokens:
        product = products_service.find_by_code(code)
        if product is None:
            scans.append({"code": code, "found": False, "quick_create": True, "product": None})
        else:
            scans.append({"code": code, "found": True, "quick_create": False, "product": product.to_dict()})

    return jsonify({"scans": scans, "count": len(scans)}), 200
