from flask import Blueprint, jsonify, request, send_file

from boutique_pos.services import reporting_service
from boutique_pos.services.import_service import write_xlsx


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
def sales_report():
    granularity = request.args.get("granularity", "day")
    anchor = request.args.get("anchor")
    if not anchor:
        return jsonify({"error": "anchor is required"}), 400

    try:
        report = reporting_service.sales_report(granularity=granularity, anchor=anchor)
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/sales/export")
def sales_export():
    granularity = request.args.get("granularity", "day")
    anchor = request.args.get("anchor")
    if not anchor:
        return jsonify({"error": "anchor is required"}), 400

    try:
        sales = reporting_service.sales_in_window(granularity, anchor)
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400

    if not sales:
        return jsonify({"error": "No sales to export"}), 404

    rows = reporting_service.sales_export_rows(sales)
    out = write_xlsx(rows, headers=reporting_service.SALES_EXPORT_HEADERS, sheet_name="Ventas")
    return send_file(
        out,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name=reporting_service.export_filename(granularity, anchor),
    )
