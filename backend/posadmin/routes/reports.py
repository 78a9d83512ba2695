# Overview: Flask API routes for sales reports; parses filters and returns JSON report payloads.

"""
Report routes.

GET /api/reports/<name>   name in sales, items, sales-by-category, employees,
                          payment-types, discounts, taxes, modifiers,
                          receipts, shifts

Query params (all reports):
- startDate, endDate: YYYY-MM-DD, inclusive whole days (default: last 30 days)
- store, employee: id or "all"
- search: receipts only

WHY: the dashboard renders "no data" rather than an error banner, so an
unexpected failure while aggregating answers 200 with the report's zeroed
shape. Bad filters are the caller's fault and still get a 400.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..services import reporting_service
from ..services.report_filters import ReportFilters

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def report_response(name: str):
    if name not in reporting_service.REPORTS:
        return jsonify({"error": "Report not found", "report": name}), 404

    # Raises ValidationError (400) on malformed dates
    filters = ReportFilters.from_args(request.args)

    try:
        return jsonify(reporting_service.run_report(name, filters)), 200
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Report %s failed; serving empty report", name)
        return jsonify(reporting_service.empty_report(name, filters)), 200


@reports_bp.get("")
@require_auth
@require_permission("canViewReports")
def list_reports():
    return jsonify(sorted(reporting_service.REPORTS))


@reports_bp.get("/<string:name>")
@require_auth
@require_permission("canViewReports")
def get_report(name: str):
    return report_response(name)
