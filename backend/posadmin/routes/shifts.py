# Overview: Flask API routes for cashier shifts; parses input and returns JSON responses.

"""
Shift routes.

- POST /start            open a shift (409 if the user already has one open)
- POST /<id>/end         close it with the counted cash (400 if already closed)
- GET  /active           the caller's open shift, or null
- GET  ""                list (canViewReports or canManageUsers)
- GET  /reports          the shifts report, same as /api/reports/shifts
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import current_user_can, require_any_permission, require_auth, require_permission
from ..errors import ForbiddenError
from ..services import shift_service
from ..services.report_filters import ReportFilters
from .reports import report_response

shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/shifts")


def _parse_is_active(raw):
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


@shifts_bp.get("")
@require_auth
@require_any_permission("canViewReports", "canManageUsers")
def list_shifts():
    """
    Query params: startDate, endDate, store, employee, isActive (true|false)
    """
    filters = ReportFilters.from_args(request.args)
    shifts = shift_service.list_shifts(filters, is_active=_parse_is_active(request.args.get("isActive")))
    return jsonify([s.to_dict() for s in shifts])


@shifts_bp.get("/reports")
@require_auth
@require_permission("canViewReports")
def shifts_report():
    return report_response("shifts")


@shifts_bp.get("/active")
@require_auth
def active_shift():
    shift = shift_service.get_active_shift(g.user_id)
    return jsonify({"shift": shift.to_dict() if shift is not None else None})


@shifts_bp.get("/<int:shift_id>")
@require_auth
@require_any_permission("canViewReports", "canManageUsers", "canManageOrders")
def get_shift(shift_id: int):
    shift = shift_service.get_shift(shift_id)
    if shift.user_id != g.user_id and not (
        current_user_can("canViewReports") or current_user_can("canManageUsers")
    ):
        raise ForbiddenError("Cannot view another user's shift")
    return jsonify(shift.to_dict())


@shifts_bp.post("/start")
@require_auth
@require_permission("canManageOrders")
def start_shift():
    """
    Request body: storeId (required), expectedCashAmount, notes, userId.

    SECURITY: opening a shift for someone else also needs canManageUsers.
    """
    data = request.get_json(silent=True)
    target = data.get("userId") if isinstance(data, dict) else None
    if target is not None and target != g.user_id and not current_user_can("canManageUsers"):
        raise ForbiddenError("Starting a shift for another user requires canManageUsers")

    shift = shift_service.start_shift(data, user_id=g.user_id)
    return jsonify(shift.to_dict()), 201


@shifts_bp.post("/<int:shift_id>/end")
@require_auth
@require_permission("canManageOrders")
def end_shift(shift_id: int):
    """Request body: actualCashAmount, notes"""
    shift = shift_service.get_shift(shift_id)
    if shift.user_id != g.user_id and not current_user_can("canManageUsers"):
        raise ForbiddenError("Ending another user's shift requires canManageUsers")

    shift = shift_service.end_shift(shift_id, request.get_json(silent=True))
    return jsonify(shift.to_dict())


@shifts_bp.put("/<int:shift_id>")
@require_auth
@require_permission("canManageUsers")
def update_shift(shift_id: int):
    shift = shift_service.update_shift(shift_id, request.get_json(silent=True))
    return jsonify(shift.to_dict())


@shifts_bp.delete("/<int:shift_id>")
@require_auth
@require_permission("canManageUsers")
def delete_shift(shift_id: int):
    shift_service.delete_shift(shift_id)
    return jsonify({"message": "Shift deleted"})
