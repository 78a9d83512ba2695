# Overview: Flask API routes for customers; parses input and returns JSON and CSV responses.

"""
Customer routes.

Reads and export need canViewCustomers; create, update, delete and
import need canManageCustomers.
"""

from flask import Blueprint, Response, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import customer_service
from ..services.customer_service import customers

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_permission("canViewCustomers")
def list_customers():
    """Query params: search (name, email, phone or customer code fragment)."""
    search = (request.args.get("search") or "").strip() or None
    return jsonify([c.to_dict() for c in customer_service.list_customers(search)])


@customers_bp.get("/export")
@require_auth
@require_permission("canViewCustomers")
def export_customers():
    return Response(
        customer_service.export_customers(),
        mimetype="text/csv",
        headers={"Content-Disposition": 'attachment; filename="customers.csv"'},
    )


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission("canViewCustomers")
def get_customer(customer_id: int):
    return jsonify(customers.get(customer_id).to_dict())


@customers_bp.post("")
@require_auth
@require_permission("canManageCustomers")
def create_customer():
    """Request body: customerName (required), email, phone, address, customerCode (unique), pointsBalance, note..."""
    customer = customers.create(request.get_json(silent=True))
    return jsonify(customer.to_dict()), 201


@customers_bp.put("/<int:customer_id>")
@require_auth
@require_permission("canManageCustomers")
def update_customer(customer_id: int):
    customer = customers.update(customer_id, request.get_json(silent=True))
    return jsonify(customer.to_dict())


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_permission("canManageCustomers")
def delete_customer(customer_id: int):
    customers.delete(customer_id)
    return jsonify({"message": "Customer deleted"})


@customers_bp.post("/import")
@require_auth
@require_permission("canManageCustomers")
def import_customers():
    """
    Accepts a multipart upload in `file`, or JSON {"file": "<csv text>"}.
    """
    upload = request.files.get("file")
    if upload is not None:
        try:
            csv_text = upload.stream.read().decode("utf-8")
        except UnicodeDecodeError:
            return jsonify({"error": "File must be UTF-8 encoded CSV"}), 400
    else:
        data = request.get_json(silent=True) or {}
        csv_text = data.get("file") if isinstance(data, dict) else None

    created = customer_service.import_customers(csv_text)
    return jsonify([c.to_dict() for c in created]), 201
