# Overview: Flask API routes for POS devices; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services.store_service import pos_devices

pos_devices_bp = Blueprint("pos_devices", __name__, url_prefix="/api/pos-devices")


@pos_devices_bp.get("")
@require_auth
def list_devices():
    """Query params: storeId"""
    store_id = request.args.get("storeId", type=int)
    return jsonify([d.to_dict() for d in pos_devices.list({"store_id": store_id})])


@pos_devices_bp.get("/<int:device_id>")
@require_auth
def get_device(device_id: int):
    return jsonify(pos_devices.get(device_id).to_dict())


@pos_devices_bp.post("")
@require_auth
@require_permission("canManageSettings")
def create_device():
    device = pos_devices.create(request.get_json(silent=True))
    return jsonify(device.to_dict()), 201


@pos_devices_bp.put("/<int:device_id>")
@require_auth
@require_permission("canManageSettings")
def update_device(device_id: int):
    device = pos_devices.update(device_id, request.get_json(silent=True))
    return jsonify(device.to_dict())


@pos_devices_bp.delete("/<int:device_id>")
@require_auth
@require_permission("canManageSettings")
def delete_device(device_id: int):
    pos_devices.delete(device_id)
    return jsonify({"message": "POS device deleted"})
