# Overview: Flask API routes for kitchen queues; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services.store_service import kitchen_queues

kitchen_queues_bp = Blueprint("kitchen_queues", __name__, url_prefix="/api/kitchen-queues")


@kitchen_queues_bp.get("")
@require_auth
def list_queues():
    store_id = request.args.get("storeId", type=int)
    return jsonify([q.to_dict() for q in kitchen_queues.list({"store_id": store_id})])


@kitchen_queues_bp.get("/<int:queue_id>")
@require_auth
def get_queue(queue_id: int):
    return jsonify(kitchen_queues.get(queue_id).to_dict())


@kitchen_queues_bp.post("")
@require_auth
@require_permission("canManageSettings")
def create_queue():
    queue = kitchen_queues.create(request.get_json(silent=True))
    return jsonify(queue.to_dict()), 201


@kitchen_queues_bp.put("/<int:queue_id>")
@require_auth
@require_permission("canManageSettings")
def update_queue(queue_id: int):
    queue = kitchen_queues.update(queue_id, request.get_json(silent=True))
    return jsonify(queue.to_dict())


@kitchen_queues_bp.delete("/<int:queue_id>")
@require_auth
@require_permission("canManageSettings")
def delete_queue(queue_id: int):
    kitchen_queues.delete(queue_id)
    return jsonify({"message": "Kitchen queue deleted"})
