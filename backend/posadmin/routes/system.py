# backend/posadmin/routes/system.py
"""
System health check and uploaded file serving.

- GET /api/health              database and role seed status (503 if unhealthy)
- GET /uploads/<path:filename> files under UPLOAD_FOLDER (store logos)
"""

import os
import time

from flask import Blueprint, current_app, send_from_directory
from sqlalchemy import text

from ..extensions import db
from ..models import Role
from ..permissions import SYSTEM_ROLE_NAMES
from ..time_utils import localnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_roles_health() -> dict:
    """
    System roles are evaluated from code, so missing rows only affect role
    listings: degraded, not unhealthy.
    """
    try:
        stored = {name for (name,) in db.session.query(Role.name).filter(Role.is_system.is_(True))}
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Role health check failed")
        return {"status": "unhealthy", "error": "Role table error"}

    missing = [name for name in SYSTEM_ROLE_NAMES if name not in stored]
    if missing:
        return {
            "status": "degraded",
            "warning": f"System role rows not seeded: {', '.join(missing)} (run `flask system init-roles`)",
        }
    return {"status": "healthy"}


@system_bp.get("/api/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    database = check_database_health()
    roles = check_roles_health()

    statuses = {database["status"], roles["status"]}
    if "unhealthy" in statuses:
        overall, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall, http_status = "degraded", 200
    else:
        overall, http_status = "healthy", 200

    return {
        "status": overall,
        "timestamp": localnow().isoformat(),
        "database": database,
        "roles": roles,
    }, http_status


@system_bp.get("/uploads/<path:filename>")
def uploaded_file(filename: str):
    # send_from_directory rejects paths that escape the folder
    folder = os.path.abspath(current_app.config["UPLOAD_FOLDER"])
    return send_from_directory(folder, filename)
