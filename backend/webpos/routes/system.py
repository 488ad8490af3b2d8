# backend/webpos/routes/system.py
"""Public liveness endpoint with a database round trip."""

import time
from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__)

SERVICE_NAME = "WebPOS Backend"


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/")
def root():
    database = check_database_health()
    ok = database["status"] == "healthy"
    return jsonify({"ok": ok, "name": SERVICE_NAME, "database": database}), 200 if ok else 503
