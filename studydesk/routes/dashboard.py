"""Dashboard statistics endpoint."""

from __future__ import annotations

from flask import Blueprint, g, jsonify
from pymongo.errors import PyMongoError

from .. import metrics
from ..config import ConfigError
from ..db import get_assignments_collection, get_courses_collection, get_grades_collection
from ..utils.dates import utcnow
from ..utils.responses import handle_config_error, handle_db_error
from .auth import login_required

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@login_required
def stats():
    try:
        courses = list(get_courses_collection().find({"user_id": g.user_id}, projection={"_id": 1}))
        assignments = list(
            get_assignments_collection().find(
                {"user_id": g.user_id}, projection={"completed": 1, "due_date": 1}
            )
        )
        grades = list(
            get_grades_collection().find({"user_id": g.user_id}, projection={"percentage": 1})
        )
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to load dashboard stats", exc)

    result = metrics.dashboard_stats(courses, assignments, grades, now=utcnow())
    return jsonify({"stats": result.to_dict()})


__all__ = ["dashboard_bp"]
