"""Course endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from flask import Blueprint, g, jsonify, request
from pymongo.errors import PyMongoError

from .. import metrics
from ..config import ConfigError
from ..db import (
    find_owned,
    get_assignments_collection,
    get_courses_collection,
    get_grades_collection,
    owned_filter,
    serialize_course,
)
from ..utils.dates import utcnow
from ..utils.responses import (
    handle_config_error,
    handle_db_error,
    json_error,
    not_found,
    validation_error,
)
from ..validation import validate_course
from .auth import login_required

courses_bp = Blueprint("courses", __name__, url_prefix="/api/courses")

logger = logging.getLogger(__name__)


def _group_by_course(documents) -> Dict[Any, List[Dict[str, Any]]]:
    grouped: Dict[Any, List[Dict[str, Any]]] = {}
    for document in documents:
        grouped.setdefault(document.get("course_id"), []).append(document)
    return grouped


def _with_metrics(course, assignments, grades) -> Dict[str, Any]:
    payload = serialize_course(course)
    average = metrics.course_average(grades)
    payload["progress"] = metrics.course_progress(assignments)
    payload["assignmentCount"] = len(assignments)
    payload["completedCount"] = sum(1 for item in assignments if item.get("completed"))
    payload["averageGrade"] = average
    payload["letterGrade"] = metrics.letter_grade(average) if average is not None else None
    return payload


@courses_bp.get("")
@login_required
def list_courses():
    try:
        courses = list(
            get_courses_collection().find({"user_id": g.user_id}, sort=[("created_at", -1)])
        )
        assignments = _group_by_course(
            get_assignments_collection().find(
                {"user_id": g.user_id}, projection={"course_id": 1, "completed": 1}
            )
        )
        grades = _group_by_course(
            get_grades_collection().find(
                {"user_id": g.user_id}, projection={"course_id": 1, "percentage": 1}
            )
        )

        payload = [
            _with_metrics(
                course,
                assignments.get(course["_id"], []),
                grades.get(course["_id"], []),
            )
            for course in courses
        ]
        return jsonify({"courses": payload})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to list courses", exc)


@courses_bp.post("")
@login_required
def create_course():
    cleaned, errors = validate_course(request.get_json(silent=True), require_all=True)
    if errors:
        return validation_error(errors)

    document = {**cleaned, "user_id": g.user_id, "created_at": utcnow()}
    try:
        result = get_courses_collection().insert_one(document)
        document["_id"] = result.inserted_id
        return jsonify({"course": _with_metrics(document, [], [])}), 201
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to create course", exc)


@courses_bp.patch("/<course_id>")
@login_required
def update_course(course_id: str):
    cleaned, errors = validate_course(request.get_json(silent=True), require_all=False)
    if errors:
        return validation_error(errors)
    if not cleaned:
        return json_error("No changes supplied", 400)

    filters = owned_filter(course_id, g.user_id)
    if filters is None:
        return not_found("Course")

    try:
        collection = get_courses_collection()
        result = collection.update_one(filters, {"$set": cleaned})
        if result.matched_count == 0:
            return not_found("Course")

        course = collection.find_one(filters)
        assignments = list(
            get_assignments_collection().find(
                {"course_id": course["_id"], "user_id": g.user_id},
                projection={"completed": 1},
            )
        )
        grades = list(
            get_grades_collection().find(
                {"course_id": course["_id"], "user_id": g.user_id},
                projection={"percentage": 1},
            )
        )
        return jsonify({"course": _with_metrics(course, assignments, grades)})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to update course", exc)


@courses_bp.delete("/<course_id>")
@login_required
def delete_course(course_id: str):
    try:
        collection = get_courses_collection()
        course = find_owned(collection, course_id, g.user_id, projection={"_id": 1})
        if not course:
            return not_found("Course")

        related = {"course_id": course["_id"], "user_id": g.user_id}
        get_grades_collection().delete_many(related)
        get_assignments_collection().delete_many(related)
        collection.delete_one({"_id": course["_id"], "user_id": g.user_id})
        logger.info("Deleted course %s with its assignments and grades", course["_id"])
        return jsonify({"success": True})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to delete course", exc)


__all__ = ["courses_bp"]
