"""Assignment endpoints."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from flask import Blueprint, g, jsonify, request
from pymongo.errors import PyMongoError

from ..config import ConfigError
from ..db import (
    find_owned,
    get_assignments_collection,
    get_courses_collection,
    get_grades_collection,
    owned_filter,
    parse_object_id,
    serialize_assignment,
    serialize_course_summary,
    serialize_grade,
)
from ..utils.dates import utcnow
from ..utils.responses import (
    handle_config_error,
    handle_db_error,
    json_error,
    not_found,
    validation_error,
)
from ..validation import (
    clean_string,
    parse_list_filter,
    validate_assignment,
    validate_assignment_update,
)
from .auth import login_required

assignments_bp = Blueprint("assignments", __name__, url_prefix="/api/assignments")


def _expand(assignments: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Serialize assignments with their course summary and grade attached."""

    assignments = list(assignments)
    if not assignments:
        return []

    course_ids = list({doc.get("course_id") for doc in assignments if doc.get("course_id")})
    courses_map = {
        doc["_id"]: doc
        for doc in get_courses_collection().find(
            {"_id": {"$in": course_ids}, "user_id": g.user_id},
            projection={"name": 1, "code": 1, "color": 1},
        )
    }
    grades_map = {
        doc["assignment_id"]: doc
        for doc in get_grades_collection().find(
            {"assignment_id": {"$in": [doc["_id"] for doc in assignments]}, "user_id": g.user_id}
        )
    }

    payload: List[Dict[str, Any]] = []
    for doc in assignments:
        serialized = serialize_assignment(doc)
        course = courses_map.get(doc.get("course_id"))
        grade = grades_map.get(doc["_id"])
        serialized["course"] = serialize_course_summary(course) if course else None
        serialized["grade"] = serialize_grade(grade) if grade else None
        payload.append(serialized)
    return payload


@assignments_bp.get("")
@login_required
def list_assignments():
    filters: Dict[str, Any] = {"user_id": g.user_id}

    status = parse_list_filter("assignments", request.args.get("filter"))
    if status == "pending":
        filters["completed"] = False
    elif status == "completed":
        filters["completed"] = True

    course_raw = clean_string(request.args.get("courseId"))
    if course_raw:
        course_id = parse_object_id(course_raw)
        if course_id is None:
            return jsonify({"assignments": []})
        filters["course_id"] = course_id

    try:
        cursor = get_assignments_collection().find(filters, sort=[("due_date", 1)])
        return jsonify({"assignments": _expand(cursor)})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to list assignments", exc)


@assignments_bp.post("")
@login_required
def create_assignment():
    cleaned, errors = validate_assignment(request.get_json(silent=True))
    if errors:
        return validation_error(errors)

    try:
        course = find_owned(
            get_courses_collection(), cleaned["course_id"], g.user_id, projection={"_id": 1}
        )
        if not course:
            return not_found("Course")

        document = {
            **cleaned,
            "course_id": course["_id"],
            "completed": False,
            "user_id": g.user_id,
            "created_at": utcnow(),
        }
        result = get_assignments_collection().insert_one(document)
        document["_id"] = result.inserted_id
        return jsonify({"assignment": _expand([document])[0]}), 201
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to create assignment", exc)


@assignments_bp.patch("/<assignment_id>")
@login_required
def update_assignment(assignment_id: str):
    cleaned, errors = validate_assignment_update(request.get_json(silent=True))
    if errors:
        return validation_error(errors)
    if not cleaned:
        return json_error("No changes supplied", 400)

    filters = owned_filter(assignment_id, g.user_id)
    if filters is None:
        return not_found("Assignment")

    try:
        collection = get_assignments_collection()
        result = collection.update_one(filters, {"$set": cleaned})
        if result.matched_count == 0:
            return not_found("Assignment")
        return jsonify({"assignment": _expand([collection.find_one(filters)])[0]})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to update assignment", exc)


@assignments_bp.delete("/<assignment_id>")
@login_required
def delete_assignment(assignment_id: str):
    try:
        collection = get_assignments_collection()
        assignment = find_owned(collection, assignment_id, g.user_id, projection={"_id": 1})
        if not assignment:
            return not_found("Assignment")

        get_grades_collection().delete_many(
            {"assignment_id": assignment["_id"], "user_id": g.user_id}
        )
        collection.delete_one({"_id": assignment["_id"], "user_id": g.user_id})
        return jsonify({"success": True})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to delete assignment", exc)


__all__ = ["assignments_bp"]
