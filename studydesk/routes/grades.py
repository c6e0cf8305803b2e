"""Grade endpoints.

A grade's percentage is always computed here from score and points; callers
cannot supply it.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from flask import Blueprint, g, jsonify, request
from pymongo.errors import DuplicateKeyError, PyMongoError

from .. import metrics
from ..config import ConfigError
from ..db import (
    find_owned,
    get_assignments_collection,
    get_courses_collection,
    get_grades_collection,
    parse_object_id,
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
from ..validation import clean_string, validate_grade
from .auth import login_required

grades_bp = Blueprint("grades", __name__, url_prefix="/api/grades")

ALREADY_GRADED = "Assignment already has a grade"


def _expand(grades: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    grades = list(grades)
    if not grades:
        return []

    course_ids = list({doc.get("course_id") for doc in grades})
    assignment_ids = list({doc.get("assignment_id") for doc in grades})
    courses_map = {
        doc["_id"]: doc
        for doc in get_courses_collection().find(
            {"_id": {"$in": course_ids}, "user_id": g.user_id},
            projection={"name": 1, "code": 1, "color": 1},
        )
    }
    assignments_map = {
        doc["_id"]: doc
        for doc in get_assignments_collection().find(
            {"_id": {"$in": assignment_ids}, "user_id": g.user_id},
            projection={"title": 1, "type": 1},
        )
    }

    payload: List[Dict[str, Any]] = []
    for doc in grades:
        serialized = serialize_grade(doc)
        course = courses_map.get(doc.get("course_id"))
        assignment = assignments_map.get(doc.get("assignment_id"))
        serialized["course"] = serialize_course_summary(course) if course else None
        serialized["assignment"] = (
            {
                "id": str(assignment["_id"]),
                "title": assignment.get("title"),
                "type": assignment.get("type"),
            }
            if assignment
            else None
        )
        payload.append(serialized)
    return payload


@grades_bp.get("")
@login_required
def list_grades():
    filters: Dict[str, Any] = {"user_id": g.user_id}

    course_raw = clean_string(request.args.get("courseId"))
    if course_raw:
        course_id = parse_object_id(course_raw)
        if course_id is None:
            return jsonify({"grades": [], "summary": metrics.grade_summary([]).to_dict()})
        filters["course_id"] = course_id

    try:
        grades = list(get_grades_collection().find(filters, sort=[("created_at", -1)]))
        return jsonify(
            {
                "grades": _expand(grades),
                "summary": metrics.grade_summary(grades).to_dict(),
            }
        )
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to list grades", exc)


@grades_bp.post("")
@login_required
def create_grade():
    cleaned, errors = validate_grade(request.get_json(silent=True))
    if errors:
        return validation_error(errors)

    assignment_id = parse_object_id(cleaned["assignment_id"])
    course_id = parse_object_id(cleaned["course_id"])
    if assignment_id is None or course_id is None:
        return not_found("Assignment")

    try:
        assignment = get_assignments_collection().find_one(
            {"_id": assignment_id, "course_id": course_id, "user_id": g.user_id},
            projection={"_id": 1},
        )
        if not assignment:
            return not_found("Assignment")

        collection = get_grades_collection()
        if collection.find_one({"assignment_id": assignment_id}, projection={"_id": 1}):
            return json_error(ALREADY_GRADED, 400)

        percentage = metrics.percentage(cleaned["score"], cleaned["points"])
        document = {
            **cleaned,
            "assignment_id": assignment_id,
            "course_id": course_id,
            "percentage": percentage,
            "letter_grade": cleaned.get("letter_grade") or metrics.letter_grade(percentage),
            "user_id": g.user_id,
            "created_at": utcnow(),
        }
        result = collection.insert_one(document)
        document["_id"] = result.inserted_id
        return jsonify({"grade": _expand([document])[0]}), 201
    except ConfigError as exc:
        return handle_config_error(exc)
    except DuplicateKeyError:
        return json_error(ALREADY_GRADED, 400)
    except PyMongoError as exc:
        return handle_db_error("Failed to create grade", exc)


@grades_bp.delete("/<grade_id>")
@login_required
def delete_grade(grade_id: str):
    try:
        collection = get_grades_collection()
        grade = find_owned(collection, grade_id, g.user_id, projection={"_id": 1})
        if not grade:
            return not_found("Grade")
        collection.delete_one({"_id": grade["_id"], "user_id": g.user_id})
        return jsonify({"success": True})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to delete grade", exc)


__all__ = ["grades_bp", "ALREADY_GRADED"]
