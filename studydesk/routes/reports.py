"""Reports and exports."""

from __future__ import annotations

import csv
import io
import logging
from typing import Any, Dict, List

from flask import Blueprint, Response, g, jsonify
from pymongo.errors import PyMongoError

from .. import metrics
from ..config import ConfigError
from ..db import get_assignments_collection, get_courses_collection, get_grades_collection
from ..utils.responses import handle_config_error, handle_db_error
from .auth import login_required

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

logger = logging.getLogger(__name__)


def _format_numeric(value: float | int | None) -> float | int | None:
    if value is None:
        return None
    number = float(value)
    if abs(number - round(number)) < 1e-9:
        return int(round(number))
    return round(number, 2)


@reports_bp.get("/gpa")
@login_required
def gpa_report():
    """Credit-weighted GPA on the 4.0 scale from each course's average."""

    try:
        courses = list(
            get_courses_collection().find(
                {"user_id": g.user_id},
                projection={"name": 1, "code": 1, "credits": 1},
                sort=[("code", 1)],
            )
        )
        grades = list(
            get_grades_collection().find(
                {"user_id": g.user_id}, projection={"course_id": 1, "percentage": 1}
            )
        )
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to generate GPA report", exc)

    by_course: Dict[Any, List[Dict[str, Any]]] = {}
    for grade in grades:
        by_course.setdefault(grade.get("course_id"), []).append(grade)

    details: List[Dict[str, Any]] = []
    rows = []
    for course in courses:
        average = metrics.course_average(by_course.get(course["_id"], []))
        letter = metrics.letter_grade(average) if average is not None else None
        credits = float(course.get("credits") or 0)
        rows.append((letter, credits))
        details.append(
            {
                "courseId": str(course["_id"]),
                "name": course.get("name"),
                "code": course.get("code"),
                "credits": _format_numeric(credits),
                "averageGrade": average,
                "letterGrade": letter,
                "gradePoints": metrics.grade_points(letter),
            }
        )

    gpa, graded_credits = metrics.weighted_gpa(rows)
    return jsonify(
        {
            "gpa": gpa,
            "scale": 4.0,
            "gradedCredits": _format_numeric(graded_credits),
            "courses": details,
        }
    )


@reports_bp.get("/grades.csv")
@login_required
def export_grades_csv():
    try:
        grades = list(
            get_grades_collection().find({"user_id": g.user_id}, sort=[("created_at", 1)])
        )
        courses = {
            doc["_id"]: doc
            for doc in get_courses_collection().find(
                {"user_id": g.user_id}, projection={"code": 1, "name": 1}
            )
        }
        assignments = {
            doc["_id"]: doc
            for doc in get_assignments_collection().find(
                {"user_id": g.user_id}, projection={"title": 1, "type": 1}
            )
        }
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to export grades", exc)

    output = io.StringIO()
    fieldnames = [
        "course_code",
        "course_name",
        "assignment",
        "type",
        "score",
        "points",
        "percentage",
        "letter_grade",
        "feedback",
    ]
    writer = csv.DictWriter(output, fieldnames=fieldnames)
    writer.writeheader()

    for grade in grades:
        course = courses.get(grade.get("course_id"), {})
        assignment = assignments.get(grade.get("assignment_id"), {})
        writer.writerow({
            "course_code": course.get("code", ""),
            "course_name": course.get("name", ""),
            "assignment": assignment.get("title", ""),
            "type": assignment.get("type", ""),
            "score": _format_numeric(grade.get("score")),
            "points": _format_numeric(grade.get("points")),
            "percentage": _format_numeric(grade.get("percentage")),
            "letter_grade": grade.get("letter_grade") or "",
            "feedback": grade.get("feedback") or "",
        })

    logger.info("Exported %d grade(s)", len(grades))
    response = Response(output.getvalue(), mimetype="text/csv")
    response.headers["Content-Disposition"] = "attachment; filename=grades.csv"
    return response


__all__ = ["reports_bp"]
