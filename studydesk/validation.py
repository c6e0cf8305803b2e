"""Request payload validation.

Each ``validate_*`` function takes the decoded JSON body and returns a
``(cleaned, errors)`` pair. ``cleaned`` uses the stored (snake_case) field
names; ``errors`` maps the request field name to a message, in the order the
rules were checked, so the first entry is the first violated rule.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Tuple

ASSIGNMENT_TYPES = ("assignment", "quiz", "exam", "project")
PRIORITIES = ("low", "medium", "high")
GOAL_CATEGORIES = ("academic", "career", "personal")
EVENT_TYPES = ("event", "study", "meeting", "exam", "deadline")
LIST_FILTERS = {
    "assignments": ("all", "pending", "completed"),
    "goals": ("all", "active", "completed"),
}

DEFAULT_COURSE_COLOR = "#3B82F6"
DEFAULT_POINTS = 100
DEFAULT_PRIORITY = "medium"
DEFAULT_EVENT_DURATION = 60

JSON_BODY_REQUIRED = "Request body must be JSON"

Cleaned = Dict[str, Any]
Errors = Dict[str, str]


def clean_string(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _stripped(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def first_error(errors: Errors) -> str:
    return next(iter(errors.values()))


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO 8601 date or datetime into a naive UTC datetime."""

    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is not None:
            # Offsets at the calendar edges overflow when shifted to UTC.
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    except (OverflowError, ValueError):
        return None
    return parsed


def _parse_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _normalize_number(number: float) -> int | float:
    return int(number) if number.is_integer() else number


def _check_number(
    payload: Dict[str, Any],
    errors: Errors,
    field: str,
    message: str,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
    integer: bool = False,
) -> int | float | None:
    number = _parse_number(payload.get(field))
    if (
        number is None
        or (integer and not number.is_integer())
        or (minimum is not None and number < minimum)
        or (maximum is not None and number > maximum)
    ):
        errors[field] = message
        return None
    return int(number) if integer else _normalize_number(number)


def _check_choice(
    payload: Dict[str, Any], errors: Errors, field: str, choices: Iterable[str], label: str
) -> str | None:
    value = payload.get(field)
    value = value.strip().lower() if isinstance(value, str) else None
    if value not in choices:
        errors[field] = f"{label} must be one of: {', '.join(choices)}"
        return None
    return value


def _check_required(
    payload: Dict[str, Any], errors: Errors, field: str, message: str
) -> str | None:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        errors[field] = message
        return None
    return value.strip()


def _check_text(
    payload: Dict[str, Any], errors: Errors, field: str, label: str
) -> str | None:
    """Optional free-text field; absent or blank becomes None."""

    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        errors[field] = f"{label} must be a string"
        return None
    return value.strip() or None


def _check_date(
    payload: Dict[str, Any], errors: Errors, field: str, message: str
) -> datetime | None:
    parsed = parse_datetime(payload.get(field))
    if parsed is None:
        errors[field] = message
    return parsed


def _check_boolean(payload: Dict[str, Any], errors: Errors, field: str, message: str):
    value = payload.get(field)
    if not isinstance(value, bool):
        errors[field] = message
        return None
    return value


def _check_email(payload: Dict[str, Any], errors: Errors, field: str = "email") -> str | None:
    email = payload.get(field)
    email = email.strip().lower() if isinstance(email, str) else ""
    local, _, domain = email.partition("@")
    if not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
        errors[field] = "Invalid email address"
        return None
    return email


def _reject_non_object(payload: Any) -> Errors | None:
    if not isinstance(payload, dict):
        return {"_global": JSON_BODY_REQUIRED}
    return None


def validate_registration(payload: Any) -> Tuple[Cleaned, Errors]:
    rejected = _reject_non_object(payload)
    if rejected:
        return {}, rejected

    errors: Errors = {}
    cleaned: Cleaned = {}

    name = _stripped(payload.get("name"))
    if len(name) < 2:
        errors["name"] = "Name must be at least 2 characters"
    else:
        cleaned["name"] = name

    email = _check_email(payload, errors)
    if email:
        cleaned["email"] = email

    password = payload.get("password")
    if not isinstance(password, str) or len(password) < 6:
        errors["password"] = "Password must be at least 6 characters"
    else:
        cleaned["password"] = password

    return cleaned, errors


def validate_login(payload: Any) -> Tuple[Cleaned, Errors]:
    rejected = _reject_non_object(payload)
    if rejected:
        return {}, rejected

    email = _stripped(payload.get("email")).lower()
    password = payload.get("password")
    if not email or not isinstance(password, str) or not password:
        return {}, {"_global": "Email and password are required"}
    return {"email": email, "password": password}, {}


def validate_profile(payload: Any) -> Tuple[Cleaned, Errors]:
    rejected = _reject_non_object(payload)
    if rejected:
        return {}, rejected

    errors: Errors = {}
    cleaned: Cleaned = {}

    if "name" in payload:
        name = _stripped(payload.get("name"))
        if len(name) < 2:
            errors["name"] = "Name must be at least 2 characters"
        else:
            cleaned["name"] = name

    for field, stored, label in (
        ("studentId", "student_id", "Student ID"),
        ("major", "major", "Major"),
        ("year", "year", "Year"),
    ):
        if field in payload:
            cleaned[stored] = _check_text(payload, errors, field, label)

    if "gpa" in payload:
        if payload.get("gpa") in (None, ""):
            cleaned["gpa"] = None
        else:
            gpa = _check_number(
                payload, errors, "gpa", "GPA must be between 0 and 4.0", minimum=0, maximum=4.0
            )
            if gpa is not None:
                cleaned["gpa"] = float(gpa)

    return cleaned, errors


def validate_course(payload: Any, *, require_all: bool) -> Tuple[Cleaned, Errors]:
    rejected = _reject_non_object(payload)
    if rejected:
        return {}, rejected

    errors: Errors = {}
    cleaned: Cleaned = {}

    if require_all or "name" in payload:
        cleaned["name"] = _check_required(payload, errors, "name", "Course name is required")

    if require_all or "code" in payload:
        cleaned["code"] = _check_required(payload, errors, "code", "Course code is required")

    if require_all or "credits" in payload:
        cleaned["credits"] = _check_number(
            payload,
            errors,
            "credits",
            "Credits must be a whole number between 1 and 6",
            minimum=1,
            maximum=6,
            integer=True,
        )

    if "color" in payload:
        cleaned["color"] = (
            _check_text(payload, errors, "color", "Color") or DEFAULT_COURSE_COLOR
        )
    elif require_all:
        cleaned["color"] = DEFAULT_COURSE_COLOR

    if require_all or "semester" in payload:
        cleaned["semester"] = _check_required(payload, errors, "semester", "Semester is required")

    if require_all or "year" in payload:
        cleaned["year"] = _check_required(payload, errors, "year", "Year is required")

    for field in ("instructor", "schedule"):
        if field in payload:
            cleaned[field] = _check_text(payload, errors, field, field.capitalize())

    return _drop_failed(cleaned, errors, keep_none=("instructor", "schedule")), errors


def validate_assignment(payload: Any) -> Tuple[Cleaned, Errors]:
    """Validate a new assignment; ``course_id`` is returned as a raw string."""

    rejected = _reject_non_object(payload)
    if rejected:
        return {}, rejected

    errors: Errors = {}
    cleaned: Cleaned = {}

    cleaned["title"] = _check_required(payload, errors, "title", "Assignment title is required")
    cleaned["description"] = _check_text(payload, errors, "description", "Description")
    cleaned["type"] = _check_choice(payload, errors, "type", ASSIGNMENT_TYPES, "Type")
    cleaned["due_date"] = _check_date(payload, errors, "dueDate", "Due date must be a valid date")

    if payload.get("points") is None:
        cleaned["points"] = DEFAULT_POINTS
    else:
        cleaned["points"] = _check_number(
            payload, errors, "points", "Points must be at least 1", minimum=1
        )

    if payload.get("priority") is None:
        cleaned["priority"] = DEFAULT_PRIORITY
    else:
        cleaned["priority"] = _check_choice(payload, errors, "priority", PRIORITIES, "Priority")

    cleaned["course_id"] = _check_required(payload, errors, "courseId", "Course ID is required")

    return _drop_failed(cleaned, errors, keep_none=("description",)), errors


def validate_assignment_update(payload: Any) -> Tuple[Cleaned, Errors]:
    rejected = _reject_non_object(payload)
    if rejected:
        return {}, rejected

    errors: Errors = {}
    cleaned: Cleaned = {}

    if "completed" in payload:
        cleaned["completed"] = _check_boolean(
            payload, errors, "completed", "Completed must be true or false"
        )
    if "title" in payload:
        cleaned["title"] = _check_required(
            payload, errors, "title", "Assignment title is required"
        )
    if "description" in payload:
        cleaned["description"] = _check_text(payload, errors, "description", "Description")
    if "dueDate" in payload:
        cleaned["due_date"] = _check_date(
            payload, errors, "dueDate", "Due date must be a valid date"
        )
    if "points" in payload:
        cleaned["points"] = _check_number(
            payload, errors, "points", "Points must be at least 1", minimum=1
        )
    if "priority" in payload:
        cleaned["priority"] = _check_choice(payload, errors, "priority", PRIORITIES, "Priority")

    return _drop_failed(cleaned, errors, keep_none=("description",)), errors


def validate_grade(payload: Any) -> Tuple[Cleaned, Errors]:
    """Validate a new grade.

    ``percentage`` is never read from the payload; the caller derives it.
    """

    rejected = _reject_non_object(payload)
    if rejected:
        return {}, rejected

    errors: Errors = {}
    cleaned: Cleaned = {}

    cleaned["score"] = _check_number(
        payload, errors, "score", "Score must be a number of at least 0", minimum=0
    )

    if payload.get("points") is None:
        cleaned["points"] = DEFAULT_POINTS
    else:
        cleaned["points"] = _check_number(
            payload, errors, "points", "Points must be at least 1", minimum=1
        )

    letter = _check_text(payload, errors, "letterGrade", "Letter grade")
    cleaned["letter_grade"] = letter.upper() if letter else None
    cleaned["feedback"] = _check_text(payload, errors, "feedback", "Feedback")
    cleaned["assignment_id"] = _check_required(
        payload, errors, "assignmentId", "Assignment ID is required"
    )
    cleaned["course_id"] = _check_required(payload, errors, "courseId", "Course ID is required")

    return _drop_failed(cleaned, errors, keep_none=("letter_grade", "feedback")), errors


def validate_goal(payload: Any, *, require_all: bool) -> Tuple[Cleaned, Errors]:
    rejected = _reject_non_object(payload)
    if rejected:
        return {}, rejected

    errors: Errors = {}
    cleaned: Cleaned = {}

    if not require_all and "completed" in payload:
        cleaned["completed"] = _check_boolean(
            payload, errors, "completed", "Completed must be true or false"
        )

    if require_all or "title" in payload:
        cleaned["title"] = _check_required(payload, errors, "title", "Goal title is required")

    if require_all or "description" in payload:
        cleaned["description"] = _check_text(payload, errors, "description", "Description")

    if require_all:
        cleaned["category"] = _check_choice(
            payload, errors, "category", GOAL_CATEGORIES, "Category"
        )

    if require_all or "targetDate" in payload:
        if clean_string(payload.get("targetDate")):
            cleaned["target_date"] = _check_date(
                payload, errors, "targetDate", "Target date must be a valid date"
            )
        else:
            cleaned["target_date"] = None

    if "priority" in payload and payload.get("priority") is not None:
        cleaned["priority"] = _check_choice(payload, errors, "priority", PRIORITIES, "Priority")
    elif require_all:
        cleaned["priority"] = DEFAULT_PRIORITY

    if "progress" in payload and payload.get("progress") is not None:
        cleaned["progress"] = _check_number(
            payload,
            errors,
            "progress",
            "Progress must be a whole number between 0 and 100",
            minimum=0,
            maximum=100,
            integer=True,
        )
    elif require_all:
        cleaned["progress"] = 0

    return _drop_failed(cleaned, errors, keep_none=("description", "target_date")), errors


def validate_event(payload: Any) -> Tuple[Cleaned, Errors]:
    rejected = _reject_non_object(payload)
    if rejected:
        return {}, rejected

    errors: Errors = {}
    cleaned: Cleaned = {}

    cleaned["title"] = _check_required(payload, errors, "title", "Event title is required")
    cleaned["description"] = _check_text(payload, errors, "description", "Description")
    cleaned["type"] = _check_choice(payload, errors, "type", EVENT_TYPES, "Type")
    cleaned["date"] = _check_date(payload, errors, "date", "Date must be a valid date")
    cleaned["time"] = _check_text(payload, errors, "time", "Time")

    if payload.get("duration") is None:
        cleaned["duration"] = DEFAULT_EVENT_DURATION
    else:
        cleaned["duration"] = _check_number(
            payload,
            errors,
            "duration",
            "Duration must be between 15 and 480 minutes",
            minimum=15,
            maximum=480,
            integer=True,
        )

    return _drop_failed(cleaned, errors, keep_none=("description", "time")), errors


def parse_month_year(args) -> Tuple[Tuple[int, int] | None, str | None]:
    """Read ``month``/``year`` query arguments.

    Returns ``(None, None)`` when either is absent, ``((month, year), None)``
    when both are valid and ``(None, message)`` otherwise.
    """

    month_raw = clean_string(args.get("month"))
    year_raw = clean_string(args.get("year"))
    if not month_raw or not year_raw:
        return None, None

    try:
        month = int(month_raw)
        year = int(year_raw)
    except ValueError:
        return None, "month and year must be integers"

    if month < 1 or month > 12:
        return None, "month must be between 1 and 12"
    if year < 1 or year > 9999:
        return None, "year is out of range"
    return (month, year), None


def parse_list_filter(resource: str, raw: Any) -> str:
    value = clean_string(raw).lower()
    return value if value in LIST_FILTERS[resource] else "all"


def _drop_failed(cleaned: Cleaned, errors: Errors, keep_none: Iterable[str] = ()) -> Cleaned:
    """Drop None values produced by failed checks, keeping explicit clears."""

    keep = set(keep_none)
    return {key: value for key, value in cleaned.items() if value is not None or key in keep}


__all__ = [
    "ASSIGNMENT_TYPES",
    "PRIORITIES",
    "GOAL_CATEGORIES",
    "EVENT_TYPES",
    "JSON_BODY_REQUIRED",
    "clean_string",
    "first_error",
    "parse_datetime",
    "parse_month_year",
    "parse_list_filter",
    "validate_registration",
    "validate_login",
    "validate_profile",
    "validate_course",
    "validate_assignment",
    "validate_assignment_update",
    "validate_grade",
    "validate_goal",
    "validate_event",
]
