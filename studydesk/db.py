"""MongoDB helpers for the application."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection

from .config import get_db_name, get_mongo_uri

_MONGO_CLIENT = None
_MONGO_DB = None

_indexed_collections: set = set()


def _get_client():
    """Create (or reuse) a MongoDB client using the configured URI."""

    global _MONGO_CLIENT

    if _MONGO_CLIENT is None:
        _MONGO_CLIENT = MongoClient(get_mongo_uri(), serverSelectionTimeoutMS=5000)
    return _MONGO_CLIENT


def get_db():
    """Return the application's MongoDB database instance."""

    global _MONGO_DB

    if _MONGO_DB is None:
        _MONGO_DB = _get_client()[get_db_name()]
    return _MONGO_DB


def parse_object_id(value: Any) -> ObjectId | None:
    """Return an ObjectId for ``value`` or None when it is not a valid id."""

    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def owned_filter(entity_id: Any, user_id: ObjectId) -> Dict[str, Any] | None:
    """Filter matching ``entity_id`` only when it belongs to ``user_id``.

    Returns None for malformed ids so callers answer 404 the same way they do
    for missing or foreign documents.
    """

    object_id = parse_object_id(entity_id)
    if object_id is None:
        return None
    return {"_id": object_id, "user_id": user_id}


def find_owned(collection: Collection, entity_id: Any, user_id: ObjectId, projection=None):
    filters = owned_filter(entity_id, user_id)
    if filters is None:
        return None
    return collection.find_one(filters, projection=projection)


def _iso(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat()
    return None


def _str_id(value: Any) -> str | None:
    return str(value) if value is not None else None


# Index definitions per collection: (keys, options).
_INDEXES: Dict[str, list] = {
    "users": [
        ("email", {"unique": True, "name": "unique_email"}),
    ],
    "courses": [
        ([("user_id", ASCENDING), ("created_at", DESCENDING)], {"name": "user_created"}),
    ],
    "assignments": [
        ([("user_id", ASCENDING), ("due_date", ASCENDING)], {"name": "user_due_date"}),
        ([("course_id", ASCENDING)], {"name": "course_id_idx"}),
    ],
    "grades": [
        ([("user_id", ASCENDING), ("created_at", DESCENDING)], {"name": "user_created"}),
        ("assignment_id", {"unique": True, "name": "unique_assignment"}),
    ],
    "goals": [
        ([("user_id", ASCENDING), ("created_at", DESCENDING)], {"name": "user_created"}),
    ],
    "events": [
        ([("user_id", ASCENDING), ("date", ASCENDING)], {"name": "user_date"}),
    ],
}


def _collection(name: str) -> Collection:
    collection = get_db()[name]
    if name not in _indexed_collections:
        for keys, options in _INDEXES.get(name, []):
            collection.create_index(keys, **options)
        _indexed_collections.add(name)
    return collection


def get_users_collection() -> Collection:
    """Return the collection that stores user accounts."""

    return _collection("users")


def get_courses_collection() -> Collection:
    """Return the courses collection and ensure supporting indexes."""

    return _collection("courses")


def get_assignments_collection() -> Collection:
    return _collection("assignments")


def get_grades_collection() -> Collection:
    return _collection("grades")


def get_goals_collection() -> Collection:
    return _collection("goals")


def get_events_collection() -> Collection:
    return _collection("events")


def serialize_user(document):
    """Convert a user document into a JSON-serialisable profile.

    The password hash is never part of the result.
    """

    gpa = document.get("gpa")
    try:
        gpa_value = float(gpa) if gpa is not None else None
    except (TypeError, ValueError):
        gpa_value = None

    return {
        "id": _str_id(document.get("_id")),
        "name": document.get("name"),
        "email": document.get("email"),
        "studentId": document.get("student_id"),
        "major": document.get("major"),
        "year": document.get("year"),
        "gpa": gpa_value,
        "createdAt": _iso(document.get("created_at")),
    }


def serialize_course(document):
    """Serialize a raw Mongo course document to JSON-friendly dict."""

    credits = document.get("credits")
    try:
        credits_value = int(credits) if credits is not None else None
    except (TypeError, ValueError):
        credits_value = None

    return {
        "id": _str_id(document.get("_id")),
        "name": document.get("name"),
        "code": document.get("code"),
        "credits": credits_value,
        "color": document.get("color"),
        "semester": document.get("semester"),
        "year": document.get("year"),
        "instructor": document.get("instructor"),
        "schedule": document.get("schedule"),
        "createdAt": _iso(document.get("created_at")),
    }


def serialize_course_summary(document):
    """Return the short course form embedded in assignments and grades."""

    return {
        "id": _str_id(document.get("_id")),
        "name": document.get("name"),
        "code": document.get("code"),
        "color": document.get("color"),
    }


def serialize_assignment(document):
    return {
        "id": _str_id(document.get("_id")),
        "title": document.get("title"),
        "description": document.get("description"),
        "type": document.get("type"),
        "dueDate": _iso(document.get("due_date")),
        "points": document.get("points"),
        "completed": bool(document.get("completed", False)),
        "priority": document.get("priority"),
        "courseId": _str_id(document.get("course_id")),
        "createdAt": _iso(document.get("created_at")),
    }


def serialize_grade(document):
    return {
        "id": _str_id(document.get("_id")),
        "score": document.get("score"),
        "points": document.get("points"),
        "percentage": document.get("percentage"),
        "letterGrade": document.get("letter_grade"),
        "feedback": document.get("feedback"),
        "assignmentId": _str_id(document.get("assignment_id")),
        "courseId": _str_id(document.get("course_id")),
        "createdAt": _iso(document.get("created_at")),
    }


def serialize_goal(document):
    progress = document.get("progress", 0)
    try:
        progress_value = int(progress)
    except (TypeError, ValueError):
        progress_value = 0

    return {
        "id": _str_id(document.get("_id")),
        "title": document.get("title"),
        "description": document.get("description"),
        "category": document.get("category"),
        "targetDate": _iso(document.get("target_date")),
        "priority": document.get("priority"),
        "completed": bool(document.get("completed", False)),
        "progress": progress_value,
        "createdAt": _iso(document.get("created_at")),
    }


def serialize_event(document):
    return {
        "id": _str_id(document.get("_id")),
        "title": document.get("title"),
        "description": document.get("description"),
        "type": document.get("type"),
        "date": _iso(document.get("date")),
        "time": document.get("time"),
        "duration": document.get("duration"),
        "createdAt": _iso(document.get("created_at")),
    }


__all__ = [
    "get_db",
    "parse_object_id",
    "owned_filter",
    "find_owned",
    "get_users_collection",
    "get_courses_collection",
    "get_assignments_collection",
    "get_grades_collection",
    "get_goals_collection",
    "get_events_collection",
    "serialize_user",
    "serialize_course",
    "serialize_course_summary",
    "serialize_assignment",
    "serialize_grade",
    "serialize_goal",
    "serialize_event",
]
