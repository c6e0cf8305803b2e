"""Seed helper that loads a demo account and its data into MongoDB."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict

from pymongo import MongoClient
from pymongo.errors import PyMongoError
from werkzeug.security import generate_password_hash

from studydesk import metrics
from studydesk.config import ConfigError, get_db_name, get_mongo_uri
from studydesk.utils.dates import utcnow

SEED_PATH = Path(__file__).resolve().parent / "seed.json"


def read_seed_file() -> Dict[str, Any]:
    with SEED_PATH.open("r", encoding="utf-8") as seed_file:
        data = json.load(seed_file)
    if not isinstance(data, dict) or "user" not in data:
        raise ValueError("Seed file must contain an object with a 'user' entry")
    return data


def _offset(now: datetime, days: Any) -> datetime | None:
    if days is None:
        return None
    return now + timedelta(days=days)


def seed(database, data: Dict[str, Any], now: datetime) -> Dict[str, int]:
    """Replace the demo user's data and return per-collection counts."""

    user_data = dict(data["user"])
    email = user_data["email"].lower()

    existing = database["users"].find_one({"email": email}, projection={"_id": 1})
    if existing:
        for name in ("courses", "assignments", "grades", "goals", "events"):
            database[name].delete_many({"user_id": existing["_id"]})
        database["users"].delete_one({"_id": existing["_id"]})

    user_data["email"] = email
    user_data["password"] = generate_password_hash(user_data["password"])
    user_data["created_at"] = now
    user_id = database["users"].insert_one(user_data).inserted_id

    counts = {"courses": 0, "assignments": 0, "grades": 0, "goals": 0, "events": 0}

    for course_data in data.get("courses", []):
        course = {k: v for k, v in course_data.items() if k != "assignments"}
        course.update(user_id=user_id, created_at=now)
        course_id = database["courses"].insert_one(course).inserted_id
        counts["courses"] += 1

        for assignment_data in course_data.get("assignments", []):
            grade_data = assignment_data.get("grade")
            assignment = {
                "title": assignment_data["title"],
                "description": assignment_data.get("description"),
                "type": assignment_data["type"],
                "due_date": _offset(now, assignment_data.get("due_in_days", 0)),
                "points": assignment_data.get("points", 100),
                "priority": assignment_data.get("priority", "medium"),
                "completed": bool(assignment_data.get("completed", False)),
                "course_id": course_id,
                "user_id": user_id,
                "created_at": now,
            }
            assignment_id = database["assignments"].insert_one(assignment).inserted_id
            counts["assignments"] += 1

            if grade_data:
                points = grade_data.get("points", assignment["points"])
                percentage = metrics.percentage(grade_data["score"], points)
                database["grades"].insert_one({
                    "score": grade_data["score"],
                    "points": points,
                    "percentage": percentage,
                    "letter_grade": metrics.letter_grade(percentage),
                    "feedback": grade_data.get("feedback"),
                    "assignment_id": assignment_id,
                    "course_id": course_id,
                    "user_id": user_id,
                    "created_at": now,
                })
                counts["grades"] += 1

    for goal_data in data.get("goals", []):
        completed = bool(goal_data.get("completed", False))
        database["goals"].insert_one({
            "title": goal_data["title"],
            "description": goal_data.get("description"),
            "category": goal_data["category"],
            "target_date": _offset(now, goal_data.get("target_in_days")),
            "priority": goal_data.get("priority", "medium"),
            "progress": 100 if completed else goal_data.get("progress", 0),
            "completed": completed,
            "user_id": user_id,
            "created_at": now,
        })
        counts["goals"] += 1

    for event_data in data.get("events", []):
        database["events"].insert_one({
            "title": event_data["title"],
            "description": event_data.get("description"),
            "type": event_data["type"],
            "date": _offset(now, event_data.get("in_days", 0)),
            "time": event_data.get("time"),
            "duration": event_data.get("duration", 60),
            "user_id": user_id,
            "created_at": now,
        })
        counts["events"] += 1

    return counts


def main() -> None:
    try:
        uri = get_mongo_uri()
        db_name = get_db_name()
    except ConfigError as exc:  # pragma: no cover - simple CLI utility
        print(f"Configuration error: {exc}")
        raise SystemExit(1)

    client = MongoClient(uri, serverSelectionTimeoutMS=5000)
    database = client[db_name]

    try:
        counts = seed(database, read_seed_file(), utcnow())
        for collection_name, count in counts.items():
            print(f"Loaded {count} document(s) into '{collection_name}' collection")
        print(f"Seeding complete for database '{db_name}'.")
    except PyMongoError as exc:  # pragma: no cover - requires Mongo connection
        print(f"MongoDB error: {exc}")
        raise SystemExit(1)
    finally:
        client.close()


if __name__ == "__main__":
    main()
