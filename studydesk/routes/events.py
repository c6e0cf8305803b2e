"""Event and calendar endpoints."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, g, jsonify, request
from pymongo.errors import PyMongoError

from .. import metrics
from ..config import ConfigError
from ..db import (
    find_owned,
    get_assignments_collection,
    get_events_collection,
    serialize_assignment,
    serialize_event,
)
from ..utils.dates import utcnow
from ..utils.responses import (
    handle_config_error,
    handle_db_error,
    json_error,
    not_found,
    validation_error,
)
from ..validation import parse_month_year, validate_event
from .auth import login_required

events_bp = Blueprint("events", __name__, url_prefix="/api")


@events_bp.get("/events")
@login_required
def list_events():
    period, error = parse_month_year(request.args)
    if error:
        return json_error(error, 400)

    filters: Dict[str, Any] = {"user_id": g.user_id}
    if period:
        start, end = metrics.month_bounds(*period)
        filters["date"] = {"$gte": start, "$lte": end}

    try:
        cursor = get_events_collection().find(filters, sort=[("date", 1)])
        return jsonify({"events": [serialize_event(doc) for doc in cursor]})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to list events", exc)


@events_bp.post("/events")
@login_required
def create_event():
    cleaned, errors = validate_event(request.get_json(silent=True))
    if errors:
        return validation_error(errors)

    document = {**cleaned, "user_id": g.user_id, "created_at": utcnow()}
    try:
        result = get_events_collection().insert_one(document)
        document["_id"] = result.inserted_id
        return jsonify({"event": serialize_event(document)}), 201
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to create event", exc)


@events_bp.delete("/events/<event_id>")
@login_required
def delete_event(event_id: str):
    try:
        collection = get_events_collection()
        event = find_owned(collection, event_id, g.user_id, projection={"_id": 1})
        if not event:
            return not_found("Event")
        collection.delete_one({"_id": event["_id"], "user_id": g.user_id})
        return jsonify({"success": True})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to delete event", exc)


@events_bp.get("/calendar")
@login_required
def month_calendar():
    """Events and assignment due dates of one month, grouped per day."""

    period, error = parse_month_year(request.args)
    if error:
        return json_error(error, 400)
    if period is None:
        today = utcnow()
        period = (today.month, today.year)
    month, year = period

    try:
        events = metrics.calendar_bucket(
            get_events_collection().find({"user_id": g.user_id}, sort=[("date", 1)]),
            month,
            year,
        )
        assignments = metrics.calendar_bucket(
            get_assignments_collection().find({"user_id": g.user_id}, sort=[("due_date", 1)]),
            month,
            year,
            key="due_date",
        )
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to load calendar", exc)

    days: Dict[str, Dict[str, Any]] = {}
    for day, items in metrics.group_by_day(events).items():
        days.setdefault(day, {"events": [], "assignments": []})["events"] = [
            serialize_event(item) for item in items
        ]
    for day, items in metrics.group_by_day(assignments, key="due_date").items():
        days.setdefault(day, {"events": [], "assignments": []})["assignments"] = [
            serialize_assignment(item) for item in items
        ]

    return jsonify(
        {
            "month": month,
            "year": year,
            "days": days,
            "events": [serialize_event(item) for item in events],
            "assignments": [serialize_assignment(item) for item in assignments],
        }
    )


__all__ = ["events_bp"]
