"""Goal endpoints and the goal completion policy."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, g, jsonify, request
from pymongo.errors import PyMongoError

from .. import metrics
from ..config import ConfigError
from ..db import find_owned, get_goals_collection, owned_filter, serialize_goal
from ..utils.dates import utcnow
from ..utils.responses import (
    handle_config_error,
    handle_db_error,
    json_error,
    not_found,
    validation_error,
)
from ..validation import parse_list_filter, validate_goal
from .auth import login_required

goals_bp = Blueprint("goals", __name__, url_prefix="/api/goals")


def complete_goal(goal: Dict[str, Any]) -> Dict[str, Any]:
    """Mark a goal completed and set its progress to 100."""

    return {**goal, "completed": True, "progress": 100}


def reopen_goal(goal: Dict[str, Any]) -> Dict[str, Any]:
    return {**goal, "completed": False}


def set_goal_progress(goal: Dict[str, Any], progress: int) -> Dict[str, Any]:
    return {**goal, "progress": progress}


def apply_goal_changes(goal: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``goal`` with validated ``changes`` applied.

    Completion goes through :func:`complete_goal` last, so a request that
    both completes the goal and sends a progress value still ends at 100.
    """

    changes = dict(changes)
    completed = changes.pop("completed", None)
    progress = changes.pop("progress", None)

    updated = {**goal, **changes}
    if progress is not None:
        updated = set_goal_progress(updated, progress)
    if completed is True:
        updated = complete_goal(updated)
    elif completed is False:
        updated = reopen_goal(updated)
    return updated


@goals_bp.get("")
@login_required
def list_goals():
    filters: Dict[str, Any] = {"user_id": g.user_id}

    status = parse_list_filter("goals", request.args.get("filter"))
    if status == "active":
        filters["completed"] = False
    elif status == "completed":
        filters["completed"] = True

    try:
        goals = list(get_goals_collection().find(filters, sort=[("created_at", -1)]))
        return jsonify(
            {
                "goals": [serialize_goal(goal) for goal in goals],
                "summary": metrics.goal_aggregate(goals).to_dict(),
            }
        )
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to list goals", exc)


@goals_bp.post("")
@login_required
def create_goal():
    cleaned, errors = validate_goal(request.get_json(silent=True), require_all=True)
    if errors:
        return validation_error(errors)

    document = {
        **cleaned,
        "completed": False,
        "user_id": g.user_id,
        "created_at": utcnow(),
    }
    try:
        result = get_goals_collection().insert_one(document)
        document["_id"] = result.inserted_id
        return jsonify({"goal": serialize_goal(document)}), 201
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to create goal", exc)


@goals_bp.patch("/<goal_id>")
@login_required
def update_goal(goal_id: str):
    cleaned, errors = validate_goal(request.get_json(silent=True), require_all=False)
    if errors:
        return validation_error(errors)
    if not cleaned:
        return json_error("No changes supplied", 400)

    filters = owned_filter(goal_id, g.user_id)
    if filters is None:
        return not_found("Goal")

    # The update depends only on the request, never on the stored goal.
    changes = apply_goal_changes({}, cleaned)

    try:
        collection = get_goals_collection()
        result = collection.update_one(filters, {"$set": changes})
        if result.matched_count == 0:
            return not_found("Goal")
        return jsonify({"goal": serialize_goal(collection.find_one(filters))})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to update goal", exc)


@goals_bp.delete("/<goal_id>")
@login_required
def delete_goal(goal_id: str):
    try:
        collection = get_goals_collection()
        goal = find_owned(collection, goal_id, g.user_id, projection={"_id": 1})
        if not goal:
            return not_found("Goal")
        collection.delete_one({"_id": goal["_id"], "user_id": g.user_id})
        return jsonify({"success": True})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to delete goal", exc)


__all__ = [
    "goals_bp",
    "complete_goal",
    "reopen_goal",
    "set_goal_progress",
    "apply_goal_changes",
]
