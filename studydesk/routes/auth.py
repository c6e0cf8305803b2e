"""Account endpoints and the session guard used by every other blueprint."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Callable, TypeVar, cast

from flask import Blueprint, g, jsonify, request, session
from pymongo.errors import DuplicateKeyError, PyMongoError
from werkzeug.security import check_password_hash, generate_password_hash

from ..config import ConfigError
from ..db import get_users_collection, parse_object_id, serialize_user
from ..utils.dates import utcnow
from ..utils.responses import (
    UNAUTHORIZED,
    handle_config_error,
    handle_db_error,
    json_error,
    validation_error,
)
from ..validation import validate_login, validate_profile, validate_registration

auth_bp = Blueprint("auth", __name__, url_prefix="/api")

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "User with this email already exists"

_F = TypeVar("_F", bound=Callable[..., Any])


def login_required(func: _F) -> _F:
    """Reject requests without a signed-in user; exposes ``g.user_id``."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        user_id = parse_object_id(session.get("user_id"))
        if user_id is None:
            return jsonify({"error": UNAUTHORIZED}), 401
        g.user_id = user_id
        return func(*args, **kwargs)

    return cast(_F, wrapper)


@auth_bp.post("/register")
def register():
    cleaned, errors = validate_registration(request.get_json(silent=True))
    if errors:
        return validation_error(errors)

    try:
        collection = get_users_collection()
        if collection.find_one({"email": cleaned["email"]}, projection={"_id": 1}):
            return json_error(DUPLICATE_EMAIL, 400)

        document = {
            "name": cleaned["name"],
            "email": cleaned["email"],
            "password": generate_password_hash(cleaned["password"]),
            "created_at": utcnow(),
        }
        result = collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info("Registered user %s", cleaned["email"])
        return jsonify({"user": serialize_user(document)}), 201
    except ConfigError as exc:
        return handle_config_error(exc)
    except DuplicateKeyError:
        return json_error(DUPLICATE_EMAIL, 400)
    except PyMongoError as exc:
        return handle_db_error("Failed to register user", exc)


@auth_bp.post("/login")
def login():
    cleaned, errors = validate_login(request.get_json(silent=True))
    if errors:
        return validation_error(errors)

    try:
        user = get_users_collection().find_one({"email": cleaned["email"]})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to sign in", exc)

    if not user or not check_password_hash(user.get("password", ""), cleaned["password"]):
        session.pop("user_id", None)
        logger.info("Rejected sign-in for %s", cleaned["email"])
        return json_error("Invalid email or password", 401)

    session.clear()
    session["user_id"] = str(user["_id"])
    session.permanent = True
    return jsonify({"user": serialize_user(user)})


@auth_bp.post("/logout")
def logout():
    session.clear()
    return jsonify({"ok": True})


@auth_bp.get("/me")
@login_required
def me():
    try:
        user = get_users_collection().find_one({"_id": g.user_id})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to load profile", exc)

    if not user:
        session.clear()
        return json_error(UNAUTHORIZED, 401)
    return jsonify({"user": serialize_user(user)})


@auth_bp.patch("/profile")
@login_required
def update_profile():
    cleaned, errors = validate_profile(request.get_json(silent=True))
    if errors:
        return validation_error(errors)
    if not cleaned:
        return json_error("No changes supplied", 400)

    try:
        collection = get_users_collection()
        result = collection.update_one({"_id": g.user_id}, {"$set": cleaned})
        if result.matched_count == 0:
            session.clear()
            return json_error(UNAUTHORIZED, 401)
        user = collection.find_one({"_id": g.user_id})
        return jsonify({"user": serialize_user(user)})
    except ConfigError as exc:
        return handle_config_error(exc)
    except PyMongoError as exc:
        return handle_db_error("Failed to update profile", exc)


__all__ = ["auth_bp", "login_required", "DUPLICATE_EMAIL"]
