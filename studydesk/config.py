"""Application configuration helpers."""

import os

from dotenv import load_dotenv

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_DOTENV_PATH = os.path.join(_BASE_DIR, ".env")

if os.path.exists(_DOTENV_PATH):
    load_dotenv(_DOTENV_PATH)
else:
    load_dotenv()


class ConfigError(RuntimeError):
    """Raised when configuration values are missing or invalid."""


def _int_setting(name, default):
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer.") from None
    if value <= 0:
        raise ConfigError(f"{name} must be a positive integer.")
    return value


SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "studydesk_session")
SESSION_LIFETIME_DAYS = _int_setting("SESSION_LIFETIME_DAYS", 30)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_MONGO_URI_CACHE = None
_DB_NAME_CACHE = None


def get_mongo_uri():
    """Return the MongoDB connection string from the environment."""

    global _MONGO_URI_CACHE

    if _MONGO_URI_CACHE:
        return _MONGO_URI_CACHE

    uri = os.getenv("MONGODB_URI")
    if not uri:
        raise ConfigError("MONGODB_URI is not set. Define it in .env.")

    _MONGO_URI_CACHE = uri
    return uri


def get_db_name():
    """Return the database name from MONGODB_DB or the URI path."""

    global _DB_NAME_CACHE

    if _DB_NAME_CACHE:
        return _DB_NAME_CACHE

    db_name = os.getenv("MONGODB_DB")
    if db_name:
        _DB_NAME_CACHE = db_name
        return db_name

    uri = get_mongo_uri()
    main = uri.split("?", 1)[0].rstrip("/")
    after_scheme = main.split("://", 1)[1] if "://" in main else main

    candidate = after_scheme.split("/", 1)[1] if "/" in after_scheme else ""
    if not candidate:
        raise ConfigError(
            "Database name not found. Provide it via MONGODB_URI or MONGODB_DB."
        )

    _DB_NAME_CACHE = candidate
    return candidate


def clear_cache():
    """Forget cached connection settings so the environment is re-read."""

    global _MONGO_URI_CACHE, _DB_NAME_CACHE
    _MONGO_URI_CACHE = None
    _DB_NAME_CACHE = None


__all__ = [
    "ConfigError",
    "SECRET_KEY",
    "SESSION_COOKIE_NAME",
    "SESSION_LIFETIME_DAYS",
    "LOG_LEVEL",
    "get_mongo_uri",
    "get_db_name",
    "clear_cache",
]
