"""Datetime helpers.

Documents store naive UTC datetimes, which is what pymongo returns by default.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


__all__ = ["utcnow"]
