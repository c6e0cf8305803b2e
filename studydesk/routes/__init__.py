"""Application route blueprints and helpers."""

from .assignments import assignments_bp
from .auth import auth_bp, login_required
from .courses import courses_bp
from .dashboard import dashboard_bp
from .events import events_bp
from .goals import goals_bp
from .grades import grades_bp
from .reports import reports_bp

BLUEPRINTS = (
    auth_bp,
    courses_bp,
    assignments_bp,
    grades_bp,
    goals_bp,
    events_bp,
    dashboard_bp,
    reports_bp,
)

__all__ = [
    "BLUEPRINTS",
    "auth_bp",
    "courses_bp",
    "assignments_bp",
    "grades_bp",
    "goals_bp",
    "events_bp",
    "dashboard_bp",
    "reports_bp",
    "login_required",
]
