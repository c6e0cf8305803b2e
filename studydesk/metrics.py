"""Derived academic statistics.

Every function here is pure: it takes documents already fetched for a single
user (plain dicts with the stored snake_case keys) and returns numbers ready
for a response. Rounding happens only in the aggregates, never in
:func:`percentage`.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

UPCOMING_WINDOW = timedelta(days=7)

LETTER_GRADE_SCALE: Tuple[Tuple[float, str], ...] = (
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
)

# 4.0 scale.
GRADE_POINTS: Dict[str, float] = {
    "A": 4.0,
    "B": 3.0,
    "C": 2.0,
    "D": 1.0,
    "F": 0.0,
}


@dataclass
class DashboardStats:
    total_courses: int
    total_assignments: int
    completed_assignments: int
    average_grade: float
    upcoming_deadlines: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCourses": self.total_courses,
            "totalAssignments": self.total_assignments,
            "completedAssignments": self.completed_assignments,
            "averageGrade": self.average_grade,
            "upcomingDeadlines": self.upcoming_deadlines,
        }


@dataclass
class GoalSummary:
    total: int
    active: int
    completed: int
    high_priority_active: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "active": self.active,
            "completed": self.completed,
            "highPriorityActive": self.high_priority_active,
        }


@dataclass
class GradeSummary:
    average: float
    highest: float
    lowest: float
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average": self.average,
            "highest": self.highest,
            "lowest": self.lowest,
            "total": self.total,
        }


def percentage(score: float, points: float) -> float:
    """Return ``score`` as a percentage of ``points``.

    Extra credit is allowed, so the result may exceed 100.
    """

    return (score / points) * 100


def letter_grade(value: float) -> str:
    for threshold, letter in LETTER_GRADE_SCALE:
        if value >= threshold:
            return letter
    return "F"


def grade_points(letter: str | None) -> float | None:
    if not letter:
        return None
    return GRADE_POINTS.get(letter.strip().upper()[:1])


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def course_progress(assignments: Iterable[Mapping[str, Any]]) -> float:
    """Percentage of a course's assignments marked completed (0 if none)."""

    items = list(assignments)
    if not items:
        return 0.0
    completed = sum(1 for item in items if item.get("completed"))
    return completed / len(items) * 100


def is_upcoming(assignment: Mapping[str, Any], now: datetime) -> bool:
    if assignment.get("completed"):
        return False
    due = assignment.get("due_date")
    if not isinstance(due, datetime):
        return False
    return now <= due <= now + UPCOMING_WINDOW


def dashboard_stats(
    courses: Sequence[Mapping[str, Any]],
    assignments: Sequence[Mapping[str, Any]],
    grades: Sequence[Mapping[str, Any]],
    now: datetime,
) -> DashboardStats:
    percentages = [float(grade.get("percentage", 0)) for grade in grades]
    return DashboardStats(
        total_courses=len(courses),
        total_assignments=len(assignments),
        completed_assignments=sum(1 for item in assignments if item.get("completed")),
        average_grade=round(_mean(percentages), 1),
        upcoming_deadlines=sum(1 for item in assignments if is_upcoming(item, now)),
    )


def month_bounds(month: int, year: int) -> Tuple[datetime, datetime]:
    """Return the first and last instant of a 1-indexed month."""

    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime(year, month, last_day, 23, 59, 59, 999999)
    return start, end


def calendar_bucket(
    items: Iterable[Mapping[str, Any]], month: int, year: int, key: str = "date"
) -> List[Mapping[str, Any]]:
    start, end = month_bounds(month, year)
    return [
        item
        for item in items
        if isinstance(item.get(key), datetime) and start <= item[key] <= end
    ]


def group_by_day(
    items: Iterable[Mapping[str, Any]], key: str = "date"
) -> Dict[str, List[Mapping[str, Any]]]:
    days: Dict[str, List[Mapping[str, Any]]] = {}
    for item in items:
        value = item.get(key)
        if isinstance(value, datetime):
            days.setdefault(value.date().isoformat(), []).append(item)
    return days


def goal_aggregate(goals: Iterable[Mapping[str, Any]]) -> GoalSummary:
    total = active = high_priority_active = 0
    for goal in goals:
        total += 1
        if goal.get("completed"):
            continue
        active += 1
        if goal.get("priority") == "high":
            high_priority_active += 1
    return GoalSummary(
        total=total,
        active=active,
        completed=total - active,
        high_priority_active=high_priority_active,
    )


def grade_summary(grades: Sequence[Mapping[str, Any]]) -> GradeSummary:
    percentages = [float(grade.get("percentage", 0)) for grade in grades]
    if not percentages:
        return GradeSummary(average=0.0, highest=0.0, lowest=0.0, total=0)
    return GradeSummary(
        average=round(_mean(percentages), 1),
        highest=max(percentages),
        lowest=min(percentages),
        total=len(percentages),
    )


def course_average(grades: Sequence[Mapping[str, Any]]) -> float | None:
    """Mean percentage of a course's grades, or None when ungraded."""

    if not grades:
        return None
    return round(_mean([float(grade.get("percentage", 0)) for grade in grades]), 1)


def weighted_gpa(rows: Iterable[Tuple[str | None, float]]) -> Tuple[float | None, float]:
    """Credit-weighted GPA from ``(letter, credits)`` pairs.

    Rows without a recognised letter or with non-positive credits are
    skipped. Returns ``(gpa, graded_credits)``; gpa is None when nothing
    counted.
    """

    quality_points = 0.0
    total_credits = 0.0
    for letter, credits in rows:
        points = grade_points(letter)
        if points is None or credits <= 0:
            continue
        quality_points += points * credits
        total_credits += credits

    if total_credits <= 0:
        return None, 0.0
    return round(quality_points / total_credits, 2), total_credits


__all__ = [
    "UPCOMING_WINDOW",
    "GRADE_POINTS",
    "DashboardStats",
    "GoalSummary",
    "GradeSummary",
    "percentage",
    "letter_grade",
    "grade_points",
    "course_progress",
    "is_upcoming",
    "dashboard_stats",
    "month_bounds",
    "calendar_bucket",
    "group_by_day",
    "goal_aggregate",
    "grade_summary",
    "course_average",
    "weighted_gpa",
]
