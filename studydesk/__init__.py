"""Personal academic tracker: courses, assignments, grades, goals and events."""

__version__ = "0.1.0"
