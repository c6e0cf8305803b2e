"""Datastore and configuration failures surface as a generic 500."""

from __future__ import annotations

import unittest
from unittest import mock

from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from studydesk import db
from studydesk.config import ConfigError
from tests.base import ApiTestCase

OBJECT_ID = "507f1f77bcf86cd799439011"

COURSE = {"name": "Algorithms", "code": "CS260", "credits": 4, "semester": "Fall", "year": "2024"}
GOAL = {"title": "Finish thesis draft", "category": "academic"}
EVENT = {"title": "Study group", "type": "study", "date": "2024-03-15T18:00:00Z"}


class DatastoreFailureTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.sign_up()

    def _assert_internal_error(self, method: str, path: str, error: Exception, **kwargs) -> None:
        with mock.patch.object(db, "get_db", side_effect=error):
            with self.assertLogs("studydesk", level="ERROR") as captured:
                response = getattr(self.client, method)(path, **kwargs)

        self.assertEqual(500, response.status_code)
        self.assertEqual({"error": "Internal server error"}, response.get_json())
        self.assertNotIn(str(error), response.get_data(as_text=True))
        self.assertTrue(any(record.exc_info for record in captured.records))

    def test_database_errors(self) -> None:
        error = ServerSelectionTimeoutError("mongo-1:27017: connection refused")
        for method, path, kwargs in [
            ("get", "/api/me", {}),
            ("patch", "/api/profile", {"json": {"major": "Physics"}}),
            ("get", "/api/courses", {}),
            ("post", "/api/courses", {"json": COURSE}),
            ("delete", f"/api/courses/{OBJECT_ID}", {}),
            ("get", "/api/assignments", {}),
            ("patch", f"/api/assignments/{OBJECT_ID}", {"json": {"completed": True}}),
            ("get", "/api/grades", {}),
            ("delete", f"/api/grades/{OBJECT_ID}", {}),
            ("get", "/api/goals", {}),
            ("post", "/api/goals", {"json": GOAL}),
            ("patch", f"/api/goals/{OBJECT_ID}", {"json": {"progress": 50}}),
            ("get", "/api/events", {}),
            ("post", "/api/events", {"json": EVENT}),
            ("get", "/api/calendar", {}),
            ("get", "/api/dashboard/stats", {}),
            ("get", "/api/reports/gpa", {}),
            ("get", "/api/reports/grades.csv", {}),
        ]:
            with self.subTest(method=method, path=path):
                self._assert_internal_error(method, path, error, **kwargs)

    def test_missing_configuration(self) -> None:
        error = ConfigError("MONGODB_URI is not set. Define it in .env.")
        for method, path in [
            ("get", "/api/courses"),
            ("get", "/api/dashboard/stats"),
            ("delete", f"/api/events/{OBJECT_ID}"),
        ]:
            with self.subTest(method=method, path=path):
                self._assert_internal_error(method, path, error)

    def test_registration_database_error(self) -> None:
        other = self.new_client()
        with mock.patch.object(db, "get_db", side_effect=PyMongoError("write failed")):
            with self.assertLogs("studydesk.utils.responses", level="ERROR"):
                response = other.post(
                    "/api/register",
                    json={"name": "Grace Hopper", "email": "grace@example.com",
                          "password": "secret123"},
                )

        self.assertEqual(500, response.status_code)
        self.assertEqual({"error": "Internal server error"}, response.get_json())

    def test_unexpected_error_is_logged(self) -> None:
        with mock.patch.object(db, "get_db", side_effect=RuntimeError("driver bug")):
            with self.assertLogs("studydesk.app", level="ERROR"):
                response = self.client.get("/api/courses")

        self.assertEqual(500, response.status_code)
        self.assertEqual({"error": "Internal server error"}, response.get_json())


if __name__ == "__main__":
    unittest.main()
