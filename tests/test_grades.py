"""Grade endpoints and the grade reports."""

from __future__ import annotations

import csv
import io
import unittest

from tests.base import ApiTestCase


class GradeTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.sign_up()
        self.course = self.create_course()
        self.assignment = self.create_assignment(self.course["id"], points=100)

    def _grade(self, client=None, **overrides):
        payload = {
            "score": 85,
            "points": 100,
            "assignmentId": self.assignment["id"],
            "courseId": self.course["id"],
        }
        payload.update(overrides)
        return (client or self.client).post("/api/grades", json=payload)

    def test_percentage_and_letter_are_derived(self) -> None:
        response = self._grade()

        self.assertEqual(201, response.status_code)
        grade = response.get_json()["grade"]
        self.assertAlmostEqual(85.0, grade["percentage"])
        self.assertEqual("B", grade["letterGrade"])
        self.assertEqual(self.course["id"], grade["course"]["id"])
        self.assertEqual("Problem Set 1", grade["assignment"]["title"])

    def test_supplied_percentage_is_ignored(self) -> None:
        response = self._grade(score=40, points=50, percentage=100)

        self.assertEqual(201, response.status_code)
        self.assertAlmostEqual(80.0, response.get_json()["grade"]["percentage"])

    def test_supplied_letter_grade_is_kept(self) -> None:
        response = self._grade(letterGrade="b+")
        self.assertEqual("B+", response.get_json()["grade"]["letterGrade"])

    def test_extra_credit_is_not_clamped(self) -> None:
        response = self._grade(score=110)
        self.assertAlmostEqual(110.0, response.get_json()["grade"]["percentage"])

    def test_points_default_to_one_hundred(self) -> None:
        response = self._grade(points=None, score=72)

        grade = response.get_json()["grade"]
        self.assertEqual(100, grade["points"])
        self.assertEqual("C", grade["letterGrade"])

    def test_validation(self) -> None:
        cases = [
            ({"score": -1}, "Score must be a number of at least 0"),
            ({"points": 0}, "Points must be at least 1"),
            ({"assignmentId": ""}, "Assignment ID is required"),
            ({"courseId": ""}, "Course ID is required"),
        ]
        for override, message in cases:
            with self.subTest(message=message):
                response = self._grade(**override)
                self.assertEqual(400, response.status_code)
                self.assertEqual(message, response.get_json()["error"])

    def test_one_grade_per_assignment(self) -> None:
        self.assertEqual(201, self._grade().status_code)

        response = self._grade(score=90)

        self.assertEqual(400, response.status_code)
        self.assertEqual("Assignment already has a grade", response.get_json()["error"])
        self.assertEqual(1, self.database["grades"].count_documents({}))

    def test_assignment_must_belong_to_course(self) -> None:
        other_course = self.create_course(name="Compilers", code="CS420")

        response = self._grade(courseId=other_course["id"])

        self.assertEqual(404, response.status_code)
        self.assertEqual("Assignment not found", response.get_json()["error"])

    def test_other_user_cannot_grade_or_delete(self) -> None:
        grade = self._grade().get_json()["grade"]
        other = self.new_client()
        self.sign_up(other, email="grace@example.com", name="Grace Hopper")

        self.assertEqual(404, self._grade(other, score=10).status_code)
        self.assertEqual(404, other.delete(f"/api/grades/{grade['id']}").status_code)
        self.assertEqual([], other.get("/api/grades").get_json()["grades"])
        self.assertEqual(1, self.database["grades"].count_documents({}))

    def test_list_with_summary(self) -> None:
        self._grade(score=90)
        second = self.create_assignment(self.course["id"], title="Problem Set 2")
        self._grade(assignmentId=second["id"], score=70)

        body = self.client.get("/api/grades").get_json()

        self.assertEqual(2, len(body["grades"]))
        summary = body["summary"]
        self.assertEqual(80.0, summary["average"])
        self.assertAlmostEqual(90.0, summary["highest"])
        self.assertAlmostEqual(70.0, summary["lowest"])
        self.assertEqual(2, summary["total"])

        filtered = self.client.get(f"/api/grades?courseId={self.course['id']}").get_json()
        self.assertEqual(2, len(filtered["grades"]))

    def test_empty_summary(self) -> None:
        body = self.client.get("/api/grades").get_json()
        self.assertEqual({"average": 0.0, "highest": 0.0, "lowest": 0.0, "total": 0},
                         body["summary"])

    def test_delete_grade(self) -> None:
        grade = self._grade().get_json()["grade"]

        response = self.client.delete(f"/api/grades/{grade['id']}")

        self.assertEqual(200, response.status_code)
        self.assertEqual(0, self.database["grades"].count_documents({}))


class GradeReportTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.sign_up()

    def _graded_course(self, code: str, credits: int, score: float) -> None:
        course = self.create_course(name=f"Course {code}", code=code, credits=credits)
        assignment = self.create_assignment(course["id"])
        response = self.client.post(
            "/api/grades",
            json={"score": score, "assignmentId": assignment["id"], "courseId": course["id"]},
        )
        self.assertEqual(201, response.status_code)

    def test_gpa_report_is_credit_weighted(self) -> None:
        self._graded_course("CS100", 4, 95)
        self._graded_course("CS200", 2, 75)
        self.create_course(name="Ungraded", code="CS300", credits=3)

        body = self.client.get("/api/reports/gpa").get_json()

        # (4 * 4.0 + 2 * 2.0) / 6
        self.assertEqual(3.33, body["gpa"])
        self.assertEqual(4.0, body["scale"])
        self.assertEqual(6, body["gradedCredits"])
        by_code = {item["code"]: item for item in body["courses"]}
        self.assertEqual("A", by_code["CS100"]["letterGrade"])
        self.assertEqual("C", by_code["CS200"]["letterGrade"])
        self.assertIsNone(by_code["CS300"]["letterGrade"])

    def test_gpa_report_without_grades(self) -> None:
        body = self.client.get("/api/reports/gpa").get_json()
        self.assertIsNone(body["gpa"])
        self.assertEqual(0, body["gradedCredits"])

    def test_grades_csv_export(self) -> None:
        self._graded_course("CS100", 4, 95)

        response = self.client.get("/api/reports/grades.csv")

        self.assertEqual(200, response.status_code)
        self.assertEqual("text/csv", response.mimetype)
        self.assertIn("attachment; filename=grades.csv", response.headers["Content-Disposition"])
        rows = list(csv.DictReader(io.StringIO(response.get_data(as_text=True))))
        self.assertEqual(1, len(rows))
        self.assertEqual("CS100", rows[0]["course_code"])
        self.assertEqual("95", rows[0]["percentage"])
        self.assertEqual("A", rows[0]["letter_grade"])


if __name__ == "__main__":
    unittest.main()
