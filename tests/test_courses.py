"""Course endpoints."""

from __future__ import annotations

import unittest

from tests.base import ApiTestCase


class CourseTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.sign_up()

    def test_create_and_list_course(self) -> None:
        response = self.client.post(
            "/api/courses",
            json={
                "name": "Algorithms",
                "code": "CS260",
                "credits": 4,
                "semester": "Fall",
                "year": "2024",
            },
        )

        self.assertEqual(201, response.status_code)
        course = response.get_json()["course"]
        self.assertEqual("Algorithms", course["name"])
        self.assertEqual("CS260", course["code"])
        self.assertEqual(4, course["credits"])
        self.assertEqual("Fall", course["semester"])
        self.assertEqual("2024", course["year"])
        self.assertEqual("#3B82F6", course["color"])
        self.assertEqual(0, course["progress"])

        listed = self.client.get("/api/courses").get_json()["courses"]
        self.assertEqual([course["id"]], [item["id"] for item in listed])

    def test_course_validation(self) -> None:
        cases = [
            ({"code": "CS1", "credits": 3, "semester": "Fall", "year": "2024"},
             "Course name is required"),
            ({"name": "Algo", "code": "CS1", "credits": 7, "semester": "Fall", "year": "2024"},
             "Credits must be a whole number between 1 and 6"),
            ({"name": "Algo", "code": "CS1", "credits": 0, "semester": "Fall", "year": "2024"},
             "Credits must be a whole number between 1 and 6"),
            ({"name": "Algo", "code": "CS1", "credits": 3, "year": "2024"},
             "Semester is required"),
        ]
        for payload, message in cases:
            with self.subTest(message=message):
                response = self.client.post("/api/courses", json=payload)
                self.assertEqual(400, response.status_code)
                self.assertEqual(message, response.get_json()["error"])

        self.assertEqual(0, self.database["courses"].count_documents({}))

    def test_list_includes_progress_and_average(self) -> None:
        course = self.create_course()
        first = self.create_assignment(course["id"])
        self.create_assignment(course["id"], title="Problem Set 2")
        self.client.patch(f"/api/assignments/{first['id']}", json={"completed": True})
        self.client.post(
            "/api/grades",
            json={"score": 45, "points": 50, "assignmentId": first["id"], "courseId": course["id"]},
        )

        listed = self.client.get("/api/courses").get_json()["courses"][0]

        self.assertEqual(50, listed["progress"])
        self.assertEqual(2, listed["assignmentCount"])
        self.assertEqual(1, listed["completedCount"])
        self.assertEqual(90.0, listed["averageGrade"])
        self.assertEqual("A", listed["letterGrade"])

    def test_update_course(self) -> None:
        course = self.create_course()

        response = self.client.patch(
            f"/api/courses/{course['id']}", json={"instructor": "Dr. Knuth", "credits": 3}
        )

        self.assertEqual(200, response.status_code)
        updated = response.get_json()["course"]
        self.assertEqual("Dr. Knuth", updated["instructor"])
        self.assertEqual(3, updated["credits"])
        self.assertEqual("Algorithms", updated["name"])

    def test_delete_course_removes_assignments_and_grades(self) -> None:
        course = self.create_course()
        assignment = self.create_assignment(course["id"])
        self.client.post(
            "/api/grades",
            json={"score": 80, "assignmentId": assignment["id"], "courseId": course["id"]},
        )

        response = self.client.delete(f"/api/courses/{course['id']}")

        self.assertEqual(200, response.status_code)
        self.assertEqual(0, self.database["courses"].count_documents({}))
        self.assertEqual(0, self.database["assignments"].count_documents({}))
        self.assertEqual(0, self.database["grades"].count_documents({}))

    def test_other_users_courses_are_invisible(self) -> None:
        course = self.create_course()
        other = self.new_client()
        self.sign_up(other, email="grace@example.com", name="Grace Hopper")

        self.assertEqual([], other.get("/api/courses").get_json()["courses"])

        response = other.patch(f"/api/courses/{course['id']}", json={"name": "Hijacked"})
        self.assertEqual(404, response.status_code)
        self.assertEqual("Course not found", response.get_json()["error"])

        response = other.delete(f"/api/courses/{course['id']}")
        self.assertEqual(404, response.status_code)

        stored = self.client.get("/api/courses").get_json()["courses"][0]
        self.assertEqual("Algorithms", stored["name"])

    def test_malformed_id_is_not_found(self) -> None:
        response = self.client.delete("/api/courses/not-an-id")
        self.assertEqual(404, response.status_code)


if __name__ == "__main__":
    unittest.main()
