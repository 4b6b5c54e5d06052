"""
Integration tests for the HTTP API.

Runs the FastAPI app against an in-memory database with the store and
catalog dependencies overridden.
"""

import pytest
from fastapi.testclient import TestClient

from quizmastery.api.dependencies import get_catalog, get_store
from quizmastery.api.main import app
from quizmastery.core.errors import StoreUnavailable
from quizmastery.db.store import LearnerStore
from quizmastery.quiz.catalog import SqlQuestionCatalog

HEADERS = {"X-User-Id": "s1"}
STAFF_HEADERS = {"X-User-Id": "i1"}


@pytest.fixture
def client(store, catalog):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_catalog] = lambda: catalog
    yield TestClient(app)
    app.dependency_overrides.clear()


def submit(client, **overrides):
    body = {
        "topic": "Algebra",
        "correctCount": 2,
        "totalQuestions": 3,
        "attemptHistory": [
            {"question": "alg-1", "isCorrect": True, "timeTaken": 4},
            {"question": "alg-2", "isCorrect": False, "timeTaken": 9},
            {"question": "alg-3", "isCorrect": True, "timeTaken": 6},
        ],
    }
    body.update(overrides)
    return client.post("/api/quiz/submit", json=body, headers=HEADERS)


class TestHealth:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "quizmastery"


class TestAuth:
    def test_missing_user_header(self, client):
        assert client.get("/api/quiz/start", params={"topic": "Algebra"}).status_code == 401
        assert client.get("/api/users/dashboard-data").status_code == 401


class TestStartAndCheck:
    def test_start_hides_answers(self, client):
        response = client.get("/api/quiz/start", params={"topic": "Algebra"}, headers=HEADERS)

        assert response.status_code == 200
        questions = response.json()
        assert [q["id"] for q in questions] == ["alg-1", "alg-2", "alg-3"]
        for question in questions:
            assert "correctOptionId" not in question
            assert "acceptedAnswers" not in question
            assert "explanation" not in question

    def test_start_unknown_topic(self, client):
        response = client.get("/api/quiz/start", params={"topic": "Astrology"}, headers=HEADERS)

        assert response.status_code == 404
        assert "Astrology" in response.json()["message"]

    def test_check_short_answer(self, client):
        response = client.post(
            "/api/quiz/check",
            json={"questionId": "geo-1", "answerText": "Paris "},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {
            "isCorrect": True,
            "correctAnswer": "paris",
            "explanation": "Paris has been the capital since 987.",
        }

    def test_check_unknown_option(self, client):
        response = client.post(
            "/api/quiz/check",
            json={"questionId": "alg-1", "selectedOptionId": "zz"},
            headers=HEADERS,
        )

        assert response.status_code == 400

    def test_check_unknown_question(self, client):
        response = client.post(
            "/api/quiz/check",
            json={"questionId": "missing", "selectedOptionId": "a"},
            headers=HEADERS,
        )

        assert response.status_code == 400

    def test_check_has_no_side_effects(self, client, store):
        for _ in range(3):
            client.post(
                "/api/quiz/check",
                json={"questionId": "alg-1", "selectedOptionId": "b"},
                headers=HEADERS,
            )

        assert store.get("s1") is None


class TestSubmit:
    def test_submit_updates_mastery(self, client, store):
        response = submit(client)

        assert response.status_code == 200
        data = response.json()
        assert data["topic"] == "Algebra"
        assert data["newMastery"] == pytest.approx(2 / 3)
        assert data["totalAttempts"] == 3
        assert len(store.get("s1").history) == 3

    def test_legacy_history_key(self, client, store):
        body = {
            "topic": "Algebra",
            "correctCount": 1,
            "totalQuestions": 1,
            "fullAttemptHistory": [{"question": "alg-1", "isCorrect": True, "timeTaken": 3}],
        }

        response = client.post("/api/quiz/submit", json=body, headers=HEADERS)

        assert response.status_code == 200
        assert store.get("s1").history[0].question_id == "alg-1"

    def test_inconsistent_tally_rejected(self, client, store):
        response = submit(client, correctCount=5)

        assert response.status_code == 400
        assert store.get("s1") is None

    def test_string_count_rejected(self, client):
        assert submit(client, correctCount="2").status_code == 422

    def test_store_unavailable_is_retryable(self, client, store, monkeypatch):
        def unavailable(student_id, mutate):
            raise StoreUnavailable("Progress could not be saved; please retry")

        monkeypatch.setattr(store, "apply", unavailable)

        response = submit(client)

        assert response.status_code == 503
        assert response.json()["retry"] is True
        assert response.headers["Retry-After"] == "1"


class TestUsers:
    def test_dashboard_for_new_student(self, client):
        response = client.get("/api/users/dashboard-data", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["mastery"] == {}
        assert data["recentActivity"] == []
        assert data["suggestedTopic"] is None
        assert data["defaultTopic"] == "Algebra"
        assert data["profile"] == {"id": "s1"}

    def test_dashboard_after_submit(self, client, store):
        store.add_user("s1", "Ada", email="ada@example.com")
        submit(client)

        data = client.get("/api/users/dashboard-data", headers=HEADERS).json()

        assert data["mastery"]["Algebra"]["totalAttempts"] == 3
        assert [a["question"] for a in data["recentActivity"]] == ["alg-3", "alg-2", "alg-1"]
        assert data["suggestedTopic"] == "Algebra"
        assert data["profile"]["name"] == "Ada"

    def test_student_analytics(self, client, store):
        store.add_user("i1", "Grace Hopper", role="instructor")
        store.add_user("s1", "Ada")
        store.add_user("s2", "Grace")
        submit(client)

        rows = client.get("/api/users/analytics/students", headers=STAFF_HEADERS).json()

        by_id = {row["studentId"]: row for row in rows}
        assert by_id["s1"]["overallAverageMastery"] == pytest.approx(2 / 3)
        assert by_id["s1"]["totalAttempts"] == 3
        assert by_id["s2"]["overallAverageMastery"] is None
        assert by_id["s2"]["level"] == "not_started"

    def test_overview(self, client, store):
        store.add_user("i1", "Grace Hopper", role="admin")
        store.add_user("s1", "Ada")
        store.add_user("s2", "Grace")
        submit(client)

        overview = client.get("/api/users/analytics/overview", headers=STAFF_HEADERS).json()

        assert overview["studentCount"] == 2
        assert overview["startedCount"] == 1
        assert overview["atRisk"] == []


class TestCohortAccess:
    @pytest.mark.parametrize("path", ["/api/users/analytics/students", "/api/users/analytics/overview"])
    def test_students_forbidden(self, client, store, path):
        store.add_user("s1", "Ada", email="ada@example.com")

        response = client.get(path, headers=HEADERS)

        assert response.status_code == 403

    @pytest.mark.parametrize("path", ["/api/users/analytics/students", "/api/users/analytics/overview"])
    def test_unknown_user_forbidden(self, client, path):
        assert client.get(path, headers={"X-User-Id": "stranger"}).status_code == 403

    def test_instructor_sees_cohort(self, client, store):
        store.add_user("i1", "Grace Hopper", role="instructor")
        store.add_user("s1", "Ada", email="ada@example.com")

        response = client.get("/api/users/analytics/students", headers=STAFF_HEADERS)

        assert response.status_code == 200
        assert response.json()[0]["email"] == "ada@example.com"


class TestDatabaseUnavailable:
    def test_check_is_retryable(self, client, unavailable_session_factory):
        app.dependency_overrides[get_catalog] = lambda: SqlQuestionCatalog(unavailable_session_factory)

        response = client.post(
            "/api/quiz/check",
            json={"questionId": "alg-1", "selectedOptionId": "b"},
            headers=HEADERS,
        )

        assert response.status_code == 503
        assert response.json()["retry"] is True
        assert response.headers["Retry-After"] == "1"

    def test_start_is_retryable(self, client, unavailable_session_factory):
        app.dependency_overrides[get_catalog] = lambda: SqlQuestionCatalog(unavailable_session_factory)

        response = client.get("/api/quiz/start", params={"topic": "Algebra"}, headers=HEADERS)

        assert response.status_code == 503

    def test_dashboard_is_retryable(self, client, unavailable_session_factory):
        app.dependency_overrides[get_store] = lambda: LearnerStore(unavailable_session_factory)

        response = client.get("/api/users/dashboard-data", headers=HEADERS)

        assert response.status_code == 503
        assert response.json()["retry"] is True
