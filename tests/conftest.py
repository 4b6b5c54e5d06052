"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import os
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Keep tests off any developer database before settings are first read
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from quizmastery.core.models import Question  # noqa: E402
from quizmastery.db.database import build_engine  # noqa: E402
from quizmastery.db.models import Base  # noqa: E402
from quizmastery.db.store import LearnerStore  # noqa: E402
from quizmastery.quiz.catalog import InMemoryQuestionCatalog  # noqa: E402
from quizmastery.study.mastery_engine import MasteryUpdateEngine  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (SQLite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def questions_file():
    """Sample catalog JSON shared by CLI and catalog tests."""
    return PROJECT_ROOT / "tests" / "fixtures" / "questions.json"


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with all tables created."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_db_engine(tmp_path):
    """File-backed SQLite engine; each thread/session gets its own connection."""
    engine = build_engine(f"sqlite:///{tmp_path / 'quizmastery.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


class UnavailableSession(Session):
    """Session whose reads fail like a dropped database connection."""

    def _unavailable(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("server closed the connection unexpectedly"))

    execute = scalars = scalar = get = _unavailable


@pytest.fixture
def unavailable_session_factory(db_engine):
    return sessionmaker(bind=db_engine, class_=UnavailableSession, autocommit=False, autoflush=False)


@pytest.fixture
def store(session_factory):
    """LearnerStore on the in-memory database."""
    return LearnerStore(session_factory, max_retries=3)


@pytest.fixture
def mastery_engine(store):
    return MasteryUpdateEngine(store)


@pytest.fixture
def mcq_question():
    """Provide a sample multiple choice question."""
    return Question.from_dict(
        {
            "id": "alg-1",
            "type": "mcq",
            "topic": "Algebra",
            "difficulty": "easy",
            "text": "Solve for x: 2x + 3 = 7",
            "options": [
                {"id": "a", "text": "1"},
                {"id": "b", "text": "2"},
                {"id": "c", "text": "5"},
            ],
            "correctOptionId": "b",
            "explanation": "Subtract 3, then divide by 2.",
        }
    )


@pytest.fixture
def short_answer_question():
    """Provide a sample short answer question."""
    return Question.from_dict(
        {
            "id": "geo-1",
            "type": "short-answer",
            "topic": "Geography",
            "difficulty": "medium",
            "text": "What is the capital of France?",
            "acceptedAnswers": ["paris"],
            "explanation": "Paris has been the capital since 987.",
        }
    )


@pytest.fixture
def catalog(mcq_question, short_answer_question):
    """Catalog holding the two sample questions plus two more Algebra questions."""
    extra = [
        Question.from_dict(
            {
                "id": "alg-2",
                "type": "short-answer",
                "topic": "Algebra",
                "text": "Simplify: x + x",
                "acceptedAnswers": ["2x", "2 x"],
                "explanation": "Like terms add.",
            }
        ),
        Question.from_dict(
            {
                "id": "alg-3",
                "type": "mcq",
                "topic": "Algebra",
                "difficulty": "hard",
                "text": "Roots of x^2 - 1",
                "options": [
                    {"id": "a", "text": "1 and -1"},
                    {"id": "b", "text": "0"},
                ],
                "correctOptionId": "a",
                "explanation": "Difference of squares.",
            }
        ),
    ]
    return InMemoryQuestionCatalog([mcq_question, short_answer_question, *extra])
