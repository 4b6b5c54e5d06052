"""
Smoke tests for CLI commands.

Each test points the default database at a temporary SQLite file and
drives the Typer app through CliRunner.
"""

import sys

import pytest
from loguru import logger
from sqlalchemy.orm import sessionmaker
from typer.testing import CliRunner

from quizmastery.cli import main as cli_main
from quizmastery.cli.main import app
from quizmastery.core.errors import StoreUnavailable
from quizmastery.db import database
from quizmastery.db.store import LearnerStore
from quizmastery.quiz.catalog import SqlQuestionCatalog
from quizmastery.quiz.evaluator import AttemptEvaluator

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_database(file_db_engine, monkeypatch):
    """Route every default session to the temporary database."""
    monkeypatch.setattr(database, "_engine", file_db_engine)
    monkeypatch.setattr(database, "_SessionLocal", sessionmaker(bind=file_db_engine))
    yield
    # CliRunner closes its captured stderr; give loguru a live sink back
    logger.remove()
    logger.add(sys.stderr, level="WARNING")


class TestSetupCommands:
    def test_help(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "take" in result.output

    def test_init_db(self):
        result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0
        assert "Database tables ready" in result.output

    def test_seed(self, questions_file):
        result = runner.invoke(app, ["seed", str(questions_file)])

        assert result.exit_code == 0
        assert "Loaded 3 question(s)" in result.output

    def test_add_student(self):
        result = runner.invoke(app, ["add-student", "s1", "Ada", "--email", "ada@example.com"])

        assert result.exit_code == 0
        assert LearnerStore().get_profile("s1").name == "Ada"


class TestTake:
    def test_take_from_file(self, questions_file):
        result = runner.invoke(
            app,
            ["take", "Algebra", "--student", "s1", "--questions", str(questions_file)],
            input="b\n2x\n",
        )

        assert result.exit_code == 0, result.output
        assert "Quiz finished" in result.output
        assert "100%" in result.output
        record = LearnerStore().get("s1")
        assert record.mastery["Algebra"].total_attempts == 2
        assert [a.question_id for a in record.history] == ["alg-1", "alg-2"]

    def test_take_from_seeded_catalog(self, questions_file):
        runner.invoke(app, ["seed", str(questions_file)])

        result = runner.invoke(app, ["take", "Geometry", "--student", "s1"], input="forty\n")

        assert result.exit_code == 0, result.output
        assert "Not quite" in result.output
        assert LearnerStore().get("s1").mastery["Geometry"].score == 0.0

    def test_take_unknown_topic(self, questions_file):
        result = runner.invoke(
            app,
            ["take", "Astrology", "--student", "s1", "--questions", str(questions_file)],
        )

        assert result.exit_code == 1
        assert "No questions found" in result.output


class TestAnalyticsCommands:
    def test_dashboard(self, questions_file):
        runner.invoke(
            app,
            ["take", "Algebra", "--student", "s1", "--questions", str(questions_file)],
            input="a\n2x\n",
        )

        result = runner.invoke(app, ["dashboard", "s1"])

        assert result.exit_code == 0
        assert "Algebra" in result.output
        assert "50%" in result.output
        assert "We suggest reviewing" in result.output

    def test_dashboard_new_student(self):
        result = runner.invoke(app, ["dashboard", "new"])

        assert result.exit_code == 0
        assert "No activity yet" in result.output

    def test_cohort(self, questions_file):
        runner.invoke(app, ["add-student", "s1", "Ada"])
        runner.invoke(app, ["add-student", "s2", "Grace"])
        runner.invoke(
            app,
            ["take", "Algebra", "--student", "s1", "--questions", str(questions_file)],
            input="b\n2x\n",
        )

        result = runner.invoke(app, ["cohort"])

        assert result.exit_code == 0
        assert "Ada" in result.output
        assert "Grace" in result.output
        assert "1/2 started" in result.output


class TestTakeWithDatabaseTrouble:
    def test_catalog_unavailable_at_start(self, monkeypatch, unavailable_session_factory):
        monkeypatch.setattr(
            cli_main, "SqlQuestionCatalog", lambda: SqlQuestionCatalog(unavailable_session_factory)
        )

        result = runner.invoke(app, ["take", "Algebra", "--student", "s1"])

        assert result.exit_code == 1
        assert "temporarily unavailable" in result.output

    def test_failed_check_keeps_session(self, monkeypatch, questions_file):
        original_check = AttemptEvaluator.check
        calls = []

        def flaky_check(self, question_id, submission):
            calls.append(question_id)
            if len(calls) == 1:
                raise StoreUnavailable("Questions are temporarily unavailable; please try again")
            return original_check(self, question_id, submission)

        monkeypatch.setattr(AttemptEvaluator, "check", flaky_check)

        result = runner.invoke(
            app,
            ["take", "Algebra", "--student", "s1", "--questions", str(questions_file)],
            input="b\nb\n2x\n",
        )

        assert result.exit_code == 0, result.output
        assert "try again" in result.output
        assert calls == ["alg-1", "alg-1", "alg-2"]
        record = LearnerStore().get("s1")
        assert record.mastery["Algebra"].score == 1.0
        assert len(record.history) == 2
