"""
Attempt Evaluator.

Stateless grading of one submitted answer against one catalog question.
Calling it never marks a question as used, so it is safe to repeat and to
run concurrently for any number of students.
"""

from __future__ import annotations

from loguru import logger

from quizmastery.core.errors import InvalidSubmission, NotFound
from quizmastery.core.models import Evaluation, Question, Submission
from quizmastery.quiz.catalog import QuestionCatalog
from quizmastery.quiz.handlers import get_handler


def evaluate(question: Question, submission: Submission) -> Evaluation:
    """
    Grade a submission against a question.

    Args:
        question: Catalog question
        submission: Selected option id or free-text answer

    Returns:
        Evaluation with correctness, correct answer and explanation

    Raises:
        InvalidSubmission: Submission shape does not match the question type,
            or names an option the question does not have
    """
    handler = get_handler(question.question_type)
    if handler is None:
        raise InvalidSubmission(f"Question type {question.question_type!r} cannot be graded")

    handler.validate(question, submission)
    return handler.check(question, submission)


class AttemptEvaluator:
    """Resolves questions from the catalog and grades submissions against them."""

    def __init__(self, catalog: QuestionCatalog):
        self.catalog = catalog

    def check(self, question_id: str, submission: Submission) -> Evaluation:
        """
        Check an answer by question id.

        A question missing from the catalog at evaluation time is reported as
        InvalidSubmission, since the submission references nothing gradable.
        """
        try:
            question = self.catalog.get_question(question_id)
        except NotFound as e:
            logger.warning(f"Answer submitted for unknown question {question_id}")
            raise InvalidSubmission(f"Question {question_id} does not exist") from e

        result = evaluate(question, submission)
        logger.debug(f"Checked question {question_id}: correct={result.correct}")
        return result
