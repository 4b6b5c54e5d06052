"""
Short answer handler.

Set-membership match after normalization: surrounding whitespace is trimmed,
inner runs collapse to one space and case is folded, so "Paris " matches "paris".
"""

from quizmastery.core.errors import InvalidSubmission
from quizmastery.core.models import Evaluation, Question, QuestionType, Submission

from . import register
from .base import normalize_answer


@register(QuestionType.SHORT_ANSWER)
class ShortAnswerHandler:
    """Handler for short answer questions."""

    def accepts(self, question: Question, submission: Submission) -> bool:
        return (
            submission.selected_option_id is None
            and submission.answer_text is not None
            and submission.answer_text.strip() != ""
        )

    def validate(self, question: Question, submission: Submission) -> None:
        if submission.selected_option_id is not None or submission.answer_text is None:
            raise InvalidSubmission(
                f"Question {question.id} is short answer; submit answerText"
            )
        if not submission.answer_text.strip():
            raise InvalidSubmission(f"Answer to question {question.id} is blank")

    def check(self, question: Question, submission: Submission) -> Evaluation:
        accepted = {normalize_answer(a) for a in question.accepted_answers}
        return Evaluation(
            correct=normalize_answer(submission.answer_text or "") in accepted,
            correct_answer=question.accepted_answers[0] if question.accepted_answers else "",
            explanation=question.explanation,
        )
