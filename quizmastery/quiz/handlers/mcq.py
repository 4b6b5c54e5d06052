"""
Multiple choice question handler.

- Submission carries the selected option id.
- Correct iff it equals the question's correct option id.
- Feedback reports the correct option id so the client can highlight it.
"""

from quizmastery.core.errors import InvalidSubmission
from quizmastery.core.models import Evaluation, Question, QuestionType, Submission

from . import register


@register(QuestionType.MULTIPLE_CHOICE)
class MultipleChoiceHandler:
    """Handler for multiple choice questions."""

    def accepts(self, question: Question, submission: Submission) -> bool:
        return submission.answer_text is None and bool(submission.selected_option_id)

    def validate(self, question: Question, submission: Submission) -> None:
        if submission.answer_text is not None or submission.selected_option_id is None:
            raise InvalidSubmission(
                f"Question {question.id} is multiple choice; submit selectedOptionId"
            )
        if question.option(submission.selected_option_id) is None:
            raise InvalidSubmission(
                f"Option {submission.selected_option_id!r} does not exist on question {question.id}"
            )

    def check(self, question: Question, submission: Submission) -> Evaluation:
        return Evaluation(
            correct=submission.selected_option_id == question.correct_option_id,
            correct_answer=question.correct_option_id or "",
            explanation=question.explanation,
        )
