"""
quizmastery CLI

Usage:
    quizmastery init-db                       # Create tables
    quizmastery seed questions.json           # Load catalog questions
    quizmastery add-student s1 "Ada Lovelace" # Register a student account
    quizmastery take Algebra --student s1     # Take a quiz in the terminal
    quizmastery dashboard s1                  # Mastery + recent activity
    quizmastery cohort                        # Instructor cohort view
    quizmastery serve                         # Run the HTTP API
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import get_settings
from quizmastery.analytics.cohort import CohortAnalyticsAggregator, cohort_overview
from quizmastery.analytics.dashboard import get_dashboard
from quizmastery.core.errors import QuizMasteryError, StoreUnavailable, SubmissionRejected
from quizmastery.core.log_config import configure_logging
from quizmastery.core.mastery import format_percent
from quizmastery.core.models import Question, QuestionType, Submission
from quizmastery.db.database import init_db
from quizmastery.db.store import LearnerStore
from quizmastery.quiz.catalog import (
    InMemoryQuestionCatalog,
    QuestionCatalog,
    SqlQuestionCatalog,
    load_questions,
)
from quizmastery.quiz.evaluator import AttemptEvaluator
from quizmastery.quiz.session import QuizSession
from quizmastery.study.mastery_engine import MasteryUpdateEngine

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="quizmastery",
    help="Quiz sessions, mastery tracking and cohort analytics",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    settings = get_settings()
    if verbose:
        settings = settings.model_copy(update={"log_level": "DEBUG"})
    configure_logging(settings)


def _fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/]")
    raise typer.Exit(code=1)


# =============================================================================
# Setup Commands
# =============================================================================


@app.command("init-db")
def init_db_command() -> None:
    """Create database tables."""
    init_db()
    console.print("[green]✓ Database tables ready[/]")


@app.command()
def seed(
    questions_file: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="JSON array of questions")],
) -> None:
    """Load questions into the catalog (insert or replace by id)."""
    init_db()
    try:
        questions = load_questions(questions_file)
    except QuizMasteryError as e:
        _fail(e.message)
    count = SqlQuestionCatalog().add_questions(questions)
    console.print(f"[green]✓ Loaded {count} question(s) from {questions_file.name}[/]")


@app.command("add-student")
def add_student(
    student_id: Annotated[str, typer.Argument(help="Student id")],
    name: Annotated[str, typer.Argument(help="Display name")],
    email: Annotated[str | None, typer.Option("--email", "-e")] = None,
) -> None:
    """Register a student account for cohort views."""
    init_db()
    LearnerStore().add_user(student_id, name, email=email, role="student")
    console.print(f"[green]✓ Student {student_id} ({name}) saved[/]")


# =============================================================================
# Study Commands
# =============================================================================


def _present(question: Question, number: int, total: int, elapsed_hint: str = "") -> None:
    body = f"[bold]{question.text}[/]"
    if question.question_type is QuestionType.MULTIPLE_CHOICE:
        body += "\n\n" + "\n".join(f"  [cyan]{opt.id}[/]  {opt.text}" for opt in question.options)
    console.print(
        Panel(
            body,
            title=f"[bold cyan]{question.topic} {number}/{total}[/] [dim]{question.difficulty.value}[/]",
            subtitle=elapsed_hint,
            border_style="cyan",
        )
    )


def _ask(question: Question) -> Submission:
    if question.question_type is QuestionType.MULTIPLE_CHOICE:
        choice = Prompt.ask("Option", choices=[opt.id for opt in question.options])
        return Submission(selected_option_id=choice)
    return Submission(answer_text=Prompt.ask("Answer"))


@app.command()
def take(
    topic: Annotated[str, typer.Argument(help="Topic to quiz on")],
    student: Annotated[str, typer.Option("--student", "-s", help="Student id")],
    questions_file: Annotated[
        Path | None,
        typer.Option("--questions", "-q", exists=True, dir_okay=False, help="Use a JSON catalog instead of the database"),
    ] = None,
) -> None:
    """Take a quiz: check each answer, then submit the session once."""
    init_db()
    catalog: QuestionCatalog = (
        InMemoryQuestionCatalog.from_file(questions_file) if questions_file else SqlQuestionCatalog()
    )
    evaluator = AttemptEvaluator(catalog)
    engine = MasteryUpdateEngine(LearnerStore())

    try:
        questions = catalog.list_questions_for_topic(topic)
    except StoreUnavailable as e:
        _fail(e.message)
    if not questions:
        _fail(f'No questions found for the topic "{topic}"')
    session = QuizSession(topic, questions)

    while True:
        question = session.current_question
        _present(question, session.index + 1, len(session.questions))

        while True:
            submission = _ask(question)
            try:
                feedback = session.check(submission, lambda q, s: evaluator.check(q.id, s))
                break
            except SubmissionRejected:
                console.print("[yellow]Please enter an answer.[/]")
            except QuizMasteryError as e:
                console.print(f"[yellow]Could not check that answer, try again ({e.message})[/]")

        if feedback.correct:
            console.print("[green]✓ Correct![/]")
        else:
            console.print(f"[red]✗ Not quite.[/] Correct answer: [bold]{feedback.correct_answer}[/]")
        if feedback.explanation:
            console.print(f"[dim]{feedback.explanation}[/]")

        if not session.is_last_question:
            session.next_question()
            continue

        while True:
            try:
                mastery = session.finish(lambda result: engine.submit_result(student, result))
                break
            except StoreUnavailable as e:
                console.print(f"[red]{e.message}[/]")
                if not Confirm.ask("Retry submission?", default=True):
                    raise typer.Exit(code=1)
        break

    console.print(
        Panel(
            f"Score: [bold]{session.correct_count}/{len(session.questions)}[/]\n"
            f"Mastery for {topic}: [bold]{format_percent(mastery.score)}[/]",
            title="Quiz finished",
            border_style="green",
        )
    )


# =============================================================================
# Analytics Commands
# =============================================================================


@app.command()
def dashboard(
    student: Annotated[str, typer.Argument(help="Student id")],
) -> None:
    """Show a student's mastery, suggestion and recent activity."""
    init_db()
    data = get_dashboard(LearnerStore(), student)

    table = Table(title=f"Mastery - {student}")
    table.add_column("Topic", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Attempts", justify="right")
    for topic, item in data.mastery.items():
        table.add_row(topic, format_percent(item.score), str(item.total_attempts))
    console.print(table)

    if data.suggested_topic:
        score = data.mastery[data.suggested_topic].score
        console.print(
            f"[yellow]Your lowest mastery is in {data.suggested_topic} "
            f"({format_percent(score)}). We suggest reviewing this topic.[/]"
        )

    if data.recent_activity:
        activity = Table(title="Recent activity")
        activity.add_column("Topic")
        activity.add_column("Result")
        activity.add_column("Time (s)", justify="right")
        for item in data.recent_activity:
            activity.add_row(
                item.topic or "-",
                "[green]correct[/]" if item.is_correct else "[red]incorrect[/]",
                f"{item.time_taken:.0f}",
            )
        console.print(activity)
    else:
        console.print("[dim]No activity yet.[/]")


@app.command()
def cohort() -> None:
    """Show every student's overall mastery and attempt count."""
    init_db()
    summaries = CohortAnalyticsAggregator(LearnerStore()).summarize_all_students()

    table = Table(title="Cohort")
    table.add_column("Student", style="cyan")
    table.add_column("Name")
    table.add_column("Overall", justify="right")
    table.add_column("Level")
    table.add_column("Total Attempts", justify="right")
    table.add_column("Topics")
    for summary in summaries:
        table.add_row(
            summary.student_id,
            summary.name,
            f"[{summary.level.color}]{format_percent(summary.overall_average_mastery)}[/]",
            summary.level.display_name,
            str(summary.total_attempts),
            ", ".join(
                f"{t} {format_percent(m.score)}" for t, m in summary.per_topic_mastery.items()
            )
            or "-",
        )
    console.print(table)

    overview = cohort_overview(summaries)
    console.print(
        f"{overview.started_count}/{overview.student_count} started · "
        f"average {format_percent(overview.average_mastery)} · "
        f"{len(overview.at_risk)} at risk"
    )


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind host")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port")] = None,
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    logger.info("Launching API server")
    uvicorn.run(
        "quizmastery.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


def run() -> None:
    """Entry point for the console script."""
    app()


if __name__ == "__main__":
    run()
