"""Command-line entrypoints for ChemLab."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from chemlab.catalog import DEFAULT_CATALOG
from chemlab.config import configure_logging, get_settings
from chemlab.constants import DEFAULT_TEMPERATURE
from chemlab.errors import ChemLabError
from chemlab.grading import GradingWorkflow
from chemlab.models import KNOWN_CHEMICALS
from chemlab.persistence import sqlite_store
from chemlab.session import SessionStateMachine
from chemlab.submission import build_submission

app = typer.Typer(add_completion=False)

DatabaseOption = Annotated[
    Optional[Path],
    typer.Option(help="SQLite database file (defaults to CHEMLAB_DATABASE_PATH)."),
]


@app.callback()
def main(
    log_level: Annotated[
        Optional[str], typer.Option(help="Logging level, e.g. DEBUG or INFO.")
    ] = None,
) -> None:
    """Chemistry lab simulator backend tools."""
    configure_logging(log_level or get_settings().log_level)


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _fail(exc: Exception) -> None:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _open_database(database: Path | None):
    connection = sqlite_store.connect(database or get_settings().database_path)
    sqlite_store.ensure_schema(connection)
    return connection


def _parse_pairs(values: list[str], option: str) -> dict[str, str]:
    pairs = {}
    for value in values:
        name, sep, text = value.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected NAME=VALUE, got {value!r}", param_hint=option)
        pairs[name.strip()] = text
    return pairs


@app.command()
def init_db(
    database: DatabaseOption = None,
    seed: Annotated[bool, typer.Option(help="Insert demo data into empty tables.")] = True,
) -> None:
    """Create the database schema."""
    connection = _open_database(database)
    try:
        seeded = sqlite_store.seed_demo_data(connection) if seed else False
    finally:
        connection.close()
    _echo_json({"database": str(database or get_settings().database_path), "seeded": seeded})


@app.command()
def reactions() -> None:
    """List the recognised reactions."""
    _echo_json([reaction.to_dict() for reaction in DEFAULT_CATALOG])


@app.command()
def chemicals() -> None:
    """List the chemicals that can be poured into the flask."""
    _echo_json([{"name": name, "color": color} for name, color in KNOWN_CHEMICALS.items()])


@app.command()
def mix(
    chemical_a: Annotated[str, typer.Argument(help="First chemical.")],
    chemical_b: Annotated[str, typer.Argument(help="Second chemical.")],
    temperature: Annotated[float, typer.Option(help="Flask temperature (°C).")] = DEFAULT_TEMPERATURE,
    settle: Annotated[
        Optional[float], typer.Option(help="Settling delay in seconds.")
    ] = None,
    submit: Annotated[bool, typer.Option(help="Store the result as a submission.")] = False,
    experiment_id: Annotated[Optional[int], typer.Option(help="Experiment to submit to.")] = None,
    student: Annotated[str, typer.Option(help="Student name for the submission.")] = "",
    database: DatabaseOption = None,
) -> None:
    """Mix two chemicals and print the outcome."""
    settle_seconds = get_settings().settle_seconds if settle is None else settle
    try:
        session = SessionStateMachine(temperature=temperature, settle_seconds=settle_seconds)
        session.toggle_chemical(chemical_a)
        session.toggle_chemical(chemical_b)
        asyncio.run(session.mix())
    except ChemLabError as exc:
        _fail(exc)

    payload: dict[str, Any] = session.snapshot()
    if submit:
        if experiment_id is None:
            raise typer.BadParameter("--experiment-id is required with --submit")
        connection = _open_database(database)
        try:
            experiment = sqlite_store.SQLiteExperimentRepository(connection).get(experiment_id)
            record = build_submission(
                session,
                experiment_id=experiment_id,
                student_name=student,
                evaluation_criteria=experiment.evaluation_criteria,
            )
            payload["submissionId"] = sqlite_store.SQLiteSubmissionRepository(
                connection
            ).create(record)
        except ChemLabError as exc:
            _fail(exc)
        finally:
            connection.close()
    _echo_json(payload)


@app.command()
def grade(
    submission_id: Annotated[int, typer.Argument(help="Submission to grade.")],
    total: Annotated[Optional[int], typer.Option(help="Total marks (0-100).")] = None,
    feedback: Annotated[Optional[str], typer.Option(help="Overall feedback.")] = None,
    criterion: Annotated[
        Optional[list[str]],
        typer.Option(help="Criterion feedback as NAME=TEXT; repeatable."),
    ] = None,
    marks: Annotated[
        Optional[list[str]],
        typer.Option(help="Criterion marks as NAME=N; repeatable."),
    ] = None,
    finalize: Annotated[bool, typer.Option(help="Mark the submission as evaluated.")] = False,
    database: DatabaseOption = None,
) -> None:
    """Update marks and feedback on a submission."""
    criterion_feedback = _parse_pairs(criterion or [], "--criterion")
    criterion_marks = _parse_pairs(marks or [], "--marks")

    connection = _open_database(database)
    try:
        repository = sqlite_store.SQLiteSubmissionRepository(connection)
        workflow = GradingWorkflow(repository.get(submission_id))
        if total is not None:
            workflow.set_total_marks(total)
        for name, text in criterion_feedback.items():
            workflow.set_criterion_feedback(name, text)
        for name, value in criterion_marks.items():
            try:
                workflow.set_criterion_marks(name, int(value))
            except ValueError:
                raise typer.BadParameter(
                    f"Marks for {name!r} must be a whole number", param_hint="--marks"
                ) from None
        if feedback is not None:
            workflow.set_overall_feedback(feedback)
        if finalize:
            workflow.finalize()
        repository.update(submission_id, workflow.changes())
    except ChemLabError as exc:
        _fail(exc)
    finally:
        connection.close()
    _echo_json(workflow.record.to_dict())


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option(help="Interface to bind.")] = None,
    port: Annotated[Optional[int], typer.Option(help="Port to listen on.")] = None,
) -> None:
    """Run the REST API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "chemlab.api.app:main",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )
