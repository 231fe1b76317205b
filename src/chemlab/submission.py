"""Building submission records from finished sessions."""

from __future__ import annotations

from datetime import date
from typing import Sequence

from chemlab.errors import IncompleteExperimentError, MissingStudentNameError
from chemlab.models import (
    CriterionEvaluation,
    FlaskStage,
    SimulatedResults,
    SubmissionRecord,
    SubmissionStatus,
    parse_criteria,
)
from chemlab.session import SessionStateMachine


def simulated_results_from(session: SessionStateMachine) -> SimulatedResults:
    return SimulatedResults(
        final_flask_stage=session.flask_stage.value,
        final_progress=session.progress,
        temperature=session.temperature,
        chemicals_used=session.selected_chemicals,
        reaction_equation=session.equation,
        reaction_observation=session.observation,
    )


def build_submission(
    session: SessionStateMachine,
    experiment_id: int,
    student_name: str,
    evaluation_criteria: str | Sequence[str] | None = None,
    submission_date: date | None = None,
) -> SubmissionRecord:
    """Create a pending submission from a session whose reaction completed.

    The record has no ``id``; the submission repository assigns one when
    it is stored.

    Raises:
        IncompleteExperimentError: The session has not reached ``reacted``.
        MissingStudentNameError: ``student_name`` is empty or blank.
    """
    return new_submission(
        experiment_id,
        student_name,
        simulated_results_from(session),
        evaluation_criteria=evaluation_criteria,
        submission_date=submission_date,
    )


def new_submission(
    experiment_id: int,
    student_name: str,
    simulated_results: SimulatedResults,
    evaluation_criteria: str | Sequence[str] | None = None,
    submission_date: date | None = None,
) -> SubmissionRecord:
    """Create a pending, ungraded submission from recorded simulation results.

    Status, marks and feedback always start blank here; they only change
    through ``GradingWorkflow``.
    """
    if simulated_results.final_flask_stage != FlaskStage.REACTED.value:
        raise IncompleteExperimentError(
            "Please perform the experiment before submitting."
        )
    name = (student_name or "").strip()
    if not name:
        raise MissingStudentNameError("Please enter your name before submitting.")

    return SubmissionRecord(
        experiment_id=experiment_id,
        student_name=name,
        submission_date=submission_date or date.today(),
        status=SubmissionStatus.PENDING_EVALUATION,
        total_marks=None,
        evaluation={
            criterion: CriterionEvaluation()
            for criterion in parse_criteria(evaluation_criteria)
        },
        overall_feedback="",
        simulated_results=simulated_results,
    )
