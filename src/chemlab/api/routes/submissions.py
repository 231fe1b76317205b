"""Submission endpoints: student inserts and faculty grading updates."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from chemlab.api.dependencies import (
    get_experiment_repository,
    get_submission_repository,
)
from chemlab.api.schemas import SubmissionIn, SubmissionUpdate
from chemlab.grading import GradingWorkflow
from chemlab.models import SimulatedResults
from chemlab.persistence import ExperimentRepository, SubmissionRepository
from chemlab.submission import new_submission

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.post("")
def create_submission(
    payload: SubmissionIn,
    experiments: ExperimentRepository = Depends(get_experiment_repository),
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    criteria = list(payload.evaluation) or experiments.get(
        payload.experimentId
    ).evaluation_criteria
    record = new_submission(
        payload.experimentId,
        payload.studentName,
        SimulatedResults.from_dict(payload.simulatedResults.model_dump()),
        evaluation_criteria=criteria,
        submission_date=payload.submissionDate,
    )
    return {"id": submissions.create(record)}


@router.get("/{submission_id}")
def get_submission(
    submission_id: int,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    return submissions.get(submission_id).to_dict()


@router.put("/{submission_id}")
def grade_submission(
    submission_id: int,
    payload: SubmissionUpdate,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    workflow = GradingWorkflow(submissions.get(submission_id))
    workflow.apply(payload.model_dump(exclude_unset=True))
    return {"changes": submissions.update(submission_id, workflow.changes())}
