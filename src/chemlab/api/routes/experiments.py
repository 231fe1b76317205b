"""Experiment CRUD endpoints and per-experiment submission listing."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from chemlab.api.dependencies import (
    get_experiment_repository,
    get_submission_repository,
)
from chemlab.api.schemas import ExperimentIn
from chemlab.models import ExperimentDefinition
from chemlab.persistence import ExperimentRepository, SubmissionRepository

router = APIRouter(prefix="/api/experiments", tags=["experiments"])


def _definition(payload: ExperimentIn, experiment_id: int | None = None) -> ExperimentDefinition:
    return ExperimentDefinition.from_dict({**payload.model_dump(), "id": experiment_id})


@router.get("")
def list_experiments(
    experiments: ExperimentRepository = Depends(get_experiment_repository),
):
    return [experiment.to_dict() for experiment in experiments.list()]


@router.post("")
def create_experiment(
    payload: ExperimentIn,
    experiments: ExperimentRepository = Depends(get_experiment_repository),
):
    return {"id": experiments.create(_definition(payload))}


@router.put("/{experiment_id}")
def update_experiment(
    experiment_id: int,
    payload: ExperimentIn,
    experiments: ExperimentRepository = Depends(get_experiment_repository),
):
    return {"changes": experiments.update(_definition(payload, experiment_id))}


@router.delete("/{experiment_id}")
def delete_experiment(
    experiment_id: int,
    experiments: ExperimentRepository = Depends(get_experiment_repository),
):
    return {"changes": experiments.delete(experiment_id)}


@router.get("/{experiment_id}/submissions")
def list_submissions(
    experiment_id: int,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    return [record.to_dict() for record in submissions.list_by_experiment(experiment_id)]
