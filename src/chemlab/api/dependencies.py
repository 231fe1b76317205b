"""FastAPI dependencies resolving shared state from the application."""

from __future__ import annotations

from fastapi import Request

from chemlab.api.registry import SessionRegistry
from chemlab.persistence import ExperimentRepository, SubmissionRepository


def get_experiment_repository(request: Request) -> ExperimentRepository:
    return request.app.state.experiments


def get_submission_repository(request: Request) -> SubmissionRepository:
    return request.app.state.submissions


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions
