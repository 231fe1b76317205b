"""Server-side experiment sessions for thin clients."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from chemlab.api.dependencies import (
    get_experiment_repository,
    get_session_registry,
    get_submission_repository,
)
from chemlab.api.registry import SessionRegistry
from chemlab.api.schemas import ChemicalToggle, SessionIn, SessionSubmit, TemperatureIn
from chemlab.persistence import ExperimentRepository, SubmissionRepository
from chemlab.submission import build_submission

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post("")
async def create_session(
    payload: SessionIn | None = None,
    registry: SessionRegistry = Depends(get_session_registry),
):
    payload = payload or SessionIn()
    sid, session = registry.create(temperature=payload.temperature)
    return {"sessionId": sid, **session.snapshot()}


@router.get("/{sid}")
async def get_session(sid: str, registry: SessionRegistry = Depends(get_session_registry)):
    return {"sessionId": sid, **registry.get(sid).snapshot()}


@router.post("/{sid}/chemicals")
async def toggle_chemical(
    sid: str,
    payload: ChemicalToggle,
    registry: SessionRegistry = Depends(get_session_registry),
):
    session = registry.get(sid)
    session.toggle_chemical(payload.name)
    return {"sessionId": sid, **session.snapshot()}


@router.put("/{sid}/temperature")
async def set_temperature(
    sid: str,
    payload: TemperatureIn,
    registry: SessionRegistry = Depends(get_session_registry),
):
    session = registry.get(sid)
    session.set_temperature(payload.temperature)
    return {"sessionId": sid, **session.snapshot()}


@router.post("/{sid}/mix")
async def mix(sid: str, registry: SessionRegistry = Depends(get_session_registry)):
    session = registry.get(sid)
    reaction = await session.mix()
    return {
        "sessionId": sid,
        "completed": reaction is not None,
        **session.snapshot(),
    }


@router.post("/{sid}/submit")
async def submit(
    sid: str,
    payload: SessionSubmit,
    registry: SessionRegistry = Depends(get_session_registry),
    experiments: ExperimentRepository = Depends(get_experiment_repository),
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    # Session access stays on the event loop; the SQLite calls do not.
    session = registry.get(sid)
    experiment = await run_in_threadpool(experiments.get, payload.experimentId)
    record = build_submission(
        session,
        experiment_id=payload.experimentId,
        student_name=payload.studentName,
        evaluation_criteria=experiment.evaluation_criteria,
    )
    return {"id": await run_in_threadpool(submissions.create, record)}


@router.delete("/{sid}")
async def close_session(sid: str, registry: SessionRegistry = Depends(get_session_registry)):
    registry.close(sid)
    return {"closed": True}
