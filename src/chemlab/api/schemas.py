"""Request bodies accepted by the REST API.

Field names follow the JSON wire format used by the front end.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from chemlab.constants import DEFAULT_TEMPERATURE


class ExperimentIn(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    status: str = "active"
    expectedReaction: str = ""
    evaluationCriteria: str = ""


class SimulatedResultsIn(BaseModel):
    finalFlaskStage: str
    finalProgress: int = 0
    temperature: float = DEFAULT_TEMPERATURE
    chemicalsUsed: list[str] = Field(default_factory=list)
    reactionEquation: str = ""
    reactionObservation: str = ""


class SubmissionIn(BaseModel):
    # Status and marks are not accepted here: a new submission is always
    # pending and ungraded. Only the criterion names of `evaluation` are used.
    experimentId: int
    studentName: str = ""
    submissionDate: date | None = None
    evaluation: dict[str, Any] = Field(default_factory=dict)
    simulatedResults: SimulatedResultsIn


class CriterionUpdate(BaseModel):
    marks: int | None = None
    feedback: str | None = None


class SubmissionUpdate(BaseModel):
    # Marks are range-checked by GradingWorkflow, not here.
    status: str | None = None
    totalMarks: int | None = None
    evaluation: dict[str, CriterionUpdate] | None = None
    overallFeedback: str | None = None


class SessionIn(BaseModel):
    temperature: float = DEFAULT_TEMPERATURE


class ChemicalToggle(BaseModel):
    name: str


class TemperatureIn(BaseModel):
    temperature: float


class SessionSubmit(BaseModel):
    experimentId: int
    studentName: str = ""
