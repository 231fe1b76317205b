"""Data structures for chemicals, reactions, experiments and submissions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Mapping, Sequence

ChemicalName = str

# Display colours used by the flask renderer before any reaction happens.
KNOWN_CHEMICALS: Mapping[ChemicalName, str] = {
    "Sodium Thiosulfate": "#ffffff",
    "Hydrochloric Acid": "#ffffff",
    "Copper Sulfate": "#4682B4",
    "Ammonia": "#f0f8ff",
    "Silver Nitrate": "#ffffff",
    "Sodium Chloride": "#ffffff",
    "Iron(III) Chloride": "#a0522d",
    "Potassium Thiocyanate": "#ffffff",
    "Lead(II) Nitrate": "#ffffff",
    "Potassium Iodide": "#ffffff",
    "Hydrogen Peroxide": "#ffffff",
}


class FlaskStage(str, Enum):
    EMPTY = "empty"
    ONE_CHEMICAL = "one_chemical"
    TWO_CHEMICALS_SELECTED = "two_chemicals_selected"
    MIXING = "mixing"
    REACTED = "reacted"


class SubmissionStatus(str, Enum):
    PENDING_EVALUATION = "Pending Evaluation"
    EVALUATED = "Evaluated"


@dataclass(frozen=True)
class ReactionDefinition:
    """A recognised reaction between exactly two distinct reagents.

    ``reagents`` is always stored sorted so two definitions with the same
    pair compare equal on that field regardless of declaration order.
    """

    reaction_id: str
    reagents: tuple[ChemicalName, ChemicalName]
    equation: str
    observation: str
    final_color: str = "#ffffff"
    precipitate: str | None = None
    foam: bool = False

    def __post_init__(self) -> None:
        if len(self.reagents) != 2 or len(set(self.reagents)) != 2:
            raise ValueError(
                f"Reaction {self.reaction_id!r} needs two distinct reagents, "
                f"got {self.reagents!r}"
            )
        object.__setattr__(self, "reagents", tuple(sorted(self.reagents)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "reactionId": self.reaction_id,
            "reagents": list(self.reagents),
            "equation": self.equation,
            "observation": self.observation,
            "finalColor": self.final_color,
            "precipitate": self.precipitate,
            "foam": self.foam,
        }


@dataclass
class CriterionEvaluation:
    marks: int | None = None
    feedback: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"marks": self.marks, "feedback": self.feedback}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "CriterionEvaluation":
        data = data or {}
        marks = data.get("marks")
        return cls(
            marks=None if marks is None else int(marks),
            feedback=data.get("feedback") or "",
        )


@dataclass(frozen=True)
class SimulatedResults:
    final_flask_stage: str
    final_progress: int
    temperature: float
    chemicals_used: tuple[ChemicalName, ...]
    reaction_equation: str
    reaction_observation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "finalFlaskStage": self.final_flask_stage,
            "finalProgress": self.final_progress,
            "temperature": self.temperature,
            "chemicalsUsed": list(self.chemicals_used),
            "reactionEquation": self.reaction_equation,
            "reactionObservation": self.reaction_observation,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SimulatedResults":
        return cls(
            final_flask_stage=data.get("finalFlaskStage", ""),
            final_progress=int(data.get("finalProgress") or 0),
            temperature=float(data.get("temperature") or 0.0),
            chemicals_used=tuple(data.get("chemicalsUsed") or ()),
            reaction_equation=data.get("reactionEquation") or "",
            reaction_observation=data.get("reactionObservation") or "",
        )


@dataclass
class SubmissionRecord:
    """A student's recorded attempt at an experiment.

    ``simulated_results`` is absent only on records that were inserted
    without a simulation, such as the demo rows.
    """

    experiment_id: int
    student_name: str
    submission_date: date
    status: SubmissionStatus = SubmissionStatus.PENDING_EVALUATION
    total_marks: int | None = None
    evaluation: dict[str, CriterionEvaluation] = field(default_factory=dict)
    overall_feedback: str = ""
    simulated_results: SimulatedResults | None = None
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "experimentId": self.experiment_id,
            "studentName": self.student_name,
            "submissionDate": self.submission_date.isoformat(),
            "status": self.status.value,
            "totalMarks": self.total_marks,
            "evaluation": {
                criterion: detail.to_dict()
                for criterion, detail in self.evaluation.items()
            },
            "overallFeedback": self.overall_feedback,
            "simulatedResults": (
                self.simulated_results.to_dict()
                if self.simulated_results is not None
                else None
            ),
        }
        if self.id is not None:
            payload = {"id": self.id, **payload}
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SubmissionRecord":
        submission_date = data.get("submissionDate")
        if isinstance(submission_date, date):
            parsed_date = submission_date
        elif submission_date:
            parsed_date = date.fromisoformat(str(submission_date)[:10])
        else:
            parsed_date = date.today()
        total_marks = data.get("totalMarks")
        simulated = data.get("simulatedResults")
        record_id = data.get("id")
        return cls(
            id=None if record_id is None else int(record_id),
            experiment_id=int(data["experimentId"]),
            student_name=data.get("studentName") or "",
            submission_date=parsed_date,
            status=SubmissionStatus(
                data.get("status") or SubmissionStatus.PENDING_EVALUATION.value
            ),
            total_marks=None if total_marks is None else int(total_marks),
            evaluation={
                criterion: CriterionEvaluation.from_dict(detail)
                for criterion, detail in (data.get("evaluation") or {}).items()
            },
            overall_feedback=data.get("overallFeedback") or "",
            simulated_results=(
                SimulatedResults.from_dict(simulated) if simulated else None
            ),
        )


@dataclass
class ExperimentDefinition:
    title: str
    description: str = ""
    status: str = "active"
    expected_reaction: str = ""
    evaluation_criteria: str = ""
    id: int | None = None

    @property
    def criteria(self) -> list[str]:
        return parse_criteria(self.evaluation_criteria)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "expectedReaction": self.expected_reaction,
            "evaluationCriteria": self.evaluation_criteria,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExperimentDefinition":
        record_id = data.get("id")
        return cls(
            id=None if record_id is None else int(record_id),
            title=data["title"],
            description=data.get("description") or "",
            status=data.get("status") or "active",
            expected_reaction=data.get("expectedReaction") or "",
            evaluation_criteria=data.get("evaluationCriteria") or "",
        )


_CRITERIA_SPLIT = re.compile(r"[,\n]")


def parse_criteria(criteria: str | Sequence[str] | None) -> list[str]:
    """Split a comma or newline delimited criteria list, keeping order."""
    if not criteria:
        return []
    parts = _CRITERIA_SPLIT.split(criteria) if isinstance(criteria, str) else criteria
    names: list[str] = []
    for part in parts:
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return names
