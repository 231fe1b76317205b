"""ChemLab core package."""

from chemlab.catalog import DEFAULT_CATALOG, ReactionCatalog
from chemlab.grading import GradingWorkflow
from chemlab.models import (
    ExperimentDefinition,
    FlaskStage,
    ReactionDefinition,
    SubmissionRecord,
    SubmissionStatus,
)
from chemlab.session import SessionStateMachine
from chemlab.submission import build_submission

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CATALOG",
    "ReactionCatalog",
    "GradingWorkflow",
    "ExperimentDefinition",
    "FlaskStage",
    "ReactionDefinition",
    "SubmissionRecord",
    "SubmissionStatus",
    "SessionStateMachine",
    "build_submission",
]
