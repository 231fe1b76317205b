"""Repository interfaces consumed by the ChemLab core."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from chemlab.models import ExperimentDefinition, SubmissionRecord

SUBMISSION_UPDATE_FIELDS = frozenset(
    {"status", "totalMarks", "evaluation", "overallFeedback"}
)


class ExperimentRepository(ABC):
    """Storage for faculty-defined experiments."""

    @abstractmethod
    def list(self) -> Sequence[ExperimentDefinition]:
        pass

    @abstractmethod
    def get(self, experiment_id: int) -> ExperimentDefinition:
        """Return one experiment or raise ``NotFoundError``."""
        pass

    @abstractmethod
    def create(self, experiment: ExperimentDefinition) -> int:
        pass

    @abstractmethod
    def update(self, experiment: ExperimentDefinition) -> int:
        """Overwrite the experiment with ``experiment.id``; return rows changed."""
        pass

    @abstractmethod
    def delete(self, experiment_id: int) -> int:
        pass


class SubmissionRepository(ABC):
    """Storage for student submissions and their evaluations."""

    @abstractmethod
    def create(self, record: SubmissionRecord) -> int:
        pass

    @abstractmethod
    def get(self, submission_id: int) -> SubmissionRecord:
        """Return one submission or raise ``NotFoundError``."""
        pass

    @abstractmethod
    def list_by_experiment(self, experiment_id: int) -> Sequence[SubmissionRecord]:
        pass

    @abstractmethod
    def update(self, submission_id: int, fields: Mapping[str, Any]) -> int:
        """Write a subset of ``SUBMISSION_UPDATE_FIELDS``; return rows changed."""
        pass
