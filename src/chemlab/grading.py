"""Faculty-side grading of submission records.

The workflow only transforms the record in memory. Saving the result is
left to the caller, through ``SubmissionRepository.update(id, changes())``.
Concurrent graders are not detected; the last saved update wins.
"""

from __future__ import annotations

import copy
from typing import Any, Mapping

from chemlab.constants import MARKS_MAX, MARKS_MIN
from chemlab.errors import InvalidMarksError, InvalidStatusError
from chemlab.models import CriterionEvaluation, SubmissionRecord, SubmissionStatus


def validate_marks(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidMarksError(f"Marks must be a whole number, got {value!r}.")
    if not MARKS_MIN <= value <= MARKS_MAX:
        raise InvalidMarksError(
            f"Marks must be between {MARKS_MIN} and {MARKS_MAX}, got {value}."
        )
    return value


class GradingWorkflow:
    def __init__(self, record: SubmissionRecord) -> None:
        self.record = record

    @property
    def is_evaluated(self) -> bool:
        return self.record.status is SubmissionStatus.EVALUATED

    def set_criterion_feedback(self, criterion: str, feedback: str) -> None:
        detail = self.record.evaluation.get(criterion)
        if detail is None:
            self.record.evaluation[criterion] = CriterionEvaluation(feedback=feedback)
        else:
            detail.feedback = feedback

    def set_criterion_marks(self, criterion: str, marks: int | None) -> None:
        marks = validate_marks(marks)
        detail = self.record.evaluation.get(criterion)
        if detail is None:
            self.record.evaluation[criterion] = CriterionEvaluation(marks=marks)
        else:
            detail.marks = marks

    def set_total_marks(self, value: int | None) -> None:
        self.record.total_marks = validate_marks(value)

    def set_overall_feedback(self, text: str) -> None:
        self.record.overall_feedback = text

    def finalize(self) -> None:
        # Finalizing twice leaves the record as it was after the first call.
        self.record.status = SubmissionStatus.EVALUATED

    def apply(self, payload: Mapping[str, Any]) -> None:
        """Apply a wire-format grading update as a single step.

        Recognised keys are ``status``, ``totalMarks``, ``evaluation`` and
        ``overallFeedback``. Either every field is applied or, when one is
        invalid, none are.
        """
        staged = GradingWorkflow(copy.deepcopy(self.record))
        if "totalMarks" in payload:
            staged.set_total_marks(payload["totalMarks"])
        for criterion, detail in (payload.get("evaluation") or {}).items():
            detail = detail or {}
            if "marks" in detail:
                staged.set_criterion_marks(criterion, detail["marks"])
            if "feedback" in detail:
                staged.set_criterion_feedback(criterion, detail["feedback"] or "")
        if "overallFeedback" in payload:
            staged.set_overall_feedback(payload["overallFeedback"] or "")
        if "status" in payload and payload["status"] is not None:
            try:
                status = SubmissionStatus(payload["status"])
            except ValueError as exc:
                raise InvalidStatusError(f"Unknown status {payload['status']!r}.") from exc
            if status is SubmissionStatus.EVALUATED:
                staged.finalize()
            elif staged.is_evaluated:
                raise InvalidStatusError(
                    "An evaluated submission cannot return to pending evaluation."
                )
        self.record = staged.record

    def changes(self) -> dict[str, Any]:
        """Partial update for ``SubmissionRepository.update``."""
        return {
            "status": self.record.status.value,
            "totalMarks": self.record.total_marks,
            "evaluation": {
                criterion: detail.to_dict()
                for criterion, detail in self.record.evaluation.items()
            },
            "overallFeedback": self.record.overall_feedback,
        }
