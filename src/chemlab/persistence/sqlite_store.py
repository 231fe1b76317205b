"""SQLite persistence for experiments and submissions."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Mapping

from chemlab.errors import NotFoundError, RepositoryError
from chemlab.models import ExperimentDefinition, SubmissionRecord
from chemlab.persistence.base import (
    SUBMISSION_UPDATE_FIELDS,
    ExperimentRepository,
    SubmissionRepository,
)

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS experiments (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  title TEXT NOT NULL,
  description TEXT,
  status TEXT,
  expectedReaction TEXT,
  evaluationCriteria TEXT
);
CREATE TABLE IF NOT EXISTS submissions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  experimentId INTEGER,
  studentName TEXT,
  submissionDate TEXT,
  status TEXT,
  totalMarks INTEGER,
  evaluation JSON,
  overallFeedback TEXT,
  simulatedResults JSON
);
"""

DEMO_EXPERIMENT = ExperimentDefinition(
    title="Effect of Temperature on Reaction Rate",
    description=(
        "Study the relationship between temperature and reaction rate using "
        "Na₂S₂O₃ and HCl"
    ),
    status="active",
    expected_reaction="Sodium Thiosulfate and Hydrochloric Acid",
    evaluation_criteria="Observation accuracy, Data analysis, Conclusion quality",
)

DEMO_SUBMISSIONS = (
    {
        "studentName": "Alice Smith",
        "submissionDate": "2023-10-27",
        "status": "Evaluated",
        "totalMarks": 85,
        "evaluation": {
            "Observation accuracy": {"marks": 30, "feedback": "Good observations."},
            "Data analysis": {"marks": 35, "feedback": "Analysis is mostly correct."},
            "Conclusion quality": {
                "marks": 20,
                "feedback": "Conclusion could be more detailed.",
            },
        },
        "overallFeedback": "Good work, minor improvements needed.",
    },
    {
        "studentName": "Bob Johnson",
        "submissionDate": "2023-10-26",
        "status": "Pending Evaluation",
        "totalMarks": None,
        "evaluation": {
            "Observation accuracy": {"marks": None, "feedback": ""},
            "Data analysis": {"marks": None, "feedback": ""},
            "Conclusion quality": {"marks": None, "feedback": ""},
        },
        "overallFeedback": "",
    },
)


def connect(database: str | Path) -> sqlite3.Connection:
    """Open (and create) the ChemLab SQLite database."""
    if str(database) != MEMORY:
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    try:
        connection = sqlite3.connect(database, check_same_thread=False)
    except sqlite3.Error as exc:
        raise RepositoryError(f"Cannot open database {database}: {exc}") from exc
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA foreign_keys = ON;")
    logger.info("Connected to the SQLite database at %s", database)
    return connection


def ensure_schema(connection: sqlite3.Connection) -> None:
    with _translate_errors():
        connection.executescript(SCHEMA_SQL)
        connection.commit()


def seed_demo_data(connection: sqlite3.Connection) -> bool:
    """Insert the demo experiment and submissions into empty tables."""
    experiments = SQLiteExperimentRepository(connection)
    submissions = SQLiteSubmissionRepository(connection)
    seeded = False
    with _translate_errors():
        experiment_count = connection.execute(
            "SELECT COUNT(*) FROM experiments"
        ).fetchone()[0]
    if experiment_count == 0:
        experiment_id = experiments.create(DEMO_EXPERIMENT)
        logger.info("Seeded demo experiment %s", experiment_id)
        seeded = True

    with _translate_errors():
        submission_count = connection.execute(
            "SELECT COUNT(*) FROM submissions"
        ).fetchone()[0]
    if submission_count == 0:
        # The demo rows belong to the first experiment.
        with _translate_errors():
            first_id = connection.execute("SELECT MIN(id) FROM experiments").fetchone()[0]
        for payload in DEMO_SUBMISSIONS:
            record = SubmissionRecord.from_dict({"experimentId": first_id, **payload})
            submissions.create(record)
        logger.info("Seeded %d demo submissions", len(DEMO_SUBMISSIONS))
        seeded = True
    return seeded


class SQLiteExperimentRepository(ExperimentRepository):
    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection

    def list(self) -> list[ExperimentDefinition]:
        with _translate_errors():
            rows = self.connection.execute(
                "SELECT * FROM experiments ORDER BY id"
            ).fetchall()
        return [ExperimentDefinition.from_dict(dict(row)) for row in rows]

    def get(self, experiment_id: int) -> ExperimentDefinition:
        with _translate_errors():
            row = self.connection.execute(
                "SELECT * FROM experiments WHERE id = ?", (experiment_id,)
            ).fetchone()
        if row is None:
            raise NotFoundError(f"Experiment {experiment_id} not found")
        return ExperimentDefinition.from_dict(dict(row))

    def create(self, experiment: ExperimentDefinition) -> int:
        with _translate_errors():
            cursor = self.connection.execute(
                "INSERT INTO experiments"
                " (title, description, status, expectedReaction, evaluationCriteria)"
                " VALUES (?, ?, ?, ?, ?)",
                (
                    experiment.title,
                    experiment.description,
                    experiment.status or "active",
                    experiment.expected_reaction,
                    experiment.evaluation_criteria,
                ),
            )
            self.connection.commit()
        return int(cursor.lastrowid)

    def update(self, experiment: ExperimentDefinition) -> int:
        if experiment.id is None:
            raise ValueError("Cannot update an experiment without an id")
        with _translate_errors():
            cursor = self.connection.execute(
                "UPDATE experiments SET title = ?, description = ?, status = ?,"
                " expectedReaction = ?, evaluationCriteria = ? WHERE id = ?",
                (
                    experiment.title,
                    experiment.description,
                    experiment.status,
                    experiment.expected_reaction,
                    experiment.evaluation_criteria,
                    experiment.id,
                ),
            )
            self.connection.commit()
        return cursor.rowcount

    def delete(self, experiment_id: int) -> int:
        # Submissions of a deleted experiment are left in place.
        with _translate_errors():
            cursor = self.connection.execute(
                "DELETE FROM experiments WHERE id = ?", (experiment_id,)
            )
            self.connection.commit()
        return cursor.rowcount


class SQLiteSubmissionRepository(SubmissionRepository):
    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection

    def create(self, record: SubmissionRecord) -> int:
        payload = record.to_dict()
        with _translate_errors():
            cursor = self.connection.execute(
                "INSERT INTO submissions (experimentId, studentName, submissionDate,"
                " status, totalMarks, evaluation, overallFeedback, simulatedResults)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    payload["experimentId"],
                    payload["studentName"],
                    payload["submissionDate"],
                    payload["status"],
                    payload["totalMarks"],
                    _json_dumps(payload["evaluation"]),
                    payload["overallFeedback"],
                    _json_dumps(payload["simulatedResults"]),
                ),
            )
            self.connection.commit()
        submission_id = int(cursor.lastrowid)
        logger.info(
            "Submission %s inserted for experiment %s",
            submission_id,
            record.experiment_id,
        )
        return submission_id

    def get(self, submission_id: int) -> SubmissionRecord:
        with _translate_errors():
            row = self.connection.execute(
                "SELECT * FROM submissions WHERE id = ?", (submission_id,)
            ).fetchone()
        if row is None:
            raise NotFoundError(f"Submission {submission_id} not found")
        return _submission_from_row(row)

    def list_by_experiment(self, experiment_id: int) -> list[SubmissionRecord]:
        with _translate_errors():
            rows = self.connection.execute(
                "SELECT * FROM submissions WHERE experimentId = ? ORDER BY id",
                (experiment_id,),
            ).fetchall()
        logger.info(
            "Found %d submissions for experiment %s", len(rows), experiment_id
        )
        return [_submission_from_row(row) for row in rows]

    def update(self, submission_id: int, fields: Mapping[str, Any]) -> int:
        unknown = set(fields) - SUBMISSION_UPDATE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update submission fields: {sorted(unknown)}")
        if not fields:
            return 0

        columns: list[str] = []
        values: list[object] = []
        for name in sorted(fields):
            value = fields[name]
            if name == "evaluation":
                value = _json_dumps(value or {})
            columns.append(f"{name} = ?")
            values.append(value)
        values.append(submission_id)

        with _translate_errors():
            cursor = self.connection.execute(
                f"UPDATE submissions SET {', '.join(columns)} WHERE id = ?",
                values,
            )
            self.connection.commit()
        logger.info("Submission %s updated (%s)", submission_id, ", ".join(sorted(fields)))
        return cursor.rowcount


def _submission_from_row(row: sqlite3.Row) -> SubmissionRecord:
    data = dict(row)
    data["evaluation"] = _json_loads(data.get("evaluation")) or {}
    data["simulatedResults"] = _json_loads(data.get("simulatedResults"))
    return SubmissionRecord.from_dict(data)


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise RepositoryError(str(exc)) from exc


def _json_dumps(payload: object) -> str | None:
    if payload is None:
        return None
    return json.dumps(payload, ensure_ascii=False)


def _json_loads(text: str | None) -> Any:
    if not text:
        return None
    return json.loads(text)
