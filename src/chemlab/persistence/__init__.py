"""Persistence layer for ChemLab."""

from chemlab.persistence.base import ExperimentRepository, SubmissionRepository
from chemlab.persistence.sqlite_store import (
    SQLiteExperimentRepository,
    SQLiteSubmissionRepository,
    connect,
    ensure_schema,
    seed_demo_data,
)

__all__ = [
    "ExperimentRepository",
    "SubmissionRepository",
    "SQLiteExperimentRepository",
    "SQLiteSubmissionRepository",
    "connect",
    "ensure_schema",
    "seed_demo_data",
]
