"""Exception taxonomy for ChemLab.

Every error raised by the core leaves the session or submission it was
called on in its previous state, except ``UnrecognizedReactionError`` which
is raised after the session has been reset to an empty flask.
"""

from __future__ import annotations


class ChemLabError(Exception):
    """Base class for recoverable ChemLab errors."""


class InvalidSelectionError(ChemLabError):
    """The current chemical selection does not allow the requested action."""


class UnrecognizedReactionError(ChemLabError):
    """The selected pair of chemicals is not in the reaction catalog."""


class ConcurrentMixError(ChemLabError):
    """A mix was requested while another one is still settling."""


class IncompleteExperimentError(ChemLabError):
    """A submission was requested before the reaction completed."""


class MissingStudentNameError(ChemLabError):
    """A submission was requested without a student name."""


class InvalidMarksError(ChemLabError):
    """Marks outside 0-100 (or not an integer) were supplied."""


class InvalidTemperatureError(ChemLabError):
    """A temperature outside the supported range was supplied."""


class RepositoryError(ChemLabError):
    """Persistence failure surfaced unchanged from the storage layer."""


class NotFoundError(RepositoryError):
    """The requested row does not exist."""


class InvalidStatusError(ChemLabError):
    """An evaluated submission was asked to go back to pending."""
