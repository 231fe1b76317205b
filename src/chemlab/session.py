"""Experiment session state machine.

A session tracks the chemicals poured into a single flask, the flask stage
derived from them, and the reaction once a mix has settled::

    empty -> one_chemical -> two_chemicals_selected -> mixing -> reacted

Any selection change recomputes the stage from the selection count alone and
throws away a pending or completed mix.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from chemlab.catalog import DEFAULT_CATALOG, ReactionCatalog
from chemlab.constants import (
    DEFAULT_TEMPERATURE,
    MAX_SELECTION,
    SETTLE_SECONDS,
    TEMPERATURE_MAX,
    TEMPERATURE_MIN,
)
from chemlab.errors import (
    ConcurrentMixError,
    InvalidSelectionError,
    InvalidTemperatureError,
    UnrecognizedReactionError,
)
from chemlab.kinetics import estimate_reaction_time
from chemlab.models import ChemicalName, FlaskStage, ReactionDefinition

logger = logging.getLogger(__name__)

_STAGE_BY_COUNT = {
    0: FlaskStage.EMPTY,
    1: FlaskStage.ONE_CHEMICAL,
    2: FlaskStage.TWO_CHEMICALS_SELECTED,
}


def stage_for_selection(count: int) -> FlaskStage:
    return _STAGE_BY_COUNT.get(count, FlaskStage.EMPTY)


def _validate_temperature(value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidTemperatureError(f"Temperature must be a number, got {value!r}.")
    if not TEMPERATURE_MIN <= value <= TEMPERATURE_MAX:
        raise InvalidTemperatureError(
            f"Temperature must be between {TEMPERATURE_MIN:g} and "
            f"{TEMPERATURE_MAX:g} °C, got {value:g}."
        )
    return float(value)


class SessionStateMachine:
    """State of one flask for one client.

    ``mix`` is a coroutine: the settling period is an asyncio task owned by
    the session. ``close`` or a selection change invalidates it, and an
    invalidated completion never touches the session.
    """

    def __init__(
        self,
        catalog: ReactionCatalog = DEFAULT_CATALOG,
        settle_seconds: float = SETTLE_SECONDS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        self.catalog = catalog
        self.settle_seconds = settle_seconds
        self._temperature = _validate_temperature(temperature)
        self._selected: list[ChemicalName] = []
        self._stage = FlaskStage.EMPTY
        self._reaction: ReactionDefinition | None = None
        self._progress = 0
        self._generation = 0
        self._pending: asyncio.Future | None = None
        self._closed = False

    @property
    def selected_chemicals(self) -> tuple[ChemicalName, ...]:
        return tuple(self._selected)

    @property
    def flask_stage(self) -> FlaskStage:
        return self._stage

    @property
    def active_reaction(self) -> ReactionDefinition | None:
        return self._reaction

    @property
    def equation(self) -> str:
        return self._reaction.equation if self._reaction else ""

    @property
    def observation(self) -> str:
        return self._reaction.observation if self._reaction else ""

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def estimated_reaction_time(self) -> float:
        return estimate_reaction_time(self._temperature)

    @property
    def closed(self) -> bool:
        return self._closed

    def toggle_chemical(self, name: ChemicalName) -> FlaskStage:
        """Add ``name`` to the flask, or take it out if already there."""
        self._ensure_open()
        if name in self._selected:
            selected = [chemical for chemical in self._selected if chemical != name]
        elif len(self._selected) >= MAX_SELECTION:
            raise InvalidSelectionError(
                f"At most {MAX_SELECTION} chemicals can be selected; "
                f"remove one before adding {name!r}."
            )
        else:
            selected = [*self._selected, name]

        self._invalidate_mix()
        self._selected = selected
        self._reaction = None
        self._progress = 0
        self._stage = stage_for_selection(len(selected))
        return self._stage

    def set_temperature(self, value: float) -> float:
        self._ensure_open()
        self._temperature = _validate_temperature(value)
        return self._temperature

    async def mix(self) -> ReactionDefinition | None:
        """Mix the two selected chemicals and wait for the reaction to settle.

        Returns the reaction, or None when the completion was discarded
        because the session was closed or the selection changed meanwhile.
        """
        self._ensure_open()
        if self._stage is FlaskStage.MIXING:
            raise ConcurrentMixError("A mix is already in progress.")
        if len(self._selected) != MAX_SELECTION:
            raise InvalidSelectionError("Please select exactly two chemicals to mix.")
        if self._stage is FlaskStage.REACTED:
            raise InvalidSelectionError(
                "These chemicals have already reacted; change the selection first."
            )

        reaction = self.catalog.resolve(self._selected)
        if reaction is None:
            chemicals = tuple(self._selected)
            self._selected = []
            self._reaction = None
            self._progress = 0
            self._stage = FlaskStage.EMPTY
            logger.info("No reaction for %s; flask emptied", " + ".join(chemicals))
            raise UnrecognizedReactionError(
                "Selected chemicals do not match a known reaction: "
                + " + ".join(chemicals)
            )

        self._stage = FlaskStage.MIXING
        self._progress = 0
        generation = self._generation
        settle = asyncio.ensure_future(asyncio.sleep(self.settle_seconds))
        self._pending = settle
        try:
            await settle
        except asyncio.CancelledError:
            if generation != self._generation:
                return None
            # The awaiting task itself was cancelled; give the flask back.
            self._stage = stage_for_selection(len(self._selected))
            raise
        finally:
            if self._pending is settle:
                self._pending = None

        if (
            self._closed
            or generation != self._generation
            or self._stage is not FlaskStage.MIXING
        ):
            return None

        self._reaction = reaction
        self._progress = 100
        self._stage = FlaskStage.REACTED
        logger.info("Reaction %s completed", reaction.reaction_id)
        return reaction

    def close(self) -> None:
        """Tear the session down; a pending mix completes as a no-op."""
        self._closed = True
        self._invalidate_mix()

    def snapshot(self) -> dict[str, Any]:
        return {
            "selectedChemicals": list(self._selected),
            "flaskStage": self._stage.value,
            "progress": self._progress,
            "temperature": self._temperature,
            "estimatedReactionTime": self.estimated_reaction_time,
            "reactionId": self._reaction.reaction_id if self._reaction else None,
            "reactionEquation": self.equation,
            "reactionObservation": self.observation,
        }

    def _invalidate_mix(self) -> None:
        self._generation += 1
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidSelectionError("This session has been closed.")
