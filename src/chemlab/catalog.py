"""Reaction catalog: unordered reagent pairs to reaction metadata."""

from __future__ import annotations

from typing import Iterable, Iterator

from chemlab.models import ChemicalName, ReactionDefinition


class DuplicateReactionError(ValueError):
    """Two catalog entries share the same reagent pair or id."""


def canonical_pair(chemicals: Iterable[ChemicalName]) -> tuple[ChemicalName, ...]:
    return tuple(sorted(chemicals))


class ReactionCatalog:
    """Read-only lookup table of recognised reactions.

    Duplicate reagent pairs are rejected when the catalog is built, so a
    lookup never has to pick between two candidates.
    """

    def __init__(self, reactions: Iterable[ReactionDefinition]):
        by_pair: dict[tuple[ChemicalName, ...], ReactionDefinition] = {}
        by_id: dict[str, ReactionDefinition] = {}
        for reaction in reactions:
            if reaction.reagents in by_pair:
                raise DuplicateReactionError(
                    f"Reagents {reaction.reagents!r} already used by "
                    f"{by_pair[reaction.reagents].reaction_id!r}"
                )
            if reaction.reaction_id in by_id:
                raise DuplicateReactionError(
                    f"Duplicate reaction id {reaction.reaction_id!r}"
                )
            by_pair[reaction.reagents] = reaction
            by_id[reaction.reaction_id] = reaction
        self._by_pair = by_pair
        self._by_id = by_id

    def resolve(self, selected: Iterable[ChemicalName]) -> ReactionDefinition | None:
        """Return the reaction for exactly two distinct chemicals, else None."""
        pair = canonical_pair(set(selected))
        if len(pair) != 2:
            return None
        return self._by_pair.get(pair)

    def get(self, reaction_id: str) -> ReactionDefinition | None:
        return self._by_id.get(reaction_id)

    def reactions(self) -> list[ReactionDefinition]:
        return list(self._by_pair.values())

    def __iter__(self) -> Iterator[ReactionDefinition]:
        return iter(self._by_pair.values())

    def __len__(self) -> int:
        return len(self._by_pair)


DEFAULT_REACTIONS = (
    ReactionDefinition(
        reaction_id="Sodium Thiosulfate+Hydrochloric Acid",
        reagents=("Sodium Thiosulfate", "Hydrochloric Acid"),
        equation="Na2S2O3(aq) + 2 HCl(aq) → 2 NaCl(aq) + SO2(g) + S(s) + H2O(l)",
        observation=(
            "A cloudy white precipitate of sulfur forms, and sulfur dioxide "
            "gas is produced (pungent smell)."
        ),
        final_color="#ff4500",
    ),
    ReactionDefinition(
        reaction_id="Copper Sulfate+Ammonia",
        reagents=("Copper Sulfate", "Ammonia"),
        equation=(
            "CuSO4(aq) + 2 NH3(aq) + 2 H2O(l) → Cu(OH)2(s) + (NH4)2SO4(aq)  "
            "followed by  Cu(OH)2(s) + 4 NH3(aq) → [Cu(NH3)4(H2O)2]SO4(aq)"
        ),
        observation=(
            "A pale blue precipitate forms, which then dissolves in excess "
            "ammonia to form a deep blue solution."
        ),
        final_color="#00008b",
    ),
    ReactionDefinition(
        reaction_id="Silver Nitrate+Sodium Chloride",
        reagents=("Silver Nitrate", "Sodium Chloride"),
        equation="AgNO3(aq) + NaCl(aq) → AgCl(s) + NaNO3(aq)",
        observation="A white, curdy precipitate of silver chloride forms.",
        final_color="#ffffff",
        precipitate="#ffffff",
    ),
    ReactionDefinition(
        reaction_id="Iron(III) Chloride+Potassium Thiocyanate",
        reagents=("Iron(III) Chloride", "Potassium Thiocyanate"),
        equation="FeCl3(aq) + 3 KSCN(aq) → Fe(SCN)3(aq) + 3 KCl(aq)",
        observation=(
            "The solution turns blood-red due to the formation of "
            "iron(III) thiocyanate."
        ),
        final_color="#8b0000",
    ),
    ReactionDefinition(
        reaction_id="Lead(II) Nitrate+Potassium Iodide",
        reagents=("Lead(II) Nitrate", "Potassium Iodide"),
        equation="Pb(NO3)2(aq) + 2 KI(aq) → PbI2(s) + 2 KNO3(aq)",
        observation="A bright yellow precipitate of lead(II) iodide forms.",
        final_color="#ffff00",
        precipitate="#ffff00",
    ),
    ReactionDefinition(
        reaction_id="Hydrogen Peroxide+Potassium Iodide",
        reagents=("Hydrogen Peroxide", "Potassium Iodide"),
        # Simplified; KI only catalyses the decomposition.
        equation="2 H2O2(aq) + 2 KI(aq) → I2(aq) + 2 KOH(aq) + O2(g)",
        observation=(
            "Rapid effervescence (bubbling) due to oxygen gas production, and "
            "the solution may turn slightly brown from iodine."
        ),
        final_color="#f0f8ff",
        foam=True,
    ),
)

DEFAULT_CATALOG = ReactionCatalog(DEFAULT_REACTIONS)
