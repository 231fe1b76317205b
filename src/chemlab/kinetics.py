"""Arrhenius helpers for the cosmetic reaction-time estimate.

The estimate is shown next to the flask and never influences which
reaction a pair of chemicals resolves to.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from chemlab.constants import ACTIVATION_TEMPERATURE, KELVIN_OFFSET


@dataclass(frozen=True)
class ArrheniusKinetics:
    pre_exponential: float = 1.0
    activation_temperature: float = ACTIVATION_TEMPERATURE  # Ea / R, K

    def rate_constant(self, temperature: float) -> float:
        """Rate constant at ``temperature`` in kelvin."""
        return float(
            self.pre_exponential * np.exp(-self.activation_temperature / temperature)
        )

    def reaction_time(self, temperature_celsius: float) -> float:
        return 1.0 / self.rate_constant(temperature_celsius + KELVIN_OFFSET)


DEFAULT_KINETICS = ArrheniusKinetics()


def estimate_reaction_time(temperature_celsius: float) -> float:
    return DEFAULT_KINETICS.reaction_time(temperature_celsius)
