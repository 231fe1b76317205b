"""Shared constants for ChemLab."""

from __future__ import annotations

KELVIN_OFFSET = 273.15

# Activation energy divided by the gas constant (K) for the display estimate.
ACTIVATION_TEMPERATURE = 5000.0

TEMPERATURE_MIN = 20.0  # °C
TEMPERATURE_MAX = 60.0  # °C
DEFAULT_TEMPERATURE = 25.0  # °C

SETTLE_SECONDS = 1.5
MAX_SELECTION = 2

MARKS_MIN = 0
MARKS_MAX = 100
