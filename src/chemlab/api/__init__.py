"""REST API for ChemLab."""

from chemlab.api.app import create_app

__all__ = ["create_app"]
