"""Read-only chemical and reaction reference data."""

from __future__ import annotations

from fastapi import APIRouter

from chemlab.catalog import DEFAULT_CATALOG
from chemlab.models import KNOWN_CHEMICALS

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/chemicals")
async def list_chemicals():
    return [{"name": name, "color": color} for name, color in KNOWN_CHEMICALS.items()]


@router.get("/reactions")
async def list_reactions():
    return [reaction.to_dict() for reaction in DEFAULT_CATALOG]
