"""Shared schema pieces."""

from __future__ import annotations

from pydantic import BaseModel

from timekeeper.core.exceptions import ValidationError
from timekeeper.core.timeutil import parse_hhmm


class DeleteResponse(BaseModel):
    success: bool
    message: str


def validate_hhmm(v: str) -> str:
    """Normalise ``9:5`` / ``09:05`` to ``09:05``; raise ValueError otherwise."""
    v = v.strip()
    if len(v.split(":")) != 2:
        raise ValueError("Time must be in HH:mm format")
    try:
        return parse_hhmm(v).strftime("%H:%M")
    except ValidationError as e:
        raise ValueError("Time must be in HH:mm format") from e
