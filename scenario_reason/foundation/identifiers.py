"""ID generation for evaluation runs."""

from __future__ import annotations

from uuid import UUID, uuid4


def new_id() -> UUID:
    """Generate a new random UUID v4 for an evaluation run."""
    return uuid4()
