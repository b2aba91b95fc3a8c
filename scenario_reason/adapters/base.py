"""Abstract base for segment adapters.

Segment adapters turn raw payloads from a recording source into the
canonical Segment model, road network included.  The dict-level methods
(can_handle, adapt, source_name) are for payloads that arrive as plain
JSON outside the API; the API hands adapters already typed payloads.

Architectural rules:
    1. Adapters must NOT mutate the incoming payload dict.
    2. adapt() must return a fully valid Segment or raise ValueError.
    3. No classification logic lives inside an adapter, only mapping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from scenario_reason.domain.tick import Segment


class SegmentAdapter(ABC):
    """Base class for converting raw payloads into canonical Segments."""

    @abstractmethod
    def can_handle(self, raw: dict[str, Any]) -> bool:
        """Return True if this adapter knows how to translate *raw*.

        Must be a fast, non-destructive check (e.g. key presence).
        """
        ...

    @abstractmethod
    def adapt(self, raw: dict[str, Any]) -> Segment:
        """Translate a raw payload dict into a validated Segment.

        Raises:
            ValueError: If the payload cannot be normalised.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Human-readable name of the recording format this adapter handles."""
        ...
