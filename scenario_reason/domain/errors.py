"""Exception hierarchy shared across the evaluation core.

Structural and empty-input errors abort a run.  Classification anomalies and
lookup misses are data, not exceptions, and never appear here.
"""

from __future__ import annotations


class ScenarioReasonError(Exception):
    """Base class for all fatal evaluation failures."""


class CatalogueStructureError(ScenarioReasonError):
    """Raised when a classification tree is malformed at build or prune time."""

    def __init__(self, node_path: str, reason: str) -> None:
        self.node_path = node_path
        self.reason = reason
        super().__init__(f"Malformed catalogue node '{node_path}': {reason}")


class EmptySegmentError(ScenarioReasonError):
    """Raised when an evaluation context is built over a segment without ticks."""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(f"Segment '{source}' contains no ticks")


class UnknownProjectionError(ScenarioReasonError):
    """Raised when a projection name is not carried by any node of the tree."""

    def __init__(self, projection: str) -> None:
        self.projection = projection
        super().__init__(f"Unknown projection '{projection}'")


class AdaptationError(ScenarioReasonError, ValueError):
    """Raised when an adapter cannot translate a raw payload into a Segment."""

    def __init__(self, adapter_name: str, reason: str) -> None:
        self.adapter_name = adapter_name
        self.reason = reason
        super().__init__(f"Adapter '{adapter_name}' failed: {reason}")