"""Classification results — instances, arity violations and monitor findings.

A TSCInstance is the pruned sub-tree of a classification tree that holds for
a segment.  Instances are structural values: two instances are equal when
they carry the same labels in the same shape, which is what lets the
possible-instance set of a projection be compared with what was observed.

    Weather(Clear) + Road Type(Junction(Maneuver(Left Turn))) + ...

A ClassificationResult wraps the observed instance with everything the
classifier noticed on the way: arity violations (the segment satisfied a
combination the tree does not allow) and the outcome of every monitor that
ran on a held leaf.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from scenario_reason.domain.enums import ClassificationStatus, NodeKind


class TSCInstance(BaseModel):
    """One node of an instance tree.  Children are kept sorted by label."""

    label: str
    children: tuple[TSCInstance, ...] = ()

    model_config = {"frozen": True}

    @field_validator("children")
    @classmethod
    def children_canonical_order(cls, v: tuple[TSCInstance, ...]) -> tuple[TSCInstance, ...]:
        return tuple(sorted(v, key=lambda c: c.label))

    def leaf_paths(self, prefix: str = "") -> list[str]:
        """Slash-separated label paths of every leaf below (and including) this node."""
        path = f"{prefix}/{self.label}" if prefix else self.label
        if not self.children:
            return [path]
        paths: list[str] = []
        for child in self.children:
            paths.extend(child.leaf_paths(path))
        return paths

    def leaf_labels(self) -> list[str]:
        return [p.rsplit("/", 1)[-1] for p in self.leaf_paths()]

    def render(self, indent: int = 0) -> str:
        """Human-readable indented tree."""
        lines = ["  " * indent + self.label]
        for child in self.children:
            lines.append(child.render(indent + 1))
        return "\n".join(lines)

    def __str__(self) -> str:
        if not self.children:
            return self.label
        inner = ", ".join(str(c) for c in self.children)
        return f"{self.label}({inner})"


TSCInstance.model_rebuild()


class ArityViolation(BaseModel):
    """A group whose number of satisfied children is outside its bounds."""

    node_path: str
    kind: NodeKind
    satisfied: tuple[str, ...] = Field(default=(), description="Labels of the children that held")
    bounds: tuple[int, int]

    model_config = {"frozen": True}


class MonitorFinding(BaseModel):
    """Outcome of one monitor on one held leaf."""

    node_path: str
    monitor: str
    passed: bool

    model_config = {"frozen": True}

    @property
    def key(self) -> str:
        return f"{self.node_path}::{self.monitor}"


class ClassificationResult(BaseModel):
    """Outcome of classifying one segment against one projection."""

    projection: str
    segment_source: str = ""
    primary_actor_id: int
    status: ClassificationStatus
    instance: Optional[TSCInstance] = None
    violations: tuple[ArityViolation, ...] = ()
    monitor_findings: tuple[MonitorFinding, ...] = ()

    model_config = {"frozen": True}

    @property
    def instances(self) -> frozenset[TSCInstance]:
        """Set view of the valid instance (empty on anomaly or no match)."""
        if self.status == ClassificationStatus.MATCHED and self.instance is not None:
            return frozenset({self.instance})
        return frozenset()

    @property
    def is_anomaly(self) -> bool:
        return self.status == ClassificationStatus.ANOMALY

    @property
    def monitor_results(self) -> dict[str, bool]:
        return {f.key: f.passed for f in self.monitor_findings}

    @property
    def failed_monitors(self) -> list[MonitorFinding]:
        return [f for f in self.monitor_findings if not f.passed]
