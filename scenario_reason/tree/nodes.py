"""Classification tree nodes and builders.

One node type, tagged by NodeKind, carries everything a tree needs: a
label, children, an optional condition, leaf monitors, projection tags and
(for bounded groups) arity bounds.  Trees are written with the builders:

    exclusive("Weather",
        leaf("Clear", condition=lambda ctx: preds.weather_clear.holds(ctx)),
        leaf("Wet", condition=...),
        projections=proj_rec("environment"),
    )

Projection tags map a projection name to a *recursive* flag.  ``proj`` tags
only the node itself, ``proj_rec`` tags the node and every descendant.

Arity per kind (number of children that may hold at once):
    all        (n, n)
    exclusive  (1, 1)
    optional   (0, 1)   more than one holding child is an anomaly
    bounded    declared (lo, hi)
    leaf       (0, 0)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator, Mapping, Optional

from scenario_reason.core.context import EvaluationContext
from scenario_reason.domain.enums import NodeKind
from scenario_reason.domain.errors import CatalogueStructureError

Condition = Callable[[EvaluationContext], bool]

_GROUP_KINDS = frozenset({NodeKind.ALL, NodeKind.EXCLUSIVE, NodeKind.OPTIONAL, NodeKind.BOUNDED})


@dataclass(frozen=True)
class Monitor:
    """A rule checked on a leaf that held; failures are findings, not outcomes."""

    name: str
    check: Condition


@dataclass(frozen=True, eq=False)
class TSCNode:
    kind: NodeKind
    label: str
    children: tuple[TSCNode, ...] = ()
    condition: Optional[Condition] = None
    monitors: tuple[Monitor, ...] = ()
    projections: Mapping[str, bool] = field(default_factory=dict)
    bounds: Optional[tuple[int, int]] = None

    @property
    def is_leaf(self) -> bool:
        return self.kind == NodeKind.LEAF

    def holds(self, ctx: EvaluationContext) -> bool:
        """Evaluate the node's own condition (no condition means it always holds)."""
        return True if self.condition is None else bool(self.condition(ctx))

    def with_children(self, children: tuple[TSCNode, ...]) -> TSCNode:
        return TSCNode(
            kind=self.kind,
            label=self.label,
            children=children,
            condition=self.condition,
            monitors=self.monitors,
            projections=self.projections,
            bounds=self.bounds,
        )

    def __repr__(self) -> str:
        return f"TSCNode({self.kind.value}, {self.label!r}, children={len(self.children)})"


# ── Builders ─────────────────────────────────────────────────────────────────

def proj(*names: str) -> dict[str, bool]:
    """Tag a node (not its descendants) with the given projections."""
    return {name: False for name in names}


def proj_rec(*names: str) -> dict[str, bool]:
    """Tag a node and all of its descendants with the given projections."""
    return {name: True for name in names}


def leaf(
    label: str,
    condition: Condition | None = None,
    monitors: tuple[Monitor, ...] | list[Monitor] = (),
    projections: Mapping[str, bool] | None = None,
) -> TSCNode:
    return TSCNode(
        kind=NodeKind.LEAF,
        label=label,
        condition=condition,
        monitors=tuple(monitors),
        projections=dict(projections or {}),
    )


def _group(
    kind: NodeKind,
    label: str,
    children: tuple[TSCNode, ...],
    condition: Condition | None,
    projections: Mapping[str, bool] | None,
    bounds: tuple[int, int] | None = None,
) -> TSCNode:
    return TSCNode(
        kind=kind,
        label=label,
        children=tuple(children),
        condition=condition,
        projections=dict(projections or {}),
        bounds=bounds,
    )


def all_of(label: str, *children: TSCNode, condition: Condition | None = None,
           projections: Mapping[str, bool] | None = None) -> TSCNode:
    return _group(NodeKind.ALL, label, children, condition, projections)


def exclusive(label: str, *children: TSCNode, condition: Condition | None = None,
              projections: Mapping[str, bool] | None = None) -> TSCNode:
    return _group(NodeKind.EXCLUSIVE, label, children, condition, projections)


def optional(label: str, *children: TSCNode, condition: Condition | None = None,
             projections: Mapping[str, bool] | None = None) -> TSCNode:
    return _group(NodeKind.OPTIONAL, label, children, condition, projections)


def bounded(label: str, bounds: tuple[int, int], *children: TSCNode,
            condition: Condition | None = None,
            projections: Mapping[str, bool] | None = None) -> TSCNode:
    return _group(NodeKind.BOUNDED, label, children, condition, projections, bounds)


def arity(node: TSCNode, child_count: int | None = None) -> tuple[int, int]:
    """Allowed ``(min, max)`` number of holding children for *node*.

    *child_count* defaults to the node's own children; projection pruning
    passes the retained count instead.
    """
    n = len(node.children) if child_count is None else child_count
    if node.kind == NodeKind.ALL:
        return (n, n)
    if node.kind == NodeKind.EXCLUSIVE:
        return (1, 1)
    if node.kind == NodeKind.OPTIONAL:
        return (0, 1)
    if node.kind == NodeKind.BOUNDED:
        if node.bounds is None:
            raise CatalogueStructureError(node.label, "bounded group without bounds")
        return node.bounds
    return (0, 0)


# ── Tree ─────────────────────────────────────────────────────────────────────

class ClassificationTree:
    """A validated classification tree.

    Raises:
        CatalogueStructureError: for a group without children, a leaf with
            children, an invalid or unreachable bounded range, duplicate
            sibling labels, or a node reachable from itself.
    """

    __slots__ = ("root", "name")

    def __init__(self, root: TSCNode, name: str = "tsc") -> None:
        self.root = root
        self.name = name
        _validate(root, root.label, set())

    def walk(self) -> Iterator[tuple[str, TSCNode]]:
        """Depth-first ``(path, node)`` pairs, root first."""
        stack: list[tuple[str, TSCNode]] = [(self.root.label, self.root)]
        while stack:
            path, node = stack.pop()
            yield path, node
            for child in reversed(node.children):
                stack.append((f"{path}/{child.label}", child))

    def find(self, path: str) -> TSCNode | None:
        for node_path, node in self.walk():
            if node_path == path:
                return node
        return None

    def leaf_paths(self) -> list[str]:
        return [path for path, node in self.walk() if node.is_leaf]

    def __repr__(self) -> str:
        return f"ClassificationTree(name={self.name!r}, root={self.root.label!r})"


def _validate(node: TSCNode, path: str, on_path: set[int]) -> None:
    if id(node) in on_path:
        raise CatalogueStructureError(path, "node is its own ancestor")
    if node.is_leaf:
        if node.children:
            raise CatalogueStructureError(path, "leaf node has children")
        return
    if node.kind not in _GROUP_KINDS:
        raise CatalogueStructureError(path, f"unknown node kind {node.kind!r}")
    if not node.children:
        raise CatalogueStructureError(path, f"{node.kind.value} group has no children")

    if node.kind == NodeKind.BOUNDED:
        if node.bounds is None:
            raise CatalogueStructureError(path, "bounded group without bounds")
        lo, hi = node.bounds
        if lo < 0 or lo > hi:
            raise CatalogueStructureError(path, f"invalid bounds ({lo}, {hi})")
        if lo > len(node.children):
            raise CatalogueStructureError(
                path, f"bounds ({lo}, {hi}) unreachable with {len(node.children)} children"
            )

    labels = [child.label for child in node.children]
    duplicates = {label for label in labels if labels.count(label) > 1}
    if duplicates:
        raise CatalogueStructureError(path, f"duplicate child labels {sorted(duplicates)}")

    on_path.add(id(node))
    for child in node.children:
        _validate(child, f"{path}/{child.label}", on_path)
    on_path.discard(id(node))
