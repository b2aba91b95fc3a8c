"""Projections — named views of a classification tree.

A projection keeps a node iff the node is tagged with the projection name
or an ancestor tagged it recursively.  Arity is re-checked over the retained
children only, so pruning can change which instances are possible at all:

    Stop Type (bounded 0..1) over 3 leaves  → 4 possible instances
    same group with 1 retained leaf          → 2 possible instances

Possible-instance enumeration is purely structural.  It never looks at data.
"""

from __future__ import annotations

import logging
import re
from itertools import combinations, product
from typing import Iterable

from scenario_reason.domain.classification import TSCInstance
from scenario_reason.domain.enums import NodeKind
from scenario_reason.domain.errors import CatalogueStructureError, UnknownProjectionError
from scenario_reason.tree.nodes import ClassificationTree, TSCNode, arity

logger = logging.getLogger(__name__)


# ── Public API ───────────────────────────────────────────────────────────────

def projection_names(tree: ClassificationTree) -> list[str]:
    """Every projection name any node of *tree* is tagged with, sorted."""
    names: set[str] = set()
    for _, node in tree.walk():
        names.update(node.projections)
    return sorted(names)


def prune_for(tree: ClassificationTree, name: str) -> ClassificationTree:
    """The sub-tree of *tree* retained by projection *name*.

    Raises:
        UnknownProjectionError: no node carries *name*.
        CatalogueStructureError: the root is not retained, or a group's
            arity cannot be met by its retained children.
    """
    if name not in projection_names(tree):
        raise UnknownProjectionError(name)
    pruned = _prune(tree.root, tree.root.label, name, inherited=False)
    if pruned is None:
        raise CatalogueStructureError(tree.root.label, f"root is not part of projection '{name}'")
    return ClassificationTree(pruned, name=name)


def build_projections(
    tree: ClassificationTree,
    ignore: Iterable[str] = (),
    include: str = ".*",
) -> dict[str, ClassificationTree]:
    """Prune *tree* for every projection not ignored and matching *include*.

    Structural errors surface here, before any segment is evaluated.
    """
    ignored = set(ignore)
    pattern = re.compile(include)
    projections: dict[str, ClassificationTree] = {}
    for name in projection_names(tree):
        if name in ignored or not pattern.fullmatch(name):
            logger.debug("Projection %s skipped", name)
            continue
        projections[name] = prune_for(tree, name)
    logger.info(
        "Built %d projections of %s: %s",
        len(projections), tree.name, ", ".join(projections),
    )
    return projections


def enumerate_possible_instances(tree: ClassificationTree | TSCNode) -> frozenset[TSCInstance]:
    """Every instance the tree's structure admits."""
    root = tree.root if isinstance(tree, ClassificationTree) else tree
    return frozenset(_instances(root))


# ── Internal helpers ─────────────────────────────────────────────────────────

def _prune(node: TSCNode, path: str, name: str, inherited: bool) -> TSCNode | None:
    if not inherited and name not in node.projections:
        return None
    recursive = inherited or node.projections.get(name, False)

    if node.is_leaf:
        return node

    kept: list[TSCNode] = []
    for child in node.children:
        pruned = _prune(child, f"{path}/{child.label}", name, recursive)
        if pruned is not None:
            kept.append(pruned)
    retained = tuple(kept)

    if not retained:
        if node.kind == NodeKind.EXCLUSIVE:
            raise CatalogueStructureError(path, f"no child retained in projection '{name}'")
        if node.kind == NodeKind.BOUNDED and node.bounds is not None and node.bounds[0] > 0:
            raise CatalogueStructureError(path, f"no child retained in projection '{name}'")
        # A group stripped of every child is classified by its own condition
        return TSCNode(
            kind=NodeKind.LEAF,
            label=node.label,
            condition=node.condition,
            projections=node.projections,
        )

    lo, _ = arity(node, len(retained))
    if lo > len(retained):
        raise CatalogueStructureError(
            path,
            f"needs at least {lo} children but projection '{name}' retains {len(retained)}",
        )
    return node.with_children(retained)


def _instances(node: TSCNode) -> set[TSCInstance]:
    if node.is_leaf:
        return {TSCInstance(label=node.label)}

    child_sets = [_instances(child) for child in node.children]
    n = len(child_sets)
    lo, hi = arity(node, n)
    result: set[TSCInstance] = set()
    for k in range(lo, min(hi, n) + 1):
        for chosen in combinations(range(n), k):
            for picks in product(*(child_sets[i] for i in chosen)):
                result.add(TSCInstance(label=node.label, children=picks))
    return result
