"""Classifier — evaluate a (projected) tree against one segment.

Conditions are evaluated top-down.  For every held group all children are
evaluated independently, then the count of holding children is checked
against the group's arity.  A violation is recorded, never raised, and the
result is marked ANOMALY so it stays distinguishable from NO_MATCH.

Monitors run on every leaf whose condition held.  They produce findings and
never change the classification status.
"""

from __future__ import annotations

import logging

from scenario_reason.core.context import EvaluationContext
from scenario_reason.domain.classification import (
    ArityViolation,
    ClassificationResult,
    MonitorFinding,
    TSCInstance,
)
from scenario_reason.domain.enums import ClassificationStatus
from scenario_reason.tree.nodes import ClassificationTree, TSCNode, arity

logger = logging.getLogger(__name__)


def classify(
    tree: ClassificationTree,
    ctx: EvaluationContext,
    projection: str | None = None,
) -> ClassificationResult:
    """Classify the segment behind *ctx* against *tree*."""
    name = projection or tree.name
    source = ctx.segment.source
    primary = ctx.primary_actor_id

    if not tree.root.holds(ctx):
        logger.debug("No match for %s (actor %d) in %s", source, primary, name)
        return ClassificationResult(
            projection=name,
            segment_source=source,
            primary_actor_id=primary,
            status=ClassificationStatus.NO_MATCH,
        )

    violations: list[ArityViolation] = []
    findings: list[MonitorFinding] = []
    instance = _evaluate(tree.root, tree.root.label, ctx, violations, findings)
    status = ClassificationStatus.ANOMALY if violations else ClassificationStatus.MATCHED

    if violations:
        logger.warning(
            "Classification anomaly for %s (actor %d) in %s: %s",
            source, primary, name,
            "; ".join(f"{v.node_path} held {len(v.satisfied)} of {v.bounds}" for v in violations),
        )
    for finding in findings:
        if not finding.passed:
            logger.warning("Monitor failed for %s (actor %d): %s", source, primary, finding.key)
    logger.debug("Classified %s (actor %d) in %s as %s", source, primary, name, instance)

    return ClassificationResult(
        projection=name,
        segment_source=source,
        primary_actor_id=primary,
        status=status,
        instance=instance,
        violations=tuple(violations),
        monitor_findings=tuple(findings),
    )


def _evaluate(
    node: TSCNode,
    path: str,
    ctx: EvaluationContext,
    violations: list[ArityViolation],
    findings: list[MonitorFinding],
) -> TSCInstance:
    if node.is_leaf:
        for monitor in node.monitors:
            findings.append(MonitorFinding(
                node_path=path,
                monitor=monitor.name,
                passed=bool(monitor.check(ctx)),
            ))
        return TSCInstance(label=node.label)

    # Every child is evaluated, no short-circuit between siblings
    holding = [child for child in node.children if child.holds(ctx)]
    lo, hi = arity(node)
    if not lo <= len(holding) <= hi:
        violations.append(ArityViolation(
            node_path=path,
            kind=node.kind,
            satisfied=tuple(child.label for child in holding),
            bounds=(lo, hi),
        ))

    children = tuple(
        _evaluate(child, f"{path}/{child.label}", ctx, violations, findings)
        for child in holding
    )
    return TSCInstance(label=node.label, children=children)
