"""ScenarioEvaluation — classify a batch of segments against every projection.

Flow:
    1. Projections are built once, at construction.  A malformed catalogue
       fails here, before any segment is looked at.
    2. prepare() filters out short segments, orders them by simulation seed
       when ordered processing is on, and optionally re-emits every segment
       once per vehicle so each vehicle is classified as the primary actor.
    3. run() fans the N segments × M projections out to a thread pool and
       aggregates the results into an EvaluationReport.

Segments never affect each other: a classification anomaly in one segment
is recorded and the rest of the batch continues.  An empty segment is a
fatal input error and aborts the run.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Sequence

from scenario_reason.core.context import EvaluationContext
from scenario_reason.domain.classification import ClassificationResult, TSCInstance
from scenario_reason.domain.tick import Segment
from scenario_reason.evaluation.metrics import (
    EvaluationReport,
    projection_metrics,
    segment_metrics,
)
from scenario_reason.foundation.clock import monotonic_seconds, utc_now
from scenario_reason.foundation.identifiers import new_id
from scenario_reason.tree.classifier import classify
from scenario_reason.tree.nodes import ClassificationTree
from scenario_reason.tree.projection import build_projections, enumerate_possible_instances

logger = logging.getLogger(__name__)


class ScenarioEvaluation:
    """Batch evaluator over one catalogue.

    Thread-safety note:
        Projections, contexts and predicates are read-only once built, so
        units of work share them across worker threads without locking.
    """

    def __init__(
        self,
        tree: ClassificationTree,
        *,
        projection_ignore_list: Iterable[str] = (),
        projection_filter: str = ".*",
        min_segment_ticks: int = 10,
        ordered: bool = True,
        num_workers: int = 4,
        use_every_vehicle_as_primary: bool = False,
    ) -> None:
        self._tree = tree
        self._min_segment_ticks = min_segment_ticks
        self._ordered = ordered
        self._num_workers = max(1, num_workers)
        self._every_vehicle = use_every_vehicle_as_primary
        self._projections = build_projections(
            tree, ignore=projection_ignore_list, include=projection_filter,
        )
        self._possible: dict[str, frozenset[TSCInstance]] = {}

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def tree(self) -> ClassificationTree:
        return self._tree

    @property
    def projections(self) -> dict[str, ClassificationTree]:
        return dict(self._projections)

    def possible_instances(self, projection: str) -> frozenset[TSCInstance]:
        """Enumerated possible instances of a projection (cached).

        Raises:
            KeyError: the projection is not part of this evaluation.
        """
        if projection not in self._possible:
            self._possible[projection] = enumerate_possible_instances(
                self._projections[projection]
            )
        return self._possible[projection]

    # ── Public API ───────────────────────────────────────────────────────

    def prepare(self, segments: Iterable[Segment]) -> tuple[list[Segment], int]:
        """Apply the length filter, seed ordering and primary-actor expansion.

        Returns the segments to evaluate and the number of skipped segments.
        """
        kept: list[Segment] = []
        skipped = 0
        for segment in segments:
            if segment.tick_count < self._min_segment_ticks:
                skipped += 1
                logger.warning(
                    "Skipping segment %s: %d ticks < minimum %d",
                    segment.source or "<unnamed>", segment.tick_count, self._min_segment_ticks,
                )
                continue
            kept.append(segment)

        if self._ordered:
            # Stable sort, so segments of one seed keep their input order
            kept.sort(key=lambda s: s.seed)

        if self._every_vehicle:
            expanded: list[Segment] = []
            for segment in kept:
                vehicle_ids = sorted({
                    v.actor_id for tick in segment.ticks for v in tick.vehicles
                })
                expanded.extend(segment.with_primary(vid) for vid in vehicle_ids)
            kept = expanded

        return kept, skipped

    def evaluate_segment(self, segment: Segment) -> list[ClassificationResult]:
        """Classify one segment against every projection, in projection order."""
        ctx = EvaluationContext(segment)
        return [
            classify(tree, ctx, projection=name)
            for name, tree in self._projections.items()
        ]

    def run(self, segments: Sequence[Segment] | Iterable[Segment]) -> EvaluationReport:
        """Evaluate a batch and aggregate metrics."""
        started_at = utc_now()
        clock_start = monotonic_seconds()
        run_id = new_id()

        prepared, skipped = self.prepare(segments)
        # Empty segments abort the run before any work is scheduled
        contexts = [EvaluationContext(segment) for segment in prepared]
        logger.info(
            "Evaluation %s started: %d segments × %d projections (%d skipped)",
            run_id, len(contexts), len(self._projections), skipped,
        )

        units = [
            (i, name, tree)
            for i in range(len(contexts))
            for name, tree in self._projections.items()
        ]
        results = self._execute(contexts, units)

        report = EvaluationReport(
            run_id=run_id,
            started_at=started_at,
            finished_at=utc_now(),
            segments_evaluated=len(contexts),
            segments_skipped=skipped,
            results=tuple(results),
            projections={
                name: projection_metrics(
                    name,
                    tree,
                    (r for r in results if r.projection == name),
                    possible=self.possible_instances(name),
                )
                for name, tree in self._projections.items()
            },
            segments=segment_metrics(prepared),
        )
        logger.info(
            "Evaluation %s finished in %.2fs: %d results, %d anomalies",
            run_id, monotonic_seconds() - clock_start, len(results), len(report.anomalies),
        )
        return report

    # ── Internal helpers ─────────────────────────────────────────────────

    def _execute(
        self,
        contexts: list[EvaluationContext],
        units: list[tuple[int, str, ClassificationTree]],
    ) -> list[ClassificationResult]:
        if not units:
            return []

        with ThreadPoolExecutor(max_workers=self._num_workers) as pool:
            futures = {
                pool.submit(classify, tree, contexts[i], name): index
                for index, (i, name, tree) in enumerate(units)
            }
            if self._ordered:
                ordered: list[ClassificationResult | None] = [None] * len(units)
                for future in as_completed(futures):
                    ordered[futures[future]] = future.result()
                return [r for r in ordered if r is not None]
            return [future.result() for future in as_completed(futures)]
