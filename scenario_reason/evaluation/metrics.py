"""Run metrics — what a batch of classifications says about coverage.

Segment metrics describe the input: how many segments, how long, how busy
the primary actor's block was.  Projection metrics describe coverage:

    possible   every instance the projected tree admits
    valid      instances observed in MATCHED results, with counts
    missed     possible but never observed
    anomalies  results whose arity was violated
    missing combinations
               leaf pairs that co-occur in some possible instance but
               were never observed together
    failed monitors
               per "<leaf path>::<monitor>", counted over MATCHED results

All functions are pure; the runner decides what to feed them.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from itertools import combinations
from typing import Iterable
from uuid import UUID

from pydantic import BaseModel, Field

from scenario_reason.domain.classification import ClassificationResult, TSCInstance
from scenario_reason.domain.enums import ClassificationStatus
from scenario_reason.domain.tick import Segment
from scenario_reason.tree.nodes import ClassificationTree
from scenario_reason.tree.projection import enumerate_possible_instances


# ── Models ───────────────────────────────────────────────────────────────────

class SegmentMetrics(BaseModel):
    segment_count: int = 0
    total_duration: float = Field(0.0, description="Sum of segment durations in seconds")
    duration_per_source: dict[str, float] = Field(default_factory=dict)
    average_vehicles_in_primary_block: float = 0.0

    model_config = {"frozen": True}


class ProjectionMetrics(BaseModel):
    projection: str
    possible_instance_count: int
    valid_instance_counts: dict[str, int] = Field(
        default_factory=dict,
        description="Observed valid instance (rendered) → number of segments",
    )
    valid_count: int = 0
    anomaly_count: int = 0
    no_match_count: int = 0
    missed_instances: list[str] = Field(default_factory=list)
    missing_combinations: list[tuple[str, str]] = Field(default_factory=list)
    failed_monitors: dict[str, int] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def observed_instance_count(self) -> int:
        return len(self.valid_instance_counts)

    @property
    def coverage(self) -> float:
        """Share of possible instances observed at least once."""
        if self.possible_instance_count == 0:
            return 0.0
        return self.observed_instance_count / self.possible_instance_count


class EvaluationReport(BaseModel):
    """Outcome of one evaluation run."""

    run_id: UUID
    started_at: datetime
    finished_at: datetime
    segments_evaluated: int
    segments_skipped: int = 0
    results: tuple[ClassificationResult, ...] = ()
    projections: dict[str, ProjectionMetrics] = Field(default_factory=dict)
    segments: SegmentMetrics = Field(default_factory=SegmentMetrics)

    model_config = {"frozen": True}

    @property
    def anomalies(self) -> list[ClassificationResult]:
        return [r for r in self.results if r.is_anomaly]

    def results_for(self, projection: str) -> list[ClassificationResult]:
        return [r for r in self.results if r.projection == projection]


# ── Segment metrics ──────────────────────────────────────────────────────────

def _average_vehicles_in_primary_block(segment: Segment) -> float | None:
    counts: list[int] = []
    for tick in segment.ticks:
        primary = tick.actor(segment.primary_actor_id)
        if primary is None:
            continue
        counts.append(len(tick.vehicles_in_block(primary.block)))
    if not counts:
        return None
    return sum(counts) / len(counts)


def segment_metrics(segments: Iterable[Segment]) -> SegmentMetrics:
    count = 0
    total = 0.0
    per_source: dict[str, float] = {}
    averages: list[float] = []
    for segment in segments:
        count += 1
        total += segment.duration
        per_source[segment.source] = per_source.get(segment.source, 0.0) + segment.duration
        avg = _average_vehicles_in_primary_block(segment)
        if avg is not None:
            averages.append(avg)
    return SegmentMetrics(
        segment_count=count,
        total_duration=total,
        duration_per_source=per_source,
        average_vehicles_in_primary_block=sum(averages) / len(averages) if averages else 0.0,
    )


# ── Projection metrics ───────────────────────────────────────────────────────

def _leaf_pairs(instance: TSCInstance) -> set[tuple[str, str]]:
    return set(combinations(sorted(set(instance.leaf_paths())), 2))


def projection_metrics(
    name: str,
    tree: ClassificationTree,
    results: Iterable[ClassificationResult],
    possible: frozenset[TSCInstance] | None = None,
) -> ProjectionMetrics:
    """Aggregate the results of one projection.

    *possible* may be passed in when the caller already enumerated it.
    """
    possible = enumerate_possible_instances(tree) if possible is None else possible

    observed: Counter[TSCInstance] = Counter()
    failed: Counter[str] = Counter()
    anomalies = 0
    no_match = 0
    for result in results:
        if result.status == ClassificationStatus.MATCHED and result.instance is not None:
            observed[result.instance] += 1
            for finding in result.failed_monitors:
                failed[finding.key] += 1
        elif result.status == ClassificationStatus.ANOMALY:
            anomalies += 1
        else:
            no_match += 1

    possible_pairs: set[tuple[str, str]] = set()
    for instance in possible:
        possible_pairs |= _leaf_pairs(instance)
    observed_pairs: set[tuple[str, str]] = set()
    for instance in observed:
        observed_pairs |= _leaf_pairs(instance)

    return ProjectionMetrics(
        projection=name,
        possible_instance_count=len(possible),
        valid_instance_counts={str(i): c for i, c in observed.most_common()},
        valid_count=sum(observed.values()),
        anomaly_count=anomalies,
        no_match_count=no_match,
        missed_instances=sorted(str(i) for i in possible - set(observed)),
        missing_combinations=sorted(possible_pairs - observed_pairs),
        failed_monitors=dict(failed),
    )
