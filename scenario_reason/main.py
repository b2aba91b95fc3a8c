"""scenario-reason — scenario classification and coverage over driving recordings.

This is the application entry point.  It wires the predicate library, the
classification catalogue, the batch evaluator and the REST endpoints
together.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from scenario_reason.adapters.json_segment import JsonSegmentAdapter
from scenario_reason.api.classify import create_classify_router
from scenario_reason.config import settings
from scenario_reason.core.traffic_predicates import PredicateThresholds, TrafficPredicates
from scenario_reason.evaluation.runner import ScenarioEvaluation
from scenario_reason.tree.catalogue import build_catalogue

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── Predicates & Catalogue ───────────────────────────────────────────────────

predicates = TrafficPredicates(
    PredicateThresholds(
        behind_offset=settings.behind_offset,
        besides_offset=settings.besides_offset,
        end_of_road_margin=settings.end_of_road_margin,
        in_reach_distance=settings.in_reach_distance,
        overtaking_min_speed_mph=settings.overtaking_min_speed_mph,
        stopped_speed_mph=settings.stopped_speed_mph,
        follow_duration=settings.follow_duration,
        follow_tail=settings.follow_tail,
        mid_traffic_min=settings.mid_traffic_min,
        mid_traffic_max=settings.mid_traffic_max,
        traffic_prevalence=settings.traffic_prevalence,
        environment_prevalence=settings.environment_prevalence,
        road_type_prevalence=settings.road_type_prevalence,
        maneuver_prevalence=settings.maneuver_prevalence,
    )
)
catalogue = build_catalogue(predicates)

# ── Evaluation ───────────────────────────────────────────────────────────────

evaluation = ScenarioEvaluation(
    catalogue,
    projection_ignore_list=settings.projection_ignore_list,
    projection_filter=settings.projection_filter,
    min_segment_ticks=settings.min_segment_ticks,
    ordered=settings.ordered_processing,
    num_workers=settings.num_workers,
    use_every_vehicle_as_primary=settings.use_every_vehicle_as_primary,
)

# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="Scenario classification trees, projections and coverage metrics",
    version="0.1.0",
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_classify_router(evaluation, JsonSegmentAdapter()))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    return {
        "status": "ok",
        "catalogue": catalogue.name,
        "projections": len(evaluation.projections),
        "min_segment_ticks": settings.min_segment_ticks,
    }
