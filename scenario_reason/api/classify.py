"""REST endpoints for projections and segment classification.

Paths:
    GET  /api/projections                    names + possible-instance counts
    GET  /api/projections/{name}/instances   enumerated possible instances
    POST /api/classify                       classify submitted segments

Classification is CPU-bound, so the evaluation runs in the threadpool and
the event loop stays free.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool

from scenario_reason.adapters.json_segment import JsonSegmentAdapter
from scenario_reason.domain.errors import AdaptationError, EmptySegmentError
from scenario_reason.evaluation.metrics import EvaluationReport
from scenario_reason.evaluation.runner import ScenarioEvaluation
from scenario_reason.models.payload import ClassifyRequest

logger = logging.getLogger(__name__)


def create_classify_router(
    evaluation: ScenarioEvaluation,
    adapter: JsonSegmentAdapter,
) -> APIRouter:
    """Factory that wires the classification endpoints to one evaluation."""

    router = APIRouter(prefix="/api", tags=["classification"])

    @router.get("/projections")
    async def list_projections() -> dict[str, Any]:
        """List every active projection with its possible-instance count."""
        projections = [
            {"name": name, "possible_instances": len(evaluation.possible_instances(name))}
            for name in evaluation.projections
        ]
        return {"projections": projections, "count": len(projections)}

    @router.get("/projections/{name}/instances")
    async def projection_instances(name: str) -> dict[str, Any]:
        """Every instance the projection admits, rendered and sorted."""
        if name not in evaluation.projections:
            raise HTTPException(status_code=404, detail=f"Unknown projection '{name}'")
        instances = sorted(str(i) for i in evaluation.possible_instances(name))
        return {"projection": name, "instances": instances, "count": len(instances)}

    @router.post("/classify", response_model=EvaluationReport)
    async def classify_segments(request: ClassifyRequest) -> EvaluationReport:
        """Classify the submitted segments against every projection."""
        try:
            segments = [adapter.adapt_payload(p) for p in request.segments]
        except AdaptationError as exc:
            logger.warning("Rejected classify request: %s", exc)
            raise HTTPException(status_code=422, detail=exc.reason) from exc

        try:
            report = await run_in_threadpool(evaluation.run, segments)
        except EmptySegmentError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return report

    return router
