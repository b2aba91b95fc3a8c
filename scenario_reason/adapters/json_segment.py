"""Adapter for JSON segment payloads (the API's own wire format).

Expected payload shape (see models/payload.py):
    {
        "source": "town01_seed3",
        "primary_actor_id": 0,                  # optional, defaults to ego
        "network": {
            "blocks": [{"block_id": "1", "roads": [{"road_id": 0, "lanes": [...]}]}],
            "contact_areas": [...]
        },
        "ticks": [{"time": 0.0, "actors": [...], "weather": "clear", ...}]
    }

Lane references are ``{"road_id": ..., "lane_id": ...}`` and are resolved
against the network carried in the same payload.  An unresolved reference
is an AdaptationError.

Entry points:
    adapt(raw)             dict level, for recordings loaded as plain JSON
                           (files, queues); can_handle() tells such dicts apart
    adapt_payload(payload) typed level, used by the API once FastAPI has
                           validated the request body
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from scenario_reason.adapters.base import SegmentAdapter
from scenario_reason.domain.errors import AdaptationError
from scenario_reason.domain.road import Block, ContactArea, Lane, Road
from scenario_reason.domain.tick import Actor, Pedestrian, Segment, Tick, Vehicle
from scenario_reason.models.payload import (
    ActorPayload,
    LaneRef,
    NetworkPayload,
    SegmentPayload,
)

logger = logging.getLogger(__name__)

_SOURCE_NAME = "json_segment"


class JsonSegmentAdapter(SegmentAdapter):
    """Translates SegmentPayload-shaped dicts into domain Segments."""

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return "network" in raw and "ticks" in raw

    def adapt(self, raw: dict[str, Any]) -> Segment:
        try:
            payload = SegmentPayload.model_validate(raw)
        except ValidationError as exc:
            raise AdaptationError(_SOURCE_NAME, str(exc)) from exc
        return self.adapt_payload(payload)

    @property
    def source_name(self) -> str:
        return _SOURCE_NAME

    # ── Payload → domain ─────────────────────────────────────────────────

    def adapt_payload(self, payload: SegmentPayload) -> Segment:
        """Translate an already validated payload."""
        lanes = self._build_network(payload.network)

        primary = payload.primary_actor_id
        if primary is None:
            primary = self._ego_id(payload)

        # Tick and Segment validators reject duplicate actor ids and unordered times
        try:
            ticks: list[Tick] = []
            for tick in payload.ticks:
                ticks.append(Tick(
                    time=tick.time,
                    actors=tuple(self._actor(a, lanes) for a in tick.actors),
                    weather=tick.weather,
                    daytime=tick.daytime,
                    traffic_lights=tuple(tick.traffic_lights),
                ))
            segment = Segment(ticks=tuple(ticks), primary_actor_id=primary, source=payload.source)
        except ValidationError as exc:
            raise AdaptationError(_SOURCE_NAME, str(exc)) from exc
        logger.debug(
            "Adapted segment %s: %d ticks, primary actor %d",
            segment.source or "<unnamed>", segment.tick_count, primary,
        )
        return segment

    def _build_network(self, network: NetworkPayload) -> dict[tuple[int, int], Lane]:
        lanes: dict[tuple[int, int], Lane] = {}
        for block_payload in network.blocks:
            block = Block(block_payload.block_id)
            for road_payload in block_payload.roads:
                road = Road(road_payload.road_id, is_junction=road_payload.is_junction)
                for lane_payload in road_payload.lanes:
                    key = (road_payload.road_id, lane_payload.lane_id)
                    if key in lanes:
                        raise AdaptationError(_SOURCE_NAME, f"duplicate lane {key}")
                    lane = Lane(
                        lane_id=lane_payload.lane_id,
                        length=lane_payload.length,
                        direction=lane_payload.direction,
                        speed_limits=lane_payload.speed_limits,
                        landmarks=lane_payload.landmarks,
                        traffic_lights=lane_payload.traffic_lights,
                    )
                    road.add_lane(lane)
                    lanes[key] = lane
                block.add_road(road)

        # Cross-road topology needs every lane to exist first
        for block_payload in network.blocks:
            for road_payload in block_payload.roads:
                for lane_payload in road_payload.lanes:
                    lane = lanes[(road_payload.road_id, lane_payload.lane_id)]
                    lane.successor_lanes.extend(self._lane(r, lanes) for r in lane_payload.successors)
                    lane.yield_lanes.extend(self._lane(r, lanes) for r in lane_payload.yield_lanes)

        for area in network.contact_areas:
            ContactArea(
                lane1=self._lane(area.lane1, lanes),
                lane1_start=area.lane1_start,
                lane1_end=area.lane1_end,
                lane2=self._lane(area.lane2, lanes),
                lane2_start=area.lane2_start,
                lane2_end=area.lane2_end,
            ).attach()
        return lanes

    @staticmethod
    def _lane(ref: LaneRef, lanes: dict[tuple[int, int], Lane]) -> Lane:
        lane = lanes.get((ref.road_id, ref.lane_id))
        if lane is None:
            raise AdaptationError(
                _SOURCE_NAME, f"unknown lane reference road={ref.road_id} lane={ref.lane_id}"
            )
        return lane

    def _actor(self, payload: ActorPayload, lanes: dict[tuple[int, int], Lane]) -> Actor:
        lane = self._lane(payload.lane, lanes)
        if payload.kind == "pedestrian":
            return Pedestrian(
                actor_id=payload.actor_id, lane=lane, position_on_lane=payload.position_on_lane,
            )
        return Vehicle(
            actor_id=payload.actor_id,
            lane=lane,
            position_on_lane=payload.position_on_lane,
            is_ego=payload.is_ego,
            velocity_mph=payload.velocity_mph,
        )

    @staticmethod
    def _ego_id(payload: SegmentPayload) -> int:
        for tick in payload.ticks:
            for actor in tick.actors:
                if actor.is_ego:
                    return actor.actor_id
        raise AdaptationError(_SOURCE_NAME, "no primary_actor_id given and no ego vehicle found")
