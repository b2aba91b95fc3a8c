"""Pydantic payload schemas for segments submitted over the API.

The road network travels with the segment.  Lanes are referenced by
``(road_id, lane_id)`` everywhere outside their own road, so the payload is
a plain tree without cycles.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from scenario_reason.domain.enums import Daytime, LaneDirection, WeatherType
from scenario_reason.domain.road import Landmark, SpeedLimit, StaticTrafficLight, TrafficLight


class LaneRef(BaseModel):
    road_id: int
    lane_id: int

    model_config = {"frozen": True}


class LanePayload(BaseModel):
    lane_id: int = Field(..., description="OpenDRIVE lane id; the sign is the driving direction")
    length: float = Field(0.0, ge=0.0)
    direction: LaneDirection = LaneDirection.UNKNOWN
    speed_limits: list[SpeedLimit] = Field(default_factory=list)
    landmarks: list[Landmark] = Field(default_factory=list)
    traffic_lights: list[StaticTrafficLight] = Field(default_factory=list)
    successors: list[LaneRef] = Field(default_factory=list)
    yield_lanes: list[LaneRef] = Field(default_factory=list)


class RoadPayload(BaseModel):
    road_id: int
    is_junction: bool = False
    lanes: list[LanePayload] = Field(default_factory=list)


class BlockPayload(BaseModel):
    block_id: str
    roads: list[RoadPayload] = Field(default_factory=list)


class ContactAreaPayload(BaseModel):
    lane1: LaneRef
    lane1_start: float
    lane1_end: float
    lane2: LaneRef
    lane2_start: float
    lane2_end: float


class NetworkPayload(BaseModel):
    blocks: list[BlockPayload] = Field(default_factory=list)
    contact_areas: list[ContactAreaPayload] = Field(default_factory=list)


class ActorPayload(BaseModel):
    actor_id: int
    kind: Literal["vehicle", "pedestrian"] = "vehicle"
    lane: LaneRef
    position_on_lane: float = 0.0
    is_ego: bool = False
    velocity_mph: float = Field(0.0, ge=0.0)


class TickPayload(BaseModel):
    time: float
    actors: list[ActorPayload] = Field(default_factory=list)
    weather: WeatherType = WeatherType.CLEAR
    daytime: Daytime = Daytime.NOON
    traffic_lights: list[TrafficLight] = Field(default_factory=list)


class SegmentPayload(BaseModel):
    """One recorded segment with the road network it was recorded on."""

    source: str = Field("", description="Provenance label, e.g. 'town01_seed3'")
    primary_actor_id: Optional[int] = Field(
        default=None,
        description="Actor to classify; defaults to the ego vehicle",
    )
    network: NetworkPayload
    ticks: list[TickPayload] = Field(default_factory=list)


class ClassifyRequest(BaseModel):
    segments: list[SegmentPayload] = Field(..., min_length=1)
