"""Static road network — blocks, roads, lanes and their topology.

The network is built once per map and shared read-only by every tick of
every segment recorded on that map.  Lanes, roads and blocks point at each
other (a lane knows its road, a road knows its block), so they are plain
objects wired during construction rather than frozen value models:

    lane = Lane(lane_id=1, length=50.0)
    road = Road(road_id=0, lanes=[lane])      # sets lane.road
    block = Block(block_id="1", roads=[road])  # sets road.block

Topology that crosses roads (successors, yield relations, contact areas) is
attached after all lanes exist.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from scenario_reason.domain.enums import LandmarkType, LaneDirection, TrafficLightState

# Applied when a lane carries no speed limit information at all.
DEFAULT_SPEED_LIMIT_MPH = 30.0


# ── Value objects ────────────────────────────────────────────────────────────

class SpeedLimit(BaseModel):
    """A speed limit valid on ``[from_distance, to_distance)`` along a lane."""

    speed_limit: float = Field(..., ge=0.0, description="Limit in mph")
    from_distance: float = Field(0.0, ge=0.0)
    to_distance: float = Field(..., ge=0.0)

    model_config = {"frozen": True}


class Landmark(BaseModel):
    """A traffic sign attached to a lane."""

    landmark_id: int
    type: LandmarkType
    s: float = Field(0.0, description="Position along the lane in metres")

    model_config = {"frozen": True}


class StaticTrafficLight(BaseModel):
    """A traffic light as it appears in the map (no state)."""

    light_id: int

    model_config = {"frozen": True}


class TrafficLight(BaseModel):
    """The state of a traffic light at one tick."""

    light_id: int
    static_light_id: int = Field(..., description="Id of the StaticTrafficLight this state belongs to")
    state: TrafficLightState

    model_config = {"frozen": True}


# ── Topology ─────────────────────────────────────────────────────────────────

class Lane:
    """One lane of a road.

    ``lane_id`` follows the OpenDRIVE convention: its sign encodes the
    driving direction, its magnitude the distance from the road centre.
    """

    __slots__ = (
        "lane_id",
        "length",
        "direction",
        "speed_limits",
        "landmarks",
        "traffic_lights",
        "successor_lanes",
        "yield_lanes",
        "contact_areas",
        "road",
    )

    def __init__(
        self,
        lane_id: int,
        length: float = 0.0,
        direction: LaneDirection = LaneDirection.UNKNOWN,
        speed_limits: list[SpeedLimit] | None = None,
        landmarks: list[Landmark] | None = None,
        traffic_lights: list[StaticTrafficLight] | None = None,
    ) -> None:
        self.lane_id = lane_id
        self.length = length
        self.direction = direction
        self.speed_limits: list[SpeedLimit] = list(speed_limits or [])
        self.landmarks: list[Landmark] = list(landmarks or [])
        self.traffic_lights: list[StaticTrafficLight] = list(traffic_lights or [])
        self.successor_lanes: list[Lane] = []
        self.yield_lanes: list[Lane] = []
        self.contact_areas: list[ContactArea] = []
        self.road: Road | None = None

    # ── Identity ─────────────────────────────────────────────────────────

    @property
    def uid(self) -> str:
        """Map-wide unique lane identifier ``<road_id>_<lane_id>``."""
        if self.road is None:
            raise ValueError(f"Lane {self.lane_id} is not attached to a road")
        return f"{self.road.road_id}_{self.lane_id}"

    @property
    def direction_sign(self) -> int:
        return (self.lane_id > 0) - (self.lane_id < 0)

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def has_stop_sign(self) -> bool:
        return any(lm.type == LandmarkType.STOP_SIGN for lm in self.landmarks)

    @property
    def has_yield_sign(self) -> bool:
        return any(lm.type == LandmarkType.YIELD_SIGN for lm in self.landmarks)

    @property
    def is_turning_left(self) -> bool:
        return self.direction == LaneDirection.LEFT_TURN

    @property
    def is_turning_right(self) -> bool:
        return self.direction == LaneDirection.RIGHT_TURN

    @property
    def is_straight(self) -> bool:
        return self.direction == LaneDirection.STRAIGHT

    def speed_at(self, position: float) -> float:
        """Speed limit (mph) in force at *position* metres along the lane.

        Ranges are half-open, so a position on the border between two
        ranges takes the later one.  Positions past the last range keep the
        last limit.
        """
        if not self.speed_limits:
            return DEFAULT_SPEED_LIMIT_MPH
        ordered = sorted(self.speed_limits, key=lambda sl: sl.from_distance)
        for limit in ordered:
            if limit.from_distance <= position < limit.to_distance:
                return limit.speed_limit
        if position < ordered[0].from_distance:
            return ordered[0].speed_limit
        return ordered[-1].speed_limit

    def contact_point_pos(self, other: Lane) -> float | None:
        """Position on this lane where it starts to touch *other*, if it does."""
        for area in self.contact_areas:
            if area.lane1 is self and area.lane2 is other:
                return area.lane1_start
            if area.lane2 is self and area.lane1 is other:
                return area.lane2_start
        return None

    def __repr__(self) -> str:
        road_id = self.road.road_id if self.road is not None else None
        return f"Lane(road={road_id}, lane_id={self.lane_id}, length={self.length})"


class Road:
    """A road made of lanes; junction roads connect other roads."""

    __slots__ = ("road_id", "lanes", "is_junction", "block")

    def __init__(
        self,
        road_id: int,
        lanes: list[Lane] | None = None,
        is_junction: bool = False,
    ) -> None:
        self.road_id = road_id
        self.is_junction = is_junction
        self.block: Block | None = None
        self.lanes: list[Lane] = []
        for lane in lanes or []:
            self.add_lane(lane)

    def add_lane(self, lane: Lane) -> None:
        lane.road = self
        self.lanes.append(lane)

    def lanes_in_direction(self, sign: int) -> list[Lane]:
        """Lanes whose driving direction matches *sign* (+1 / -1)."""
        return [lane for lane in self.lanes if lane.direction_sign == sign]

    def __repr__(self) -> str:
        return f"Road(id={self.road_id}, lanes={len(self.lanes)}, junction={self.is_junction})"


class Block:
    """A group of roads between two junctions, the unit for traffic density."""

    __slots__ = ("block_id", "roads")

    def __init__(self, block_id: str, roads: list[Road] | None = None) -> None:
        self.block_id = block_id
        self.roads: list[Road] = []
        for road in roads or []:
            self.add_road(road)

    def add_road(self, road: Road) -> None:
        road.block = self
        self.roads.append(road)

    def __repr__(self) -> str:
        return f"Block(id={self.block_id!r}, roads={len(self.roads)})"


class ContactArea:
    """The stretch where two lanes overlap, e.g. inside a junction."""

    __slots__ = ("lane1", "lane1_start", "lane1_end", "lane2", "lane2_start", "lane2_end")

    def __init__(
        self,
        lane1: Lane,
        lane1_start: float,
        lane1_end: float,
        lane2: Lane,
        lane2_start: float,
        lane2_end: float,
    ) -> None:
        self.lane1 = lane1
        self.lane1_start = lane1_start
        self.lane1_end = lane1_end
        self.lane2 = lane2
        self.lane2_start = lane2_start
        self.lane2_end = lane2_end

    def attach(self) -> ContactArea:
        """Register this area on both of its lanes and return it."""
        self.lane1.contact_areas.append(self)
        if self.lane2 is not self.lane1:
            self.lane2.contact_areas.append(self)
        return self
