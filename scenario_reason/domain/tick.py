"""Trajectory store — actors, ticks and scenario segments.

A Tick is one recorded simulation instant.  A Segment is an ordered run of
ticks analysed as one classification unit, together with the id of the
primary actor the classification is about.

All three are immutable after validation.  Actor states carry the time of
the tick that owns them, so a predicate handed a resolved actor state knows
*when* it is looking without needing the tick itself.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from scenario_reason.domain.enums import Daytime, TrafficLightState, WeatherType
from scenario_reason.domain.road import Block, Lane, StaticTrafficLight, TrafficLight

_SEED_PATTERN = re.compile(r"_seed([0-9]{1,4})")


# ── Actors ───────────────────────────────────────────────────────────────────

class Actor(BaseModel):
    """The state of one traffic participant at one tick."""

    actor_id: int = Field(..., description="Stable identity, valid across ticks")
    lane: Lane
    position_on_lane: float = Field(0.0, description="Metres from the lane start")
    time: Optional[float] = Field(
        default=None,
        description="Time of the owning tick (stamped by Tick)",
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def road_id(self) -> int | None:
        return self.lane.road.road_id if self.lane.road is not None else None

    @property
    def block(self) -> Block | None:
        road = self.lane.road
        return road.block if road is not None else None


class Vehicle(Actor):
    is_ego: bool = False
    velocity_mph: float = Field(0.0, ge=0.0, description="Effective velocity in mph")


class Pedestrian(Actor):
    pass


# ── Tick ─────────────────────────────────────────────────────────────────────

class Tick(BaseModel):
    """One simulation instant: every actor present plus environment state."""

    time: float = Field(..., description="Simulation time in seconds")
    actors: tuple[Actor, ...] = ()
    weather: WeatherType = WeatherType.CLEAR
    daytime: Daytime = Daytime.NOON
    traffic_lights: tuple[TrafficLight, ...] = ()

    model_config = {"frozen": True}

    # ── Validators ───────────────────────────────────────────────────────

    @field_validator("actors")
    @classmethod
    def actors_unique_and_stamped(
        cls, v: tuple[Actor, ...], info: ValidationInfo
    ) -> tuple[Actor, ...]:
        seen: set[int] = set()
        for actor in v:
            if actor.actor_id in seen:
                raise ValueError(f"duplicate actor id {actor.actor_id} within one tick")
            seen.add(actor.actor_id)

        time = info.data.get("time")
        if time is None:
            return v
        # Actor states always report the time of the tick that owns them
        return tuple(
            a if a.time == time else a.model_copy(update={"time": time})
            for a in v
        )

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def vehicles(self) -> list[Vehicle]:
        return [a for a in self.actors if isinstance(a, Vehicle)]

    @property
    def pedestrians(self) -> list[Pedestrian]:
        return [a for a in self.actors if isinstance(a, Pedestrian)]

    def actor(self, actor_id: int) -> Actor | None:
        for a in self.actors:
            if a.actor_id == actor_id:
                return a
        return None

    def vehicles_in_block(self, block: Block | None) -> list[Vehicle]:
        """Vehicles whose current lane belongs to *block*."""
        if block is None:
            return []
        return [v for v in self.vehicles if v.block is block]

    def traffic_light_state(self, light: StaticTrafficLight) -> TrafficLightState:
        """State of a map traffic light at this tick (UNKNOWN if unreported)."""
        for tl in self.traffic_lights:
            if tl.static_light_id == light.light_id:
                return tl.state
        return TrafficLightState.UNKNOWN


# ── Segment ──────────────────────────────────────────────────────────────────

class Segment(BaseModel):
    """An ordered run of ticks classified as one unit.

    Immutable after creation.  Time values must be strictly increasing.
    Emptiness is representable here and rejected by EvaluationContext.
    """

    ticks: tuple[Tick, ...] = ()
    primary_actor_id: int = Field(..., description="The actor the classification is about")
    source: str = Field("", description="Provenance label, e.g. the recording file")

    model_config = {"frozen": True}

    @field_validator("ticks")
    @classmethod
    def times_strictly_increasing(cls, v: tuple[Tick, ...]) -> tuple[Tick, ...]:
        for prev, cur in zip(v, v[1:]):
            if cur.time <= prev.time:
                raise ValueError(
                    f"tick times must be strictly increasing ({prev.time} then {cur.time})"
                )
        return v

    @property
    def tick_count(self) -> int:
        return len(self.ticks)

    @property
    def first_time(self) -> float | None:
        return self.ticks[0].time if self.ticks else None

    @property
    def last_time(self) -> float | None:
        return self.ticks[-1].time if self.ticks else None

    @property
    def duration(self) -> float:
        """Seconds between the first and last tick (0.0 for < 2 ticks)."""
        if len(self.ticks) < 2:
            return 0.0
        return self.ticks[-1].time - self.ticks[0].time

    @property
    def actor_ids(self) -> list[int]:
        """Every actor id that appears in any tick, sorted."""
        return sorted({a.actor_id for t in self.ticks for a in t.actors})

    @property
    def seed(self) -> int:
        """Simulation seed parsed from the source label (0 when absent)."""
        match = _SEED_PATTERN.search(self.source)
        return int(match.group(1)) if match else 0

    def with_primary(self, actor_id: int) -> Segment:
        """The same recording classified from another actor's point of view."""
        return self.model_copy(update={"primary_actor_id": actor_id})
