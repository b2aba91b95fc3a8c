"""TrafficPredicates — the urban-driving predicate library.

Design principles:
    1. Explicit: every predicate is an attribute of a TrafficPredicates
       instance, built from one PredicateThresholds.  No module globals.
    2. Pure: predicates read the context, never mutate it.
    3. Composable: behavioural predicates (overtaking, following, yielding)
       are until/next chains over the relational primitives below.

Relational primitives (all evaluated at one tick):
    same_direction(a, b)  same road, same lane-id sign
    besides(a, b)         same direction, |Δpos| <= besides_offset
    is_behind(a, b)       same direction, a.pos + behind_offset < b.pos
    right_of(a, b)        besides, |a.lane_id| > |b.lane_id|

Overtaking:
    F( behind ∧ fast ∧ X( (behind ∧ fast) U (besides ∧ fast ∧
        X( (besides ∧ fast) U (ahead ∧ fast) )) ) )

    "fast" (both_over_min_speed) is required in every phase, so a speed
    drop while alongside breaks that attempt even if the vehicle later
    pulls ahead.
"""

from __future__ import annotations

from dataclasses import dataclass

from scenario_reason.core.context import EvaluationContext
from scenario_reason.core.predicates import BinaryPredicate, ContextPredicate, UnaryPredicate
from scenario_reason.core.temporal import (
    eventually,
    globally,
    min_prevalence,
    min_tick_prevalence,
    next_,
    until,
)
from scenario_reason.domain.enums import Daytime, TrafficLightState, WeatherType
from scenario_reason.domain.tick import Actor, Pedestrian, Vehicle

_VV = (Vehicle, Vehicle)


@dataclass(frozen=True)
class PredicateThresholds:
    """Every tunable constant used by the predicate library."""

    behind_offset: float = 2.0
    besides_offset: float = 2.0
    end_of_road_margin: float = 3.0
    in_reach_distance: float = 10.0

    overtaking_min_speed_mph: float = 10.0
    stopped_speed_mph: float = 1.8

    # Follow for at least follow_duration seconds, then the segment must
    # still run within the following follow_tail seconds
    follow_duration: float = 30.0
    follow_tail: float = 1.0

    mid_traffic_min: int = 6
    mid_traffic_max: int = 15

    traffic_prevalence: float = 0.6
    environment_prevalence: float = 0.6
    road_type_prevalence: float = 0.8
    maneuver_prevalence: float = 0.8


class TrafficPredicates:
    """Predicate library parameterised by one set of thresholds."""

    def __init__(self, thresholds: PredicateThresholds | None = None) -> None:
        self.thresholds = thresholds or PredicateThresholds()

        # ── Traffic density ──────────────────────────────────────────────
        self.has_low_traffic_density = UnaryPredicate(
            "has_low_traffic_density", Vehicle, self._low_traffic)
        self.has_mid_traffic_density = UnaryPredicate(
            "has_mid_traffic_density", Vehicle, self._mid_traffic)
        self.has_high_traffic_density = UnaryPredicate(
            "has_high_traffic_density", Vehicle, self._high_traffic)

        # ── Road type ────────────────────────────────────────────────────
        self.changed_lane = UnaryPredicate("changed_lane", Vehicle, self._changed_lane)
        self.is_in_junction = UnaryPredicate("is_in_junction", Vehicle, self._in_junction)
        self.is_in_single_lane = UnaryPredicate("is_in_single_lane", Vehicle, self._in_single_lane)
        self.is_in_multi_lane = UnaryPredicate("is_in_multi_lane", Vehicle, self._in_multi_lane)

        # ── Environment ──────────────────────────────────────────────────
        self.weather: dict[WeatherType, ContextPredicate] = {
            w: self._weather_predicate(w) for w in WeatherType
        }
        self.daytime: dict[Daytime, ContextPredicate] = {
            d: self._daytime_predicate(d) for d in Daytime
        }
        self.weather_clear = self.weather[WeatherType.CLEAR]
        self.weather_cloudy = self.weather[WeatherType.CLOUDY]
        self.weather_wet = self.weather[WeatherType.WET]
        self.weather_wet_cloudy = self.weather[WeatherType.WET_CLOUDY]
        self.weather_soft_rain = self.weather[WeatherType.SOFT_RAINY]
        self.weather_mid_rain = self.weather[WeatherType.MID_RAINY]
        self.weather_hard_rain = self.weather[WeatherType.HARD_RAINY]
        self.noon = self.daytime[Daytime.NOON]
        self.sunset = self.daytime[Daytime.SUNSET]

        # ── Relational primitives ────────────────────────────────────────
        self.on_same_road = BinaryPredicate("on_same_road", _VV, self._on_same_road)
        self.on_same_lane = BinaryPredicate("on_same_lane", (Actor, Actor), self._on_same_lane)
        self.oncoming = BinaryPredicate("oncoming", _VV, self._oncoming)
        self.same_direction = BinaryPredicate("same_direction", _VV, self._same_direction)
        self.besides = BinaryPredicate("besides", _VV, self._besides)
        self.is_behind = BinaryPredicate("is_behind", _VV, self._is_behind)
        self.right_of = BinaryPredicate("right_of", _VV, self._right_of)
        self.both_over_min_speed = BinaryPredicate(
            "both_over_min_speed", _VV, self._both_over_min_speed)

        # ── Following ────────────────────────────────────────────────────
        self.so_between = BinaryPredicate("so_between", _VV, self._so_between)
        self.behind = BinaryPredicate("behind", _VV, self._behind)
        self.follows = BinaryPredicate("follows", _VV, self._follows)

        # ── Overtaking ───────────────────────────────────────────────────
        self.overtaking = BinaryPredicate("overtaking", _VV, self._overtaking)
        self.right_overtaking = BinaryPredicate("right_overtaking", _VV, self._right_overtaking)
        self.has_overtaken = UnaryPredicate("has_overtaken", Vehicle, self._has_overtaken)
        self.no_right_overtaking = UnaryPredicate(
            "no_right_overtaking", Vehicle, self._no_right_overtaking)

        # ── Speed ────────────────────────────────────────────────────────
        self.mph_limit_30 = UnaryPredicate("mph_limit_30", Vehicle, self._speed_limit_seen(30.0))
        self.mph_limit_60 = UnaryPredicate("mph_limit_60", Vehicle, self._speed_limit_seen(60.0))
        self.mph_limit_90 = UnaryPredicate("mph_limit_90", Vehicle, self._speed_limit_seen(90.0))
        self.obeyed_speed_limit = UnaryPredicate(
            "obeyed_speed_limit", Vehicle, self._obeyed_speed_limit)
        self.stopped = UnaryPredicate("stopped", Vehicle, self._stopped)

        # ── Pedestrians ──────────────────────────────────────────────────
        self.in_reach = BinaryPredicate("in_reach", (Pedestrian, Vehicle), self._in_reach)
        self.pedestrian_crossed = UnaryPredicate(
            "pedestrian_crossed", Vehicle, self._pedestrian_crossed)

        # ── Stop types and right of way ──────────────────────────────────
        self.is_at_end_of_road = UnaryPredicate("is_at_end_of_road", Vehicle, self._at_end_of_road)
        self.stop_at_end = UnaryPredicate("stop_at_end", Vehicle, self._stop_at_end)
        self.has_stop_sign = UnaryPredicate("has_stop_sign", Vehicle, self._has_stop_sign)
        self.has_yield_sign = UnaryPredicate("has_yield_sign", Vehicle, self._has_yield_sign)
        self.has_red_light = UnaryPredicate("has_red_light", Vehicle, self._has_red_light)
        self.has_relevant_red_light = UnaryPredicate(
            "has_relevant_red_light", Vehicle, self._has_relevant_red_light)
        self.did_cross_red_light = UnaryPredicate(
            "did_cross_red_light", Vehicle, self._did_cross_red_light)
        self.passed_contact_point = BinaryPredicate(
            "passed_contact_point", _VV, self._passed_contact_point)
        self.has_yielded = BinaryPredicate("has_yielded", _VV, self._has_yielded)
        self.must_yield = BinaryPredicate("must_yield", _VV, self._must_yield)

        # ── Maneuvers ────────────────────────────────────────────────────
        self.makes_right_turn = UnaryPredicate(
            "makes_right_turn", Vehicle, self._lane_prevalence(lambda lane: lane.is_turning_right))
        self.makes_left_turn = UnaryPredicate(
            "makes_left_turn", Vehicle, self._lane_prevalence(lambda lane: lane.is_turning_left))
        self.makes_no_turn = UnaryPredicate(
            "makes_no_turn", Vehicle, self._lane_prevalence(lambda lane: lane.is_straight))

    # ── Traffic density ──────────────────────────────────────────────────

    def _block_count(self, ctx: EvaluationContext, v: Vehicle) -> int:
        tick = ctx.tick_at(v.time)
        return len(tick.vehicles_in_block(v.block)) if tick is not None else 0

    def _mid_traffic(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        t = self.thresholds
        return min_prevalence(
            ctx, (v,), t.traffic_prevalence,
            lambda s: t.mid_traffic_min <= self._block_count(ctx, s) <= t.mid_traffic_max,
        )

    def _high_traffic(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        t = self.thresholds
        return min_prevalence(
            ctx, (v,), t.traffic_prevalence,
            lambda s: self._block_count(ctx, s) > t.mid_traffic_max,
        )

    def _low_traffic(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return not (self._mid_traffic(ctx, v) or self._high_traffic(ctx, v))

    # ── Road type ────────────────────────────────────────────────────────

    def _changed_lane(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return eventually(ctx, (v,), lambda v0: eventually(
            ctx, (v0,), lambda v1: v0.lane.road is v1.lane.road and v0.lane is not v1.lane,
        ))

    def _in_junction(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return min_prevalence(
            ctx, (v,), self.thresholds.road_type_prevalence,
            lambda s: s.lane.road is not None and s.lane.road.is_junction,
        )

    def _in_single_lane(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        if self._in_junction(ctx, v):
            return False
        return min_prevalence(
            ctx, (v,), self.thresholds.road_type_prevalence,
            lambda s: s.lane.road is not None
            and len(s.lane.road.lanes_in_direction(s.lane.direction_sign)) == 1,
        )

    def _in_multi_lane(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return not self._in_junction(ctx, v) and not self._in_single_lane(ctx, v)

    # ── Environment ──────────────────────────────────────────────────────

    def _weather_predicate(self, weather: WeatherType) -> ContextPredicate:
        threshold = self.thresholds.environment_prevalence
        return ContextPredicate(
            f"weather_{weather.value}",
            lambda ctx: min_tick_prevalence(ctx, threshold, lambda tick: tick.weather == weather),
        )

    def _daytime_predicate(self, daytime: Daytime) -> ContextPredicate:
        threshold = self.thresholds.environment_prevalence
        return ContextPredicate(
            f"daytime_{daytime.value}",
            lambda ctx: min_tick_prevalence(ctx, threshold, lambda tick: tick.daytime == daytime),
        )

    # ── Relational primitives ────────────────────────────────────────────

    @staticmethod
    def _on_same_road(ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return v0.lane.road is v1.lane.road

    @staticmethod
    def _on_same_lane(ctx: EvaluationContext, a0: Actor, a1: Actor) -> bool:
        return a0.lane.uid == a1.lane.uid

    def _oncoming(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return eventually(ctx, (v0, v1), lambda a, b: (
            self.on_same_road.holds(ctx, a, b)
            and a.lane.direction_sign != b.lane.direction_sign
        ))

    def _same_direction(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return (
            self.on_same_road.holds(ctx, v0, v1)
            and v0.lane.direction_sign == v1.lane.direction_sign
        )

    def _besides(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return (
            self.same_direction.holds(ctx, v0, v1)
            and abs(v1.position_on_lane - v0.position_on_lane) <= self.thresholds.besides_offset
        )

    def _is_behind(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return (
            self.same_direction.holds(ctx, v0, v1)
            and v0.position_on_lane + self.thresholds.behind_offset < v1.position_on_lane
        )

    def _right_of(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return self.besides.holds(ctx, v0, v1) and abs(v0.lane.lane_id) > abs(v1.lane.lane_id)

    def _both_over_min_speed(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        limit = self.thresholds.overtaking_min_speed_mph
        return v0.velocity_mph > limit and v1.velocity_mph > limit

    # ── Following ────────────────────────────────────────────────────────

    def _so_between(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        tick = ctx.tick_at(v1.time)
        if tick is None:
            return False
        lane0, lane1 = v0.lane.uid, v1.lane.uid
        for vx in tick.vehicles:
            if vx.actor_id in (v0.actor_id, v1.actor_id):
                continue
            lane_x = vx.lane.uid
            if lane0 != lane_x and lane1 != lane_x:
                continue
            if lane0 == lane_x and not v0.position_on_lane < vx.position_on_lane:
                continue
            if lane1 == lane_x and not v1.position_on_lane > vx.position_on_lane:
                continue
            return True
        return False

    def _behind(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        same_lane_behind = (
            v0.lane.uid == v1.lane.uid and v0.position_on_lane < v1.position_on_lane
        )
        into_successor = any(lane is v1.lane for lane in v0.lane.successor_lanes)
        return (same_lane_behind or into_successor) and not self.so_between.holds(ctx, v0, v1)

    def _follows(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        t = self.thresholds
        span = (0.0, t.follow_duration)
        tail = (t.follow_duration, t.follow_duration + t.follow_tail)
        return eventually(ctx, (v0, v1), lambda a, b: (
            globally(ctx, (a, b), lambda x, y: self.behind.holds(ctx, x, y), span)
            and eventually(ctx, (a, b), lambda x, y: True, tail)
        ))

    # ── Overtaking ───────────────────────────────────────────────────────

    def _pass_chain(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle,
                    alongside: BinaryPredicate) -> bool:
        fast = self.both_over_min_speed

        def behind(a: Vehicle, b: Vehicle) -> bool:
            return self.is_behind.holds(ctx, a, b) and fast.holds(ctx, a, b)

        def beside(a: Vehicle, b: Vehicle) -> bool:
            return alongside.holds(ctx, a, b) and fast.holds(ctx, a, b)

        def ahead(a: Vehicle, b: Vehicle) -> bool:
            return self.is_behind.holds(ctx, b, a) and fast.holds(ctx, a, b)

        def beside_then_ahead(a: Vehicle, b: Vehicle) -> bool:
            return beside(a, b) and next_(
                ctx, (a, b), lambda c, d: until(ctx, (c, d), beside, ahead))

        def start(a: Vehicle, b: Vehicle) -> bool:
            return behind(a, b) and next_(
                ctx, (a, b), lambda c, d: until(ctx, (c, d), behind, beside_then_ahead))

        return eventually(ctx, (v0, v1), start)

    def _overtaking(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return self._pass_chain(ctx, v0, v1, self.besides)

    def _right_overtaking(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return self._pass_chain(ctx, v0, v1, self.right_of)

    def _others_at(self, ctx: EvaluationContext, v: Vehicle) -> list[Vehicle]:
        tick = ctx.tick_at(v.time)
        return tick.vehicles if tick is not None else []

    def _has_overtaken(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return any(self.overtaking.holds(ctx, v, other) for other in self._others_at(ctx, v))

    def _no_right_overtaking(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return all(
            not self.right_overtaking.holds(ctx, v, other) for other in self._others_at(ctx, v)
        )

    # ── Speed ────────────────────────────────────────────────────────────

    @staticmethod
    def _speed_limit_seen(limit: float):
        def body(ctx: EvaluationContext, v: Vehicle) -> bool:
            return eventually(ctx, (v,), lambda s: s.lane.speed_at(s.position_on_lane) == limit)
        return body

    @staticmethod
    def _obeyed_speed_limit(ctx: EvaluationContext, v: Vehicle) -> bool:
        return globally(
            ctx, (v,), lambda s: s.velocity_mph <= s.lane.speed_at(s.position_on_lane))

    def _stopped(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return v.velocity_mph < self.thresholds.stopped_speed_mph

    # ── Pedestrians ──────────────────────────────────────────────────────

    def _in_reach(self, ctx: EvaluationContext, p: Pedestrian, v: Vehicle) -> bool:
        gap = p.position_on_lane - v.position_on_lane
        return self.on_same_lane.holds(ctx, p, v) and 0.0 <= gap <= self.thresholds.in_reach_distance

    def _pedestrian_crossed(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        def crossed(s: Vehicle) -> bool:
            tick = ctx.tick_at(s.time)
            return tick is not None and any(
                self.in_reach.holds(ctx, p, s) for p in tick.pedestrians)
        return eventually(ctx, (v,), crossed)

    # ── Stop types and right of way ──────────────────────────────────────

    def _at_end_of_road(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return v.position_on_lane >= v.lane.length - self.thresholds.end_of_road_margin

    def _stop_at_end(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return eventually(ctx, (v,), lambda s: (
            self.is_at_end_of_road.holds(ctx, s) and self.stopped.holds(ctx, s)
        ))

    @staticmethod
    def _has_stop_sign(ctx: EvaluationContext, v: Vehicle) -> bool:
        return eventually(ctx, (v,), lambda s: s.lane.has_stop_sign)

    @staticmethod
    def _has_yield_sign(ctx: EvaluationContext, v: Vehicle) -> bool:
        return eventually(ctx, (v,), lambda s: s.lane.has_yield_sign)

    @staticmethod
    def _has_red_light(ctx: EvaluationContext, v: Vehicle) -> bool:
        tick = ctx.tick_at(v.time)
        if tick is None:
            return False
        return any(
            tick.traffic_light_state(light) == TrafficLightState.RED
            for lane in v.lane.successor_lanes
            for light in lane.traffic_lights
        )

    def _has_relevant_red_light(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return eventually(ctx, (v,), lambda s: (
            self.has_red_light.holds(ctx, s) and self.is_at_end_of_road.holds(ctx, s)
        ))

    def _did_cross_red_light(self, ctx: EvaluationContext, v: Vehicle) -> bool:
        return eventually(ctx, (v,), lambda s: (
            self.has_relevant_red_light.holds(ctx, s)
            and next_(ctx, (s,), lambda n: s.lane.road is not n.lane.road)
        ))

    @staticmethod
    def _passed_contact_point(ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        contact = v0.lane.contact_point_pos(v1.lane)
        return contact is not None and contact < v0.position_on_lane

    def _has_yielded(self, ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return until(
            ctx, (v0, v1),
            lambda a, b: not self.passed_contact_point.holds(ctx, a, b),
            lambda a, b: self.passed_contact_point.holds(ctx, b, a),
        )

    @staticmethod
    def _must_yield(ctx: EvaluationContext, v0: Vehicle, v1: Vehicle) -> bool:
        return eventually(ctx, (v0, v1), lambda a, b: any(
            lane is b.lane for lane in a.lane.yield_lanes
        ))

    # ── Maneuvers ────────────────────────────────────────────────────────

    def _lane_prevalence(self, lane_test):
        def body(ctx: EvaluationContext, v: Vehicle) -> bool:
            return min_prevalence(
                ctx, (v,), self.thresholds.maneuver_prevalence, lambda s: lane_test(s.lane))
        return body
