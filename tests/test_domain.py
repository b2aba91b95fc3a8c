"""Tests for the road network, ticks and segments."""

import pytest
from pydantic import ValidationError

from scenario_reason.domain.enums import LandmarkType, LaneDirection, TrafficLightState
from scenario_reason.domain.road import (
    DEFAULT_SPEED_LIMIT_MPH,
    Block,
    ContactArea,
    Landmark,
    Lane,
    Road,
    SpeedLimit,
    StaticTrafficLight,
    TrafficLight,
)
from scenario_reason.domain.tick import Segment, Tick

from tests.factories import _pedestrian, _road, _segment, _tick, _vehicle


# ── Helpers ──────────────────────────────────────────────────────────────────

def _limited_lane() -> Lane:
    lane = Lane(1, length=150.0, speed_limits=[
        SpeedLimit(speed_limit=60.0, from_distance=50.0, to_distance=100.0),
        SpeedLimit(speed_limit=30.0, from_distance=0.0, to_distance=50.0),
        SpeedLimit(speed_limit=90.0, from_distance=100.0, to_distance=150.0),
    ])
    Road(0, [lane])
    return lane


# ── Road network ─────────────────────────────────────────────────────────────


class TestLane:
    def test_uid_combines_road_and_lane(self) -> None:
        road = _road(7, -1, 1)
        assert [lane.uid for lane in road.lanes] == ["7_-1", "7_1"]

    def test_uid_without_road_raises(self) -> None:
        with pytest.raises(ValueError):
            _ = Lane(1).uid

    def test_direction_sign(self) -> None:
        assert Lane(-2).direction_sign == -1
        assert Lane(3).direction_sign == 1

    def test_speed_at_picks_containing_range(self) -> None:
        lane = _limited_lane()
        assert lane.speed_at(10.0) == 30.0
        assert lane.speed_at(75.0) == 60.0
        assert lane.speed_at(120.0) == 90.0

    def test_speed_at_range_border_takes_later_range(self) -> None:
        assert _limited_lane().speed_at(50.0) == 60.0

    def test_speed_at_past_last_range_keeps_last_limit(self) -> None:
        assert _limited_lane().speed_at(400.0) == 90.0

    def test_speed_at_without_limits_uses_default(self) -> None:
        assert Lane(1).speed_at(5.0) == DEFAULT_SPEED_LIMIT_MPH

    def test_signs(self) -> None:
        lane = Lane(1, landmarks=[Landmark(landmark_id=1, type=LandmarkType.STOP_SIGN)])
        assert lane.has_stop_sign
        assert not lane.has_yield_sign

    def test_turn_direction(self) -> None:
        assert Lane(1, direction=LaneDirection.LEFT_TURN).is_turning_left
        assert Lane(1, direction=LaneDirection.RIGHT_TURN).is_turning_right
        assert Lane(1, direction=LaneDirection.STRAIGHT).is_straight
        assert not Lane(1).is_straight


class TestContactArea:
    def test_contact_point_from_both_sides(self) -> None:
        a = _road(1, 1).lanes[0]
        b = _road(2, 1).lanes[0]
        ContactArea(a, 10.0, 15.0, b, 20.0, 25.0).attach()
        assert a.contact_point_pos(b) == 10.0
        assert b.contact_point_pos(a) == 20.0

    def test_no_contact_is_none(self) -> None:
        a = _road(1, 1).lanes[0]
        b = _road(2, 1).lanes[0]
        assert a.contact_point_pos(b) is None


class TestTopology:
    def test_road_and_block_back_references(self) -> None:
        block = Block("b")
        road = _road(3, 1, 2, block=block)
        assert all(lane.road is road for lane in road.lanes)
        assert road.block is block
        assert block.roads == [road]

    def test_lanes_in_direction(self) -> None:
        road = _road(1, -2, -1, 1)
        assert [lane.lane_id for lane in road.lanes_in_direction(-1)] == [-2, -1]
        assert [lane.lane_id for lane in road.lanes_in_direction(1)] == [1]


# ── Ticks ────────────────────────────────────────────────────────────────────


class TestTick:
    def test_actor_states_are_stamped_with_tick_time(self) -> None:
        lane = _road(1, 1).lanes[0]
        tick = _tick(4.0, _vehicle(0, lane))
        assert tick.actors[0].time == 4.0

    def test_duplicate_actor_ids_rejected(self) -> None:
        lane = _road(1, 1).lanes[0]
        with pytest.raises(ValidationError):
            Tick(time=0.0, actors=(_vehicle(0, lane), _vehicle(0, lane, pos=3.0)))

    def test_vehicle_and_pedestrian_views(self) -> None:
        lane = _road(1, 1).lanes[0]
        tick = _tick(0.0, _vehicle(0, lane), _pedestrian(5, lane), _vehicle(1, lane))
        assert [v.actor_id for v in tick.vehicles] == [0, 1]
        assert [p.actor_id for p in tick.pedestrians] == [5]
        assert tick.actor(5) is not None
        assert tick.actor(42) is None

    def test_vehicles_in_block(self) -> None:
        block = Block("b")
        inside = _road(1, 1, block=block).lanes[0]
        outside = _road(2, 1).lanes[0]
        tick = _tick(0.0, _vehicle(0, inside), _vehicle(1, inside), _vehicle(2, outside))
        assert len(tick.vehicles_in_block(block)) == 2
        assert tick.vehicles_in_block(None) == []

    def test_traffic_light_state(self) -> None:
        light = StaticTrafficLight(light_id=9)
        tick = _tick(0.0, lights=(
            TrafficLight(light_id=1, static_light_id=9, state=TrafficLightState.RED),
        ))
        assert tick.traffic_light_state(light) == TrafficLightState.RED
        assert tick.traffic_light_state(StaticTrafficLight(light_id=3)) == TrafficLightState.UNKNOWN


# ── Segments ─────────────────────────────────────────────────────────────────


class TestSegment:
    def test_times_must_strictly_increase(self) -> None:
        with pytest.raises(ValidationError):
            Segment(ticks=(_tick(1.0), _tick(1.0)), primary_actor_id=0)
        with pytest.raises(ValidationError):
            Segment(ticks=(_tick(2.0), _tick(1.0)), primary_actor_id=0)

    def test_empty_segment_is_representable(self) -> None:
        seg = Segment(primary_actor_id=0)
        assert seg.tick_count == 0
        assert seg.first_time is None
        assert seg.duration == 0.0

    def test_time_facts(self) -> None:
        seg = _segment([_tick(1.0), _tick(2.0), _tick(4.5)])
        assert seg.first_time == 1.0
        assert seg.last_time == 4.5
        assert seg.duration == pytest.approx(3.5)
        assert seg.tick_count == 3

    def test_actor_ids_span_all_ticks(self) -> None:
        lane = _road(1, 1).lanes[0]
        seg = _segment([_tick(0.0, _vehicle(3, lane)), _tick(1.0, _vehicle(1, lane))])
        assert seg.actor_ids == [1, 3]

    def test_seed_parsed_from_source(self) -> None:
        assert _segment([_tick(0.0)], source="town01_seed42_part3").seed == 42
        assert _segment([_tick(0.0)], source="town01").seed == 0

    def test_with_primary_keeps_ticks(self) -> None:
        seg = _segment([_tick(0.0)], primary=0)
        other = seg.with_primary(7)
        assert other.primary_actor_id == 7
        assert other.ticks == seg.ticks
        assert seg.primary_actor_id == 0
