"""Tests for translating JSON segment payloads into domain segments.

Covers payload recognition, network wiring (blocks, successors, yield
lanes, contact areas), actor kinds, primary-actor defaulting and the
rejection of malformed payloads.
"""

from __future__ import annotations

import copy

import pytest

from scenario_reason.adapters.json_segment import JsonSegmentAdapter
from scenario_reason.domain.enums import LandmarkType, WeatherType
from scenario_reason.domain.errors import AdaptationError
from scenario_reason.domain.tick import Pedestrian, Vehicle


# ── Realistic Raw Payloads ───────────────────────────────────────────────────

def _segment_payload(**overrides) -> dict:
    """Ego on road 1 heading into junction road 2; a pedestrian on road 1."""
    base = {
        "source": "town01_seed7",
        "network": {
            "blocks": [
                {
                    "block_id": "b1",
                    "roads": [{
                        "road_id": 1,
                        "lanes": [
                            {
                                "lane_id": 1,
                                "length": 40.0,
                                "speed_limits": [
                                    {"speed_limit": 30, "from_distance": 0, "to_distance": 40},
                                ],
                                "landmarks": [
                                    {"landmark_id": 5, "type": "yield_sign", "s": 38.0},
                                ],
                                "successors": [{"road_id": 2, "lane_id": 1}],
                            },
                            {"lane_id": -1, "length": 40.0},
                        ],
                    }],
                },
                {
                    "block_id": "j1",
                    "roads": [{
                        "road_id": 2,
                        "is_junction": True,
                        "lanes": [
                            {
                                "lane_id": 1,
                                "length": 12.0,
                                "direction": "left_turn",
                                "yield_lanes": [{"road_id": 2, "lane_id": 2}],
                            },
                            {"lane_id": 2, "length": 12.0, "direction": "straight"},
                        ],
                    }],
                },
            ],
            "contact_areas": [{
                "lane1": {"road_id": 2, "lane_id": 1},
                "lane1_start": 4.0,
                "lane1_end": 7.0,
                "lane2": {"road_id": 2, "lane_id": 2},
                "lane2_start": 5.0,
                "lane2_end": 8.0,
            }],
        },
        "ticks": [
            {
                "time": 0.0,
                "weather": "wet",
                "actors": [
                    {
                        "actor_id": 3, "lane": {"road_id": 1, "lane_id": 1},
                        "position_on_lane": 10.0, "is_ego": True, "velocity_mph": 22.5,
                    },
                    {
                        "actor_id": 9, "kind": "pedestrian",
                        "lane": {"road_id": 1, "lane_id": -1}, "position_on_lane": 15.0,
                    },
                ],
            },
            {
                "time": 0.5,
                "actors": [
                    {
                        "actor_id": 3, "lane": {"road_id": 2, "lane_id": 1},
                        "position_on_lane": 1.0, "is_ego": True, "velocity_mph": 18.0,
                    },
                ],
            },
        ],
    }
    base.update(overrides)
    return base


@pytest.fixture
def adapter() -> JsonSegmentAdapter:
    return JsonSegmentAdapter()


# ── Recognition ──────────────────────────────────────────────────────────────


class TestCanHandle:
    def test_accepts_segment_payload(self, adapter: JsonSegmentAdapter) -> None:
        assert adapter.can_handle(_segment_payload())

    def test_rejects_other_shapes(self, adapter: JsonSegmentAdapter) -> None:
        assert not adapter.can_handle({"ticks": []})
        assert not adapter.can_handle({"source_type": "network_anomaly"})

    def test_source_name(self, adapter: JsonSegmentAdapter) -> None:
        assert adapter.source_name == "json_segment"


# ── Translation ──────────────────────────────────────────────────────────────


class TestAdapt:
    def test_basic_segment(self, adapter: JsonSegmentAdapter) -> None:
        segment = adapter.adapt(_segment_payload())
        assert segment.source == "town01_seed7"
        assert segment.seed == 7
        assert segment.tick_count == 2
        assert segment.ticks[0].weather == WeatherType.WET
        assert segment.ticks[1].weather == WeatherType.CLEAR
        assert segment.actor_ids == [3, 9]

    def test_primary_defaults_to_ego(self, adapter: JsonSegmentAdapter) -> None:
        assert adapter.adapt(_segment_payload()).primary_actor_id == 3

    def test_explicit_primary_wins(self, adapter: JsonSegmentAdapter) -> None:
        assert adapter.adapt(_segment_payload(primary_actor_id=9)).primary_actor_id == 9

    def test_actor_kinds(self, adapter: JsonSegmentAdapter) -> None:
        first = adapter.adapt(_segment_payload()).ticks[0]
        ego, walker = first.actor(3), first.actor(9)
        assert isinstance(ego, Vehicle)
        assert ego.is_ego
        assert ego.velocity_mph == 22.5
        assert isinstance(walker, Pedestrian)
        assert first.vehicles == [ego]
        assert first.pedestrians == [walker]

    def test_network_is_wired(self, adapter: JsonSegmentAdapter) -> None:
        segment = adapter.adapt(_segment_payload())
        entry = segment.ticks[0].actor(3).lane
        turn = segment.ticks[1].actor(3).lane

        assert entry.road.road_id == 1
        assert entry.road.block.block_id == "b1"
        assert entry.successor_lanes == [turn]
        assert entry.has_yield_sign
        assert not entry.has_stop_sign
        assert entry.landmarks[0].type == LandmarkType.YIELD_SIGN
        assert entry.speed_at(20.0) == 30

        assert turn.road.is_junction
        assert turn.is_turning_left
        [straight] = turn.yield_lanes
        assert straight.lane_id == 2
        assert turn.contact_point_pos(straight) == 4.0
        assert straight.contact_point_pos(turn) == 5.0

    def test_actors_share_lane_objects(self, adapter: JsonSegmentAdapter) -> None:
        segment = adapter.adapt(_segment_payload())
        ego_lane = segment.ticks[0].actor(3).lane
        walker_lane = segment.ticks[0].actor(9).lane
        assert ego_lane.road is walker_lane.road

    def test_does_not_mutate_payload(self, adapter: JsonSegmentAdapter) -> None:
        raw = _segment_payload()
        before = copy.deepcopy(raw)
        adapter.adapt(raw)
        assert raw == before


# ── Rejection ────────────────────────────────────────────────────────────────


class TestRejection:
    def test_unknown_lane_reference(self, adapter: JsonSegmentAdapter) -> None:
        raw = _segment_payload()
        raw["ticks"][0]["actors"][0]["lane"] = {"road_id": 99, "lane_id": 1}
        with pytest.raises(AdaptationError) as exc:
            adapter.adapt(raw)
        assert exc.value.adapter_name == "json_segment"
        assert "road=99" in exc.value.reason

    def test_unknown_successor(self, adapter: JsonSegmentAdapter) -> None:
        raw = _segment_payload()
        raw["network"]["blocks"][0]["roads"][0]["lanes"][0]["successors"] = [
            {"road_id": 2, "lane_id": 7},
        ]
        with pytest.raises(AdaptationError):
            adapter.adapt(raw)

    def test_duplicate_lane(self, adapter: JsonSegmentAdapter) -> None:
        raw = _segment_payload()
        lanes = raw["network"]["blocks"][0]["roads"][0]["lanes"]
        lanes.append({"lane_id": 1, "length": 5.0})
        with pytest.raises(AdaptationError, match="duplicate lane"):
            adapter.adapt(raw)

    def test_no_ego_and_no_primary(self, adapter: JsonSegmentAdapter) -> None:
        raw = _segment_payload()
        for tick in raw["ticks"]:
            for actor in tick["actors"]:
                actor["is_ego"] = False
        with pytest.raises(AdaptationError, match="no ego vehicle"):
            adapter.adapt(raw)

    def test_schema_violation(self, adapter: JsonSegmentAdapter) -> None:
        raw = _segment_payload()
        raw["ticks"][0]["actors"][0]["velocity_mph"] = -3.0
        with pytest.raises(AdaptationError):
            adapter.adapt(raw)

    def test_duplicate_actor_in_tick(self, adapter: JsonSegmentAdapter) -> None:
        raw = _segment_payload()
        raw["ticks"][0]["actors"].append(dict(raw["ticks"][0]["actors"][0]))
        with pytest.raises(AdaptationError, match="duplicate actor id"):
            adapter.adapt(raw)

    def test_non_increasing_times(self, adapter: JsonSegmentAdapter) -> None:
        raw = _segment_payload()
        raw["ticks"][1]["time"] = 0.0
        with pytest.raises(AdaptationError):
            adapter.adapt(raw)

    def test_is_a_value_error(self, adapter: JsonSegmentAdapter) -> None:
        with pytest.raises(ValueError):
            adapter.adapt({"network": {}, "ticks": [{"time": "soon"}]})
