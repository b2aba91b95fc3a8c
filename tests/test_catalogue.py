"""Tests for the urban-driving catalogue and its projections."""

import pytest

from scenario_reason.domain.enums import ClassificationStatus, LandmarkType, WeatherType
from scenario_reason.domain.road import Block, Landmark, Lane, Road
from scenario_reason.domain.tick import Segment
from scenario_reason.core.context import EvaluationContext
from scenario_reason.tree.catalogue import PROJECTIONS, build_catalogue, build_small_catalogue
from scenario_reason.tree.classifier import classify
from scenario_reason.tree.projection import (
    build_projections,
    enumerate_possible_instances,
    projection_names,
)

from tests.factories import PREDICATES, _segment, _tick, _vehicle


# ── Helpers ──────────────────────────────────────────────────────────────────

def _stop_sign_segment(
    source: str = "town01_seed1",
    final_mph: float = 0.0,
    weather: WeatherType = WeatherType.CLEAR,
    n: int = 12,
) -> Segment:
    """Ego drives to a stop sign at the end of a single-lane road."""
    lane = Lane(1, length=50.0, landmarks=[Landmark(landmark_id=1, type=LandmarkType.STOP_SIGN)])
    Block("b1", [Road(1, [Lane(-1, length=50.0), lane])])
    ticks = []
    for i in range(n):
        last = i == n - 1
        ticks.append(_tick(
            float(i),
            _vehicle(
                0, lane,
                pos=48.0 if last else i * 4.0,
                mph=final_mph if last else 20.0,
                ego=True,
            ),
            weather=weather,
        ))
    return _segment(ticks, primary=0, source=source)


# ── Structure ────────────────────────────────────────────────────────────────


class TestCatalogueStructure:
    def test_projection_names(self) -> None:
        assert projection_names(build_catalogue(PREDICATES)) == sorted(PROJECTIONS)

    @pytest.mark.parametrize("name, count", [
        ("all", 2016),
        ("environment", 42),
        ("static", 11),
        ("dynamic", 39),
        ("static+dynamic", 144),
        ("pedestrian", 84),
        ("multi-lane-dynamic-relations", 5),
    ])
    def test_possible_instance_counts(self, name: str, count: int) -> None:
        projections = build_projections(build_catalogue(PREDICATES))
        assert len(enumerate_possible_instances(projections[name])) == count

    def test_small_catalogue(self) -> None:
        tree = build_small_catalogue(PREDICATES)
        assert projection_names(tree) == ["all"]
        assert len(enumerate_possible_instances(tree)) == 7 * 3 * 2


# ── Classification ───────────────────────────────────────────────────────────


class TestCatalogueClassification:
    def test_stop_sign_scenario(self) -> None:
        tree = build_projections(build_catalogue(PREDICATES))["all"]
        result = classify(tree, EvaluationContext(_stop_sign_segment()), projection="all")
        assert result.status == ClassificationStatus.MATCHED
        assert sorted(result.instance.leaf_paths()) == [
            "TSCRoot/Road Type/Single-Lane/Dynamic Relation",
            "TSCRoot/Road Type/Single-Lane/Stop Type/Has Stop Sign",
            "TSCRoot/Time of Day/Noon",
            "TSCRoot/Traffic Density/Low Traffic",
            "TSCRoot/Weather/Clear",
        ]
        assert result.monitor_results == {
            "TSCRoot/Road Type/Single-Lane/Stop Type/Has Stop Sign::stopped at end": True,
        }
        assert result.instance in enumerate_possible_instances(tree)

    def test_rolling_stop_fails_monitor(self) -> None:
        tree = build_projections(build_catalogue(PREDICATES))["all"]
        result = classify(tree, EvaluationContext(_stop_sign_segment(final_mph=5.0)))
        assert result.status == ClassificationStatus.MATCHED
        assert [f.key for f in result.failed_monitors] == [
            "TSCRoot/Road Type/Single-Lane/Stop Type/Has Stop Sign::stopped at end",
        ]

    def test_environment_projection(self) -> None:
        tree = build_projections(build_catalogue(PREDICATES))["environment"]
        result = classify(
            tree, EvaluationContext(_stop_sign_segment(weather=WeatherType.HARD_RAINY)),
        )
        assert str(result.instance) == (
            "TSCRoot(Time of Day(Noon), Traffic Density(Low Traffic), Weather(Hard Rain))"
        )
