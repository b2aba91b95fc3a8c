"""Urban-driving scenario catalogue.

    TSCRoot (all)
    ├── Weather (exclusive)            Clear … Hard Rain
    ├── Road Type (exclusive)
    │   ├── Junction (all)             Dynamic Relation?, Maneuver
    │   ├── Multi-Lane (all)           Dynamic Relation?, Maneuver, Stop Type[0..1]
    │   └── Single-Lane (all)          Dynamic Relation?, Stop Type[0..1]
    ├── Traffic Density (exclusive)    High, Middle, Low
    └── Time of Day (exclusive)        Sunset, Noon

Every condition is evaluated for the segment's primary actor at the first
tick.  "Any other" conditions range over every actor id in the segment;
pairwise predicates already refuse the primary actor paired with itself.
"""

from __future__ import annotations

from scenario_reason.core.context import EvaluationContext
from scenario_reason.core.predicates import BinaryPredicate, UnaryPredicate
from scenario_reason.core.traffic_predicates import TrafficPredicates
from scenario_reason.tree.nodes import (
    ClassificationTree,
    Condition,
    Monitor,
    TSCNode,
    all_of,
    bounded,
    exclusive,
    leaf,
    optional,
    proj,
    proj_rec,
)

ROOT_LABEL = "TSCRoot"

PROJECTIONS = (
    "all",
    "static",
    "dynamic",
    "static+dynamic",
    "environment",
    "pedestrian",
    "multi-lane-dynamic-relations",
)


# ── Condition helpers ────────────────────────────────────────────────────────

def _primary(pred: UnaryPredicate) -> Condition:
    return lambda ctx: pred.holds_at(ctx)


def _not_primary(pred: UnaryPredicate) -> Condition:
    return lambda ctx: not pred.holds_at(ctx)


def _any_other(pred: BinaryPredicate) -> Condition:
    def condition(ctx: EvaluationContext) -> bool:
        return any(pred.holds_at(ctx, actor2_id=other) for other in ctx.actor_ids)
    return condition


# ── Sub-trees ────────────────────────────────────────────────────────────────

def _weather(p: TrafficPredicates, tagged: bool = True) -> TSCNode:
    return exclusive(
        "Weather",
        leaf("Clear", condition=p.weather_clear.holds),
        leaf("Cloudy", condition=p.weather_cloudy.holds),
        leaf("Wet", condition=p.weather_wet.holds),
        leaf("Wet Cloudy", condition=p.weather_wet_cloudy.holds),
        leaf("Soft Rain", condition=p.weather_soft_rain.holds),
        leaf("Mid Rain", condition=p.weather_mid_rain.holds),
        leaf("Hard Rain", condition=p.weather_hard_rain.holds),
        projections=proj_rec("environment", "pedestrian") if tagged else None,
    )


def _time_of_day(p: TrafficPredicates, tagged: bool = True) -> TSCNode:
    return exclusive(
        "Time of Day",
        leaf("Sunset", condition=p.sunset.holds),
        leaf("Noon", condition=p.noon.holds),
        projections=proj_rec("environment", "pedestrian") if tagged else None,
    )


def _traffic_density(p: TrafficPredicates) -> TSCNode:
    return exclusive(
        "Traffic Density",
        leaf("High Traffic", condition=_primary(p.has_high_traffic_density)),
        leaf("Middle Traffic", condition=_primary(p.has_mid_traffic_density)),
        leaf("Low Traffic", condition=_primary(p.has_low_traffic_density)),
        projections=proj_rec("environment", "dynamic", "static+dynamic"),
    )


def _pedestrian_crossed(p: TrafficPredicates) -> TSCNode:
    return leaf(
        "Pedestrian Crossed",
        condition=_primary(p.pedestrian_crossed),
        projections=proj("pedestrian"),
    )


def _following(p: TrafficPredicates, *projections: str) -> TSCNode:
    return leaf(
        "Following Leading Vehicle",
        condition=_any_other(p.follows),
        projections=proj(*projections),
    )


def _oncoming(p: TrafficPredicates) -> TSCNode:
    return leaf("Oncoming traffic", condition=_any_other(p.oncoming))


def _red_light(p: TrafficPredicates) -> TSCNode:
    return leaf(
        "Has Red Light",
        condition=_primary(p.has_relevant_red_light),
        monitors=[Monitor("did not cross red light", _not_primary(p.did_cross_red_light))],
    )


def _junction(p: TrafficPredicates) -> TSCNode:
    return all_of(
        "Junction",
        optional(
            "Dynamic Relation",
            _pedestrian_crossed(p),
            leaf(
                "Must Yield",
                condition=_any_other(p.must_yield),
                monitors=[Monitor("has yielded", _any_other(p.has_yielded))],
            ),
            _following(p, "dynamic"),
            projections=proj("pedestrian") | proj_rec("dynamic", "static+dynamic"),
        ),
        exclusive(
            "Maneuver",
            leaf("Lane Follow", condition=_primary(p.makes_no_turn)),
            leaf("Right Turn", condition=_primary(p.makes_right_turn)),
            leaf("Left Turn", condition=_primary(p.makes_left_turn)),
            projections=proj_rec("static", "static+dynamic"),
        ),
        condition=_primary(p.is_in_junction),
        projections=proj("pedestrian", "static", "dynamic", "static+dynamic"),
    )


def _multi_lane(p: TrafficPredicates) -> TSCNode:
    return all_of(
        "Multi-Lane",
        optional(
            "Dynamic Relation",
            _oncoming(p),
            leaf(
                "Overtaking",
                condition=_primary(p.has_overtaken),
                monitors=[Monitor("no right overtaking", _primary(p.no_right_overtaking))],
            ),
            _pedestrian_crossed(p),
            _following(p, "dynamic"),
            projections=proj("pedestrian")
            | proj_rec("dynamic", "static+dynamic", "multi-lane-dynamic-relations"),
        ),
        exclusive(
            "Maneuver",
            leaf("Lane Change", condition=_primary(p.changed_lane)),
            leaf("Lane Follow", condition=_not_primary(p.changed_lane)),
            projections=proj_rec("static", "static+dynamic"),
        ),
        bounded(
            "Stop Type", (0, 1),
            _red_light(p),
            projections=proj_rec("static", "static+dynamic"),
        ),
        condition=_primary(p.is_in_multi_lane),
        projections=proj(
            "pedestrian", "static", "dynamic", "static+dynamic", "multi-lane-dynamic-relations",
        ),
    )


def _single_lane(p: TrafficPredicates) -> TSCNode:
    return all_of(
        "Single-Lane",
        optional(
            "Dynamic Relation",
            _oncoming(p),
            _pedestrian_crossed(p),
            _following(p, "dynamic", "static+dynamic"),
            projections=proj("pedestrian") | proj_rec("dynamic", "static+dynamic"),
        ),
        bounded(
            "Stop Type", (0, 1),
            leaf(
                "Has Stop Sign",
                condition=_primary(p.has_stop_sign),
                monitors=[Monitor("stopped at end", _primary(p.stop_at_end))],
            ),
            leaf("Has Yield Sign", condition=_primary(p.has_yield_sign)),
            _red_light(p),
            projections=proj_rec("static", "static+dynamic"),
        ),
        condition=_primary(p.is_in_single_lane),
        projections=proj("pedestrian", "static", "dynamic", "static+dynamic"),
    )


# ── Public API ───────────────────────────────────────────────────────────────

def build_catalogue(predicates: TrafficPredicates) -> ClassificationTree:
    """The full urban-driving catalogue with all seven projections."""
    p = predicates
    root = all_of(
        ROOT_LABEL,
        _weather(p),
        exclusive(
            "Road Type",
            _junction(p),
            _multi_lane(p),
            _single_lane(p),
            projections=proj(
                "static", "dynamic", "static+dynamic", "pedestrian",
                "multi-lane-dynamic-relations",
            ),
        ),
        _traffic_density(p),
        _time_of_day(p),
        projections=proj_rec("all") | proj(*PROJECTIONS[1:]),
    )
    return ClassificationTree(root, name="tsc")


def build_small_catalogue(predicates: TrafficPredicates) -> ClassificationTree:
    """Environment and road type only, projection ``all``."""
    p = predicates
    root = all_of(
        ROOT_LABEL,
        _weather(p, tagged=False),
        exclusive(
            "Road Type",
            leaf("Junction", condition=_primary(p.is_in_junction)),
            leaf("Multi-Lane", condition=_primary(p.is_in_multi_lane)),
            leaf("Single-Lane", condition=_primary(p.is_in_single_lane)),
        ),
        _time_of_day(p, tagged=False),
        projections=proj_rec("all"),
    )
    return ClassificationTree(root, name="small-tsc")
