"""Tests for the relational primitives and predicate wrappers."""

from scenario_reason.core.predicates import BinaryPredicate, UnaryPredicate
from scenario_reason.core.traffic_predicates import PredicateThresholds, TrafficPredicates
from scenario_reason.domain.tick import Vehicle

from tests.factories import PREDICATES as P
from tests.factories import _ctx, _first, _lane, _pedestrian, _road, _tick, _vehicle


# ── Helpers ──────────────────────────────────────────────────────────────────

def _pair(pos0: float, pos1: float, lane0: int = 1, lane1: int = 1, mph: float = 0.0):
    """Context with vehicle 0 and vehicle 1 on road 1 at one tick."""
    road = _road(1, -2, -1, 1, 2)
    return _ctx([_tick(
        0.0,
        _vehicle(0, _lane(road, lane0), pos=pos0, mph=mph),
        _vehicle(1, _lane(road, lane1), pos=pos1, mph=mph),
    )])


def _both(ctx):
    return _first(ctx, 0), _first(ctx, 1)


# ── Wrappers ─────────────────────────────────────────────────────────────────


class TestWrappers:
    def test_unary_kind_mismatch_is_false(self) -> None:
        lane = _road(1, 1).lanes[0]
        ctx = _ctx([_tick(0.0, _pedestrian(0, lane))])
        pred = UnaryPredicate("always", Vehicle, lambda c, v: True)
        assert not pred.holds(ctx, _first(ctx, 0))

    def test_unary_holds_at_defaults_to_primary_first_tick(self) -> None:
        ctx = _pair(0.0, 5.0)
        pred = UnaryPredicate("at_origin", Vehicle, lambda c, v: v.position_on_lane == 0.0)
        assert pred.holds_at(ctx)
        assert not pred.holds_at(ctx, actor_id=1)

    def test_lookup_miss_is_false(self) -> None:
        ctx = _pair(0.0, 5.0)
        pred = UnaryPredicate("always", Vehicle, lambda c, v: True)
        assert not pred.holds_at(ctx, time=99.0)
        assert not pred.holds_at(ctx, actor_id=42)

    def test_self_pair_is_false(self) -> None:
        ctx = _pair(0.0, 5.0)
        pred = BinaryPredicate("always", (Vehicle, Vehicle), lambda c, a, b: True)
        assert pred.holds_at(ctx, actor1_id=0, actor2_id=1)
        assert not pred.holds_at(ctx, actor1_id=0, actor2_id=0)

    def test_binary_needs_second_actor(self) -> None:
        ctx = _pair(0.0, 5.0)
        pred = BinaryPredicate("always", (Vehicle, Vehicle), lambda c, a, b: True)
        assert not pred.holds_at(ctx)


# ── Position relations ───────────────────────────────────────────────────────


class TestIsBehind:
    def test_asymmetric(self) -> None:
        ctx = _pair(10.0, 0.0)
        ahead, behind = _both(ctx)
        assert P.is_behind.holds(ctx, behind, ahead)
        assert not P.is_behind.holds(ctx, ahead, behind)

    def test_offset_boundary_holds_neither_way(self) -> None:
        ctx = _pair(2.0, 0.0)
        a, b = _both(ctx)
        assert not P.is_behind.holds(ctx, a, b)
        assert not P.is_behind.holds(ctx, b, a)

    def test_opposite_direction_is_not_behind(self) -> None:
        ctx = _pair(0.0, 10.0, lane0=1, lane1=-1)
        a, b = _both(ctx)
        assert not P.is_behind.holds(ctx, a, b)

    def test_offset_is_configurable(self) -> None:
        preds = TrafficPredicates(PredicateThresholds(behind_offset=0.5))
        ctx = _pair(0.0, 2.0)
        a, b = _both(ctx)
        assert preds.is_behind.holds(ctx, a, b)


class TestBesides:
    def test_symmetric_within_offset(self) -> None:
        ctx = _pair(10.0, 12.0, lane0=1, lane1=2)
        a, b = _both(ctx)
        assert P.besides.holds(ctx, a, b)
        assert P.besides.holds(ctx, b, a)

    def test_outside_offset(self) -> None:
        ctx = _pair(10.0, 12.5, lane0=1, lane1=2)
        a, b = _both(ctx)
        assert not P.besides.holds(ctx, a, b)

    def test_self_pair(self) -> None:
        ctx = _pair(10.0, 10.0)
        a, _ = _both(ctx)
        assert not P.besides.holds(ctx, a, a)
        assert not P.on_same_lane.holds(ctx, a, a)
        assert not P.on_same_road.holds(ctx, a, a)


class TestRightOf:
    def test_outer_lane_is_right(self) -> None:
        ctx = _pair(10.0, 10.0, lane0=-2, lane1=-1)
        outer, inner = _both(ctx)
        assert P.right_of.holds(ctx, outer, inner)
        assert not P.right_of.holds(ctx, inner, outer)


class TestDirection:
    def test_same_direction(self) -> None:
        ctx = _pair(0.0, 0.0, lane0=1, lane1=2)
        a, b = _both(ctx)
        assert P.same_direction.holds(ctx, a, b)

    def test_oncoming_on_opposite_lanes(self) -> None:
        ctx = _pair(0.0, 30.0, lane0=1, lane1=-1)
        a, b = _both(ctx)
        assert P.oncoming.holds(ctx, a, b)
        assert not P.same_direction.holds(ctx, a, b)

    def test_not_oncoming_on_other_road(self) -> None:
        first = _road(1, 1).lanes[0]
        second = _road(2, -1).lanes[0]
        ctx = _ctx([_tick(0.0, _vehicle(0, first), _vehicle(1, second))])
        a, b = _both(ctx)
        assert not P.oncoming.holds(ctx, a, b)


class TestSpeedPair:
    def test_both_strictly_over_threshold(self) -> None:
        ctx = _pair(0.0, 5.0, mph=10.5)
        a, b = _both(ctx)
        assert P.both_over_min_speed.holds(ctx, a, b)

    def test_exactly_threshold_is_not_over(self) -> None:
        ctx = _pair(0.0, 5.0, mph=10.0)
        a, b = _both(ctx)
        assert not P.both_over_min_speed.holds(ctx, a, b)


class TestInReach:
    def _ctx(self, ped_pos: float):
        lane = _road(1, 1).lanes[0]
        return _ctx([_tick(0.0, _vehicle(0, lane, pos=5.0), _pedestrian(9, lane, pos=ped_pos))])

    def test_pedestrian_ahead_within_reach(self) -> None:
        ctx = self._ctx(15.0)
        assert P.in_reach.holds(ctx, _first(ctx, 9), _first(ctx, 0))

    def test_pedestrian_too_far(self) -> None:
        ctx = self._ctx(15.5)
        assert not P.in_reach.holds(ctx, _first(ctx, 9), _first(ctx, 0))

    def test_pedestrian_behind(self) -> None:
        ctx = self._ctx(4.0)
        assert not P.in_reach.holds(ctx, _first(ctx, 9), _first(ctx, 0))

    def test_argument_kinds_matter(self) -> None:
        ctx = self._ctx(15.0)
        assert not P.in_reach.holds(ctx, _first(ctx, 0), _first(ctx, 9))
