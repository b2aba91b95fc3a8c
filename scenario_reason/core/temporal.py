"""Temporal quantifiers over an evaluation context.

Every quantifier takes a tuple of resolved actor states.  The *reference
time* is the time of the first state.  At each visited tick the actors are
re-resolved by id and the condition ``phi`` is called with their states at
that tick:

    eventually(ctx, (ego, other), lambda e, o: e.lane is o.lane)

An actor missing at a visited tick makes the condition false there.

Intervals are ``(lo, hi)`` offsets in seconds relative to the reference
time, both ends inclusive.  Without an interval the quantifier ranges over
every tick at or after the reference time.

``min_prevalence`` and ``min_tick_prevalence`` are different on purpose:
they classify the whole recording ("was it mostly raining"), so they count
over every tick of the segment, not over a suffix.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from scenario_reason.core.context import EvaluationContext
from scenario_reason.domain.tick import Actor, Tick

Condition = Callable[..., bool]
TickCondition = Callable[[Tick], bool]
Interval = Optional[tuple[float, float]]


# ── Internal helpers ─────────────────────────────────────────────────────────

def _reference_time(ctx: EvaluationContext, actors: tuple[Actor, ...]) -> float:
    if not actors or actors[0].time is None:
        return ctx.first_time
    return actors[0].time


def _holds_at(
    ctx: EvaluationContext,
    time: float,
    actors: tuple[Actor, ...],
    phi: Condition,
) -> bool:
    states = []
    for actor in actors:
        state = ctx.resolve(time, actor.actor_id)
        if state is None:
            return False
        states.append(state)
    return bool(phi(*states))


def _window(
    ctx: EvaluationContext,
    reference: float,
    interval: Interval,
) -> Iterable[Tick]:
    if interval is None:
        return ctx.ticks_from(reference)
    lo, hi = interval
    return ctx.ticks_between(reference + lo, reference + hi)


# ── Quantifiers ──────────────────────────────────────────────────────────────

def eventually(
    ctx: EvaluationContext,
    actors: tuple[Actor, ...],
    phi: Condition,
    interval: Interval = None,
) -> bool:
    """True iff *phi* holds at some tick of the window.  False on an empty window."""
    reference = _reference_time(ctx, actors)
    return any(
        _holds_at(ctx, tick.time, actors, phi)
        for tick in _window(ctx, reference, interval)
    )


def globally(
    ctx: EvaluationContext,
    actors: tuple[Actor, ...],
    phi: Condition,
    interval: Interval = None,
) -> bool:
    """True iff *phi* holds at every tick of the window.  Vacuously true when empty."""
    reference = _reference_time(ctx, actors)
    return all(
        _holds_at(ctx, tick.time, actors, phi)
        for tick in _window(ctx, reference, interval)
    )


def until(
    ctx: EvaluationContext,
    actors: tuple[Actor, ...],
    phi1: Condition,
    phi2: Condition,
) -> bool:
    """Strong until: some tick t0 >= reference satisfies *phi2* and *phi1*
    holds on every tick in ``[reference, t0)``."""
    reference = _reference_time(ctx, actors)
    for tick in ctx.ticks_from(reference):
        if _holds_at(ctx, tick.time, actors, phi2):
            return True
        if not _holds_at(ctx, tick.time, actors, phi1):
            return False
    return False


def next_(
    ctx: EvaluationContext,
    actors: tuple[Actor, ...],
    phi: Condition,
) -> bool:
    """True iff *phi* holds at the tick right after the reference time."""
    following = ctx.next_tick(_reference_time(ctx, actors))
    if following is None:
        return False
    return _holds_at(ctx, following.time, actors, phi)


def min_prevalence(
    ctx: EvaluationContext,
    actors: tuple[Actor, ...],
    threshold: float,
    phi: Condition,
) -> bool:
    """True iff *phi* holds on at least ``threshold`` of all segment ticks."""
    ticks = ctx.ticks_all()
    satisfied = sum(1 for tick in ticks if _holds_at(ctx, tick.time, actors, phi))
    return satisfied / len(ticks) >= threshold


def min_tick_prevalence(
    ctx: EvaluationContext,
    threshold: float,
    phi: TickCondition,
) -> bool:
    """Tick-level prevalence for environment conditions (weather, daytime)."""
    ticks = ctx.ticks_all()
    satisfied = sum(1 for tick in ticks if phi(tick))
    return satisfied / len(ticks) >= threshold
