"""EvaluationContext — indexed, read-only view over one segment.

Every predicate is evaluated against a context rather than a raw segment.
The context resolves ``(time, actor_id)`` to an actor state in constant time
and hands out lazy tick iterators starting at any reference time, which is
what the temporal quantifiers walk.

Lookup misses return ``None``.  Predicates treat a missing actor as
"condition not satisfied" so that one absent participant never fails the
whole evaluation.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from itertools import islice
from typing import Iterator

from scenario_reason.domain.errors import EmptySegmentError
from scenario_reason.domain.tick import Actor, Segment, Tick


class EvaluationContext:
    """Read-only index over a non-empty segment."""

    __slots__ = ("_segment", "_times", "_tick_index", "_actor_index")

    def __init__(self, segment: Segment) -> None:
        if not segment.ticks:
            raise EmptySegmentError(segment.source or "<unnamed>")
        self._segment = segment
        self._times: list[float] = [t.time for t in segment.ticks]
        self._tick_index: dict[float, int] = {t: i for i, t in enumerate(self._times)}
        self._actor_index: dict[tuple[float, int], Actor] = {
            (tick.time, actor.actor_id): actor
            for tick in segment.ticks
            for actor in tick.actors
        }

    # ── Segment facts ────────────────────────────────────────────────────

    @property
    def segment(self) -> Segment:
        return self._segment

    @property
    def first_time(self) -> float:
        return self._times[0]

    @property
    def last_time(self) -> float:
        return self._times[-1]

    @property
    def primary_actor_id(self) -> int:
        return self._segment.primary_actor_id

    @property
    def actor_ids(self) -> list[int]:
        return sorted({actor_id for _, actor_id in self._actor_index})

    def __len__(self) -> int:
        return len(self._times)

    # ── Lookups ──────────────────────────────────────────────────────────

    def resolve(self, time: float, actor_id: int) -> Actor | None:
        """State of *actor_id* at exactly *time*, or ``None``."""
        return self._actor_index.get((time, actor_id))

    def primary(self, time: float | None = None) -> Actor | None:
        """State of the primary actor at *time* (first tick by default)."""
        return self.resolve(self.first_time if time is None else time, self.primary_actor_id)

    def tick_at(self, time: float) -> Tick | None:
        idx = self._tick_index.get(time)
        return self._segment.ticks[idx] if idx is not None else None

    def next_tick(self, time: float) -> Tick | None:
        """The tick immediately after *time*, or ``None`` at the end."""
        idx = bisect_right(self._times, time)
        if idx >= len(self._times):
            return None
        return self._segment.ticks[idx]

    # ── Iteration ────────────────────────────────────────────────────────

    def ticks_all(self) -> tuple[Tick, ...]:
        return self._segment.ticks

    def ticks_from(self, time: float) -> Iterator[Tick]:
        """Fresh lazy iterator over every tick with ``t >= time``."""
        start = bisect_left(self._times, time)
        return islice(self._segment.ticks, start, None)

    def ticks_between(self, start: float, end: float) -> tuple[Tick, ...]:
        """Ticks with ``start <= t <= end``."""
        lo = bisect_left(self._times, start)
        hi = bisect_right(self._times, end)
        return self._segment.ticks[lo:hi]
