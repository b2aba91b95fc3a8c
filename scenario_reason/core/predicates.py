"""Predicate wrappers — named, typed conditions over an evaluation context.

A predicate body works on resolved actor states.  The wrapper adds the two
ways of calling it:

    pred.holds(ctx, ego)                  # resolved state, reference = ego.time
    pred.holds_at(ctx, time=3.0, actor_id=1)

``holds_at`` resolves the ids first.  A lookup miss or an actor of the wrong
kind (e.g. a pedestrian handed to a vehicle predicate) is "not satisfied",
never an error.
"""

from __future__ import annotations

from typing import Callable

from scenario_reason.core.context import EvaluationContext
from scenario_reason.domain.tick import Actor

UnaryBody = Callable[[EvaluationContext, Actor], bool]
BinaryBody = Callable[[EvaluationContext, Actor, Actor], bool]
ContextBody = Callable[[EvaluationContext], bool]


class UnaryPredicate:
    """A condition on one actor."""

    __slots__ = ("name", "kind", "_body")

    def __init__(self, name: str, kind: type[Actor], body: UnaryBody) -> None:
        self.name = name
        self.kind = kind
        self._body = body

    def holds(self, ctx: EvaluationContext, actor: Actor | None) -> bool:
        if not isinstance(actor, self.kind):
            return False
        return bool(self._body(ctx, actor))

    def holds_at(
        self,
        ctx: EvaluationContext,
        time: float | None = None,
        actor_id: int | None = None,
    ) -> bool:
        """Resolve ``(time, actor_id)`` (first tick, primary actor by default) and test."""
        t = ctx.first_time if time is None else time
        aid = ctx.primary_actor_id if actor_id is None else actor_id
        return self.holds(ctx, ctx.resolve(t, aid))

    def __repr__(self) -> str:
        return f"UnaryPredicate({self.name!r})"


class BinaryPredicate:
    """A condition on an ordered pair of distinct actors."""

    __slots__ = ("name", "kinds", "_body")

    def __init__(
        self,
        name: str,
        kinds: tuple[type[Actor], type[Actor]],
        body: BinaryBody,
    ) -> None:
        self.name = name
        self.kinds = kinds
        self._body = body

    def holds(self, ctx: EvaluationContext, actor1: Actor | None, actor2: Actor | None) -> bool:
        if not isinstance(actor1, self.kinds[0]) or not isinstance(actor2, self.kinds[1]):
            return False
        # Pairwise relations never relate an actor to itself
        if actor1.actor_id == actor2.actor_id:
            return False
        return bool(self._body(ctx, actor1, actor2))

    def holds_at(
        self,
        ctx: EvaluationContext,
        time: float | None = None,
        actor1_id: int | None = None,
        actor2_id: int | None = None,
    ) -> bool:
        if actor2_id is None:
            return False
        t = ctx.first_time if time is None else time
        aid = ctx.primary_actor_id if actor1_id is None else actor1_id
        return self.holds(ctx, ctx.resolve(t, aid), ctx.resolve(t, actor2_id))

    def __repr__(self) -> str:
        return f"BinaryPredicate({self.name!r})"


class ContextPredicate:
    """A condition on the segment as a whole (weather, daytime)."""

    __slots__ = ("name", "_body")

    def __init__(self, name: str, body: ContextBody) -> None:
        self.name = name
        self._body = body

    def holds(self, ctx: EvaluationContext) -> bool:
        return bool(self._body(ctx))

    def __repr__(self) -> str:
        return f"ContextPredicate({self.name!r})"
