"""Reducer-backed state of the caller's rankings.

State changes are explicit actions applied by ``reduce``. ``RankingsStore``
applies actions optimistically and reverts to the last server-confirmed state
when the server rejects the mutation.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any

from bellyfed.assessment import Assessment, parse_assessment

Ranking = dict[str, Any]


@dataclass(frozen=True)
class SetRankings:
    rankings: tuple[Ranking, ...]


@dataclass(frozen=True)
class AddRanking:
    ranking: Ranking


@dataclass(frozen=True)
class UpdateRanking:
    ranking: Ranking


@dataclass(frozen=True)
class DeleteRanking:
    dish_id: str


Action = SetRankings | AddRanking | UpdateRanking | DeleteRanking


@dataclass(frozen=True)
class RankingsState:
    """Immutable snapshot of the caller's rankings, one per dish."""

    rankings: tuple[Ranking, ...] = field(default_factory=tuple)

    def for_dish(self, dish_id: str) -> Ranking | None:
        return next((r for r in self.rankings if r.get("dishId") == dish_id), None)

    def assessment_for(self, dish_id: str) -> Assessment | None:
        """Return Numeric/Taste sub-state for a ranked dish, None when unranked."""
        ranking = self.for_dish(dish_id)
        if ranking is None:
            return None
        return parse_assessment(ranking.get("rank"), ranking.get("tasteStatus"))


def reduce(state: RankingsState, action: Action) -> RankingsState:
    """Apply one action and return the next state."""
    if isinstance(action, SetRankings):
        return replace(state, rankings=tuple(action.rankings))

    if isinstance(action, AddRanking):
        dish_id = action.ranking.get("dishId")
        kept = tuple(r for r in state.rankings if r.get("dishId") != dish_id)
        return replace(state, rankings=(action.ranking, *kept))

    if isinstance(action, UpdateRanking):
        dish_id = action.ranking.get("dishId")
        return replace(
            state,
            rankings=tuple(
                {**r, **action.ranking} if r.get("dishId") == dish_id else r
                for r in state.rankings
            ),
        )

    if isinstance(action, DeleteRanking):
        return replace(
            state,
            rankings=tuple(r for r in state.rankings if r.get("dishId") != action.dish_id),
        )

    raise TypeError(f"Unknown action: {action!r}")


class RankingsStore:
    """Holds the current state and the last state the server confirmed."""

    def __init__(self, state: RankingsState | None = None) -> None:
        self.state = state or RankingsState()
        self.confirmed = self.state

    def dispatch(self, action: Action) -> RankingsState:
        """Apply a server-confirmed action."""
        self.state = reduce(self.state, action)
        self.confirmed = self.state
        return self.state

    @contextmanager
    def optimistic(self, action: Action) -> Iterator[RankingsState]:
        """Apply an action before the server answers.

        If the block raises, state reverts to the last confirmed snapshot and
        the error propagates. Otherwise the resulting state becomes confirmed.
        """
        self.state = reduce(self.state, action)
        try:
            yield self.state
        except BaseException:
            self.state = self.confirmed
            raise
        else:
            self.confirmed = self.state
