"""
Consensus propagation: arithmetic mixing of general-audience opinion.

For a goal with direct consensus mean A and strategies S1..Sn:

    bottom(S) = B(S) * mean(consensus of S's sub-goals)
    consensus = (A + mean(bottom(S) for each usable S)) / 2

A goal without its own rating resolves to None even when its descendants
have data. Strategies without a rating, or whose sub-goals all resolve to
None, are left out of the bottom mean; if none is left the goal's value is A.
"""

from __future__ import annotations

from concord.engine.propagation import EMPTY_TRAIL, GoalPropagator
from concord.engine.stats import mean
from concord.types import Trail


class ConsensusPropagator(GoalPropagator[float]):
    """Bottom-up consensus score per goal."""

    def goal_consensus(self, goal_id: str, trail: Trail = EMPTY_TRAIL) -> float | None:
        return self.goal_value(goal_id, trail)

    def direct(self, node_id: str) -> float | None:
        """The node's own consensus mean, unpropagated."""
        stat = self._statistic(node_id)
        return stat.consensus_mean if stat else None

    def _evaluate(self, goal_id: str, next_trail: Trail, scope: str) -> float | None:
        own = self.direct(goal_id)
        if own is None:
            return None

        bottom_values: list[float] = []
        for strategy_id in self._strategies(goal_id):
            if strategy_id in next_trail:
                continue
            strategy_score = self.direct(strategy_id)
            if strategy_score is None:
                continue
            sub_scores = self._sub_goal_values(strategy_id, next_trail, scope)
            if not sub_scores:
                continue
            bottom_values.append(strategy_score * (sum(sub_scores) / len(sub_scores)))

        bottom = mean(bottom_values)
        if bottom is None:
            return own
        return (own + bottom) / 2


__all__ = ["ConsensusPropagator"]
