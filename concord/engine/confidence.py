"""
Confidence propagation: statistical fusion of expert estimates.

For each usable strategy S of a goal:

1. the sub-goal estimates are fused by inverse-variance weighting into E;
2. E is multiplied by S's own expert estimate, propagating uncertainty with
   the variance-of-a-product rule, giving candidate G(S).

The goal's value is then the plain (unweighted) average of the candidates'
means and variances. Sibling sub-goals are precision-weighted, sibling
strategies are not; both rules are intentional and must stay as they are.

Without any candidate the goal keeps its direct expert estimate, which may
itself be None.
"""

from __future__ import annotations

from concord.engine.propagation import EMPTY_TRAIL, GoalPropagator
from concord.engine.stats import (
    Estimate,
    average_estimates,
    fuse_precision_weighted,
    propagate_product,
)
from concord.types import Trail


class ConfidencePropagator(GoalPropagator[Estimate]):
    """Bottom-up (mean, variance) confidence per goal."""

    def goal_confidence(self, goal_id: str, trail: Trail = EMPTY_TRAIL) -> Estimate | None:
        return self.goal_value(goal_id, trail)

    def direct(self, node_id: str) -> Estimate | None:
        """The node's own expert estimate, unpropagated."""
        stat = self._statistic(node_id)
        return stat.expert if stat else None

    def _evaluate(self, goal_id: str, next_trail: Trail, scope: str) -> Estimate | None:
        candidates: list[Estimate] = []
        for strategy_id in self._strategies(goal_id):
            if strategy_id in next_trail:
                continue
            strategy_estimate = self.direct(strategy_id)
            if strategy_estimate is None:
                continue
            sub_estimates = self._sub_goal_values(strategy_id, next_trail, scope)
            fused = fuse_precision_weighted(sub_estimates)
            if fused is None:
                continue
            candidates.append(propagate_product(fused, strategy_estimate))

        combined = average_estimates(candidates)
        if combined is None:
            return self.direct(goal_id)
        return combined


__all__ = ["ConfidencePropagator"]
