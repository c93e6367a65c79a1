"""
Shared traversal for bottom-up goal propagation.

Both propagators walk Goal → Strategy → sub-Goal chains recursively. This
base class owns the parts they have in common: the per-run memo, the
per-path trail that breaks cycles, and the Goal-only gate. Subclasses only
say how one goal combines its own statistic with its strategies' sub-goals.

A trail is the frozenset of node ids on the current path. A goal that shows
up in its own trail resolves to None for that branch, so diamonds (two paths
to the same goal) are fine and true cycles terminate.

Under MemoPolicy.ACYCLIC the memo is keyed by (goal, scope). The scope is the
goal through which the evaluation entered the goal's strongly connected
component. Goals outside any cycle always have themselves as scope, so they
are computed once; goals inside a cycle are computed at most once per entry
point of their component.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Hashable, Mapping
from typing import Generic, TypeVar

from concord.config import MemoPolicy
from concord.engine.graph import ArgumentGraph, NodeKind
from concord.engine.responses import NodeStatistic
from concord.types import Trail

V = TypeVar("V")

EMPTY_TRAIL: Trail = frozenset()


class GoalPropagator(ABC, Generic[V]):
    """Memoized, cycle-safe recursion over the goal/strategy tree.

    One instance serves one aggregation run; create a new one for every
    (graph, statistics) pair.
    """

    def __init__(
        self,
        graph: ArgumentGraph,
        statistics: Mapping[str, NodeStatistic],
        memo_policy: MemoPolicy = MemoPolicy.PER_RUN,
    ):
        self.graph = graph
        self.statistics = statistics
        self.memo_policy = memo_policy
        self._memo: dict[Hashable, V | None] = {}
        self._components: dict[str, int] | None = None
        self.cycle_hits = 0

    def goal_value(self, goal_id: str, trail: Trail = EMPTY_TRAIL) -> V | None:
        """Propagated value for ``goal_id``; None when unresolvable."""
        return self._resolve(goal_id, trail, goal_id)

    def _memo_key(self, goal_id: str, scope: str) -> Hashable:
        if self.memo_policy is MemoPolicy.ACYCLIC:
            return (goal_id, scope)
        return goal_id

    def _scope_for(self, goal_id: str, scope: str) -> str:
        """Keep ``scope`` while inside its component, otherwise open a new one."""
        if self.memo_policy is not MemoPolicy.ACYCLIC:
            return scope
        if self._components is None:
            self._components = self.graph.propagation_components()
        if self._components.get(goal_id) == self._components.get(scope):
            return scope
        return goal_id

    def _resolve(self, goal_id: str, trail: Trail, scope: str) -> V | None:
        key = self._memo_key(goal_id, scope)
        if key in self._memo:
            return self._memo[key]
        if goal_id in trail:
            self.cycle_hits += 1
            return None
        if self.graph.kind_of(goal_id) is not NodeKind.GOAL:
            return None

        value = self._evaluate(goal_id, trail | {goal_id}, scope)
        self._memo[key] = value
        return value

    def _sub_goal_values(self, strategy_id: str, next_trail: Trail, scope: str) -> list[V]:
        """Non-None values of the Goal children of ``strategy_id``."""
        values: list[V] = []
        branch_trail = next_trail | {strategy_id}
        for sub_goal_id in self.graph.children_of_kind(strategy_id, NodeKind.GOAL):
            value = self._resolve(sub_goal_id, branch_trail, self._scope_for(sub_goal_id, scope))
            if value is not None:
                values.append(value)
        return values

    def _strategies(self, goal_id: str) -> list[str]:
        return self.graph.children_of_kind(goal_id, NodeKind.STRATEGY)

    def _statistic(self, node_id: str) -> NodeStatistic | None:
        return self.statistics.get(node_id)

    @abstractmethod
    def _evaluate(self, goal_id: str, next_trail: Trail, scope: str) -> V | None:
        """Combine a goal's own statistic with its strategies' sub-goals.

        ``next_trail`` already contains ``goal_id``; ``scope`` is passed on
        to ``_sub_goal_values`` unchanged.
        """
        ...


__all__ = ["GoalPropagator", "EMPTY_TRAIL"]
