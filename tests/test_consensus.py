"""Tests for consensus propagation."""

import pytest

from concord.config import MemoPolicy
from concord.engine.consensus import ConsensusPropagator
from concord.engine.graph import build_graph


@pytest.fixture
def propagator(make_nodes, make_edges):
    def _make(nodes, links, stats, memo_policy=MemoPolicy.PER_RUN):
        graph = build_graph(make_nodes(**nodes), make_edges(*links))
        return ConsensusPropagator(graph, stats, memo_policy)

    return _make


class TestDirectConsensus:
    """Goals without usable strategies keep their own rating."""

    def test_leaf_goal(self, propagator, make_stats):
        p = propagator({"G1": "Goal"}, [], make_stats(G1=1.0))
        assert p.goal_consensus("G1") == 1.0

    def test_unrated_goal_is_none(self, propagator, make_stats):
        p = propagator({"G1": "Goal"}, [], make_stats())
        assert p.goal_consensus("G1") is None

    def test_non_goal_is_none(self, propagator, make_stats):
        p = propagator({"S1": "Strategy"}, [], make_stats(S1=0.9))
        assert p.goal_consensus("S1") is None
        assert p.direct("S1") == 0.9

    def test_unknown_node_is_none(self, propagator, make_stats):
        p = propagator({}, [], make_stats())
        assert p.goal_consensus("missing") is None

    def test_unrated_strategy_skipped(self, propagator, make_stats):
        p = propagator(
            {"G1": "Goal", "S1": "Strategy", "G2": "Goal"},
            ["G1>S1", "S1>G2"],
            make_stats(G1=0.6, G2=0.5),
        )
        assert p.goal_consensus("G1") == pytest.approx(0.6)

    def test_strategy_without_rated_sub_goals_skipped(self, propagator, make_stats):
        p = propagator(
            {"G1": "Goal", "S1": "Strategy", "G2": "Goal"},
            ["G1>S1", "S1>G2"],
            make_stats(G1=0.6, S1=0.8),
        )
        assert p.goal_consensus("G1") == pytest.approx(0.6)

    def test_context_children_ignored(self, propagator, make_stats):
        p = propagator(
            {"G1": "Goal", "C1": "Context"},
            ["G1>C1"],
            make_stats(G1=0.4, C1=1.0),
        )
        assert p.goal_consensus("G1") == pytest.approx(0.4)


class TestMixing:
    """Goal value mixes its own rating with its strategies' support."""

    def test_single_strategy(self, propagator, make_stats):
        """A = 0.6, B = 0.8, C = 0.5 → (0.6 + 0.8 * 0.5) / 2."""
        p = propagator(
            {"G1": "Goal", "S1": "Strategy", "G2": "Goal"},
            ["G1>S1", "S1>G2"],
            make_stats(G1=0.6, S1=0.8, G2=0.5),
        )
        assert p.goal_consensus("G1") == pytest.approx(0.5)

    def test_sub_goals_averaged(self, propagator, make_stats):
        p = propagator(
            {"G1": "Goal", "S1": "Strategy", "G2": "Goal", "G3": "Goal", "G4": "Goal"},
            ["G1>S1", "S1>G2", "S1>G3", "S1>G4"],
            make_stats(G1=1.0, S1=1.0, G2=0.2, G3=0.6),
        )
        # G4 is unrated and left out of C
        assert p.goal_consensus("G1") == pytest.approx((1.0 + 0.4) / 2)

    def test_strategies_averaged(self, propagator, make_stats):
        p = propagator(
            {"G1": "Goal", "S1": "Strategy", "S2": "Strategy", "G2": "Goal", "G3": "Goal"},
            ["G1>S1", "G1>S2", "S1>G2", "S2>G3"],
            make_stats(G1=0.5, S1=1.0, S2=0.5, G2=0.8, G3=0.4),
        )
        # bottom values 0.8 and 0.2
        assert p.goal_consensus("G1") == pytest.approx((0.5 + 0.5) / 2)

    def test_recursive(self, propagator, make_stats):
        p = propagator(
            {"G1": "Goal", "S1": "Strategy", "G2": "Goal", "S2": "Strategy", "G3": "Goal"},
            ["G1>S1", "S1>G2", "G2>S2", "S2>G3"],
            make_stats(G1=1.0, S1=1.0, G2=0.5, S2=1.0, G3=0.5),
        )
        assert p.goal_consensus("G2") == pytest.approx(0.5)
        assert p.goal_consensus("G1") == pytest.approx(0.75)

    def test_absent_direct_rating_blocks_descendants(self, propagator, make_stats):
        p = propagator(
            {"G1": "Goal", "S1": "Strategy", "G2": "Goal"},
            ["G1>S1", "S1>G2"],
            make_stats(S1=0.8, G2=0.5),
        )
        assert p.goal_consensus("G1") is None
        assert p.goal_consensus("G2") == pytest.approx(0.5)

    def test_diamond_reuses_shared_goal(self, propagator, make_stats):
        p = propagator(
            {"G1": "Goal", "S1": "Strategy", "S2": "Strategy", "G2": "Goal"},
            ["G1>S1", "G1>S2", "S1>G2", "S2>G2"],
            make_stats(G1=0.5, S1=1.0, S2=1.0, G2=0.5),
        )
        assert p.goal_consensus("G1") == pytest.approx(0.5)
        assert p.cycle_hits == 0


class TestCycles:
    """Cyclic graphs terminate and drop the cyclic branch."""

    def test_goal_strategy_cycle(self, propagator, make_stats):
        p = propagator(
            {"G1": "Goal", "S1": "Strategy"},
            ["G1>S1", "S1>G1"],
            make_stats(G1=0.7, S1=0.9),
        )
        assert p.goal_consensus("G1") == pytest.approx(0.7)
        assert p.cycle_hits == 1

    def test_self_loop_on_goal(self, propagator, make_stats):
        p = propagator({"G1": "Goal"}, ["G1>G1"], make_stats(G1=0.3))
        assert p.goal_consensus("G1") == pytest.approx(0.3)

    def test_explicit_trail_cuts_goal(self, propagator, make_stats):
        p = propagator({"G1": "Goal"}, [], make_stats(G1=0.3))
        assert p.goal_consensus("G1", frozenset({"G1"})) is None


class TestMemoPolicy:
    """Per-run memo vs. acyclic-only memo on a two-goal cycle.

    G1 → S1 → G2 → S2 → G1. Evaluating G1 first computes G2 with G1 on the
    trail, so G2 only sees its own rating on that path.
    """

    NODES = {"G1": "Goal", "S1": "Strategy", "G2": "Goal", "S2": "Strategy"}
    LINKS = ["G1>S1", "S1>G2", "G2>S2", "S2>G1"]

    def _stats(self, make_stats):
        return make_stats(G1=0.6, S1=0.5, G2=0.8, S2=0.5)

    def test_per_run_reuses_truncated_value(self, propagator, make_stats):
        p = propagator(self.NODES, self.LINKS, self._stats(make_stats), MemoPolicy.PER_RUN)
        assert p.goal_consensus("G1") == pytest.approx((0.6 + 0.5 * 0.8) / 2)
        assert p.goal_consensus("G2") == pytest.approx(0.8)

    def test_acyclic_recomputes_truncated_value(self, propagator, make_stats):
        p = propagator(self.NODES, self.LINKS, self._stats(make_stats), MemoPolicy.ACYCLIC)
        assert p.goal_consensus("G1") == pytest.approx((0.6 + 0.5 * 0.8) / 2)
        assert p.goal_consensus("G2") == pytest.approx((0.8 + 0.5 * 0.6) / 2)

    def test_policies_agree_on_first_query(self, propagator, make_stats):
        per_run = propagator(self.NODES, self.LINKS, self._stats(make_stats), MemoPolicy.PER_RUN)
        acyclic = propagator(self.NODES, self.LINKS, self._stats(make_stats), MemoPolicy.ACYCLIC)
        assert per_run.goal_consensus("G2") == pytest.approx(acyclic.goal_consensus("G2"))

    def test_memo_is_stable(self, propagator, make_stats):
        p = propagator(self.NODES, self.LINKS, self._stats(make_stats))
        first = p.goal_consensus("G1")
        assert p.goal_consensus("G1") == first


class TestLayeredCycle:
    """Layered diamonds whose bottom strategy links back to the top goal.

    top → S0 → {A0, B0} → S1 → {A1, B1} → ... → SB → top. The number of
    paths doubles with every layer; the work must not.
    """

    LAYERS = 18

    def _graph(self):
        nodes = {"top": "Goal"}
        links = ["top>S0", "SB>top"]
        for i in range(self.LAYERS):
            nodes[f"S{i}"] = "Strategy"
            nodes[f"A{i}"] = "Goal"
            nodes[f"B{i}"] = "Goal"
            links += [f"S{i}>A{i}", f"S{i}>B{i}"]
            below = f"S{i + 1}" if i + 1 < self.LAYERS else "SB"
            links += [f"A{i}>{below}", f"B{i}>{below}"]
        nodes["SB"] = "Strategy"
        return nodes, links

    def _stats(self, make_stats, nodes):
        return make_stats(**{node_id: 0.5 for node_id in nodes})

    def test_acyclic_work_stays_polynomial(self, propagator, make_stats):
        nodes, links = self._graph()
        p = propagator(nodes, links, self._stats(make_stats, nodes), MemoPolicy.ACYCLIC)
        goals = [node_id for node_id, kind in nodes.items() if kind == "Goal"]
        for goal_id in goals:
            assert p.goal_consensus(goal_id) is not None
        assert p.cycle_hits <= len(nodes) ** 2
        assert p.cycle_hits < 2**self.LAYERS

    def test_acyclic_is_order_independent(self, propagator, make_stats):
        nodes, links = self._graph()
        stats = self._stats(make_stats, nodes)
        goals = [node_id for node_id, kind in nodes.items() if kind == "Goal"]

        forward = propagator(nodes, links, stats, MemoPolicy.ACYCLIC)
        backward = propagator(nodes, links, stats, MemoPolicy.ACYCLIC)
        forward_values = {goal_id: forward.goal_consensus(goal_id) for goal_id in goals}
        backward_values = {goal_id: backward.goal_consensus(goal_id) for goal_id in reversed(goals)}
        assert forward_values == pytest.approx(backward_values)

    def test_first_query_matches_per_run(self, propagator, make_stats):
        nodes, links = self._graph()
        stats = self._stats(make_stats, nodes)
        per_run = propagator(nodes, links, stats, MemoPolicy.PER_RUN)
        acyclic = propagator(nodes, links, stats, MemoPolicy.ACYCLIC)
        assert acyclic.goal_consensus("top") == pytest.approx(per_run.goal_consensus("top"))
