"""Tests for acyclic.py — boundary correction, cycle removal and exact undo.

Cycle-removal tests follow the classic set:
  - DAG has no reversed edges
  - single cycle reversed
  - self-loop deleted, not reversed
  - complex cycle
  - empty graph
"""

from __future__ import annotations

import itertools
import random

import networkx as nx
import pytest

from gansner_layout.acyclic import (
    RestorationLog,
    check_normalized,
    check_restored,
    feedback_arc_set,
    greedy_fas_ordering,
    prepare_rank_assignment,
    undo_rank_assignment,
)
from gansner_layout.errors import InvariantViolation
from gansner_layout.graph import EdgeData, LayoutGraph, Node, Size
from gansner_layout.rank_hints import RankHints

SZ = Size(10.0, 10.0)

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_graph(names: str, *edges: str) -> tuple[LayoutGraph[str], dict[str, Node]]:
    """Build a LayoutGraph from single-letter node names and "AB" edge strings."""
    g: LayoutGraph[str] = LayoutGraph()
    nodes = {name: g.add_node(name, SZ) for name in names}
    for edge in edges:
        g.add_edge(nodes[edge[0]], nodes[edge[1]])
    return g, nodes


def edge_names(g: LayoutGraph[str]) -> set[str]:
    """Current edges as "AB" strings."""
    return {g.node_data(src).payload + g.node_data(tgt).payload for _, src, tgt, _ in g.edges()}


def random_graph(seed: int, node_count: int, edge_count: int) -> LayoutGraph[int]:
    """Random multigraph with self-loops, parallel edges and random weights."""
    rng = random.Random(seed)
    g: LayoutGraph[int] = LayoutGraph()
    nodes = [g.add_node(i, SZ) for i in range(node_count)]
    for _ in range(edge_count):
        g.add_edge(rng.choice(nodes), rng.choice(nodes), EdgeData(weight=float(rng.randint(0, 3))))
    return g


# ─── greedy_fas_ordering Tests ────────────────────────────────────────────────


class TestGreedyFasOrdering:
    def test_chain_ordering(self):
        """0 → 1 → 2 — ordering keeps the chain order."""
        g = nx.MultiDiGraph([(0, 1), (1, 2)])
        assert greedy_fas_ordering(g) == [0, 1, 2]

    def test_empty_graph(self):
        """Empty graph — ordering is empty."""
        assert greedy_fas_ordering(nx.MultiDiGraph()) == []

    def test_all_nodes_present(self):
        """Ordering must contain all nodes exactly once."""
        g = nx.MultiDiGraph([(0, 1), (1, 2), (2, 0)])
        ordering = greedy_fas_ordering(g)
        assert sorted(ordering) == [0, 1, 2]

    def test_cycle_broken_at_latest_node(self):
        """In a plain 3-cycle the edge back to the first node is the back-edge."""
        g = nx.MultiDiGraph([(0, 1), (1, 2), (2, 0)])
        assert greedy_fas_ordering(g) == [0, 1, 2]

    def test_self_loop_ignored_in_degrees(self):
        """A self-loop does not stop a node from being a sink."""
        g = nx.MultiDiGraph([(0, 0), (0, 1)])
        assert greedy_fas_ordering(g) == [0, 1]

    def test_long_ring(self):
        """A large single cycle orders along the ring and breaks only the closing edge."""
        n = 5000
        g = nx.MultiDiGraph([(i, (i + 1) % n) for i in range(n)])
        assert greedy_fas_ordering(g) == list(range(n))

    def test_ring_with_chords(self):
        """Chords that skip ahead along a ring stay forward edges."""
        n = 200
        edges = [(i, (i + 1) % n) for i in range(n)] + [(i, i + 2) for i in range(0, n - 2, 3)]
        ordering = greedy_fas_ordering(nx.MultiDiGraph(edges))
        position = {node: pos for pos, node in enumerate(ordering)}
        backward = [(u, v) for u, v in edges if position[u] > position[v]]
        assert backward == [(n - 1, 0)]


# ─── Cycle Removal Tests ──────────────────────────────────────────────────────


class TestCycleRemoval:
    def test_dag_has_no_reversed_edges(self):
        """A → B → C (simple DAG, no cycles) — nothing is touched."""
        g, _ = make_graph("ABC", "AB", "BC")
        log = prepare_rank_assignment(g, RankHints())
        assert not log
        assert edge_names(g) == {"AB", "BC"}

    def test_single_cycle_reversed(self):
        """A → B → A (2-cycle) — exactly one edge reversed, result is a DAG."""
        g, _ = make_graph("AB", "AB", "BA")
        log = prepare_rank_assignment(g, RankHints())
        assert len(log.reversed) == 1
        assert log.removed == []
        assert g.is_acyclic()

    def test_self_loop_deleted(self):
        """A → A — the self-loop is deleted, not reversed."""
        g, nodes = make_graph("A", "AA")
        log = prepare_rank_assignment(g, RankHints())
        assert g.edge_count == 0
        assert log.reversed == []
        assert [(r.source, r.target) for r in log.removed] == [(nodes["A"], nodes["A"])]

    def test_complex_cycle(self):
        """A → B → C → A plus D → B — result is a DAG, D → B untouched."""
        g, _ = make_graph("ABCD", "AB", "BC", "CA", "DB")
        log = prepare_rank_assignment(g, RankHints())
        assert g.is_acyclic()
        assert len(log.reversed) >= 1
        assert "DB" in edge_names(g)

    def test_empty_graph(self):
        """Empty graph — no log entries."""
        g: LayoutGraph[str] = LayoutGraph()
        log = prepare_rank_assignment(g, RankHints())
        assert log == RestorationLog()

    def test_parallel_edges_reversed_together(self):
        """Parallel edges on a cycle end up pointing the same way."""
        g, _ = make_graph("AB", "AB", "AB", "BA")
        prepare_rank_assignment(g, RankHints())
        assert g.is_acyclic()

    def test_edge_off_cycle_never_flagged(self):
        """Only edges inside a strongly connected component can be feedback edges."""
        g, _ = make_graph("ABCD", "AB", "BC", "CB", "CD")
        flagged = {g.edge_endpoints(eid) for eid in feedback_arc_set(g)}
        assert len(flagged) == 1
        src, tgt = flagged.pop()
        assert {g.node_data(src).payload, g.node_data(tgt).payload} == {"B", "C"}


# ─── Boundary Correction Tests ────────────────────────────────────────────────


class TestBoundaryCorrection:
    def test_min_and_max_scenario(self):
        """B → A with A at MIN and D → E with D at MAX are both flipped, then restored."""
        g, n = make_graph("ABCDE", "BA", "DE")
        hints = RankHints()
        hints.set_rank_min(n["A"])
        hints.set_rank_max(n["D"])

        log = prepare_rank_assignment(g, hints)
        assert edge_names(g) == {"AB", "ED"}
        assert len(log.reversed) == 2
        check_normalized(g, hints)

        undo_rank_assignment(g, log)
        assert edge_names(g) == {"BA", "DE"}

    def test_max_to_min_reversed_once(self):
        """An edge from a MAX node into a MIN node flips once, to MIN → MAX."""
        g, n = make_graph("AB", "BA")
        hints = RankHints()
        hints.set_rank_min(n["A"])
        hints.set_rank_max(n["B"])
        log = prepare_rank_assignment(g, hints)
        assert edge_names(g) == {"AB"}
        assert len(log.reversed) == 1

    def test_min_to_max_untouched(self):
        """An edge already going MIN → MAX is left alone."""
        g, n = make_graph("AB", "AB")
        hints = RankHints()
        hints.set_rank_min(n["A"])
        hints.set_rank_max(n["B"])
        assert not prepare_rank_assignment(g, hints)

    def test_edge_inside_min_group(self):
        """An edge between two MIN nodes is reversed and causes no violation."""
        g, n = make_graph("ABC", "AB", "BC")
        hints = RankHints()
        hints.set_rank_min(n["A"])
        hints.set_rank(n["A"], n["B"])
        log = prepare_rank_assignment(g, hints)
        assert edge_names(g) == {"BA", "BC"}
        check_normalized(g, hints)
        undo_rank_assignment(g, log)
        assert edge_names(g) == {"AB", "BC"}

    def test_cycle_through_min_node(self):
        """A cycle through a MIN node is broken by the boundary step alone."""
        g, n = make_graph("ABC", "AB", "BC", "CA")
        hints = RankHints()
        hints.set_rank_min(n["A"])
        log = prepare_rank_assignment(g, hints)
        assert edge_names(g) == {"AB", "BC", "AC"}
        assert len(log.reversed) == 1
        check_normalized(g, hints)

    def test_cycle_inside_max_group(self):
        """A cycle among MAX nodes is broken without touching edges into the group."""
        g, n = make_graph("ABC", "AB", "BC", "CB")
        hints = RankHints()
        hints.set_rank_max(n["B"])
        hints.set_rank(n["B"], n["C"])
        prepare_rank_assignment(g, hints)
        assert "AB" in edge_names(g)
        check_normalized(g, hints)


# ─── Undo / Property Tests ────────────────────────────────────────────────────


class TestUndo:
    def test_three_cycle_scenario(self):
        """3-cycle plus D → E: one edge of the cycle changes, undo restores all four."""
        g, _ = make_graph("ABCDE", "AB", "BC", "CA", "DE")
        before = g.snapshot()

        log = prepare_rank_assignment(g, RankHints())
        assert g.is_acyclic()
        assert len(log.reversed) + len(log.removed) == 1
        assert g.edge_count == 4
        assert "DE" in edge_names(g)
        assert len(edge_names(g) & {"AB", "BC", "CA"}) == 2

        undo_rank_assignment(g, log)
        assert edge_names(g) == {"AB", "BC", "CA", "DE"}
        check_restored(g, before)

    def test_undo_restores_self_loop_weight(self):
        """A deleted self-loop comes back with its original weight."""
        g, n = make_graph("A")
        g.add_edge(n["A"], n["A"], EdgeData(weight=4.0))
        before = g.snapshot()
        log = prepare_rank_assignment(g, RankHints())
        undo_rank_assignment(g, log)
        check_restored(g, before)

    @pytest.mark.parametrize("seed", range(25))
    def test_random_graphs(self, seed: int):
        """Random multigraphs normalize to DAGs and restore exactly."""
        g = random_graph(seed, node_count=8, edge_count=20)
        hints = RankHints()
        nodes = list(g.nodes())
        hints.set_rank_min(nodes[0])
        hints.set_rank_max(nodes[1])
        hints.set_rank(nodes[2], nodes[3])
        before = g.snapshot()

        log = prepare_rank_assignment(g, hints)
        check_normalized(g, hints)
        undo_rank_assignment(g, log)
        check_restored(g, before)

    def test_dense_graph(self):
        """Complete digraph with self-loops: every ordered pair, still exact."""
        g: LayoutGraph[int] = LayoutGraph()
        nodes = [g.add_node(i, SZ) for i in range(5)]
        for a, b in itertools.product(nodes, repeat=2):
            g.add_edge(a, b)
        before = g.snapshot()
        log = prepare_rank_assignment(g, RankHints())
        assert g.is_acyclic()
        assert len(log.removed) == 5
        undo_rank_assignment(g, log)
        check_restored(g, before)


# ─── Verification Tests ───────────────────────────────────────────────────────


class TestVerification:
    def test_cyclic_graph_fails_check(self):
        """check_normalized rejects a graph that still has a cycle."""
        g, _ = make_graph("AB", "AB", "BA")
        with pytest.raises(InvariantViolation):
            check_normalized(g, RankHints())

    def test_incoming_edge_at_min_fails_check(self):
        """check_normalized rejects an edge into a MIN node from outside the group."""
        g, n = make_graph("AB", "BA")
        hints = RankHints()
        hints.set_rank_min(n["A"])
        with pytest.raises(InvariantViolation):
            check_normalized(g, hints)

    def test_outgoing_edge_at_max_fails_check(self):
        """check_normalized rejects an edge out of a MAX node to outside the group."""
        g, n = make_graph("AB", "AB")
        hints = RankHints()
        hints.set_rank_max(n["A"])
        with pytest.raises(InvariantViolation):
            check_normalized(g, hints)

    def test_mismatch_fails_restore_check(self):
        """check_restored rejects a graph whose edges changed."""
        g, _ = make_graph("AB", "AB")
        before = g.snapshot()
        g.reverse_edge(0)
        with pytest.raises(InvariantViolation):
            check_restored(g, before)
