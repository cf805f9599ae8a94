"""Acyclic normalization — turn the layout graph into a rankable DAG.

Phases, applied in order by ``prepare_rank_assignment``:
  1. Boundary correction: every edge into a min-rank node and every edge out
     of a max-rank node is reversed.
  2. Cycle elimination (greedy-FAS, per strongly connected component): each
     feedback edge is reversed, or deleted outright when it is a self-loop.
  3. Every change is appended to a ``RestorationLog``.

``undo_rank_assignment`` re-inserts deleted edges and flips reversed ones
back, in log order. Edges keep their ids through reversal, so the undo is
exact rather than merely isomorphic.
"""

from __future__ import annotations

import heapq
import logging
from collections import Counter
from dataclasses import dataclass, field

import networkx as nx

from gansner_layout.errors import InvariantViolation
from gansner_layout.graph import EdgeId, LayoutGraph, Node, RemovedEdge
from gansner_layout.rank_hints import RankHints

logger = logging.getLogger(__name__)

# ─── Restoration Log ──────────────────────────────────────────────────────────


@dataclass
class RestorationLog:
    """Everything needed to turn the normalized graph back into the original.

    Attributes:
        removed:  Self-loops deleted during cycle elimination, with their
                  original endpoints and data.
        reversed: Ids of reversed edges, in the order they were reversed.
    """

    removed: list[RemovedEdge] = field(default_factory=list)
    reversed: list[EdgeId] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.removed or self.reversed)


# ─── Cycle Removal (Greedy-FAS) ───────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.MultiDiGraph) -> list[int]:
    """Compute a node ordering using the greedy-FAS heuristic.

    Nodes earlier in the ordering should have outgoing edges going forward;
    any edge pointing backwards in the ordering is a feedback edge.
    Parallel edges count once each. Self-loops are ignored here, since they
    are feedback edges whatever the ordering.

    Algorithm (Eades, Lin, Smyth 1993):
    - Maintain dynamic in/out degree counters updated as nodes are removed.
    - Repeatedly:
        1. Move all sinks (out_deg == 0) to s2.
        2. Move all sources (in_deg == 0) to s1.
        3. Of remaining nodes in cycles, pick max (out - in) and add to s1.
    - Final ordering: s1 + reversed(s2).

    Ties are broken by node index (insertion order), so nodes added later
    tend to be the ones whose edges are reversed.
    """
    active: set[int] = set(graph.nodes)

    out_deg: dict[int, int] = {node: 0 for node in graph.nodes}
    in_deg: dict[int, int] = {node: 0 for node in graph.nodes}
    for src, tgt in graph.edges():
        if src != tgt:
            out_deg[src] += 1
            in_deg[tgt] += 1

    # Min-heaps of candidate sinks/sources. Degrees only ever drop, so an
    # entry goes stale only once its node has been removed.
    sinks = [n for n in active if out_deg[n] == 0]
    sources = [n for n in active if in_deg[n] == 0]
    heapq.heapify(sinks)
    heapq.heapify(sources)

    def remove(node: int) -> None:
        active.remove(node)
        for _, succ in graph.out_edges(node):
            if succ in active:
                in_deg[succ] -= 1
                if in_deg[succ] == 0:
                    heapq.heappush(sources, succ)
        for pred, _ in graph.in_edges(node):
            if pred in active:
                out_deg[pred] -= 1
                if out_deg[pred] == 0:
                    heapq.heappush(sinks, pred)

    s1: list[int] = []
    s2: list[int] = []

    while active:
        # Step 1: Pull all sinks (out_deg == 0) into s2.
        while sinks:
            sink = heapq.heappop(sinks)
            if sink in active:
                remove(sink)
                s2.append(sink)

        # Step 2: Pull all sources (in_deg == 0) into s1.
        while sources:
            source = heapq.heappop(sources)
            if source in active:
                remove(source)
                s1.append(source)

        # Step 3: If only cycle nodes remain, pick max (out - in) node.
        if active and not sinks and not sources:
            best = max(active, key=lambda n: (out_deg[n] - in_deg[n], -n))
            remove(best)
            s1.append(best)

    s2.reverse()
    s1.extend(s2)
    return s1


def feedback_arc_set(graph: LayoutGraph) -> list[EdgeId]:
    """Edges whose reversal (or deletion, for self-loops) makes ``graph`` acyclic.

    Each strongly connected component is ordered separately, so an edge that
    lies on no cycle is never returned. Edge ids come back in the order the
    edges appear in the graph.
    """
    digraph = graph.digraph
    component_of: dict[int, int] = {}
    position: dict[int, int] = {}

    for comp_idx, members in enumerate(nx.strongly_connected_components(digraph)):
        for node in members:
            component_of[node] = comp_idx
        if len(members) > 1:
            sub = digraph.subgraph(members)
            for pos, node in enumerate(greedy_fas_ordering(sub)):
                position[node] = pos

    feedback: list[EdgeId] = []
    for src, tgt, edge_id in digraph.edges(keys=True):
        if src == tgt:
            feedback.append(edge_id)
        elif component_of[src] == component_of[tgt] and position[src] > position[tgt]:
            feedback.append(edge_id)
    return feedback


# ─── Normalize / Undo ─────────────────────────────────────────────────────────


def prepare_rank_assignment(graph: LayoutGraph, hints: RankHints) -> RestorationLog:
    """Normalize ``graph`` in place into a DAG that respects min/max hints.

    On return, the graph is acyclic, min-rank nodes have no incoming edges
    from outside the min group, and max-rank nodes have no outgoing edges to
    outside the max group.

    Returns:
        The log that ``undo_rank_assignment`` needs to restore the original.
    """
    log = RestorationLog()
    min_nodes = set(hints.rank_min())
    max_nodes = set(hints.rank_max())

    # Ensure all edges go out of min rank and into max rank.
    #
    # An edge inside the min group (or inside the max group) gets reversed
    # too; both ends receive the same rank, so the direction is irrelevant.
    # Each edge is considered once, so max → min becomes min → max.
    boundary = [
        edge_id
        for edge_id, src, tgt, _ in graph.edges()
        if tgt in min_nodes or src in max_nodes
    ]
    for edge_id in boundary:
        graph.reverse_edge(edge_id)
        log.reversed.append(edge_id)

    for edge_id in feedback_arc_set(graph):
        src, tgt = graph.edge_endpoints(edge_id)
        if src == tgt:
            # A self-loop cannot be reversed and says nothing about ranks.
            log.removed.append(graph.remove_edge(edge_id))
        else:
            graph.reverse_edge(edge_id)
            log.reversed.append(edge_id)

    logger.debug(
        "normalized graph: %d boundary reversals, %d cycle reversals, %d self-loops removed",
        len(boundary),
        len(log.reversed) - len(boundary),
        len(log.removed),
    )
    return log


def undo_rank_assignment(graph: LayoutGraph, log: RestorationLog) -> None:
    """Restore the graph that ``prepare_rank_assignment`` normalized."""
    for removed in log.removed:
        graph.restore_edge(removed)
    for edge_id in log.reversed:
        graph.reverse_edge(edge_id)


# ─── Verification ─────────────────────────────────────────────────────────────


def check_normalized(graph: LayoutGraph, hints: RankHints) -> None:
    """Raise ``InvariantViolation`` unless ``graph`` is a valid normalized DAG."""
    if not graph.is_acyclic():
        raise InvariantViolation("normalized graph still contains a cycle")

    min_nodes = set(hints.rank_min())
    max_nodes = set(hints.rank_max())
    for _, src, tgt, _ in graph.edges():
        if tgt in min_nodes and src not in min_nodes:
            raise InvariantViolation(f"min-rank node {tgt!r} has an incoming edge from {src!r}")
        if src in max_nodes and tgt not in max_nodes:
            raise InvariantViolation(f"max-rank node {src!r} has an outgoing edge to {tgt!r}")


def check_restored(graph: LayoutGraph, before: Counter[tuple[Node, Node, float]]) -> None:
    """Raise ``InvariantViolation`` unless ``graph`` matches the ``before`` snapshot."""
    after = graph.snapshot()
    if after != before:
        missing = before - after
        extra = after - before
        raise InvariantViolation(
            f"restored graph differs from original: missing {dict(missing)}, extra {dict(extra)}"
        )
