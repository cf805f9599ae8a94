"""Longest-path rank assignment.

Default engine behind the ``RankAssigner`` protocol. It satisfies every hard
constraint (edge direction, ``min_rank_len``, same-rank groups, min/max
groups) but does not minimise the weighted edge-length objective; edge
weights are ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable

import networkx as nx

from gansner_layout.errors import RankAssignmentError
from gansner_layout.graph import LayoutGraph, Node
from gansner_layout.rank_hints import RankHints

logger = logging.getLogger(__name__)


class LongestPathRanker:
    """Rank each node at the length of the longest path reaching it.

    Every hint group is first condensed into a single class so that its
    members come out on one rank. Ranks are then propagated along the
    condensed DAG in topological order: ``rank[v] = max(rank[u] + δ(u, v))``.
    """

    def assign(self, graph: LayoutGraph, hints: RankHints) -> dict[Node, int]:
        class_of: dict[Node, Hashable] = {
            node: self._class_key(node, hints) for node in graph.nodes()
        }
        condensed = self._condense(graph, class_of)

        try:
            topo_order = list(nx.topological_sort(condensed))
        except nx.NetworkXUnfeasible as exc:
            raise RankAssignmentError(
                "rank hints force nodes joined by a directed path onto the same rank"
            ) from exc

        ranks: dict[Hashable, int] = {}
        for cls in topo_order:
            preds = condensed.in_edges(cls, data="min_rank_len")
            ranks[cls] = max((ranks[pred] + length for pred, _, length in preds), default=0)

        min_key = ("group", RankHints.MIN_RANK)
        max_key = ("group", RankHints.MAX_RANK)
        if min_key in ranks and ranks[min_key] != 0:
            raise RankAssignmentError("min-rank nodes have incoming edges; graph was not normalized")
        if max_key in ranks:
            # The max group is a sink, so lifting it cannot break an edge.
            ranks[max_key] = max(ranks.values())

        result = {node: ranks[cls] for node, cls in class_of.items()}
        logger.debug("assigned %d nodes to %d ranks", len(result), len(set(result.values())))
        return result

    @staticmethod
    def _class_key(node: Node, hints: RankHints) -> Hashable:
        group = hints.node_rank(node)
        if group is None:
            return ("node", node.index)
        return ("group", group)

    @staticmethod
    def _condense(graph: LayoutGraph, class_of: dict[Node, Hashable]) -> nx.DiGraph:
        """Collapse each hint group to one node; parallel edges keep the largest δ."""
        condensed: nx.DiGraph = nx.DiGraph()
        condensed.add_nodes_from(class_of.values())

        for edge_id, source, target, data in graph.edges():
            src_cls = class_of[source]
            tgt_cls = class_of[target]
            if src_cls == tgt_cls:
                if data.min_rank_len > 0:
                    logger.debug("edge %d lies inside one rank group; its length is ignored", edge_id)
                continue
            if condensed.has_edge(src_cls, tgt_cls):
                current = condensed.edges[src_cls, tgt_cls]["min_rank_len"]
                condensed.edges[src_cls, tgt_cls]["min_rank_len"] = max(current, data.min_rank_len)
            else:
                condensed.add_edge(src_cls, tgt_cls, min_rank_len=data.min_rank_len)

        return condensed
