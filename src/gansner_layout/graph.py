"""Graph store — the mutable multigraph a layout runs over.

Nodes are arena-indexed: each ``add_node`` call allocates the next integer
index and hands back a ``Node`` wrapping it. Edges likewise get a stable
integer ``EdgeId`` that survives reversal, which is what lets the acyclic
normalizer log reversals by id and undo them exactly.

The backing store is a ``networkx.MultiDiGraph`` keyed by node index, with
edge keys set to the ``EdgeId``. Node and edge records live in the
``data`` attribute, the same way the rest of the pipeline reads them.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import ClassVar, Generic, TypeVar

import networkx as nx

from gansner_layout.errors import ContractViolation, InvalidEdge

T = TypeVar("T")

EdgeId = int

# ─── Geometry ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Size:
    """Bounding-box size of a node."""

    width: float
    height: float


@dataclass(frozen=True)
class Point:
    """A 2D drawing position."""

    x: float
    y: float

    ZERO: ClassVar[Point]


Point.ZERO = Point(0.0, 0.0)

# ─── Records ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True, order=True)
class Node:
    """Handle to a node, returned by ``add_node``.

    Handles are plain values: copy them freely, compare and hash them. They
    are only meaningful for the graph that issued them.
    """

    index: int


@dataclass
class NodeData(Generic[T]):
    """Per-node record.

    Attributes:
        payload:  The value supplied by the caller when adding the node.
        size:     The caller-supplied bounding box.
        position: The computed position; ``Point.ZERO`` until layout runs.
    """

    payload: T
    size: Size
    position: Point = field(default_factory=lambda: Point.ZERO)


@dataclass(frozen=True)
class EdgeData:
    """Per-edge record.

    Attributes:
        min_rank_len: Minimum number of ranks the edge must span (δ). Zero is
            accepted; whether it should be is an open product question.
        weight: Non-negative weight of the edge (ω) in the edge-length
            objective.
    """

    min_rank_len: int = 1
    weight: float = 1.0

    def __post_init__(self) -> None:
        # Written as `not >=` so that NaN fails as well.
        if not self.weight >= 0:
            raise InvalidEdge(f"edge weight must be >= 0, got {self.weight!r}")
        if isinstance(self.min_rank_len, bool) or not isinstance(self.min_rank_len, int):
            raise InvalidEdge(f"min_rank_len must be an int, got {self.min_rank_len!r}")
        if self.min_rank_len < 0:
            raise InvalidEdge(f"min_rank_len must be >= 0, got {self.min_rank_len}")


@dataclass(frozen=True)
class RemovedEdge:
    """An edge taken out of the graph, with everything needed to put it back."""

    edge_id: EdgeId
    source: Node
    target: Node
    data: EdgeData


# ─── Layout Graph ─────────────────────────────────────────────────────────────


class LayoutGraph(Generic[T]):
    """Directed multigraph of sized nodes and weighted edges.

    Parallel edges and self-loops are allowed. The graph is owned by a single
    layout instance and is not shared across threads.
    """

    def __init__(self, node_capacity: int = 0, edge_capacity: int = 0) -> None:
        self.digraph: nx.MultiDiGraph = nx.MultiDiGraph()
        # networkx cannot preallocate; the hints are kept for introspection only.
        self.node_capacity = node_capacity
        self.edge_capacity = edge_capacity
        self._next_edge_id: EdgeId = 0
        # edge id -> (source index, target index), kept in step with `digraph`.
        self._endpoints: dict[EdgeId, tuple[int, int]] = {}

    # ── mutation ──

    def add_node(self, payload: T, size: Size) -> Node:
        """Add a node and return its handle."""
        index = self.digraph.number_of_nodes()
        self.digraph.add_node(index, data=NodeData(payload=payload, size=size))
        return Node(index)

    def add_edge(self, source: Node, target: Node, data: EdgeData | None = None) -> EdgeId:
        """Add an edge ``source → target`` and return its id."""
        self.check_node(source)
        self.check_node(target)
        edge_id = self._next_edge_id
        self._next_edge_id += 1
        self._insert(edge_id, source.index, target.index, data if data is not None else EdgeData())
        return edge_id

    def reverse_edge(self, edge_id: EdgeId) -> None:
        """Flip the direction of an edge in place, keeping its id and data."""
        source, target = self._endpoints[edge_id]
        data = self.digraph.edges[source, target, edge_id]["data"]
        self.digraph.remove_edge(source, target, key=edge_id)
        self._insert(edge_id, target, source, data)

    def remove_edge(self, edge_id: EdgeId) -> RemovedEdge:
        """Delete an edge, returning a record that ``restore_edge`` accepts."""
        source, target = self._endpoints.pop(edge_id)
        data = self.digraph.edges[source, target, edge_id]["data"]
        self.digraph.remove_edge(source, target, key=edge_id)
        return RemovedEdge(edge_id=edge_id, source=Node(source), target=Node(target), data=data)

    def restore_edge(self, removed: RemovedEdge) -> None:
        """Re-insert a previously removed edge under its original id."""
        if removed.edge_id in self._endpoints:
            raise ContractViolation(f"edge {removed.edge_id} is already present")
        self._insert(removed.edge_id, removed.source.index, removed.target.index, removed.data)

    def set_position(self, node: Node, position: Point) -> None:
        self.node_data(node).position = position

    def _insert(self, edge_id: EdgeId, source: int, target: int, data: EdgeData) -> None:
        self.digraph.add_edge(source, target, key=edge_id, data=data)
        self._endpoints[edge_id] = (source, target)

    def check_node(self, node: Node) -> None:
        """Raise ``ContractViolation`` unless ``node`` was issued by this graph."""
        if node.index not in self.digraph:
            raise ContractViolation(f"unknown node handle {node!r}")

    # ── queries ──

    @property
    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self.digraph.number_of_edges()

    def __contains__(self, node: object) -> bool:
        return isinstance(node, Node) and node.index in self.digraph

    def nodes(self) -> Iterator[Node]:
        """Yield node handles in insertion order."""
        for index in self.digraph.nodes:
            yield Node(index)

    def node_data(self, node: Node) -> NodeData[T]:
        self.check_node(node)
        return self.digraph.nodes[node.index]["data"]

    def edges(self) -> Iterator[tuple[EdgeId, Node, Node, EdgeData]]:
        """Yield ``(edge_id, source, target, data)`` for every edge."""
        for source, target, edge_id, data in self.digraph.edges(keys=True, data="data"):
            yield edge_id, Node(source), Node(target), data

    def in_edges(self, node: Node) -> list[EdgeId]:
        """Ids of the edges pointing into ``node`` (self-loops included)."""
        self.check_node(node)
        return [key for _, _, key in self.digraph.in_edges(node.index, keys=True)]

    def out_edges(self, node: Node) -> list[EdgeId]:
        """Ids of the edges leaving ``node`` (self-loops included)."""
        self.check_node(node)
        return [key for _, _, key in self.digraph.out_edges(node.index, keys=True)]

    def edge_endpoints(self, edge_id: EdgeId) -> tuple[Node, Node]:
        source, target = self._endpoints[edge_id]
        return Node(source), Node(target)

    def edge_data(self, edge_id: EdgeId) -> EdgeData:
        source, target = self._endpoints[edge_id]
        return self.digraph.edges[source, target, edge_id]["data"]

    def has_edge_id(self, edge_id: EdgeId) -> bool:
        return edge_id in self._endpoints

    def is_acyclic(self) -> bool:
        return nx.is_directed_acyclic_graph(self.digraph)

    def snapshot(self) -> Counter[tuple[Node, Node, float]]:
        """Multiset of ``(source, target, weight)`` triples.

        Two graphs over the same node set with equal snapshots are the same
        graph for layout purposes.
        """
        return Counter((source, target, data.weight) for _, source, target, data in self.edges())
