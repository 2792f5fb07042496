"""
Read-only topology adapter

A bittide network is a directed multigraph. Every edge carries an integer
edge id; at each destination node the incoming edges are numbered as
in-ports 0, 1, ... in edge-id order. Controllers only need edge endpoints
and the in-port mapping, so that is all this module exposes.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple
import logging

import networkx as nx

from .exceptions import PreconditionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """Directed link from src to dst"""
    src: int
    dst: int


class Topology:
    """
    Directed multigraph with numbered edges and per-node in-ports

    Nodes are 0..n-1, edges are 0..m-1. Built once and never mutated by
    the synchronization core.
    """

    def __init__(self, graph: nx.MultiDiGraph):
        """
        Wrap an existing multigraph

        Args:
            graph: MultiDiGraph whose edges carry an ``edge_id`` attribute
        """
        self.graph = graph
        self._edges = {}
        for src, dst, data in graph.edges(data=True):
            if 'edge_id' not in data:
                raise PreconditionError(f"Edge {src}->{dst} has no edge_id attribute")
            self._edges[data['edge_id']] = Edge(src, dst)

        if sorted(self._edges) != list(range(len(self._edges))):
            raise PreconditionError("Edge ids must be exactly 0..m-1")

        # in-port order is edge-id order at each destination
        self._incoming = {node: [] for node in graph.nodes}
        for edge_id in sorted(self._edges):
            self._incoming[self._edges[edge_id].dst].append(edge_id)

        logger.debug(f"Topology built: {self.n} nodes, {self.m} edges")

    @classmethod
    def from_edges(cls, n: int, edges: Iterable[Tuple[int, int]]) -> 'Topology':
        """Build a topology on nodes 0..n-1; edge ids follow list order"""
        graph = nx.MultiDiGraph()
        graph.add_nodes_from(range(n))
        for edge_id, (src, dst) in enumerate(edges):
            if not (0 <= src < n and 0 <= dst < n):
                raise PreconditionError(f"Edge {edge_id} ({src}->{dst}) outside nodes 0..{n - 1}")
            graph.add_edge(src, dst, edge_id=edge_id)
        return cls(graph)

    @classmethod
    def bidirectional(cls, n: int, links: Iterable[Tuple[int, int]]) -> 'Topology':
        """Each undirected link becomes edges i->j and j->i (in that order)"""
        edges = []
        for i, j in links:
            edges.append((i, j))
            edges.append((j, i))
        return cls.from_edges(n, edges)

    @property
    def n(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def m(self) -> int:
        return len(self._edges)

    @property
    def edges(self) -> List[Edge]:
        return [self._edges[e] for e in range(self.m)]

    def edge(self, edge_id: int) -> Edge:
        if edge_id not in self._edges:
            raise PreconditionError(f"Unknown edge id {edge_id}")
        return self._edges[edge_id]

    def incoming_edges(self, node: int) -> List[int]:
        """Edge ids ending at node, in in-port order"""
        if node not in self._incoming:
            raise PreconditionError(f"Unknown node {node}")
        return list(self._incoming[node])

    def in_degree(self, node: int) -> int:
        return len(self.incoming_edges(node))

    def inport(self, node: int, edge_id: int) -> int:
        """In-port index of edge_id at node"""
        incoming = self.incoming_edges(node)
        if edge_id not in incoming:
            raise PreconditionError(f"Edge {edge_id} does not end at node {node}")
        return incoming.index(edge_id)


def inport_id_from_edge_id(topology: Topology, node: int, edge_id: int) -> int:
    return topology.inport(node, edge_id)
