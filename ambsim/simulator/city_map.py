"""
Weighted city graph and shortest travel distances between its nodes.
"""

import math
from typing import Optional

import networkx as nx

from ambsim.simulator.errors import UnreachableError

# Returned by shortest_distance() when no path exists. Never a number, so it
# cannot be added to a simulated time by accident.
UNREACHABLE = None


class CityMap:
    """Undirected city graph with ``n`` nodes labelled ``0 .. n-1``."""

    def __init__(self, num_nodes: int) -> None:
        if num_nodes <= 0:
            raise ValueError(f"City needs at least one node, got {num_nodes}")
        self.num_nodes = num_nodes
        self.graph = nx.Graph()
        self.graph.add_nodes_from(range(num_nodes))

    @classmethod
    def chain(cls, num_nodes: int, weight: int = 5) -> "CityMap":
        """Nodes connected as a simple line ``0 - 1 - ... - n-1``."""
        city = cls(num_nodes)
        for i in range(num_nodes - 1):
            city.add_edge(i, i + 1, weight)
        return city

    def add_edge(self, u: int, v: int, weight: int) -> None:
        """Set a symmetric travel weight between two nodes."""
        self._check_node(u)
        self._check_node(v)
        if not math.isfinite(weight) or weight <= 0:
            raise ValueError(f"Edge weight must be a positive finite number, got {weight}")
        self.graph.add_edge(u, v, weight=weight)

    def has_edge(self, u: int, v: int) -> bool:
        return self.graph.has_edge(u, v)

    def shortest_distance(self, u: int, v: int) -> Optional[int]:
        """
        Minimum total edge weight between ``u`` and ``v``.

        Returns ``UNREACHABLE`` when the two nodes are not connected.
        """
        self._check_node(u)
        self._check_node(v)
        try:
            return nx.shortest_path_length(self.graph, source=u, target=v, weight="weight")
        except nx.NetworkXNoPath:
            return UNREACHABLE

    def travel_time(self, now: int, u: int, v: int) -> int:
        """Simulated time at which a trip from ``u`` started at ``now`` reaches ``v``."""
        distance = self.shortest_distance(u, v)
        if distance is UNREACHABLE:
            raise UnreachableError(u, v)
        return now + distance

    def _check_node(self, node: int) -> None:
        if node not in self.graph:
            raise ValueError(f"Unknown city node {node} (city has {self.num_nodes} nodes)")
