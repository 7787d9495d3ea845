from __future__ import annotations

import heapq
import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from pipeline_router.cost_model import NO_FILTER, Edge, EdgeFilter, Node, NodeId, edge_cost
from pipeline_router.errors import NetworkValidationError, SearchTimeoutError
from pipeline_router.logging_utils import log_event

# node -> [(neighbor, weight, edge)]
Adjacency = Dict[NodeId, List[Tuple[NodeId, float, Edge]]]


@dataclass(frozen=True)
class RouteResult:
    path: Tuple[Edge, ...]
    cost: float
    source: Optional[NodeId] = None
    destination: Optional[NodeId] = None

    @classmethod
    def unset(cls) -> "RouteResult":
        """Result for a query whose endpoints have not been chosen yet."""
        return cls(path=(), cost=math.inf)

    @property
    def reachable(self) -> bool:
        return math.isfinite(self.cost)

    @property
    def nodes(self) -> List[NodeId]:
        """Visited node ids in travel order."""
        if not self.reachable or self.source is None:
            return []
        visited = [self.source]
        for edge in self.path:
            visited.append(edge.other_end(visited[-1]))
        return visited

    @property
    def total_distance(self) -> float:
        return float(sum(edge.distance for edge in self.path))

    def path_cost(self) -> float:
        """Recompute the total from the edges alone."""
        return float(sum(edge_cost(edge) for edge in self.path))


def _node_ids(nodes: Iterable[Union[Node, NodeId]]) -> List[NodeId]:
    return [n.node_id if isinstance(n, Node) else n for n in nodes]


def build_adjacency(
    nodes: Iterable[Union[Node, NodeId]],
    edges: Iterable[Edge],
    edge_filter: EdgeFilter = NO_FILTER,
) -> Adjacency:
    """Index the admitted edges in both directions.

    Rebuilt on every query so the filter never leaks into shared state.
    Self-loops are dropped; parallel edges are all kept.
    """
    graph: Adjacency = {node: [] for node in _node_ids(nodes)}

    for edge in edges:
        for endpoint in (edge.start, edge.end):
            if endpoint not in graph:
                raise NetworkValidationError(
                    f"Edge {edge.start}-{edge.end} references unknown node {endpoint!r}.",
                    reason_code="unknown_node",
                    details={"start": edge.start, "end": edge.end, "node": endpoint},
                )
        if edge.is_self_loop or not edge_filter.admits(edge):
            continue
        weight = edge_cost(edge)
        graph[edge.start].append((edge.end, weight, edge))
        graph[edge.end].append((edge.start, weight, edge))

    return graph


def dijkstra(
    graph: Adjacency,
    src: NodeId,
    dst: Optional[NodeId] = None,
    deadline: Optional[float] = None,
) -> Tuple[Dict[NodeId, float], Dict[NodeId, Tuple[NodeId, Edge]]]:
    """Single-source minimum cost search over an adjacency index.

    Stops as soon as ``dst`` is settled. ``parent[v]`` holds the node and
    edge through which ``v`` was reached. ``deadline`` is a
    ``time.monotonic()`` value checked between settlements.
    """
    dist = {node: math.inf for node in graph}  # INF until relaxed
    dist[src] = 0.0
    parent: Dict[NodeId, Tuple[NodeId, Edge]] = {}
    settled = set()

    # (distance, sequence, node); the sequence keeps ties in push order
    sequence = 0
    pq = [(0.0, sequence, src)]

    while pq:
        current_dist, _, node = heapq.heappop(pq)

        # skip outdated elements
        if node in settled or current_dist > dist[node]:
            continue
        settled.add(node)

        if node == dst:
            break
        if deadline is not None and time.monotonic() > deadline:
            raise SearchTimeoutError(
                f"Search from {src} exceeded its deadline after settling {len(settled)} nodes.",
                {"source": src, "settled": len(settled)},
            )

        for neighbor, weight, edge in graph[node]:
            if neighbor in settled:
                continue
            new_dist = current_dist + weight
            if new_dist < dist[neighbor]:  # dv > du + w
                dist[neighbor] = new_dist
                parent[neighbor] = (node, edge)
                sequence += 1
                heapq.heappush(pq, (new_dist, sequence, neighbor))

    return dist, parent


def reconstruct_path(
    parent: Dict[NodeId, Tuple[NodeId, Edge]], src: NodeId, dst: NodeId
) -> Tuple[Edge, ...]:
    path: List[Edge] = []
    node = dst
    while node != src:
        node, edge = parent[node]
        path.append(edge)
    path.reverse()
    return tuple(path)


def find_min_cost_path(
    nodes: Iterable[Union[Node, NodeId]],
    edges: Iterable[Edge],
    source: Optional[NodeId],
    destination: Optional[NodeId],
    edge_filter: Optional[EdgeFilter] = None,
    *,
    deadline: Optional[float] = None,
) -> RouteResult:
    """Cheapest admissible route from ``source`` to ``destination``.

    Unset endpoints give ``RouteResult.unset()``; endpoints missing from
    ``nodes`` or an unreachable destination give an empty path with an
    infinite cost. Edges pointing at unknown nodes raise
    ``NetworkValidationError`` before any search runs.
    """
    graph = build_adjacency(nodes, edges, edge_filter or NO_FILTER)

    if source is None or destination is None:
        return RouteResult.unset()

    if source not in graph or destination not in graph:
        log_event(
            "route_unknown_endpoint",
            level=logging.DEBUG,
            source=source,
            destination=destination,
        )
        return RouteResult(path=(), cost=math.inf, source=source, destination=destination)

    dist, parent = dijkstra(graph, source, destination, deadline=deadline)
    cost = dist[destination]
    path = reconstruct_path(parent, source, destination) if math.isfinite(cost) else ()

    log_event(
        "route_computed",
        level=logging.DEBUG,
        source=source,
        destination=destination,
        cost=cost if math.isfinite(cost) else None,
        hops=len(path),
    )
    return RouteResult(path=path, cost=cost, source=source, destination=destination)


if __name__ == "__main__":
    # demo
    demo_edges = [
        Edge("A", "B", 5, 1, 70, 40),
        Edge("A", "C", 7, 2, 65, 35),
        Edge("C", "E", 4, 2, 55, 25),
        Edge("E", "F", 5, 2, 75, 40),
        Edge("B", "D", 6, 1, 80, 45),
        Edge("D", "F", 8, 1, 60, 30),
    ]
    result = find_min_cost_path("ABCDEF", demo_edges, "A", "F")
    print("Cheapest route:", " -> ".join(result.nodes))
    print("Total cost:", result.cost)
