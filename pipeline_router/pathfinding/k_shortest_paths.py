from __future__ import annotations

from itertools import islice
from typing import List, Optional

import networkx as nx

from pipeline_router.cost_model import EdgeFilter, NodeId
from pipeline_router.network_builder import PipelineNetwork
from pipeline_router.pathfinding.dijkstra import RouteResult

# Yen's algorithm


def top_k_routes(
    network: PipelineNetwork,
    source: Optional[NodeId],
    destination: Optional[NodeId],
    edge_filter: Optional[EdgeFilter] = None,
    k: int = 3,
    cutoff: Optional[int] = None,
) -> List[RouteResult]:
    """Up to ``k`` cheapest loopless routes, cheapest first.

    ``cutoff`` limits the number of hops per route.
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}.")
    if source is None or destination is None:
        return []

    G = network.to_networkx(edge_filter)
    if source not in G or destination not in G:
        return []
    if source == destination:
        return [RouteResult(path=(), cost=0.0, source=source, destination=destination)]

    try:
        # generate simple paths sorted by increasing total weight
        generator = nx.shortest_simple_paths(G, source, destination, weight="weight")
        if cutoff is not None:
            generator = (p for p in generator if len(p) - 1 <= cutoff)
        node_paths = list(islice(generator, k))
    except nx.NetworkXNoPath:  # path doesnt exist
        return []

    routes = []
    for nodes in node_paths:
        path = tuple(G[u][v]["edge"] for u, v in zip(nodes[:-1], nodes[1:]))
        cost = sum(G[u][v]["weight"] for u, v in zip(nodes[:-1], nodes[1:]))
        routes.append(RouteResult(path=path, cost=float(cost), source=source, destination=destination))
    return routes
