from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import networkx as nx

from pipeline_router.cost_model import NO_FILTER, Edge, EdgeFilter, Node, NodeId, edge_cost
from pipeline_router.errors import NetworkValidationError
from pipeline_router.logging_utils import log_event
from pipeline_router.pathfinding.dijkstra import RouteResult, find_min_cost_path
from pipeline_router.settings import settings

# JSON files written for the web UI use camelCase keys
_EDGE_KEYS = {
    "start": ("start", "from", "source"),
    "end": ("end", "to", "target"),
    "distance": ("distance",),
    "terrain": ("terrain",),
    "material_cost": ("material_cost", "materialCost"),
    "labor_cost": ("labor_cost", "laborCost"),
}


@dataclass(frozen=True)
class PipelineNetwork:
    """Immutable snapshot of locations and candidate pipeline segments."""

    nodes: Tuple[Node, ...]
    edges: Tuple[Edge, ...]

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_iterables(cls, nodes: Iterable[Union[Node, NodeId]], edges: Iterable[Edge]) -> "PipelineNetwork":
        return cls(
            nodes=tuple(n if isinstance(n, Node) else Node(n) for n in nodes),
            edges=tuple(edges),
        )

    @property
    def node_ids(self) -> List[NodeId]:
        return [node.node_id for node in self.nodes]

    def node(self, node_id: NodeId) -> Node:
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        raise KeyError(node_id)

    def validate(self) -> None:
        seen = set()
        for node in self.nodes:
            if node.node_id in seen:
                raise NetworkValidationError(
                    f"Duplicate node id {node.node_id!r}.",
                    reason_code="duplicate_node",
                    details={"node": node.node_id},
                )
            seen.add(node.node_id)

        for edge in self.edges:
            for endpoint in (edge.start, edge.end):
                if endpoint not in seen:
                    raise NetworkValidationError(
                        f"Edge {edge.start}-{edge.end} references unknown node {endpoint!r}.",
                        reason_code="unknown_node",
                        details={"start": edge.start, "end": edge.end, "node": endpoint},
                    )

    def find_route(
        self,
        source: Optional[NodeId],
        destination: Optional[NodeId],
        edge_filter: Optional[EdgeFilter] = None,
        deadline: Optional[float] = None,
    ) -> RouteResult:
        if deadline is None and settings.search_timeout_s is not None:
            deadline = time.monotonic() + settings.search_timeout_s
        return find_min_cost_path(
            self.nodes, self.edges, source, destination, edge_filter, deadline=deadline
        )

    def admitted_edges(self, edge_filter: Optional[EdgeFilter] = None) -> List[Edge]:
        edge_filter = edge_filter or NO_FILTER
        return [edge for edge in self.edges if edge_filter.admits(edge)]

    def to_networkx(self, edge_filter: Optional[EdgeFilter] = None) -> nx.Graph:
        """Undirected graph of admitted edges, cheapest one per node pair."""
        G = nx.Graph()
        for node in self.nodes:
            G.add_node(node.node_id, x=node.x, y=node.y, label=node.display_name)

        for edge in self.admitted_edges(edge_filter):
            if edge.is_self_loop:
                continue
            weight = edge_cost(edge)
            if G.has_edge(edge.start, edge.end) and G[edge.start][edge.end]["weight"] <= weight:
                continue
            G.add_edge(
                edge.start,
                edge.end,
                weight=weight,
                distance=edge.distance,
                terrain=edge.terrain,
                material_cost=edge.material_cost,
                labor_cost=edge.labor_cost,
                edge=edge,
            )
        return G


def _pick(record: Mapping[str, Any], field: str) -> Any:
    if not isinstance(record, Mapping):
        raise NetworkValidationError(
            f"Edge record must be an object: {record!r}",
            details={"record": record},
        )
    for key in _EDGE_KEYS[field]:
        if key in record:
            return record[key]
    raise NetworkValidationError(
        f"Edge record is missing {field!r}: {record!r}",
        details={"field": field},
    )


def _as_number(value: Any, field: str) -> float:
    # JSON true/false would otherwise pass as 1.0/0.0
    if isinstance(value, bool):
        raise NetworkValidationError(
            f"Field {field!r} is not a number: {value!r}",
            details={"field": field, "value": value},
        )
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise NetworkValidationError(
            f"Field {field!r} is not a number: {value!r}",
            details={"field": field, "value": value},
        ) from None
    return number


def parse_edge(record: Mapping[str, Any]) -> Edge:
    terrain = _as_number(_pick(record, "terrain"), "terrain")
    if not math.isfinite(terrain) or terrain != int(terrain):
        raise NetworkValidationError(
            f"Edge field 'terrain' must be an integer: {terrain!r}",
            details={"field": "terrain", "value": terrain},
        )
    return Edge(
        start=str(_pick(record, "start")),
        end=str(_pick(record, "end")),
        distance=_as_number(_pick(record, "distance"), "distance"),
        terrain=int(terrain),
        material_cost=_as_number(_pick(record, "material_cost"), "material_cost"),
        labor_cost=_as_number(_pick(record, "labor_cost"), "labor_cost"),
    )


def parse_node(record: Union[Mapping[str, Any], str]) -> Node:
    if isinstance(record, str):
        return Node(record)
    if not isinstance(record, Mapping):
        raise NetworkValidationError(
            f"Node record must be an id or an object: {record!r}",
            details={"record": record},
        )
    node_id = record.get("id", record.get("node_id"))
    if node_id is None:
        raise NetworkValidationError(f"Node record has no id: {record!r}")
    return Node(
        node_id=str(node_id),
        x=_as_number(record.get("x", 0.0), "x"),
        y=_as_number(record.get("y", 0.0), "y"),
        label=record.get("label"),
    )


def network_from_dict(data: Mapping[str, Any]) -> PipelineNetwork:
    if not isinstance(data, Mapping) or "nodes" not in data or "edges" not in data:
        raise NetworkValidationError("Network data must contain 'nodes' and 'edges'.")
    for key in ("nodes", "edges"):
        if not isinstance(data[key], list):
            raise NetworkValidationError(
                f"Network {key!r} must be a list, got {type(data[key]).__name__}.",
                details={"field": key},
            )
    nodes = tuple(parse_node(n) for n in data["nodes"])
    edges = tuple(parse_edge(e) for e in data["edges"])
    return PipelineNetwork(nodes=nodes, edges=edges)


def load_network(path: Union[str, Path]) -> PipelineNetwork:
    """Read a network snapshot from a JSON file."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise NetworkValidationError(
            f"{path} is not valid JSON: {exc}", details={"path": str(path)}
        ) from exc

    network = network_from_dict(data)
    log_event("network_loaded", path=str(path), nodes=len(network.nodes), edges=len(network.edges))
    return network


def network_to_dict(network: PipelineNetwork) -> Dict[str, Any]:
    return {
        "nodes": [{"id": n.node_id, "x": n.x, "y": n.y} for n in network.nodes],
        "edges": [
            {
                "start": e.start,
                "end": e.end,
                "distance": e.distance,
                "terrain": e.terrain,
                "materialCost": e.material_cost,
                "laborCost": e.labor_cost,
            }
            for e in network.edges
        ],
    }


def build_sample_network() -> PipelineNetwork:
    """Six locations (A-F) laid out on a 600x400 canvas."""
    nodes = (
        Node("A", 100, 100),
        Node("B", 300, 80),
        Node("C", 200, 200),
        Node("D", 400, 180),
        Node("E", 350, 300),
        Node("F", 500, 280),
    )
    # start, end, distance, terrain, material/km, labor/km
    edges = (
        Edge("A", "B", 5, 1, 70, 40),
        Edge("A", "C", 7, 2, 65, 35),
        Edge("B", "D", 6, 1, 80, 45),
        Edge("C", "D", 3, 3, 90, 50),
        Edge("C", "E", 4, 2, 55, 25),
        Edge("D", "F", 8, 1, 60, 30),
        Edge("E", "F", 5, 2, 75, 40),
    )
    return PipelineNetwork(nodes=nodes, edges=edges)


if __name__ == "__main__":
    network = build_sample_network()
    for edge in network.edges:
        print(f"{edge.start}-{edge.end}: {edge_cost(edge):.2f}")
