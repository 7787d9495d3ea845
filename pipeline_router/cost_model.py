from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from pipeline_router.errors import InvalidEdgeError

NodeId = str


@dataclass(frozen=True)
class Node:
    node_id: NodeId
    # display-only coordinates, the router never reads them
    x: float = 0.0
    y: float = 0.0
    label: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.label or self.node_id


@dataclass(frozen=True)
class Edge:
    """Undirected pipeline segment between two locations.

    ``material_cost`` and ``labor_cost`` are rates per unit of ``distance``;
    ``terrain`` is an ordinal difficulty (1 = easiest).
    """

    start: NodeId
    end: NodeId
    distance: float
    terrain: int
    material_cost: float
    labor_cost: float

    def __post_init__(self) -> None:
        for name in ("distance", "material_cost", "labor_cost"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidEdgeError(
                    f"Edge {self.start}-{self.end}: {name} must be a number, got {value!r}.",
                    {"start": self.start, "end": self.end, "field": name},
                )
            if not math.isfinite(value) or value < 0:
                raise InvalidEdgeError(
                    f"Edge {self.start}-{self.end}: {name} must be finite and non-negative, got {value}.",
                    {"start": self.start, "end": self.end, "field": name, "value": value},
                )
        if self.distance == 0:
            raise InvalidEdgeError(
                f"Edge {self.start}-{self.end}: distance must be positive.",
                {"start": self.start, "end": self.end, "field": "distance", "value": 0},
            )
        if isinstance(self.terrain, bool) or not isinstance(self.terrain, int) or self.terrain < 1:
            raise InvalidEdgeError(
                f"Edge {self.start}-{self.end}: terrain must be an integer >= 1, got {self.terrain!r}.",
                {"start": self.start, "end": self.end, "field": "terrain"},
            )

    @property
    def cost(self) -> float:
        return edge_cost(self)

    @property
    def is_self_loop(self) -> bool:
        return self.start == self.end

    def other_end(self, node: NodeId) -> NodeId:
        """Return the endpoint opposite ``node``."""
        if node == self.start:
            return self.end
        if node == self.end:
            return self.start
        raise ValueError(f"{node} is not an endpoint of edge {self.start}-{self.end}.")


def edge_cost(edge: Edge) -> float:
    # cost = distance x (material + labor), both rates per unit distance
    return float(edge.distance * (edge.material_cost + edge.labor_cost))


@dataclass(frozen=True)
class EdgeFilter:
    """Admissibility predicate for a single query.

    Both clauses must hold. ``terrain_ceiling=None`` disables the terrain
    clause; the default ``max_cost`` admits every edge.
    """

    terrain_ceiling: Optional[int] = None
    max_cost: float = math.inf

    def __post_init__(self) -> None:
        if self.terrain_ceiling is not None and self.terrain_ceiling < 0:
            raise ValueError(f"terrain_ceiling must be non-negative, got {self.terrain_ceiling}.")
        if math.isnan(self.max_cost):
            raise ValueError("max_cost must be a number.")

    def admits(self, edge: Edge) -> bool:
        if self.terrain_ceiling is not None and edge.terrain > self.terrain_ceiling:
            return False
        return edge_cost(edge) <= self.max_cost

    def __call__(self, edge: Edge) -> bool:
        return self.admits(edge)

    @classmethod
    def from_controls(
        cls, terrain_enabled: bool, terrain_ceiling: int, max_cost: float
    ) -> "EdgeFilter":
        """Build a filter from the dashboard's checkbox and sliders."""
        return cls(
            terrain_ceiling=terrain_ceiling if terrain_enabled else None,
            max_cost=max_cost,
        )


NO_FILTER = EdgeFilter()
