from __future__ import annotations

import math
from typing import Iterable, Optional

import pandas as pd

from pipeline_router.cost_model import Edge, edge_cost
from pipeline_router.pathfinding.dijkstra import RouteResult
from pipeline_router.settings import settings

BREAKDOWN_COLUMNS = [
    "step",
    "start",
    "end",
    "distance",
    "terrain",
    "material_cost",
    "labor_cost",
    "edge_cost",
    "share",
]

EDGE_COLUMNS = [
    "start",
    "end",
    "distance",
    "terrain",
    "material_cost",
    "labor_cost",
    "edge_cost",
]

TERRAIN_LABELS = {1: "Easy", 2: "Moderate", 3: "Difficult"}


def route_segments(result: Optional[RouteResult]) -> list[tuple[str, str]]:
    """Node pairs of the route in travel order, empty when there is none."""
    if result is None or not result.reachable:
        return []
    visited = result.nodes
    return list(zip(visited[:-1], visited[1:]))


def on_route(edge: Edge, result: Optional[RouteResult]) -> bool:
    # by edge identity: a pricier parallel segment between the same nodes is not on the route
    if result is None or not result.reachable:
        return False
    return edge in result.path


def format_cost(value: float, currency_symbol: Optional[str] = None) -> str:
    if value is None or not math.isfinite(value):
        return "unreachable"
    symbol = settings.currency_symbol if currency_symbol is None else currency_symbol
    return f"{symbol} {value:,.2f}".strip()


def terrain_label(terrain: int) -> str:
    return TERRAIN_LABELS.get(terrain, f"Level {terrain}")


def route_breakdown(result: RouteResult) -> pd.DataFrame:
    """
    One row per segment of the route, oriented in travel direction:
    - edge_cost is recomputed from the segment itself
    - share is the segment's fraction of the route total (0 for a free route)
    """
    if not result.reachable or not result.path:
        return pd.DataFrame(columns=BREAKDOWN_COLUMNS)

    total = result.path_cost()
    visited = result.nodes
    rows = []
    for step, (edge, u, v) in enumerate(zip(result.path, visited[:-1], visited[1:]), start=1):
        cost = edge_cost(edge)
        rows.append({
            "step": step,
            "start": u,
            "end": v,
            "distance": edge.distance,
            "terrain": edge.terrain,
            "material_cost": edge.material_cost,
            "labor_cost": edge.labor_cost,
            "edge_cost": cost,
            "share": round(cost / total, 4) if total > 0 else 0.0,
        })
    return pd.DataFrame(rows, columns=BREAKDOWN_COLUMNS)


def edges_table(edges: Iterable[Edge]) -> pd.DataFrame:
    rows = [
        {
            "start": e.start,
            "end": e.end,
            "distance": e.distance,
            "terrain": e.terrain,
            "material_cost": e.material_cost,
            "labor_cost": e.labor_cost,
            "edge_cost": edge_cost(e),
        }
        for e in edges
    ]
    return pd.DataFrame(rows, columns=EDGE_COLUMNS)


def summarize_route(result: RouteResult, currency_symbol: Optional[str] = None) -> str:
    if result.source is None or result.destination is None:
        return "Select a source and a destination"
    if not result.reachable:
        return f"No admissible route from {result.source} to {result.destination}"
    route = " → ".join(result.nodes)
    return f"{route} ({format_cost(result.cost, currency_symbol)})"


def route_insights(result: RouteResult, alternatives: Iterable[RouteResult] = ()) -> list[str]:
    """Short human-readable observations shown next to the route table."""
    if not result.reachable:
        return []

    notes = []
    if not result.path:
        notes.append("Source and destination coincide: nothing to build.")
        return notes

    hardest = max(edge.terrain for edge in result.path)
    notes.append(f"Hardest terrain on route: {terrain_label(hardest)} ({hardest}).")

    priciest = max(result.path, key=edge_cost)
    notes.append(
        f"Most expensive segment: {priciest.start}–{priciest.end} "
        f"({format_cost(edge_cost(priciest))})."
    )

    others = [alt for alt in alternatives if alt.reachable and alt.nodes != result.nodes]
    if others:
        runner_up = min(others, key=lambda alt: alt.cost)
        saving = runner_up.cost - result.cost
        notes.append(
            f"Saves {format_cost(saving)} over the next option ({' → '.join(runner_up.nodes)})."
        )
    return notes
