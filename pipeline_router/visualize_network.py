import os
from typing import Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.lines import Line2D

from pipeline_router.cost_model import EdgeFilter
from pipeline_router.logging_utils import log_event
from pipeline_router.network_builder import PipelineNetwork, build_sample_network
from pipeline_router.pathfinding.dijkstra import RouteResult
from pipeline_router.route_report import route_segments
from pipeline_router.settings import settings

TERRAIN_COLORS = {1: "#7FB77E", 2: "#F2C14E", 3: "#E4572E"}


def node_positions(network: PipelineNetwork):
    # canvas coordinates grow downwards, matplotlib's grow upwards
    return {node.node_id: (node.x, -node.y) for node in network.nodes}


def draw_network_with_route(
    network: PipelineNetwork,
    result: Optional[RouteResult] = None,
    output_path: str = "plots/route.png",
    edge_filter: Optional[EdgeFilter] = None,
):
    G = network.to_networkx()
    admitted = network.to_networkx(edge_filter)
    pos = node_positions(network)

    plt.figure(figsize=(10, 7))

    nx.draw_networkx_nodes(G, pos, node_color="#A0CBE2", node_size=700)
    nx.draw_networkx_labels(G, pos, font_size=11)

    # Excluded segments stay visible but faded
    excluded = [(u, v) for u, v in G.edges() if not admitted.has_edge(u, v)]
    nx.draw_networkx_edges(G, pos, edgelist=excluded, style="dashed", edge_color="#CCCCCC", width=1.0)

    kept = list(admitted.edges(data=True))
    nx.draw_networkx_edges(
        admitted, pos,
        edgelist=[(u, v) for u, v, _ in kept],
        edge_color=[TERRAIN_COLORS.get(d["terrain"], "#888888") for _, _, d in kept],
        width=2.0,
    )
    edge_labels = {(u, v): f"{d['weight']:,.0f}" for u, v, d in G.edges(data=True)}
    nx.draw_networkx_edge_labels(G, pos, edge_labels=edge_labels, font_size=8)

    # Highlight the route
    route_edges = route_segments(result)
    if route_edges:
        nx.draw_networkx_edges(G, pos, edgelist=route_edges, width=5.0, edge_color="red")

    legend_elements = [
        Line2D([0], [0], color=color, lw=3, label=f"Terrain {level}")
        for level, color in TERRAIN_COLORS.items()
    ]
    legend_elements.append(Line2D([0], [0], color="red", lw=5, label="Route"))
    plt.legend(handles=legend_elements, loc="upper left", frameon=True)

    title = "Pipeline Network"
    if result is not None and result.reachable:
        title += f" (route cost {result.cost:,.2f})"
    plt.title(title, fontsize=12)
    plt.axis("off")
    plt.tight_layout()
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    plt.savefig(output_path)
    plt.close()
    log_event("plot_saved", output_path=output_path)
    return output_path


if __name__ == "__main__":
    network = build_sample_network()
    route = network.find_route("A", "F")
    draw_network_with_route(network, route, os.path.join(settings.plots_dir, "route_A_F.png"))
