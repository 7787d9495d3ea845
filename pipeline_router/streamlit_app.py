import os
import sys

import streamlit as st
import streamlit.components.v1 as components
from pyvis.network import Network

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pipeline_router.cost_model import EdgeFilter, edge_cost
from pipeline_router.errors import RouterError
from pipeline_router.network_builder import PipelineNetwork, load_network
from pipeline_router.pathfinding.dijkstra import RouteResult
from pipeline_router.pathfinding.k_shortest_paths import top_k_routes
from pipeline_router.route_report import (
    edges_table,
    format_cost,
    on_route,
    route_breakdown,
    route_insights,
    summarize_route,
)
from pipeline_router.settings import settings

# ==========================================
# 1. PAGE CONFIG
# ==========================================
st.set_page_config(
    layout="wide",
    page_title="Pipeline Route Planner",
    page_icon="🛠️",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    div[data-testid="stMetric"] {
        background-color: #f0f2f6;
        padding: 15px;
        border-radius: 10px;
        border: 1px solid #dcdcdc;
    }
    h1 {
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

os.makedirs("data", exist_ok=True)

# ==========================================
# 2. UTILITIES
# ==========================================
@st.cache_data
def cached_network(path: str) -> PipelineNetwork:
    return load_network(path)


def pyvis_graph(network, result=None, edge_filter=None, html_path="data/graph_vis.html"):
    net = Network(height="520px", width="100%", bgcolor="#ffffff", font_color="black")

    for node in network.nodes:
        net.add_node(
            node.node_id, label=node.display_name, title=node.display_name,
            x=node.x, y=node.y, color="#97c2fc", size=22,
        )

    for edge in network.edges:
        admitted = edge_filter is None or edge_filter.admits(edge)
        title = f"{edge.start}–{edge.end}: {format_cost(edge_cost(edge))} (terrain {edge.terrain})"
        if admitted and on_route(edge, result):
            color, width = "#ff4b4b", 6
        elif admitted:
            color, width = "#7f8c8d", 2
        else:
            color, width = "#E0E0E0", 1
        net.add_edge(edge.start, edge.end, title=title, color=color, width=width)

    # fixed canvas coordinates
    net.toggle_physics(False)
    net.save_graph(html_path)
    return html_path


# ==========================================
# 3. MAIN DASHBOARD LOGIC
# ==========================================
try:
    network = cached_network(settings.network_path)
except (OSError, RouterError) as exc:
    st.error(f"Cannot load network from {settings.network_path}: {exc}")
    st.stop()

if "route" not in st.session_state:
    st.session_state["route"] = RouteResult.unset()
    st.session_state["alternatives"] = []
    st.session_state["edge_filter"] = None

node_ids = network.node_ids

# --- A. Sidebar: Control Panel ---
with st.sidebar:
    st.title("🎛️ Control Panel")

    with st.form("route_form"):
        st.markdown("### 📍 Endpoints")
        col_src, col_dst = st.columns(2)
        with col_src:
            src = st.selectbox("Source", node_ids, index=None, placeholder="Select")
        with col_dst:
            dst = st.selectbox("Destination", node_ids, index=None, placeholder="Select")

        st.divider()
        st.markdown("### 🧭 Filters")
        terrain_enabled = st.checkbox("Limit terrain difficulty")
        max_terrain = st.slider(
            "Max terrain", 1, settings.max_terrain, settings.default_terrain_ceiling,
        )
        max_cost = st.slider(
            "Max cost per segment",
            0.0,
            float(settings.default_max_cost),
            float(settings.default_max_cost),
            step=float(settings.max_cost_step),
        )

        submitted = st.form_submit_button("🚀 Calculate Route", type="primary", use_container_width=True)

    if submitted:
        edge_filter = EdgeFilter.from_controls(terrain_enabled, max_terrain, max_cost)
        if src is None or dst is None:
            st.warning("Select both a source and a destination.")
        st.session_state["edge_filter"] = edge_filter
        st.session_state["route"] = network.find_route(src, dst, edge_filter)
        st.session_state["alternatives"] = top_k_routes(
            network, src, dst, edge_filter, k=settings.alternative_routes
        )

route = st.session_state["route"]
alternatives = st.session_state["alternatives"]
edge_filter = st.session_state["edge_filter"]

# --- B. Main Content ---
st.title("🛠️ Optimized Gas Pipeline Installation")
st.caption(summarize_route(route))

col1, col2, col3 = st.columns(3)
with col1:
    st.metric(label="Total Cost", value=format_cost(route.cost) if route.source else "N/A")
with col2:
    st.metric(label="Segments", value=len(route.path))
with col3:
    st.metric(label="Total Distance", value=f"{route.total_distance:g} km")

st.divider()

col_viz, col_data = st.columns([2.2, 1])

with col_viz:
    st.subheader("🌐 Network Map")
    html_file = pyvis_graph(network, route, edge_filter)
    with open(html_file, "r", encoding="utf-8") as handle:
        components.html(handle.read(), height=540, scrolling=False)

with col_data:
    st.subheader("🔍 Route Analysis")
    if route.source and not route.reachable:
        st.error(f"No route from {route.source} to {route.destination} satisfies the filters.")
    for note in route_insights(route, alternatives):
        st.write(f"• {note}")

    if len(alternatives) > 1:
        st.markdown("#### Alternatives")
        st.dataframe(
            [
                {"Rank": i, "Route": " → ".join(alt.nodes), "Cost": format_cost(alt.cost)}
                for i, alt in enumerate(alternatives, 1)
            ],
            hide_index=True,
            use_container_width=True,
        )

st.subheader("📊 Route Breakdown")
breakdown = route_breakdown(route)
if breakdown.empty:
    st.info("No route calculated yet.")
else:
    st.dataframe(
        breakdown,
        hide_index=True,
        column_config={
            "edge_cost": st.column_config.NumberColumn("Edge Cost", format="%.2f"),
            "share": st.column_config.ProgressColumn("Share", format="%.2f", min_value=0, max_value=1),
        },
        use_container_width=True,
    )

with st.expander("All segments"):
    st.dataframe(edges_table(network.edges), hide_index=True, use_container_width=True)
