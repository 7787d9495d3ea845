import math
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from pipeline_router.cost_model import Edge, EdgeFilter, edge_cost
from pipeline_router.errors import NetworkValidationError, SearchTimeoutError
from pipeline_router.pathfinding.dijkstra import (
    RouteResult,
    build_adjacency,
    find_min_cost_path,
)


def query(network, src, dst, edge_filter=None):
    return find_min_cost_path(network.nodes, network.edges, src, dst, edge_filter)


def test_unfiltered_route_prefers_southern_corridor(network):
    result = query(network, "A", "F")
    assert result.nodes == ["A", "C", "E", "F"]
    assert result.cost == pytest.approx(1595)
    assert result.cost == pytest.approx(result.path_cost())


def test_northern_corridor_costs_more(edges_by_pair):
    north = sum(edge_cost(edges_by_pair[frozenset(p)]) for p in (("A", "B"), ("B", "D"), ("D", "F")))
    assert north == pytest.approx(2020)


def test_max_cost_disconnects_network(network):
    result = query(network, "A", "F", EdgeFilter(max_cost=400))
    assert not result.reachable
    assert result.path == ()
    assert result.cost == math.inf
    assert result.nodes == []


def test_terrain_ceiling_forces_easy_terrain(network):
    f = EdgeFilter(terrain_ceiling=1)
    result = query(network, "A", "F", f)
    assert result.nodes == ["A", "B", "D", "F"]
    assert result.cost == pytest.approx(2020)
    assert all(f.admits(edge) for edge in result.path)


def test_reverse_query_uses_same_edges(network):
    forward = query(network, "A", "F")
    backward = query(network, "F", "A")
    assert backward.cost == pytest.approx(forward.cost)
    assert backward.nodes == list(reversed(forward.nodes))


def test_same_source_and_destination(network):
    result = query(network, "C", "C")
    assert result.path == ()
    assert result.cost == 0
    assert result.reachable
    assert result.nodes == ["C"]


def test_unset_endpoints_are_not_errors(network):
    assert query(network, None, "F") == RouteResult.unset()
    assert query(network, "A", None) == RouteResult.unset()
    assert not RouteResult.unset().reachable


def test_unknown_endpoint_is_unreachable(network):
    result = query(network, "A", "Z")
    assert not result.reachable
    assert result.path == ()
    assert result.destination == "Z"


def test_isolating_destination(network):
    edges = [e for e in network.edges if "F" not in (e.start, e.end)]
    result = find_min_cost_path(network.nodes, edges, "A", "F")
    assert not result.reachable


def test_edge_with_unknown_node_rejected_before_search(network):
    edges = list(network.edges) + [Edge("A", "Q", 1, 1, 1, 1)]
    with pytest.raises(NetworkValidationError) as exc:
        find_min_cost_path(network.nodes, edges, "A", "F")
    assert exc.value.reason_code == "unknown_node"


def test_parallel_edges_cheapest_wins():
    edges = [Edge("A", "B", 10, 1, 5, 5), Edge("A", "B", 1, 1, 5, 5), Edge("B", "A", 3, 1, 5, 5)]
    result = find_min_cost_path(["A", "B"], edges, "A", "B")
    assert result.cost == pytest.approx(10)
    assert result.path == (edges[1],)


def test_self_loops_ignored():
    edges = [Edge("A", "A", 1, 1, 0, 0), Edge("A", "B", 2, 1, 1, 1)]
    graph = build_adjacency(["A", "B"], edges)
    assert [n for n, _, _ in graph["A"]] == ["B"]
    result = find_min_cost_path(["A", "B"], edges, "A", "B")
    assert result.cost == pytest.approx(4)


def test_zero_cost_edges_still_route():
    edges = [Edge("A", "B", 1, 1, 0, 0), Edge("B", "C", 1, 1, 0, 0)]
    result = find_min_cost_path("ABC", edges, "A", "C")
    assert result.reachable
    assert result.cost == 0
    assert result.nodes == ["A", "B", "C"]


def test_adjacency_is_symmetric(network):
    graph = build_adjacency(network.nodes, network.edges, EdgeFilter(terrain_ceiling=2))
    for node, neighbors in graph.items():
        for neighbor, weight, edge in neighbors:
            assert (node, weight, edge) in graph[neighbor]
            assert edge.terrain <= 2


def test_repeated_queries_are_identical(network):
    f = EdgeFilter(terrain_ceiling=2, max_cost=800)
    assert query(network, "A", "F", f) == query(network, "A", "F", f)


@pytest.mark.parametrize(
    "loose, tight",
    [
        (EdgeFilter(), EdgeFilter(max_cost=700)),
        (EdgeFilter(), EdgeFilter(terrain_ceiling=2)),
        (EdgeFilter(terrain_ceiling=2), EdgeFilter(terrain_ceiling=1)),
        (EdgeFilter(max_cost=800), EdgeFilter(max_cost=400)),
    ],
)
def test_tightening_filter_never_lowers_cost(network, loose, tight):
    for src in network.node_ids:
        for dst in network.node_ids:
            assert query(network, src, dst, tight).cost >= query(network, src, dst, loose).cost


def test_every_result_matches_independent_sum(network):
    for f in (EdgeFilter(), EdgeFilter(terrain_ceiling=2), EdgeFilter(max_cost=600)):
        for src in network.node_ids:
            for dst in network.node_ids:
                result = query(network, src, dst, f)
                if result.reachable:
                    assert result.cost == pytest.approx(result.path_cost())
                    assert all(f.admits(e) for e in result.path)


def test_expired_deadline_raises(network):
    with pytest.raises(SearchTimeoutError):
        find_min_cost_path(network.nodes, network.edges, "A", "F", deadline=time.monotonic() - 1)


def test_future_deadline_is_harmless(network):
    result = find_min_cost_path(network.nodes, network.edges, "A", "F", deadline=time.monotonic() + 60)
    assert result.cost == pytest.approx(1595)


def test_concurrent_queries_match_serial_results(network):
    filters = [
        EdgeFilter(),
        EdgeFilter(terrain_ceiling=1),
        EdgeFilter(terrain_ceiling=2),
        EdgeFilter(max_cost=400),
        EdgeFilter(max_cost=720),
    ]
    jobs = [(src, dst, f) for f in filters for src in network.node_ids for dst in network.node_ids]
    serial = [query(network, src, dst, f) for src, dst, f in jobs]

    with ThreadPoolExecutor(max_workers=8) as pool:
        parallel = list(pool.map(lambda job: query(network, *job), jobs * 4))

    assert parallel == serial * 4
