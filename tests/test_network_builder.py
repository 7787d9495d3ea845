import json

import pytest

from pipeline_router.cost_model import Edge, EdgeFilter, Node
from pipeline_router.errors import InvalidEdgeError, NetworkValidationError
from pipeline_router.network_builder import (
    PipelineNetwork,
    build_sample_network,
    load_network,
    network_from_dict,
    network_to_dict,
)
from pipeline_router.settings import settings


def test_bundled_network_matches_sample():
    loaded = load_network(settings.network_path)
    assert loaded == build_sample_network()


def test_loaded_network_routes(tmp_path, network):
    path = tmp_path / "net.json"
    path.write_text(json.dumps(network_to_dict(network)), encoding="utf-8")
    result = load_network(path).find_route("A", "F")
    assert result.nodes == ["A", "C", "E", "F"]


def test_snake_case_keys_accepted():
    data = {
        "nodes": ["A", "B"],
        "edges": [{"start": "A", "end": "B", "distance": 2, "terrain": 1, "material_cost": 3, "labor_cost": 4}],
    }
    network = network_from_dict(data)
    assert network.edges[0] == Edge("A", "B", 2.0, 1, 3.0, 4.0)


def test_duplicate_node_rejected():
    with pytest.raises(NetworkValidationError) as exc:
        PipelineNetwork(nodes=(Node("A"), Node("A")), edges=())
    assert exc.value.reason_code == "duplicate_node"


def test_unknown_edge_endpoint_rejected():
    with pytest.raises(NetworkValidationError) as exc:
        PipelineNetwork.from_iterables(["A"], [Edge("A", "B", 1, 1, 1, 1)])
    assert exc.value.reason_code == "unknown_node"


@pytest.mark.parametrize(
    "data",
    [
        {"nodes": []},
        {"nodes": ["A", "B"], "edges": [{"start": "A", "end": "B", "distance": 1, "terrain": 1, "materialCost": 1}]},
        {"nodes": ["A", "B"], "edges": [{"start": "A", "end": "B", "distance": "far", "terrain": 1, "materialCost": 1, "laborCost": 1}]},
        {"nodes": ["A", "B"], "edges": [{"start": "A", "end": "B", "distance": 1, "terrain": 1.5, "materialCost": 1, "laborCost": 1}]},
        {"nodes": [{"x": 1}], "edges": []},
        {"nodes": [1, 2], "edges": []},
        {"nodes": ["A", "B"], "edges": [["A", "B"]]},
        {"nodes": None, "edges": []},
        {"nodes": ["A", "B"], "edges": {"start": "A"}},
        {"nodes": ["A", "B"], "edges": [{"start": "A", "end": "B", "distance": True, "terrain": 1, "materialCost": 1, "laborCost": 1}]},
        {"nodes": ["A", "B"], "edges": [{"start": "A", "end": "B", "distance": 1, "terrain": False, "materialCost": 1, "laborCost": 1}]},
    ],
)
def test_malformed_data_rejected(data):
    with pytest.raises(NetworkValidationError):
        network_from_dict(data)


def test_negative_cost_rejected_at_load():
    data = {"nodes": ["A", "B"], "edges": [{"start": "A", "end": "B", "distance": 1, "terrain": 1, "materialCost": -1, "laborCost": 1}]}
    with pytest.raises(InvalidEdgeError):
        network_from_dict(data)


def test_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{nodes:", encoding="utf-8")
    with pytest.raises(NetworkValidationError):
        load_network(path)


def test_to_networkx_applies_filter(network):
    G = network.to_networkx(EdgeFilter(terrain_ceiling=1))
    assert set(G.nodes) == set(network.node_ids)
    assert {frozenset(e) for e in G.edges} == {frozenset("AB"), frozenset("BD"), frozenset("DF")}
    assert G["A"]["B"]["weight"] == pytest.approx(550)


def test_to_networkx_keeps_cheapest_parallel_edge():
    network = PipelineNetwork.from_iterables(
        ["A", "B"], [Edge("A", "B", 5, 1, 1, 1), Edge("B", "A", 1, 1, 1, 1), Edge("A", "A", 1, 1, 1, 1)]
    )
    G = network.to_networkx()
    assert G.number_of_edges() == 1
    assert G["A"]["B"]["weight"] == pytest.approx(2)


def test_node_lookup(network):
    assert network.node("D").x == 400
    with pytest.raises(KeyError):
        network.node("Z")


def test_configured_timeout_does_not_affect_small_queries(monkeypatch, network):
    monkeypatch.setattr(settings, "search_timeout_s", 30.0)
    assert network.find_route("A", "F").cost == pytest.approx(1595)


def test_malformed_file_reports_reason(tmp_path):
    path = tmp_path / "net.json"
    path.write_text(json.dumps({"nodes": [1, 2], "edges": []}), encoding="utf-8")
    with pytest.raises(NetworkValidationError) as exc:
        load_network(path)
    assert exc.value.reason_code == "malformed_network"
