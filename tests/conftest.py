import pytest

from pipeline_router.network_builder import build_sample_network


@pytest.fixture
def network():
    return build_sample_network()


@pytest.fixture
def edges_by_pair(network):
    return {frozenset((e.start, e.end)): e for e in network.edges}
