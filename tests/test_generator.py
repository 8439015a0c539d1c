import numpy as np
import pytest

from renewal_planner.config import InvalidConfigurationError
from renewal_planner.generator import demo_network, example_network, generate_pipe_network


def _snapshot(net):
    segments = sorted((s.seg_id, s.risk_score, s.length) for s in net)
    edges = sorted(tuple(sorted(e)) for e in net.graph.edges())
    return segments, edges


def test_same_seed_same_network():
    assert _snapshot(generate_pipe_network(150, seed=5)) == _snapshot(generate_pipe_network(150, seed=5))


def test_injected_generator():
    a = generate_pipe_network(80, rng=np.random.default_rng(9))
    b = generate_pipe_network(80, seed=9)
    assert _snapshot(a) == _snapshot(b)


def test_different_seeds_differ():
    assert _snapshot(generate_pipe_network(80, seed=1)) != _snapshot(generate_pipe_network(80, seed=2))


def test_segment_value_ranges():
    net = generate_pipe_network(500, seed=13)
    assert len(net) == 500
    assert sorted(net.segment_ids()) == list(range(500))
    for seg in net:
        assert 5.0 <= seg.length < 50.0
        assert 0.1 <= seg.risk_score <= 0.9
    assert net.graph.number_of_edges() > 500


def test_single_segment_network():
    net = generate_pipe_network(1, seed=0)
    assert len(net) == 1
    assert net.graph.number_of_edges() == 0


def test_rejects_empty_network():
    with pytest.raises(InvalidConfigurationError):
        generate_pipe_network(0)


def test_example_network():
    net = example_network()
    assert len(net) == 25
    assert net.segment(16).risk_score == 0.8
    assert net.segment(3).length == 1.5
    assert net.segment(12).length == 1.5
    assert net.graph.number_of_edges() == 4
    assert sorted(net.neighbors(12)) == [11, 16]


def test_demo_network():
    net = demo_network()
    assert len(net) == 7
    assert sorted(net.neighbors(0)) == [1, 2, 3, 4]
    assert net.neighbors(6) == [5]
