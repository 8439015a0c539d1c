"""
Synthetic and fixture pipe networks.
"""
import logging
import math
from typing import Optional

import numpy as np

from .config import InvalidConfigurationError
from .network import Network, Segment

logger = logging.getLogger(__name__)


def generate_pipe_network(
    num_segments: int,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> Network:
    """Return a grid-like pipe network with realistic LoF and length values.

    Randomness comes only from ``rng`` (or a generator built from ``seed``),
    so the same seed always yields the same network.

    Segment lengths fall in ``[5, 50)`` meters. LoF combines age, material
    quality and environment factors and is capped at 0.9. Each segment
    connects to its right, bottom, left and top grid neighbours with
    probability 0.7 and gets one random cross-connection with probability 0.1.
    """
    if num_segments < 1:
        raise InvalidConfigurationError("num_segments must be at least 1")
    if rng is None:
        rng = np.random.default_rng(seed)

    net = Network()
    for i in range(num_segments):
        length = 5.0 + rng.random() * 45.0
        age, material, environment = rng.random(3)
        lof = min(0.9, 0.1 + age * 0.3 + (1 - material) * 0.2 + environment * 0.1)
        net.add_segment(Segment(i, float(lof), float(length)))

    grid_size = max(1, int(math.sqrt(num_segments)))
    for i in range(num_segments):
        row, col = divmod(i, grid_size)
        grid_neighbors = [
            row * grid_size + col + 1,
            (row + 1) * grid_size + col,
            row * grid_size + col - 1,
            (row - 1) * grid_size + col,
        ]
        for nbr in grid_neighbors:
            if 0 <= nbr < num_segments and nbr != i and rng.random() < 0.7:
                net.add_undirected_edge(i, nbr)

        if rng.random() < 0.1:
            nbr = int(rng.integers(num_segments))
            if nbr != i:
                net.add_undirected_edge(i, nbr)

    logger.info(
        "Generated network with %d segments and %d connections",
        len(net),
        net.graph.number_of_edges(),
    )
    return net


def example_network() -> Network:
    """Small 25-segment fixture with a few risky segments and sparse edges."""
    scores = {1: 0.5, 5: 0.4, 9: 0.6, 11: 0.3, 12: 0.3, 16: 0.8}
    long_segments = {3: 1.5, 12: 1.5}
    net = Network()
    for i in range(25):
        net.add_segment(Segment(i, scores.get(i, 0.0), long_segments.get(i, 1.0)))
    for a, b in [(1, 5), (5, 9), (11, 12), (12, 16)]:
        net.add_undirected_edge(a, b)
    return net


def demo_network() -> Network:
    """Seven segments: 1-0-2-5-6 chain with 3 and 4 hanging off segment 0."""
    return Network.from_records(
        [
            (0, 0.8, 2.0),
            (1, 0.3, 1.5),
            (2, 0.6, 3.0),
            (3, 0.9, 1.0),
            (4, 0.2, 4.0),
            (5, 0.7, 2.5),
            (6, 0.4, 1.8),
        ],
        [(0, 1), (0, 2), (0, 3), (0, 4), (2, 5), (5, 6)],
    )
