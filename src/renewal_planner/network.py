"""
Pipe network model: segments as graph nodes, physical connections as edges.
"""
import json
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Tuple

import networkx as nx

from .config import InvalidConfigurationError

logger = logging.getLogger(__name__)


class SegmentNotFoundError(nx.NodeNotFound):
    """Raised when a segment id is not part of the network."""


@dataclass(frozen=True)
class Segment:
    seg_id: int
    risk_score: float  # likelihood of failure, 0..1
    length: float  # meters

    def __post_init__(self):
        if not (0.0 <= self.risk_score <= 1.0):
            raise InvalidConfigurationError(
                f"segment {self.seg_id}: risk score {self.risk_score} outside [0, 1]"
            )
        if not math.isfinite(self.length) or self.length <= 0:
            raise InvalidConfigurationError(
                f"segment {self.seg_id}: length must be positive, got {self.length}"
            )


class Network:
    """Undirected pipe network backed by a ``networkx.MultiGraph``.

    Each node is a segment id carrying its :class:`Segment` under the
    ``segment`` attribute. Parallel edges are kept, so adding the same
    connection twice yields a duplicate neighbour entry. Every edge carries an
    ``order`` attribute so neighbours come back in insertion order.
    """

    def __init__(self):
        self.graph = nx.MultiGraph()
        self._edge_count = 0

    def add_segment(self, segment: Segment) -> None:
        self.graph.add_node(segment.seg_id, segment=segment)

    def add_undirected_edge(self, a: int, b: int) -> None:
        self.require((a, b))
        self.graph.add_edge(a, b, order=self._edge_count)
        self._edge_count += 1

    def segment(self, seg_id: int) -> Segment:
        try:
            return self.graph.nodes[seg_id]["segment"]
        except KeyError:
            raise SegmentNotFoundError(f"Segment {seg_id} not found in network") from None

    def neighbors(self, seg_id: int) -> List[int]:
        """Return neighbour ids of ``seg_id``, one entry per connecting edge,
        in the order the edges were added."""
        if seg_id not in self.graph:
            raise SegmentNotFoundError(f"Segment {seg_id} not found in network")
        edges = sorted(self.graph.edges(seg_id, data="order"), key=lambda e: e[2])
        return [v for _, v, _ in edges]

    def require(self, seg_ids: Iterable[int]) -> None:
        for seg_id in seg_ids:
            if seg_id not in self.graph:
                raise SegmentNotFoundError(f"Segment {seg_id} not found in network")

    def segments(self) -> List[Segment]:
        return [data["segment"] for _, data in self.graph.nodes(data=True)]

    def segment_ids(self) -> List[int]:
        return list(self.graph.nodes)

    def total_length(self) -> float:
        return sum(s.length for s in self.segments())

    def total_risk(self) -> float:
        return sum(s.risk_score for s in self.segments())

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def __contains__(self, seg_id) -> bool:
        return seg_id in self.graph

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments())

    @classmethod
    def from_records(
        cls,
        segments: Iterable[Tuple[int, float, float]],
        edges: Iterable[Tuple[int, int]] = (),
    ) -> "Network":
        """Build a network from ``(id, risk, length)`` and ``(a, b)`` tuples."""
        net = cls()
        for seg_id, risk, length in segments:
            net.add_segment(Segment(int(seg_id), float(risk), float(length)))
        for a, b in edges:
            net.add_undirected_edge(int(a), int(b))
        return net


def load_network(path: str) -> Network:
    """Load a network from a JSON file.

    The file holds ``{"segments": [...], "edges": [[a, b], ...]}`` where each
    segment is a mapping with ``id``, ``length`` and one of ``risk``,
    ``risk_score`` or ``lof``.
    """
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict) or "segments" not in data:
        raise ValueError("Unrecognized network JSON structure")
    records = []
    for seg in data["segments"]:
        seg_id = seg.get("id", seg.get("seg_id"))
        if seg_id is None:
            raise ValueError(f"segment without id: {seg}")
        risk = seg.get("risk", seg.get("risk_score", seg.get("lof")))
        if risk is None:
            raise ValueError(f"segment {seg_id} has no risk score")
        if "length" not in seg:
            raise ValueError(f"segment {seg_id} has no length")
        records.append((seg_id, risk, seg["length"]))
    net = Network.from_records(records, data.get("edges", []))
    logger.info(
        "Loaded %d segments and %d connections from %s",
        len(net),
        net.graph.number_of_edges(),
        path,
    )
    return net


@dataclass
class NetworkProfile:
    segment_count: int
    total_length: float
    average_risk: float
    average_length: float
    risk_categories: Dict[str, int]
    length_categories: Dict[str, int]

    @property
    def total_length_km(self) -> float:
        return self.total_length / 1000


def _risk_category(score: float) -> str:
    if score >= 0.7:
        return "critical"
    if score >= 0.5:
        return "high"
    if score >= 0.3:
        return "medium"
    return "low"


def _length_category(length: float) -> str:
    if length >= 30:
        return "long"
    if length >= 15:
        return "medium"
    return "short"


def risk_profile(network: Network) -> NetworkProfile:
    """Summarize the risk and length distribution of ``network``."""
    risk_categories = {"critical": 0, "high": 0, "medium": 0, "low": 0}
    length_categories = {"long": 0, "medium": 0, "short": 0}
    for seg in network:
        risk_categories[_risk_category(seg.risk_score)] += 1
        length_categories[_length_category(seg.length)] += 1
    n = len(network)
    total_length = network.total_length()
    return NetworkProfile(
        segment_count=n,
        total_length=total_length,
        average_risk=network.total_risk() / n if n else 0.0,
        average_length=total_length / n if n else 0.0,
        risk_categories=risk_categories,
        length_categories=length_categories,
    )
