import pandas as pd
import pytest

from renewal_planner.assembly import Cluster, assemble_clusters
from renewal_planner.config import InvalidConfigurationError
from renewal_planner.generator import demo_network
from renewal_planner.metrics import (
    CostConfig,
    StrategySummary,
    cluster_metrics,
    projects_frame,
    rank_projects,
    recommend_strategy,
    summarize_projects,
)
from renewal_planner.network import Network, SegmentNotFoundError


def test_cost_config_average():
    assert CostConfig().average_cost_of_failure == pytest.approx(27625.0)


def test_cost_config_rejects_negative():
    with pytest.raises(InvalidConfigurationError):
        CostConfig(burst=-1.0)


def test_cluster_metrics_formulas():
    net = demo_network()
    m = cluster_metrics({0, 3}, net)
    risk, length = 1.7, 3.0
    assert m.segment_count == 2
    assert m.total_risk == pytest.approx(risk)
    assert m.total_length == pytest.approx(length)
    assert m.avg_risk == pytest.approx(0.85)
    assert m.risk_density == pytest.approx(risk / (length / 1000))
    assert m.lof_length_ratio == m.risk_density
    assert m.estimated_cost == pytest.approx(length * 500 + 10000)
    assert m.bre == pytest.approx(risk * 27625.0)
    assert m.roi == pytest.approx(m.bre / m.estimated_cost)
    expected_priority = 0.4 * m.roi + 0.3 * m.risk_density + 0.2 * m.avg_risk + 0.1 * m.risk_density
    assert m.priority == pytest.approx(expected_priority)


def test_risk_density_is_independent_of_member_order():
    net = Network.from_records([(1, 0.3, 12.0), (2, 0.7, 25.5), (3, 0.15, 7.25)])
    forward = cluster_metrics([1, 2, 3], net)
    backward = cluster_metrics([3, 2, 1], net)
    assert forward.risk_density == pytest.approx(backward.risk_density)
    assert forward.risk_density == pytest.approx((0.3 + 0.7 + 0.15) / ((12.0 + 25.5 + 7.25) / 1000))


def test_custom_cost_config():
    net = demo_network()
    cost = CostConfig(minor_leak=0, major_leak=0, burst=0, service_disruption=4000, cost_per_meter=1, fixed_cost=0)
    m = cluster_metrics([3], net, cost)
    assert m.estimated_cost == pytest.approx(1.0)
    assert m.bre == pytest.approx(0.9 * 1000)
    assert m.roi == pytest.approx(900.0)


def test_cluster_metrics_accepts_cluster():
    net = demo_network()
    (cluster,) = assemble_clusters(net, [5], budget=4.5, target_count=1)
    assert cluster_metrics(cluster, net) == cluster.metrics


def test_cluster_metrics_errors():
    net = demo_network()
    with pytest.raises(ValueError):
        cluster_metrics([], net)
    with pytest.raises(SegmentNotFoundError):
        cluster_metrics([0, 77], net)


def _clusters():
    net = demo_network()
    return assemble_clusters(net, [3, 4, 5], budget=4.5, target_count=3)


def test_rank_projects_by_roi_and_priority():
    clusters = _clusters()
    assert len(clusters) == 3
    by_roi = rank_projects(clusters, 3)
    assert [c.metrics.roi for c in by_roi] == sorted((c.metrics.roi for c in clusters), reverse=True)
    by_priority = rank_projects(clusters, 2, key="priority")
    assert len(by_priority) == 2
    assert by_priority[0].metrics.priority == max(c.metrics.priority for c in clusters)


def test_rank_projects_invalid_key():
    with pytest.raises(InvalidConfigurationError):
        rank_projects(_clusters(), 3, key="cost")


def test_summarize_projects():
    clusters = _clusters()
    summary = summarize_projects(clusters)
    assert summary.project_count == 3
    assert summary.total_cost == pytest.approx(sum(c.metrics.estimated_cost for c in clusters))
    assert summary.avg_roi == pytest.approx(sum(c.metrics.roi for c in clusters) / 3)
    assert summary.payback_years == pytest.approx(summary.total_cost / summary.total_bre * 10)


def test_summarize_empty():
    summary = summarize_projects([])
    assert summary.project_count == 0
    assert summary.payback_years is None


def test_recommend_strategy():
    clusters = _clusters()
    best = max(clusters, key=lambda c: c.metrics.roi)
    worst = min(clusters, key=lambda c: c.metrics.roi)
    results = {"weak": [worst], "strong": [best], "empty": []}
    assert recommend_strategy(results) == "strong"
    assert recommend_strategy({"empty": []}) is None


def test_summary_score_weights():
    summary = StrategySummary(1, avg_roi=2.0, avg_risk=0.5, avg_priority=10.0, total_cost=1, total_bre=1, total_length=1)
    assert summary.score == pytest.approx(2.0 * 0.6 + 10.0 * 0.4)


def test_projects_frame():
    clusters = _clusters()
    frame = projects_frame(clusters)
    assert isinstance(frame, pd.DataFrame)
    assert list(frame["project_id"]) == [c.cluster_id for c in clusters]
    assert list(frame["segment_count"]) == [len(c) for c in clusters]
    assert "priority" in frame.columns
    assert projects_frame([]).empty


def test_cluster_is_immutable():
    cluster = _clusters()[0]
    with pytest.raises(AttributeError):
        cluster.seed_id = 1
    assert isinstance(cluster, Cluster)
