from fastapi.testclient import TestClient
from unittest.mock import patch

from sentinel.main import app
from sentinel.settings import settings
import sentinel.observability.metrics as metrics

client = TestClient(app)


def test_snapshot_on_empty_store(fake_redis):
    snap = metrics.get_metrics_snapshot()
    assert snap["analyses_total"] == 0
    assert snap["analyze_success_rate"] == 0.0
    assert snap["by_level"] == {"low": 0, "medium": 0, "high": 0}
    assert snap["p95_analyze_latency"] == 0.0
    assert snap["target_analyze_latency"] == settings.TARGET_ANALYZE_P95_SEC


def test_snapshot_counts_and_latency(fake_redis):
    for ms in (100, 200, 300, 400):
        metrics.record_analysis("llm", "high", ms)
    metrics.record_analysis("heuristic", "low", 1000)
    metrics.increment_failure()
    metrics.increment_fallback()
    metrics.record_chat(True)
    metrics.record_chat(False)

    snap = metrics.get_metrics_snapshot()
    assert snap["analyses_total"] == 5
    assert snap["analyses_failed"] == 1
    assert snap["analyses_fallback"] == 1
    assert snap["analyze_success_rate"] == round(5 / 6 * 100, 3)
    assert snap["by_level"]["high"] == 4
    assert snap["by_backend"] == {"llm": 4, "heuristic": 1}
    assert snap["p50_analyze_latency"] == 0.2
    assert snap["p95_analyze_latency"] == 1.0
    assert snap["chat_total"] == 2
    assert snap["chat_failed"] == 1


def test_percentile_nearest_rank():
    assert metrics._percentile([], 0.95) == 0.0
    assert metrics._percentile([3.0, 1.0, 2.0], 0.5) == 2.0


def test_admin_metrics_requires_key(fake_redis):
    with patch.object(settings, "ADMIN_RBAC_ENABLED", True), patch.object(settings, "ADMIN_API_KEY", ""):
        resp = client.get("/admin/metrics")
        assert resp.status_code == 403
        assert resp.json() == {"error": "Admin access disabled (no key configured)"}

    with patch.object(settings, "ADMIN_RBAC_ENABLED", True), patch.object(settings, "ADMIN_API_KEY", "adm"):
        assert client.get("/admin/metrics", headers={"x-admin-key": "nope"}).status_code == 403
        resp = client.get("/admin/metrics", headers={"x-admin-key": "adm"})
        assert resp.status_code == 200
        assert "p95_analyze_latency" in resp.json()


def test_admin_config(fake_redis):
    with patch.object(settings, "ADMIN_RBAC_ENABLED", False), patch.object(settings, "CLASSIFIER_BACKEND", "heuristic"):
        resp = client.get("/admin/config")
    assert resp.status_code == 200
    assert resp.json()["CLASSIFIER_BACKEND"] == "heuristic"
