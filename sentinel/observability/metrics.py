"""
Observability Metrics Snapshot
------------------------------
Lightweight Redis counters/timers and one snapshot function consumed by
/admin/metrics. Missing keys (first boot) read as zero so the snapshot always
exposes the full set of fields.
"""
from __future__ import annotations
import time
from typing import List, Tuple
from sentinel.store.redis_conn import get_redis
from sentinel.settings import settings

K_AN_LAT = "metrics:analyze:latencies"          # LPUSH ms
K_AN_TOTAL = "metrics:analyze:total"            # INCR
K_AN_LEVEL = "metrics:analyze:level:"           # INCR per risk level
K_AN_BACKEND = "metrics:analyze:backend:"       # INCR per classifier backend
K_AN_FAIL = "metrics:analyze:failed"            # INCR
K_AN_FALLBACK = "metrics:analyze:fallback"      # INCR
K_CHAT_TOTAL = "metrics:chat:total"             # INCR
K_CHAT_FAIL = "metrics:chat:failed"             # INCR

_MAX_SAMPLES = 500

def _percentile(data: List[float], p: float) -> float:
    """Deterministic percentile (nearest-rank on sorted data)."""
    if not data:
        return 0.0
    d = sorted(data)
    k = max(1, int(round(p * len(d))))
    return float(d[k - 1])

def record_analysis(backend: str, level: str, ms: int) -> None:
    r = get_redis()
    r.incr(K_AN_TOTAL, 1)
    r.incr(K_AN_LEVEL + (level or "unknown"), 1)
    r.incr(K_AN_BACKEND + (backend or "unknown"), 1)
    r.lpush(K_AN_LAT, int(ms))
    r.ltrim(K_AN_LAT, 0, _MAX_SAMPLES - 1)

def increment_failure() -> None:
    get_redis().incr(K_AN_FAIL, 1)

def increment_fallback() -> None:
    get_redis().incr(K_AN_FALLBACK, 1)

def record_chat(ok: bool) -> None:
    r = get_redis()
    r.incr(K_CHAT_TOTAL, 1)
    if not ok:
        r.incr(K_CHAT_FAIL, 1)

def _read_latency_list(key: str) -> List[float]:
    r = get_redis()
    out: List[float] = []
    for x in r.lrange(key, 0, _MAX_SAMPLES - 1) or []:
        try:
            out.append(float(x) / 1000.0)  # seconds
        except (TypeError, ValueError):
            continue
    return out

def _p50_p95(latencies_s: List[float]) -> Tuple[float, float]:
    if not latencies_s:
        return 0.0, 0.0
    return _percentile(latencies_s, 0.50), _percentile(latencies_s, 0.95)

def _count(r, key: str) -> int:
    try:
        return int(r.get(key) or 0)
    except (TypeError, ValueError):
        return 0

def get_metrics_snapshot() -> dict:
    r = get_redis()
    p50, p95 = _p50_p95(_read_latency_list(K_AN_LAT))
    total = _count(r, K_AN_TOTAL)
    failed = _count(r, K_AN_FAIL)
    attempts = total + failed
    return {
        "analyses_total": total,
        "analyses_failed": failed,
        "analyses_fallback": _count(r, K_AN_FALLBACK),
        "analyze_success_rate": round((total / attempts) * 100.0, 3) if attempts else 0.0,
        "by_level": {lvl: _count(r, K_AN_LEVEL + lvl) for lvl in ("low", "medium", "high")},
        "by_backend": {b: _count(r, K_AN_BACKEND + b) for b in ("llm", "heuristic")},
        "p50_analyze_latency": round(p50, 3),
        "p95_analyze_latency": round(p95, 3),
        "target_analyze_latency": float(settings.TARGET_ANALYZE_P95_SEC),
        "chat_total": _count(r, K_CHAT_TOTAL),
        "chat_failed": _count(r, K_CHAT_FAIL),
        "snapshot_at": int(time.time()),
    }
