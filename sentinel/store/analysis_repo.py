import json
import inspect
import uuid
from typing import List, Optional

from sentinel.store.redis_conn import get_redis
from sentinel.store.models import AnalysisRecord
from sentinel.observability.logging import log
from sentinel.utils.time import now_ms

PREFIX = "analysis:"


def _key(analysis_id: str) -> str:
    return f"{PREFIX}{analysis_id}"


def _user_index(user_id: str) -> str:
    # Sorted set of analysis ids scored by createdAt (ms)
    return f"user:{user_id}:analyses"


def _filter_record_kwargs(data: dict) -> dict:
    """
    Drop unknown fields so AnalysisRecord(**kwargs) never explodes
    """
    sig = inspect.signature(AnalysisRecord)
    allowed = set(sig.parameters.keys())
    return {k: v for k, v in data.items() if k in allowed}


def _decode(raw: Optional[str]) -> Optional[AnalysisRecord]:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        log(event="analysis_decode_failed")
        return None
    if not isinstance(data, dict):
        return None
    return AnalysisRecord(**_filter_record_kwargs(data))


def new_analysis_id() -> str:
    return uuid.uuid4().hex


def save_analysis(record: AnalysisRecord) -> str:
    """Insert or overwrite; assigns id/createdAt on first save."""
    if not record.userId:
        raise ValueError("AnalysisRecord.userId is required")
    r = get_redis()
    ts = now_ms()
    if not record.id:
        record.id = new_analysis_id()
    if not record.createdAt:
        record.createdAt = ts
    record.updatedAt = ts

    r.set(_key(record.id), json.dumps(record.__dict__, ensure_ascii=False))
    r.zadd(_user_index(record.userId), {record.id: record.createdAt})
    log(event="analysis_saved", analysisId=record.id, userId=record.userId, riskLevel=record.riskLevel)
    return record.id


def get_analysis(user_id: str, analysis_id: str) -> Optional[AnalysisRecord]:
    """Return the analysis only when it belongs to `user_id`."""
    rec = _decode(get_redis().get(_key(analysis_id)))
    if rec is None or rec.userId != user_id:
        return None
    return rec


def list_analyses(user_id: str, limit: Optional[int] = None) -> List[AnalysisRecord]:
    """Newest first."""
    r = get_redis()
    stop = (int(limit) - 1) if limit and limit > 0 else -1
    ids = r.zrevrange(_user_index(user_id), 0, stop) or []
    out: List[AnalysisRecord] = []
    for analysis_id in ids:
        rec = _decode(r.get(_key(analysis_id)))
        if rec is None:
            # Index entry outlived its row; drop it
            r.zrem(_user_index(user_id), analysis_id)
            continue
        out.append(rec)
    return out


def delete_analysis(user_id: str, analysis_id: str) -> bool:
    if get_analysis(user_id, analysis_id) is None:
        return False
    r = get_redis()
    r.delete(_key(analysis_id))
    r.zrem(_user_index(user_id), analysis_id)
    log(event="analysis_deleted", analysisId=analysis_id, userId=user_id)
    return True


def analysis_stats(user_id: str) -> dict:
    rows = list_analyses(user_id)
    levels = [(x.riskLevel or "").upper() for x in rows]
    return {
        "total": len(rows),
        "highRisk": levels.count("HIGH"),
        "mediumRisk": levels.count("MEDIUM"),
        "lowRisk": levels.count("LOW"),
    }


def purge_older_than(user_id: str, cutoff_ms: int) -> int:
    """Delete the user's analyses created strictly before `cutoff_ms`; returns count."""
    r = get_redis()
    index = _user_index(user_id)
    ids = r.zrangebyscore(index, "-inf", f"({int(cutoff_ms)}") or []
    for analysis_id in ids:
        r.delete(_key(analysis_id))
        r.zrem(index, analysis_id)
    if ids:
        log(event="analysis_purged", userId=user_id, count=len(ids), cutoffMs=int(cutoff_ms))
    return len(ids)
