import json
import pytest

from sentinel.store import analysis_repo
from sentinel.store.models import AnalysisRecord


def _rec(user="u1", level="high", **kw):
    return AnalysisRecord(userId=user, senderPhone="+911234567890", messageContent="msg", riskScore=70, riskLevel=level, **kw)


@pytest.fixture
def clock(monkeypatch):
    state = {"now": 1_000_000}

    def tick():
        state["now"] += 1000
        return state["now"]

    monkeypatch.setattr("sentinel.store.analysis_repo.now_ms", tick)
    return state


def test_save_assigns_id_and_timestamps(fake_redis, clock):
    rec = _rec(level="medium")
    analysis_id = analysis_repo.save_analysis(rec)

    assert analysis_id and rec.id == analysis_id
    assert rec.createdAt == rec.updatedAt == 1_001_000
    stored = json.loads(fake_redis.get(f"analysis:{analysis_id}"))
    assert stored["riskLevel"] == "MEDIUM"
    assert fake_redis.zsets["user:u1:analyses"][analysis_id] == 1_001_000


def test_save_requires_user(fake_redis):
    with pytest.raises(ValueError):
        analysis_repo.save_analysis(_rec(user=""))


def test_resave_keeps_created_at(fake_redis, clock):
    rec = _rec()
    analysis_repo.save_analysis(rec)
    created = rec.createdAt
    rec.verdict = "edited"
    analysis_repo.save_analysis(rec)
    assert rec.createdAt == created
    assert rec.updatedAt > created
    assert len(analysis_repo.list_analyses("u1")) == 1


def test_list_is_newest_first_and_scoped(fake_redis, clock):
    ids = [analysis_repo.save_analysis(_rec()) for _ in range(3)]
    analysis_repo.save_analysis(_rec(user="u2"))

    rows = analysis_repo.list_analyses("u1")
    assert [r.id for r in rows] == list(reversed(ids))
    assert [r.id for r in analysis_repo.list_analyses("u1", limit=2)] == list(reversed(ids))[:2]
    assert len(analysis_repo.list_analyses("u2")) == 1


def test_list_drops_dangling_index_entries(fake_redis, clock):
    keep = analysis_repo.save_analysis(_rec())
    gone = analysis_repo.save_analysis(_rec())
    fake_redis.delete(f"analysis:{gone}")

    assert [r.id for r in analysis_repo.list_analyses("u1")] == [keep]
    assert gone not in fake_redis.zsets["user:u1:analyses"]


def test_decode_ignores_unknown_fields(fake_redis):
    fake_redis.set("analysis:legacy", json.dumps({"id": "legacy", "userId": "u1", "riskLevel": "low", "oldField": 1}))
    rec = analysis_repo.get_analysis("u1", "legacy")
    assert rec.id == "legacy"
    assert rec.riskLevel == "LOW"


def test_get_and_delete_are_owner_only(fake_redis, clock):
    analysis_id = analysis_repo.save_analysis(_rec())

    assert analysis_repo.get_analysis("intruder", analysis_id) is None
    assert analysis_repo.delete_analysis("intruder", analysis_id) is False
    assert analysis_repo.get_analysis("u1", analysis_id) is not None

    assert analysis_repo.delete_analysis("u1", analysis_id) is True
    assert analysis_repo.get_analysis("u1", analysis_id) is None
    assert analysis_repo.delete_analysis("u1", analysis_id) is False


def test_stats(fake_redis, clock):
    for level in ("high", "high", "medium", "low"):
        analysis_repo.save_analysis(_rec(level=level))
    assert analysis_repo.analysis_stats("u1") == {"total": 4, "highRisk": 2, "mediumRisk": 1, "lowRisk": 1}
    assert analysis_repo.analysis_stats("nobody") == {"total": 0, "highRisk": 0, "mediumRisk": 0, "lowRisk": 0}


def test_purge_older_than_is_strict(fake_redis, clock):
    old = analysis_repo.save_analysis(_rec())       # 1_001_000
    edge = analysis_repo.save_analysis(_rec())      # 1_002_000
    new = analysis_repo.save_analysis(_rec())       # 1_003_000

    assert analysis_repo.purge_older_than("u1", 1_002_000) == 1
    assert [r.id for r in analysis_repo.list_analyses("u1")] == [new, edge]
    assert fake_redis.get(f"analysis:{old}") is None
