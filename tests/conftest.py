import pytest


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the app uses."""

    def __init__(self):
        self.kv = {}
        self.lists = {}
        self.zsets = {}
        self.ttls = {}

    # strings
    def get(self, key):
        return self.kv.get(key)

    def set(self, key, value, **kwargs):
        self.kv[key] = value if isinstance(value, str) else str(value)
        return True

    def delete(self, *keys):
        n = 0
        for k in keys:
            for store in (self.kv, self.lists, self.zsets):
                if k in store:
                    del store[k]
                    n += 1
        return n

    def incr(self, key, amount=1):
        v = int(self.kv.get(key) or 0) + int(amount)
        self.kv[key] = str(v)
        return v

    def expire(self, key, seconds):
        self.ttls[key] = int(seconds)
        return True

    # lists
    def lpush(self, key, *values):
        lst = self.lists.setdefault(key, [])
        for v in values:
            lst.insert(0, str(v))
        return len(lst)

    def ltrim(self, key, start, stop):
        lst = self.lists.get(key, [])
        self.lists[key] = lst[start:] if stop == -1 else lst[start:stop + 1]
        return True

    def lrange(self, key, start, stop):
        lst = self.lists.get(key, [])
        return lst[start:] if stop == -1 else lst[start:stop + 1]

    # sorted sets
    def zadd(self, key, mapping):
        z = self.zsets.setdefault(key, {})
        for member, score in mapping.items():
            z[member] = float(score)
        return len(mapping)

    def zrem(self, key, *members):
        z = self.zsets.get(key, {})
        return sum(1 for m in members if z.pop(m, None) is not None)

    def _sorted(self, key):
        return sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]))

    def zrevrange(self, key, start, stop):
        members = [m for m, _ in reversed(self._sorted(key))]
        return members[start:] if stop == -1 else members[start:stop + 1]

    def zrangebyscore(self, key, lo, hi):
        def bound(v, is_hi):
            s = str(v)
            if s in ("-inf", "+inf", "inf"):
                return float(s), False
            if s.startswith("("):
                return float(s[1:]), True
            return float(s), False

        lo_v, lo_x = bound(lo, False)
        hi_v, hi_x = bound(hi, True)
        out = []
        for m, score in self._sorted(key):
            if score < lo_v or (lo_x and score == lo_v):
                continue
            if score > hi_v or (hi_x and score == hi_v):
                continue
            out.append(m)
        return out


@pytest.fixture
def fake_redis(monkeypatch):
    r = FakeRedis()
    getter = lambda: r
    monkeypatch.setattr("sentinel.store.analysis_repo.get_redis", getter)
    monkeypatch.setattr("sentinel.store.usage.get_redis", getter)
    monkeypatch.setattr("sentinel.observability.metrics.get_redis", getter)
    return r
