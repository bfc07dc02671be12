from typing import Tuple

from sentinel.store.redis_conn import get_redis
from sentinel.settings import settings

PREFIX = "demo:usage:"


def consume_demo_quota(client_id: str) -> Tuple[bool, int]:
    """
    Count one anonymous demo analysis for `client_id`.
    Returns (allowed, used_after_this_call). A limit of 0 disables the quota.
    """
    limit = int(settings.DEMO_ANALYSIS_LIMIT)
    if limit <= 0:
        return True, 0
    r = get_redis()
    key = f"{PREFIX}{client_id or 'anonymous'}"
    used = int(r.incr(key))
    if used == 1:
        r.expire(key, int(settings.DEMO_USAGE_TTL_SEC))
    return used <= limit, used
