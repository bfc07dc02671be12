import time

DAY_MS = 24 * 3600 * 1000

def now_ms() -> int:
    return int(time.time() * 1000)

def days_ago_ms(days: int, now: int | None = None) -> int:
    """Epoch ms `days` before `now` (defaults to the current time)."""
    base = now_ms() if now is None else int(now)
    return base - int(days) * DAY_MS
