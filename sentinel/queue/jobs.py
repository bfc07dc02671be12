from sentinel.observability.logging import log
from sentinel.settings import settings
from sentinel.store.analysis_repo import purge_older_than
from sentinel.queue.rq_conn import get_queue
from sentinel.utils.time import days_ago_ms


def purge_expired_analyses_job(user_id: str) -> int:
    """
    Background job: drop a user's analyses older than HISTORY_RETENTION_DAYS.
    """
    days = int(settings.HISTORY_RETENTION_DAYS)
    if days <= 0:
        return 0

    try:
        log(event="retention_job_start", userId=user_id, retentionDays=days)
        return purge_older_than(user_id, days_ago_ms(days))
    except Exception as e:
        log(event="retention_job_exception", userId=user_id, error=str(e))
        raise


def enqueue_retention_purge(user_id: str) -> bool:
    """Queue a purge for `user_id` when retention is enabled; False if skipped."""
    if int(settings.HISTORY_RETENTION_DAYS) <= 0 or not user_id:
        return False
    get_queue().enqueue(purge_expired_analyses_job, user_id)
    log(event="retention_job_enqueued", userId=user_id)
    return True
