from fastapi import APIRouter, Depends, HTTPException, Header
from sentinel.settings import settings
import sentinel.observability.metrics as metrics

router = APIRouter(prefix="/admin", tags=["admin"])

def require_admin(x_admin_key: str = Header(default="", alias="x-admin-key")):
    if not settings.ADMIN_RBAC_ENABLED:
        return
    # Secure default: if enabled but no key configured, reject all.
    if not settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Admin access disabled (no key configured)")
    if x_admin_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Invalid admin key")

@router.get("/metrics")
def get_metrics(_=Depends(require_admin)):
    """
    Counters and latency percentiles backed by Redis.
    """
    return metrics.get_metrics_snapshot()

@router.get("/config")
def get_config(_=Depends(require_admin)):
    """Read-only snapshot of the runtime knobs that change classification behavior."""
    return {
        "CLASSIFIER_BACKEND": settings.CLASSIFIER_BACKEND,
        "CLASSIFIER_FALLBACK_TO_HEURISTIC": bool(settings.CLASSIFIER_FALLBACK_TO_HEURISTIC),
        "ASSISTANT_BACKEND": settings.ASSISTANT_BACKEND,
        "SCORER_UNKNOWN_SENDER_PENALTY": bool(settings.SCORER_UNKNOWN_SENDER_PENALTY),
        "GATEWAY_MODEL": settings.GATEWAY_MODEL,
        "GATEWAY_CONFIGURED": bool(settings.GATEWAY_API_KEY),
        "HISTORY_RETENTION_DAYS": int(settings.HISTORY_RETENTION_DAYS),
        "DEMO_ANALYSIS_LIMIT": int(settings.DEMO_ANALYSIS_LIMIT),
    }
