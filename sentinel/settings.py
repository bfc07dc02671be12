import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    API_KEY: str = os.getenv("API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RQ_QUEUE_NAME: str = os.getenv("RQ_QUEUE_NAME", "maintenance")

    # OpenAI-compatible chat gateway (base url includes /v1)
    GATEWAY_BASE_URL: str = os.getenv("GATEWAY_BASE_URL", "https://ai.gateway.lovable.dev/v1").rstrip("/")
    GATEWAY_API_KEY: str = os.getenv("GATEWAY_API_KEY", "")
    GATEWAY_MODEL: str = os.getenv("GATEWAY_MODEL", "google/gemini-3-flash-preview")
    GATEWAY_REQUEST_TIMEOUT_SEC: float = float(os.getenv("GATEWAY_REQUEST_TIMEOUT_SEC", "20.0"))
    GATEWAY_CLIENT_BUDGET_SEC: float = float(os.getenv("GATEWAY_CLIENT_BUDGET_SEC", "45.0"))
    GATEWAY_MAX_RETRIES: int = int(os.getenv("GATEWAY_MAX_RETRIES", "2"))

    # Classifier selection: "llm" (gateway + normalizer) or "heuristic" (local scorer)
    CLASSIFIER_BACKEND: str = os.getenv("CLASSIFIER_BACKEND", "llm").lower()
    CLASSIFIER_FALLBACK_TO_HEURISTIC: bool = os.getenv(
        "CLASSIFIER_FALLBACK_TO_HEURISTIC", "false"
    ).lower() == "true"
    # Assistant selection: "llm" or "canned" (offline keyword replies)
    ASSISTANT_BACKEND: str = os.getenv("ASSISTANT_BACKEND", "llm").lower()

    # Heuristic scorer knobs
    SCORER_UNKNOWN_SENDER_PENALTY: bool = os.getenv("SCORER_UNKNOWN_SENDER_PENALTY", "true").lower() == "true"

    # Form-layer limits
    MAX_MESSAGE_CHARS: int = int(os.getenv("MAX_MESSAGE_CHARS", "5000"))
    MAX_QUESTION_CHARS: int = int(os.getenv("MAX_QUESTION_CHARS", "1000"))
    CHAT_HISTORY_LIMIT: int = int(os.getenv("CHAT_HISTORY_LIMIT", "10"))

    # Anonymous demo quota (per x-client-id). 0 disables the limit.
    DEMO_ANALYSIS_LIMIT: int = int(os.getenv("DEMO_ANALYSIS_LIMIT", "3"))
    DEMO_USAGE_TTL_SEC: int = int(os.getenv("DEMO_USAGE_TTL_SEC", str(24 * 3600)))

    # History retention (days). 0 keeps analyses forever.
    HISTORY_RETENTION_DAYS: int = int(os.getenv("HISTORY_RETENTION_DAYS", "0"))
    HISTORY_DEFAULT_LIMIT: int = int(os.getenv("HISTORY_DEFAULT_LIMIT", "50"))

    # Security & privacy
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"
    ADMIN_RBAC_ENABLED: bool = os.getenv("ADMIN_RBAC_ENABLED", "true").lower() == "true"
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

    # Latency targets surfaced by /admin/metrics
    TARGET_ANALYZE_P95_SEC: float = float(os.getenv("TARGET_ANALYZE_P95_SEC", "8.0"))

settings = Settings()
