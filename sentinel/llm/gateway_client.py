import time
import random
import logging
from typing import Dict, List, Optional

import httpx

from sentinel.settings import settings
from sentinel.llm.errors import GatewayError, RateLimitedError, ServiceUnavailableError

logger = logging.getLogger("sentinel_gateway")

# OpenAI-compatible gateway; base url includes /v1
GATEWAY_BASE_URL = settings.GATEWAY_BASE_URL
GATEWAY_API_KEY = settings.GATEWAY_API_KEY
GATEWAY_MODEL = settings.GATEWAY_MODEL

# Per-request timeout + overall budget across retries.
#   GATEWAY_REQUEST_TIMEOUT_SEC: per HTTP request timeout
#   GATEWAY_CLIENT_BUDGET_SEC  : total wall-clock budget across retries
#   GATEWAY_MAX_RETRIES        : max attempts
REQUEST_TIMEOUT_SEC = settings.GATEWAY_REQUEST_TIMEOUT_SEC
CLIENT_BUDGET_SEC = settings.GATEWAY_CLIENT_BUDGET_SEC
MAX_RETRIES = settings.GATEWAY_MAX_RETRIES

RETRYABLE_STATUS = (429, 500, 502, 503, 504)

_client = httpx.Client(timeout=REQUEST_TIMEOUT_SEC)


def _headers() -> dict:
    return {
        "Authorization": f"Bearer {GATEWAY_API_KEY}",
        "Content-Type": "application/json",
    }


def _retry_after(resp) -> Optional[float]:
    try:
        raw = resp.headers.get("retry-after")
        return float(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def _sleep_backoff(start: float, attempt: int, retry_after: Optional[float] = None) -> bool:
    """Sleep before the next attempt; False when the budget is already spent."""
    remaining = CLIENT_BUDGET_SEC - (time.time() - start)
    if remaining <= 0:
        return False
    delay = retry_after if retry_after is not None else min(2.0, 0.35 * (2 ** (attempt - 1))) + random.uniform(0.0, 0.2)
    time.sleep(max(0.0, min(delay, remaining)))
    return True


def chat_completion(
    messages: List[Dict[str, str]],
    *,
    temperature: float = 0.3,
    max_tokens: Optional[int] = None,
) -> str:
    """Call the gateway chat endpoint and return the first choice's content.

    POST {GATEWAY_BASE_URL}/chat/completions

    Retries timeouts, 429 and 5xx within the client budget. 402 and other 4xx
    fail immediately.
    """
    if not GATEWAY_API_KEY:
        raise GatewayError("GATEWAY_API_KEY is not configured")

    url = f"{GATEWAY_BASE_URL}/chat/completions"
    payload = {
        "model": GATEWAY_MODEL,
        "messages": messages,
        "temperature": float(temperature),
    }
    if max_tokens is not None:
        payload["max_tokens"] = int(max_tokens)

    start = time.time()
    attempt = 0
    last_err: object = None
    last_status: Optional[int] = None
    while (time.time() - start) < CLIENT_BUDGET_SEC and attempt < max(1, MAX_RETRIES):
        attempt += 1
        try:
            resp = _client.post(url, headers=_headers(), json=payload)
        except httpx.HTTPError as e:
            last_err = e
            last_status = None
            if attempt >= MAX_RETRIES or not _sleep_backoff(start, attempt):
                break
            continue

        status = int(resp.status_code)
        if status == 402:
            raise ServiceUnavailableError(status_code=402)
        if status in RETRYABLE_STATUS:
            last_status = status
            last_err = f"status {status}"
            logger.warning("gateway_retryable_status status=%s attempt=%s", status, attempt)
            if attempt >= MAX_RETRIES or not _sleep_backoff(start, attempt, _retry_after(resp)):
                break
            continue
        if status >= 400:
            logger.error("gateway_error status=%s", status)
            raise GatewayError(f"AI gateway error: {status}")

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise GatewayError("No content in AI response")
        return content

    if last_status == 429:
        raise RateLimitedError(status_code=429)
    elapsed = round(time.time() - start, 3)
    raise GatewayError(f"AI gateway call failed (attempts={attempt}, elapsed={elapsed}s): {last_err}")
