import pytest
from unittest.mock import patch, MagicMock
import httpx

from sentinel.llm.gateway_client import chat_completion
from sentinel.llm.errors import GatewayError, RateLimitedError, ServiceUnavailableError

MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]


def _resp(status, body=None, headers=None):
    r = MagicMock()
    r.status_code = status
    r.text = ""
    r.headers = headers or {}
    r.json.return_value = body if body is not None else {}
    return r


def _ok(content="Hello response"):
    return _resp(200, {"choices": [{"message": {"content": content}}]})


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client._client")
@patch("time.sleep")
def test_chat_completion_success_payload(mock_sleep, mock_client):
    mock_client.post.return_value = _ok()

    assert chat_completion(MESSAGES, temperature=0.7, max_tokens=500) == "Hello response"

    args, kwargs = mock_client.post.call_args
    assert args[0].endswith("/chat/completions")
    assert kwargs["headers"]["Authorization"] == "Bearer test-key"
    assert kwargs["json"]["messages"] == MESSAGES
    assert kwargs["json"]["temperature"] == 0.7
    assert kwargs["json"]["max_tokens"] == 500
    assert not mock_sleep.called


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client._client")
@patch("time.sleep")
def test_chat_completion_retry_after_timeout(mock_sleep, mock_client):
    mock_client.post.side_effect = [httpx.ReadTimeout("Timeout"), _ok()]

    assert chat_completion(MESSAGES) == "Hello response"
    assert mock_client.post.call_count == 2
    assert mock_sleep.called


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client._client")
@patch("time.sleep")
def test_chat_completion_all_transport_errors(mock_sleep, mock_client):
    mock_client.post.side_effect = httpx.HTTPError("Fail")

    with pytest.raises(GatewayError, match="AI gateway call failed") as exc:
        chat_completion(MESSAGES)

    assert exc.value.status_code == 500
    # GATEWAY_MAX_RETRIES defaults to 2
    assert mock_client.post.call_count == 2


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client._client")
@patch("time.sleep")
def test_chat_completion_rate_limited(mock_sleep, mock_client):
    mock_client.post.return_value = _resp(429, headers={"retry-after": "1"})

    with pytest.raises(RateLimitedError) as exc:
        chat_completion(MESSAGES)

    assert exc.value.status_code == 429
    assert exc.value.public_message.startswith("Rate limit exceeded")
    mock_sleep.assert_called_with(1.0)


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client._client")
@patch("time.sleep")
def test_chat_completion_5xx_then_success(mock_sleep, mock_client):
    mock_client.post.side_effect = [_resp(503), _ok("recovered")]

    assert chat_completion(MESSAGES) == "recovered"
    assert mock_client.post.call_count == 2


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client._client")
@patch("time.sleep")
def test_chat_completion_payment_required_is_not_retried(mock_sleep, mock_client):
    mock_client.post.return_value = _resp(402)

    with pytest.raises(ServiceUnavailableError) as exc:
        chat_completion(MESSAGES)

    assert exc.value.status_code == 402
    assert mock_client.post.call_count == 1


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client._client")
@patch("time.sleep")
def test_chat_completion_other_4xx(mock_sleep, mock_client):
    mock_client.post.return_value = _resp(400)

    with pytest.raises(GatewayError, match="AI gateway error: 400") as exc:
        chat_completion(MESSAGES)

    assert not isinstance(exc.value, RateLimitedError)
    assert mock_client.post.call_count == 1


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client._client")
@patch("time.sleep")
def test_chat_completion_missing_content(mock_sleep, mock_client):
    mock_client.post.return_value = _resp(200, {"choices": []})

    with pytest.raises(GatewayError, match="No content"):
        chat_completion(MESSAGES)


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "")
@patch("sentinel.llm.gateway_client._client")
def test_chat_completion_requires_key(mock_client):
    with pytest.raises(GatewayError, match="GATEWAY_API_KEY"):
        chat_completion(MESSAGES)
    assert not mock_client.post.called


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client.CLIENT_BUDGET_SEC", 0)
@patch("sentinel.llm.gateway_client._client")
def test_chat_completion_budget_exhausted(mock_client):
    with pytest.raises(GatewayError, match="attempts=0"):
        chat_completion(MESSAGES)
    assert not mock_client.post.called


@patch("sentinel.llm.gateway_client.GATEWAY_API_KEY", "test-key")
@patch("sentinel.llm.gateway_client._client")
@patch("time.sleep")
def test_chat_completion_error_omits_response_body(mock_sleep, mock_client):
    resp = _resp(503)
    resp.text = "upstream echoed: Your OTP is 4455"
    mock_client.post.return_value = resp

    with pytest.raises(GatewayError) as exc:
        chat_completion(MESSAGES)

    assert "status 503" in str(exc.value)
    assert "4455" not in str(exc.value)
