"""
Errors raised at the model-gateway boundary.

Each carries the HTTP status and user-facing message the API surfaces, so the
routes map them without string matching.
"""


class GatewayError(RuntimeError):
    status_code = 500
    public_message = "Analysis service temporarily unavailable"

    def __init__(self, message: str = "", *, status_code: int | None = None):
        super().__init__(message or self.public_message)
        if status_code is not None:
            self.status_code = status_code


class RateLimitedError(GatewayError):
    status_code = 429
    public_message = "Rate limit exceeded. Please try again in a moment."


class ServiceUnavailableError(GatewayError):
    # Gateway answers 402 when the workspace is out of credits
    status_code = 402
    public_message = "AI service temporarily unavailable. Please try again later."


class ClassificationError(GatewayError):
    """Model answered, but not with a usable JSON object."""
    public_message = "Failed to parse analysis result"
