"""
Shared plumbing for calls to the OpenAI-compatible chat completions gateway.
"""
import logging

import httpx

from petdoc.config import Settings
from petdoc.errors import GatewayError, QuotaExceededError, RateLimitedError

logger = logging.getLogger(__name__)


def build_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """One client per process; tests pass a MockTransport."""
    timeout = httpx.Timeout(settings.triage_timeout_seconds, connect=10.0)
    return httpx.AsyncClient(timeout=timeout, transport=transport)


def auth_headers(settings: Settings) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {settings.ai_gateway_api_key}",
        "Content-Type": "application/json",
    }


def raise_for_gateway_status(response: httpx.Response, body: str = "", log_chars: int = 500) -> None:
    """
    Map a non-2xx gateway response onto the error taxonomy.

    429 -> RateLimitedError, 402 -> QuotaExceededError, anything else -> GatewayError.
    The body is logged (truncated) and never forwarded to callers.
    """
    if response.is_success:
        return

    status = response.status_code
    logger.error(
        "AI gateway error",
        extra={"status_code": status, "body": body[:log_chars]},
    )

    if status == 429:
        raise RateLimitedError(f"gateway returned {status}")
    if status == 402:
        raise QuotaExceededError(f"gateway returned {status}")
    raise GatewayError(f"gateway returned {status}")
