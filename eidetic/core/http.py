# eidetic/core/http.py
"""
Centralized HTTP client factory for API integrations.

Usage:
    from eidetic.core.http import create_api_client, raise_for_status

    client = create_api_client(
        base_url="https://api.openai.com/v1",
        api_key="your-key",
        timeout_type="embedding",
    )
    response = client.post("/embeddings", json=payload)
    raise_for_status(response, provider="openai", endpoint="/embeddings")

Design principles:
    - Single place to configure timeouts and headers
    - httpx errors become structured APIError subclasses
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from eidetic.logging.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Errors
# =============================================================================


@dataclass
class APIError(Exception):
    """
    Structured API error with details.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code (if available)
        provider: API provider name (e.g., "openai", "ollama")
        endpoint: API endpoint that failed
        details: Additional error details from the API response
        retry_after: Seconds the server asked us to wait, if it said
    """

    message: str
    status_code: Optional[int] = None
    provider: Optional[str] = None
    endpoint: Optional[str] = None
    details: Optional[str] = None
    retry_after: Optional[float] = None

    def __str__(self) -> str:
        parts = [self.message]

        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")

        if self.details:
            parts.append(f"- {self.details}")

        return " ".join(parts)


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded."""

    pass


class AuthenticationError(APIError):
    """Raised when API authentication fails."""

    pass


class ModelNotFoundError(APIError):
    """Raised when requested model doesn't exist."""

    pass


# =============================================================================
# Default Configuration
# =============================================================================

DEFAULT_TIMEOUTS = {
    "default": 30.0,
    "embedding": 60.0,
    "health_check": 5.0,
}

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


# =============================================================================
# Client Factory
# =============================================================================


def create_api_client(
    base_url: str,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
    timeout_type: str = "default",
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any,
) -> httpx.Client:
    """
    Create a configured HTTP client for API calls.

    Args:
        base_url: Base URL for the API (e.g., "https://api.openai.com/v1")
        api_key: Bearer token (optional; local servers often skip auth)
        timeout: Request timeout in seconds (or use timeout_type)
        timeout_type: Preset timeout type ("default", "embedding", ...)
        headers: Additional headers to include
        **kwargs: Additional arguments passed to httpx.Client (e.g. transport)
    """
    if timeout is None:
        timeout = DEFAULT_TIMEOUTS.get(timeout_type, DEFAULT_TIMEOUTS["default"])

    final_headers = dict(DEFAULT_HEADERS)
    if api_key:
        final_headers["Authorization"] = f"Bearer {api_key}"
    if headers:
        final_headers.update(headers)

    client = httpx.Client(
        base_url=base_url,
        headers=final_headers,
        timeout=timeout,
        **kwargs,
    )

    logger.debug(f"Created HTTP client for {base_url} (timeout={timeout}s)")
    return client


# =============================================================================
# Error Handling
# =============================================================================


def _retry_after(response: httpx.Response) -> Optional[float]:
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def handle_api_error(
    exc: Exception,
    provider: str = "unknown",
    endpoint: str = "",
) -> APIError:
    """Convert an httpx exception to a structured APIError."""
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code

        details = None
        try:
            error_data = exc.response.json()
            error = error_data.get("error")
            details = error_data.get("message") or (
                error.get("message") if isinstance(error, dict) else error
            )
        except ValueError:
            details = exc.response.text[:200] if exc.response.text else None

        common = dict(
            status_code=status_code,
            provider=provider,
            endpoint=endpoint,
            details=details,
        )

        if status_code == 401:
            return AuthenticationError(message=f"{provider} authentication failed", **common)
        if status_code == 429:
            return RateLimitError(
                message=f"{provider} rate limit exceeded",
                retry_after=_retry_after(exc.response),
                **common,
            )
        if status_code == 404:
            return ModelNotFoundError(message=f"{provider} resource not found", **common)
        return APIError(message=f"{provider} API request failed", **common)

    if isinstance(exc, httpx.ConnectError):
        return APIError(
            message=f"Failed to connect to {provider}",
            provider=provider,
            endpoint=endpoint,
            details=str(exc),
        )

    if isinstance(exc, httpx.TimeoutException):
        return APIError(
            message=f"{provider} request timed out",
            provider=provider,
            endpoint=endpoint,
            details="Consider increasing the timeout for this operation",
        )

    return APIError(
        message=f"{provider} request failed: {exc}",
        provider=provider,
        endpoint=endpoint,
    )


def raise_for_status(
    response: httpx.Response,
    provider: str = "unknown",
    endpoint: str = "",
) -> None:
    """Raise the matching APIError if the response indicates failure."""
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise handle_api_error(exc, provider=provider, endpoint=endpoint) from exc


__all__ = [
    "APIError",
    "RateLimitError",
    "AuthenticationError",
    "ModelNotFoundError",
    "create_api_client",
    "handle_api_error",
    "raise_for_status",
]
