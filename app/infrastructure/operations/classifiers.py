"""Error classifiers for messaging API failures.

Converts ``requests`` exceptions and non-2xx responses from the
messaging API into OperationResult objects, so a failed send is a
value the dispatcher can count rather than an exception.

Usage:
    from infrastructure.operations.classifiers import classify_http_error

    try:
        response = requests.post(url, json=payload, timeout=30)
        response.raise_for_status()
    except requests.RequestException as exc:
        return classify_http_error(exc)
"""

from typing import Optional

import requests

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

DEFAULT_RETRY_AFTER_SECONDS = 60


def _error_detail(response: Optional[requests.Response]) -> str:
    """Extract the provider's error message from a Graph-style error body."""
    if response is None:
        return ""
    try:
        body = response.json()
    except ValueError:
        return (response.text or "")[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or error.get("type") or "")
    return ""


def _retry_after(response: requests.Response) -> int:
    header_value = response.headers.get("Retry-After")
    if header_value:
        try:
            return int(header_value)
        except (ValueError, TypeError):
            pass
    return DEFAULT_RETRY_AFTER_SECONDS


def classify_response(response: requests.Response) -> OperationResult:
    """Classify a non-2xx messaging API response.

    Status Code Mapping:
    - 429: Rate limiting -> TRANSIENT_ERROR with retry_after
    - 401: Credential rejected -> UNAUTHORIZED
    - 403: Forbidden -> PERMANENT_ERROR
    - 404: Not found -> NOT_FOUND
    - 5xx: Server error -> TRANSIENT_ERROR
    - Other 4xx: Rejected request -> PERMANENT_ERROR

    Args:
        response: Response object with a non-success status code

    Returns:
        OperationResult with status, message and error_code
    """
    status_code = response.status_code
    detail = _error_detail(response)
    suffix = f": {detail}" if detail else ""

    if status_code == 429:
        return OperationResult.error(
            OperationStatus.TRANSIENT_ERROR,
            f"Messaging API rate limited{suffix}",
            error_code="RATE_LIMITED",
            retry_after=_retry_after(response),
        )

    if status_code == 401:
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            f"Messaging API authentication failed{suffix}",
            error_code="UNAUTHORIZED",
        )

    if status_code == 403:
        return OperationResult.permanent_error(
            f"Messaging API authorization denied{suffix}",
            error_code="FORBIDDEN",
        )

    if status_code == 404:
        return OperationResult.error(
            OperationStatus.NOT_FOUND,
            f"Messaging API endpoint not found{suffix}",
            error_code="NOT_FOUND",
        )

    if 500 <= status_code < 600:
        return OperationResult.transient_error(
            f"Messaging API server error ({status_code}){suffix}",
            error_code="SERVER_ERROR",
        )

    return OperationResult.permanent_error(
        f"Messaging API rejected request ({status_code}){suffix}",
        error_code=f"HTTP_{status_code}",
    )


def classify_http_error(exc: Exception) -> OperationResult:
    """Classify an exception raised while calling the messaging API.

    ``requests.HTTPError`` carrying a response is classified by status code;
    timeouts and connection failures are transient; anything else is a
    permanent error.

    Args:
        exc: Exception raised by requests (or by response.raise_for_status())

    Returns:
        OperationResult describing the failure
    """
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return classify_response(exc.response)

    if isinstance(exc, requests.Timeout):
        return OperationResult.transient_error(
            f"Messaging API timed out: {exc}",
            error_code="TIMEOUT",
        )

    if isinstance(exc, requests.ConnectionError):
        return OperationResult.transient_error(
            f"Connection error: {type(exc).__name__}: {exc}",
            error_code="CONNECTION_ERROR",
        )

    return OperationResult.permanent_error(
        f"Messaging API error: {type(exc).__name__}: {exc}",
        error_code="UNKNOWN_ERROR",
    )
