"""Error taxonomy for calls to external services (search API, LLM).

``RetryableServiceError`` covers blips worth another attempt: timeouts,
connection failures, HTTP 429 and 5xx.  ``FatalServiceError`` covers
everything a retry cannot fix: bad credentials, other 4xx, payloads that
do not match the expected contract.
"""

import httpx


class ConfigurationError(Exception):
    pass


class ExternalServiceError(Exception):
    def __init__(self, service: str, message: str, status_code: int | None = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
        self.status_code = status_code


class RetryableServiceError(ExternalServiceError):
    pass


class FatalServiceError(ExternalServiceError):
    pass


class ClassifierContractError(FatalServiceError):
    """The classifier answered with a different number of results than texts sent."""

    def __init__(self, expected: int, received: int):
        super().__init__(
            "classifier",
            f"expected {expected} classification results, received {received}",
        )
        self.expected = expected
        self.received = received


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def classify_httpx_error(service: str, exc: httpx.HTTPError) -> ExternalServiceError:
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        message = f"HTTP {code} {exc.response.reason_phrase}".strip()
        if is_retryable_status(code):
            return RetryableServiceError(service, message, status_code=code)
        return FatalServiceError(service, message, status_code=code)
    if isinstance(exc, (httpx.TimeoutException, httpx.TransportError)):
        return RetryableServiceError(service, f"{type(exc).__name__}: {exc}")
    return FatalServiceError(service, f"{type(exc).__name__}: {exc}")
