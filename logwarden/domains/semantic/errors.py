"""Provider error taxonomy and classification."""

from enum import StrEnum


class ProviderErrorType(StrEnum):
    RATE_LIMITED = "rate_limited"
    AUTH_FAILED = "auth_failed"
    BILLING_ISSUE = "billing_issue"
    NETWORK_ISSUE = "network_issue"
    MODEL_ISSUE = "model_issue"
    UNKNOWN = "unknown"


# Checked in order; the first class with a matching marker wins
_MESSAGE_MARKERS: list[tuple[ProviderErrorType, tuple[str, ...]]] = [
    (ProviderErrorType.RATE_LIMITED, ("429", "quota", "rate limit")),
    (ProviderErrorType.AUTH_FAILED, ("401", "unauthorized", "invalid api key")),
    (ProviderErrorType.BILLING_ISSUE, ("403", "billing", "payment")),
    (ProviderErrorType.NETWORK_ISSUE, ("timeout", "timed out", "network", "connection")),
    (ProviderErrorType.MODEL_ISSUE, ("model", "invalid request")),
]

_STATUS_CODES = {
    429: ProviderErrorType.RATE_LIMITED,
    401: ProviderErrorType.AUTH_FAILED,
    403: ProviderErrorType.BILLING_ISSUE,
    402: ProviderErrorType.BILLING_ISSUE,
    404: ProviderErrorType.MODEL_ISSUE,
    400: ProviderErrorType.MODEL_ISSUE,
}


class ProviderError(Exception):
    """Raised by providers; always handled inside the semantic detector."""

    def __init__(
        self,
        message: str,
        error_type: ProviderErrorType = ProviderErrorType.UNKNOWN,
        provider: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.provider = provider

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message}"


def classify_provider_error(error: BaseException | str) -> ProviderErrorType:
    """Map an exception (or its message) onto a ProviderErrorType.

    A numeric ``status_code`` on the exception takes precedence; otherwise the
    lowercased message is matched against known markers.
    """
    if isinstance(error, ProviderError) and error.error_type != ProviderErrorType.UNKNOWN:
        return error.error_type

    status = getattr(error, "status_code", None)
    if isinstance(status, int) and status in _STATUS_CODES:
        return _STATUS_CODES[status]

    message = str(error).lower()
    for error_type, markers in _MESSAGE_MARKERS:
        if any(marker in message for marker in markers):
            return error_type
    return ProviderErrorType.UNKNOWN
