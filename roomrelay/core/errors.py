"""Provider error type and client-facing status mapping.

Error handling strategy:
    Transport clients raise `ProviderError` for non-2xx provider responses and
    for predictions that end in a failed state. The HTTP adapter converts any
    exception from the generation step into one structured `{error, details}`
    body through `map_generation_error`. Nothing here retries.
"""

from typing import Any


class ProviderError(Exception):
    """Failure reported by an external provider.

    Attributes:
        status_code: Upstream HTTP status, or `None` when the failure was not an
            HTTP error (for example a prediction that finished as `failed`).
        code: Optional provider-specific error code (`insufficient_quota`).
        payload: Parsed upstream body, when available.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.payload = payload


class InvalidInputError(ValueError):
    """Local input rejected before any provider call."""


QUOTA_CODES = ("insufficient_quota",)

# (status, error, default details) in match priority order.
GENERATION_ERROR_TABLE = (
    (
        429,
        "API quota exceeded. Please check your API billing and quota.",
        "Rate limit or quota exceeded",
    ),
    (
        404,
        "Model not found. The model may have been removed or the version identifier is incorrect.",
        "Model not found on provider",
    ),
    (
        422,
        "Invalid input parameters",
        "Input validation failed.",
    ),
    (
        400,
        "Invalid request parameters",
        "Malformed request",
    ),
)

FALLBACK_ERROR = "Failed to start redesign"
STATUS_ERROR = "Failed to get redesign status"


def extract_status(exc: BaseException) -> int | None:
    """Return the upstream HTTP status carried by `exc`, if any.

    Checked in order: `status_code`, `status`, `response.status_code`.
    """
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value

    response = getattr(exc, "response", None)
    if response is not None:
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            return value
    return None


def _error_message(exc: BaseException) -> str:
    return str(getattr(exc, "message", None) or exc or "").strip()


def map_generation_error(exc: BaseException) -> tuple[int, dict[str, str]]:
    """Translate a generation-step failure into `(status, body)`.

    Quota signals are either HTTP 429 or a quota error code. Statuses
    404/422/400 pass through; everything else becomes 500.
    """
    status = extract_status(exc)
    code = getattr(exc, "code", None)
    message = _error_message(exc)

    if code in QUOTA_CODES or code == 429:
        status = 429

    for mapped_status, error, default_details in GENERATION_ERROR_TABLE:
        if status == mapped_status:
            return mapped_status, {"error": error, "details": message or default_details}

    return 500, {"error": FALLBACK_ERROR, "details": message or "Unknown error occurred"}


def map_status_error(exc: BaseException) -> tuple[int, dict[str, str]]:
    """Translate a status-relay failure into `(status, body)`; always 500."""
    return 500, {
        "error": STATUS_ERROR,
        "details": _error_message(exc) or "Unknown error occurred",
    }
