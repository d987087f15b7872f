"""
Failure classification for the regenerate workflow.
Decides from a failure message whether an automatic retry is allowed.
"""
from enum import Enum
from typing import Iterable


class FailureType(str, Enum):
    """Failure categories used for retry policy and observability."""

    CONTENT_BLOCKED = "content_blocked"  # safety / blocklist; never retried
    TRANSIENT = "transient"  # matched a configured retry marker
    NON_RETRIABLE = "non_retriable"  # anything else


# Markers that always make a failure terminal, whatever the retry config says
NON_RETRIABLE_MARKERS = frozenset({
    "safety",
    "blocked",
    "blocklist",
    "prohibited_content",
    "spii",
})

DEFAULT_RETRY_MARKERS = (
    "timeout",
    "network",
    "rate_limit",
    "rate limit",
    "service_unavailable",
    "internal_error",
)


def classify_failure_message(
    message: str | None,
    retry_markers: Iterable[str] = DEFAULT_RETRY_MARKERS,
) -> tuple[FailureType, bool]:
    """
    Classify a failure message by case-insensitive substring match.
    Returns (failure_type, retry_allowed).
    """
    text = (message or "").lower()

    if any(marker in text for marker in NON_RETRIABLE_MARKERS):
        return (FailureType.CONTENT_BLOCKED, False)

    for marker in retry_markers:
        marker = marker.strip().lower()
        if marker and marker in text:
            return (FailureType.TRANSIENT, True)

    return (FailureType.NON_RETRIABLE, False)
