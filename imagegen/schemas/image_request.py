"""
Image request value object: validation rules and prompt sanitization.

Created by a presentation handler (command, button or modal) at the moment of
the user action, consumed by one use case and discarded. Instances are frozen;
sanitization and metadata updates return new instances.
"""
from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

REQUEST_KINDS = ("generate", "edit", "regenerate")
REQUEST_SOURCES = ("command", "button", "modal")

# Platform ids are digit strings of 17-19 characters
ID_MIN_LENGTH = 17
ID_MAX_LENGTH = 19

SHORT_PROMPT_WARNING_LENGTH = 10
LONG_PROMPT_WARNING_LENGTH = 500
MAX_WORD_REPETITIONS = 5
MAX_FUTURE_SKEW_SECONDS = 60
MAX_AGE_SECONDS = 3600

_DIGITS = re.compile(r"[0-9]+")
_HTML_TAG = re.compile(r"<[^>]*>")
_ANGLE_BRACKETS = re.compile(r"[<>]")
_WHITESPACE = re.compile(r"\s+")
_KEPT_CONTROL_CHARS = frozenset("\t\n\r")


@dataclass(frozen=True)
class ValidationConfig:
    """Limits and banned patterns applied by ImageRequest.validate()."""
    max_prompt_length: int = 1000
    min_prompt_length: int = 1
    allow_dms: bool = True
    banned_patterns: tuple[re.Pattern[str], ...] = ()


DEFAULT_BANNED_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(<script[^>]*>.*?</script>)", re.IGNORECASE),  # script tags
    re.compile(r"(javascript:|data:)", re.IGNORECASE),  # javascript/data URLs
    re.compile(r"(on\w+\s*=)", re.IGNORECASE),  # inline event handlers
)

DEFAULT_VALIDATION_CONFIG = ValidationConfig(banned_patterns=DEFAULT_BANNED_PATTERNS)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ImageRequest.validate(); warnings is None when there are none."""
    is_valid: bool
    errors: list[str]
    warnings: list[str] | None = None


@dataclass(frozen=True)
class RequestMetadata:
    message_id: str | None = None
    channel_id: str | None = None
    kind: str | None = None  # generate, edit, regenerate
    source: str | None = None  # command, button, modal


@dataclass(frozen=True)
class ImageRequest:
    """Request for image generation or editing."""
    prompt: str
    requester_id: str
    group_id: str | None = None
    requested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: RequestMetadata | None = None
    validation_config: ValidationConfig = field(
        default=DEFAULT_VALIDATION_CONFIG, repr=False, compare=False
    )

    @classmethod
    def create(
        cls,
        prompt: str,
        requester_id: str,
        group_id: str | None = None,
        validation_config: ValidationConfig | None = None,
        **metadata: Any,
    ) -> "ImageRequest":
        """Build a request stamped with the current time; keyword args become metadata."""
        return cls(
            prompt=prompt,
            requester_id=requester_id,
            group_id=group_id,
            metadata=RequestMetadata(**metadata) if metadata else None,
            validation_config=validation_config or DEFAULT_VALIDATION_CONFIG,
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> ValidationResult:
        """
        Validate the request against business rules.

        Every check runs; errors block the request, warnings are advisory.
        Never raises.
        """
        errors: list[str] = []
        warnings: list[str] = []

        self._validate_prompt(errors, warnings)
        self._validate_requester_id(errors)
        self._validate_group(errors, warnings)
        self._validate_timestamp(warnings)
        self._validate_metadata(warnings)

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings or None,
        )

    def _validate_prompt(self, errors: list[str], warnings: list[str]) -> None:
        if not isinstance(self.prompt, str):
            errors.append("Prompt must be a non-empty string")
            return

        trimmed = self.prompt.strip()
        if not trimmed:
            errors.append("Prompt cannot be empty")
            return

        config = self.validation_config
        if len(trimmed) < config.min_prompt_length:
            errors.append(
                f"Prompt must be at least {config.min_prompt_length} characters long"
            )
        if len(trimmed) > config.max_prompt_length:
            errors.append(f"Prompt cannot exceed {config.max_prompt_length} characters")

        if any(pattern.search(trimmed) for pattern in config.banned_patterns):
            errors.append("Prompt contains prohibited content")

        if len(trimmed) < SHORT_PROMPT_WARNING_LENGTH:
            warnings.append("Very short prompts may produce unexpected results")
        if len(trimmed) > LONG_PROMPT_WARNING_LENGTH:
            warnings.append("Very long prompts may be truncated by the AI service")

        word_counts = Counter(trimmed.lower().split())
        if word_counts and max(word_counts.values()) > MAX_WORD_REPETITIONS:
            warnings.append("Prompt contains excessive word repetition")

    def _validate_requester_id(self, errors: list[str]) -> None:
        if not isinstance(self.requester_id, str) or not self.requester_id:
            errors.append("Requester ID must be a non-empty string")
            return
        _check_numeric_id(self.requester_id.strip(), "Requester ID", errors)

    def _validate_group(self, errors: list[str], warnings: list[str]) -> None:
        if not self.group_id:
            if not self.validation_config.allow_dms:
                errors.append("Group ID is required (direct message requests not allowed)")
            else:
                warnings.append("Request is from direct message (no group context)")
            return

        if not isinstance(self.group_id, str):
            errors.append("Group ID must be a string")
            return
        _check_numeric_id(self.group_id.strip(), "Group ID", errors)

    def _validate_timestamp(self, warnings: list[str]) -> None:
        if not isinstance(self.requested_at, datetime):
            return
        requested_at = self.requested_at
        if requested_at.tzinfo is None:
            requested_at = requested_at.replace(tzinfo=timezone.utc)

        delta = (requested_at - datetime.now(timezone.utc)).total_seconds()
        if delta > MAX_FUTURE_SKEW_SECONDS:
            warnings.append("Request timestamp is significantly in the future")
        if delta < -MAX_AGE_SECONDS:
            warnings.append("Request timestamp is very old")

    def _validate_metadata(self, warnings: list[str]) -> None:
        meta = self.metadata
        if meta is None:
            return
        if meta.message_id is not None and not str(meta.message_id).strip():
            warnings.append("Invalid message ID in metadata")
        if meta.channel_id is not None and not str(meta.channel_id).strip():
            warnings.append("Invalid channel ID in metadata")
        if meta.kind and meta.kind not in REQUEST_KINDS:
            warnings.append("Invalid request type in metadata")
        if meta.source and meta.source not in REQUEST_SOURCES:
            warnings.append("Invalid request source in metadata")

    # ------------------------------------------------------------------
    # Sanitization and copies
    # ------------------------------------------------------------------

    def sanitize_prompt(self) -> str:
        """
        Return the prompt with harmful content removed.

        One pass: banned patterns, HTML-like tags, stray angle brackets,
        whitespace collapse, non-printable characters. Passes repeat until the
        text stops changing, so a removal cannot leave a new banned token behind.
        """
        sanitized = self.prompt.strip()
        while True:
            cleaned = self._sanitize_pass(sanitized)
            if cleaned == sanitized:
                return cleaned
            sanitized = cleaned

    def _sanitize_pass(self, text: str) -> str:
        for pattern in self.validation_config.banned_patterns:
            text = pattern.sub("", text)
        text = _HTML_TAG.sub("", text)
        text = _ANGLE_BRACKETS.sub("", text)
        text = _WHITESPACE.sub(" ", text).strip()
        return "".join(ch for ch in text if ch.isprintable() or ch in _KEPT_CONTROL_CHARS)

    def with_sanitized_prompt(self) -> "ImageRequest":
        return replace(self, prompt=self.sanitize_prompt())

    def with_metadata(self, **changes: Any) -> "ImageRequest":
        """Copy of the request with metadata fields merged over the current ones."""
        base = self.metadata or RequestMetadata()
        return replace(self, metadata=replace(base, **changes))


def _check_numeric_id(value: str, label: str, errors: list[str]) -> None:
    if not value:
        errors.append(f"{label} cannot be empty")
        return
    if not _DIGITS.fullmatch(value):
        errors.append(f"{label} must be a numeric string")
    if not ID_MIN_LENGTH <= len(value) <= ID_MAX_LENGTH:
        errors.append(f"{label} must be {ID_MIN_LENGTH}-{ID_MAX_LENGTH} characters long")
