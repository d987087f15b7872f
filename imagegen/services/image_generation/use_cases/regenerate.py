"""
Regenerate use case: bounded retry around one generate or edit operation.

Each attempt delegates to the generate or edit use case exactly once. A failed
attempt is classified from its message (failure_types); retriable failures
with budget left are retried after retry_delay_ms, everything else is
terminal. Attempts run sequentially in a loop; the only suspension point is
the non-blocking delay between attempts.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, Field

from imagegen.schemas.image_request import ImageRequest, ValidationResult
from imagegen.services.image_generation.base import GeneratorInfo, ImageGenerator, ImageResult
from imagegen.services.image_generation.failure_types import (
    DEFAULT_RETRY_MARKERS,
    classify_failure_message,
)
from imagegen.services.image_generation.image_buffer import (
    DEFAULT_MAX_IMAGE_BYTES,
    DEFAULT_MIME_TYPE,
)
from imagegen.services.image_generation.use_cases.common import UNKNOWN_ERROR, exception_message
from imagegen.services.image_generation.use_cases.edit import (
    EditImageInput,
    EditImageUseCase,
    OriginalImageInfo,
)
from imagegen.services.image_generation.use_cases.generate import GenerateImageUseCase
from imagegen.utils.metrics import image_regenerate_outcomes_total, image_regenerate_retries_total

logger = logging.getLogger(__name__)

OperationKind = Literal["generate", "edit"]


class RegenerateConfig(BaseModel):
    """Retry policy for regeneration."""

    max_retries: int = Field(3, ge=0)
    enable_auto_retry: bool = True
    auto_retry_error_types: tuple[str, ...] = DEFAULT_RETRY_MARKERS
    retry_delay_ms: int = Field(1000, ge=0)

    model_config = {"frozen": True}


DEFAULT_REGENERATE_CONFIG = RegenerateConfig()


@dataclass(frozen=True)
class RegenerateImageInput:
    operation_kind: OperationKind
    request: ImageRequest
    buffer: bytes | None = None  # required for edit
    mime_type: str | None = None

    def __post_init__(self) -> None:
        if self.operation_kind not in ("generate", "edit"):
            raise ValueError(f"Unknown operation kind: {self.operation_kind}")
        if self.operation_kind == "edit" and self.buffer is None:
            raise ValueError("edit regeneration requires a source image buffer")


@dataclass(frozen=True)
class RegenerationMetadata:
    trigger: Literal["user", "automatic"]
    max_retries: int
    original_image_info: OriginalImageInfo | None = None


@dataclass(frozen=True)
class RegenerateImageResult:
    success: bool
    validation_result: ValidationResult
    processed_request: ImageRequest
    operation_kind: OperationKind
    attempt_number: int
    previous_attempts: list[str] = field(default_factory=list)
    regeneration_metadata: RegenerationMetadata | None = None
    image_result: ImageResult | None = None
    error: str | None = None


class RegenerateImageUseCase:
    """Retry a failed generation or edit under the configured retry policy."""

    def __init__(
        self,
        image_generator: ImageGenerator,
        config: RegenerateConfig = DEFAULT_REGENERATE_CONFIG,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    ) -> None:
        self.generate_use_case = GenerateImageUseCase(image_generator)
        self.edit_use_case = EditImageUseCase(image_generator, max_image_bytes=max_image_bytes)
        self.config = config

    async def execute(
        self,
        regenerate_input: RegenerateImageInput,
        attempt_number: int = 1,
        previous_attempts: list[str] | None = None,
    ) -> RegenerateImageResult:
        """
        Run attempts until one succeeds, a failure is terminal, or the budget is spent.

        attempt_number and previous_attempts let a caller resume a chain (e.g. a
        user pressing "regenerate" after an earlier failure); the returned
        previous_attempts always holds every failure message of the chain.
        """
        config = self.config
        attempt = attempt_number
        history = list(previous_attempts or [])
        kind = regenerate_input.operation_kind

        while True:
            if attempt > config.max_retries + 1:
                image_regenerate_outcomes_total.labels(operation=kind, state="exhausted").inc()
                logger.warning(
                    "image_regenerate_exhausted",
                    extra={
                        "operation_kind": kind,
                        "attempt": attempt,
                        "max_attempts": config.max_retries + 1,
                    },
                )
                return self._failure(
                    regenerate_input,
                    f"Maximum retry attempts exceeded ({config.max_retries})",
                    attempt,
                    history,
                )

            try:
                result = await self._attempt(regenerate_input)
            except Exception as e:
                # Delegates never raise; guard against a broken delegate anyway
                logger.error(
                    "image_regenerate_attempt_exception",
                    extra={"operation_kind": kind, "attempt": attempt, "error": exception_message(e)},
                    exc_info=True,
                )
                result = None
                message = exception_message(e)
            else:
                if result.success:
                    image_regenerate_outcomes_total.labels(operation=kind, state="succeeded").inc()
                    logger.info(
                        "image_regenerate_succeeded",
                        extra={"operation_kind": kind, "attempt": attempt},
                    )
                    return RegenerateImageResult(
                        success=True,
                        validation_result=result.validation_result,
                        processed_request=result.processed_request,
                        operation_kind=kind,
                        attempt_number=attempt,
                        previous_attempts=history,
                        regeneration_metadata=self._metadata(regenerate_input, attempt),
                        image_result=result.image_result,
                    )
                message = result.error or UNKNOWN_ERROR

            history = [*history, message]
            failure_type, retry_allowed = classify_failure_message(
                message, config.auto_retry_error_types
            )

            if retry_allowed and config.enable_auto_retry and attempt <= config.max_retries:
                image_regenerate_retries_total.labels(
                    operation=kind, failure_type=failure_type.value
                ).inc()
                logger.info(
                    "image_regenerate_retry_scheduled",
                    extra={
                        "operation_kind": kind,
                        "attempt": attempt,
                        "max_attempts": config.max_retries + 1,
                        "delay_seconds": config.retry_delay_ms / 1000,
                        "failure_type": failure_type.value,
                        "error": message,
                    },
                )
                if config.retry_delay_ms > 0:
                    await asyncio.sleep(config.retry_delay_ms / 1000)
                attempt += 1
                continue

            image_regenerate_outcomes_total.labels(operation=kind, state="blocked").inc()
            logger.warning(
                "image_regenerate_failed",
                extra={
                    "operation_kind": kind,
                    "attempt": attempt,
                    "failure_type": failure_type.value,
                    "retry_allowed": retry_allowed,
                    "error": message,
                },
            )
            return self._failure(
                regenerate_input,
                message,
                attempt,
                history,
                validation_result=result.validation_result if result else None,
                processed_request=result.processed_request if result else None,
                image_result=result.image_result if result else None,
            )

    async def _attempt(self, regenerate_input: RegenerateImageInput):
        request = regenerate_input.request
        current = request.metadata
        request = request.with_metadata(
            kind="regenerate",
            source=(current.source if current and current.source else "button"),
        )
        if regenerate_input.operation_kind == "generate":
            return await self.generate_use_case.execute(request)
        return await self.edit_use_case.execute(
            EditImageInput(
                request=request,
                buffer=regenerate_input.buffer,
                mime_type=regenerate_input.mime_type,
            )
        )

    def _metadata(self, regenerate_input: RegenerateImageInput, attempt: int) -> RegenerationMetadata:
        image_info = None
        if regenerate_input.operation_kind == "edit":
            image_info = OriginalImageInfo(
                buffer_size=len(regenerate_input.buffer or b""),
                mime_type=regenerate_input.mime_type or DEFAULT_MIME_TYPE,
            )
        return RegenerationMetadata(
            trigger="user" if attempt == 1 else "automatic",
            max_retries=self.config.max_retries,
            original_image_info=image_info,
        )

    def _failure(
        self,
        regenerate_input: RegenerateImageInput,
        error: str,
        attempt: int,
        history: list[str],
        validation_result: ValidationResult | None = None,
        processed_request: ImageRequest | None = None,
        image_result: ImageResult | None = None,
    ) -> RegenerateImageResult:
        return RegenerateImageResult(
            success=False,
            validation_result=validation_result or ValidationResult(is_valid=True, errors=[]),
            processed_request=processed_request or regenerate_input.request,
            operation_kind=regenerate_input.operation_kind,
            attempt_number=attempt,
            previous_attempts=history,
            regeneration_metadata=self._metadata(regenerate_input, attempt),
            image_result=image_result,
            error=error,
        )

    def get_config(self) -> RegenerateConfig:
        return self.config.model_copy()

    def update_config(self, **changes) -> RegenerateConfig:
        """Replace the policy with a validated copy; affects later execute() calls only."""
        self.config = RegenerateConfig(**{**self.config.model_dump(), **changes})
        return self.config

    def is_available(self) -> bool:
        return self.generate_use_case.is_available()

    def get_generator_info(self) -> GeneratorInfo:
        return self.generate_use_case.get_generator_info()
