"""
Helpers shared by the generate and edit use cases: logging of validation
outcomes, generator call timing and error text normalization.
"""
import logging
import time
from typing import Awaitable

from imagegen.schemas.image_request import ImageRequest, ValidationResult
from imagegen.services.image_generation.base import ImageResult
from imagegen.utils.metrics import image_generation_duration_seconds, image_requests_total

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE_ERROR = "Image generation service is not available"
UNKNOWN_ERROR = "Unknown error occurred"


def validation_error_message(validation_result: ValidationResult) -> str:
    return f"Request validation failed: {', '.join(validation_result.errors)}"


def log_validation(operation: str, request: ImageRequest, validation_result: ValidationResult) -> None:
    """Log blocking errors at WARNING and advisory warnings at INFO."""
    if not validation_result.is_valid:
        logger.warning(
            "image_request_invalid",
            extra={
                "operation_kind": operation,
                "requester_id": request.requester_id,
                "group_id": request.group_id,
                "errors": validation_result.errors,
            },
        )
    elif validation_result.warnings:
        logger.info(
            "image_request_warnings",
            extra={
                "operation_kind": operation,
                "requester_id": request.requester_id,
                "group_id": request.group_id,
                "warnings": validation_result.warnings,
            },
        )


def record_outcome(operation: str, status: str) -> None:
    image_requests_total.labels(operation=operation, status=status).inc()


def exception_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__ or UNKNOWN_ERROR


async def timed_call(operation: str, call: Awaitable[ImageResult]) -> ImageResult:
    """Await a generator call, observing its duration whatever the outcome."""
    started = time.monotonic()
    try:
        return await call
    finally:
        elapsed = time.monotonic() - started
        image_generation_duration_seconds.labels(operation=operation).observe(elapsed)
        logger.debug(
            "image_generator_call_finished",
            extra={"operation_kind": operation, "processing_ms": int(elapsed * 1000)},
        )
