"""
Generate use case: validate, sanitize and run one generation call.
"""
import logging
from dataclasses import dataclass

from imagegen.schemas.image_request import ImageRequest, ValidationResult
from imagegen.services.image_generation.base import GeneratorInfo, ImageGenerator, ImageResult
from imagegen.services.image_generation.use_cases.common import (
    SERVICE_UNAVAILABLE_ERROR,
    exception_message,
    log_validation,
    record_outcome,
    timed_call,
    validation_error_message,
)

logger = logging.getLogger(__name__)

OPERATION = "generate"
DEFAULT_FAILURE = "Failed to generate image"


@dataclass(frozen=True)
class GenerateImageResult:
    success: bool
    validation_result: ValidationResult
    processed_request: ImageRequest
    image_result: ImageResult | None = None
    error: str | None = None


class GenerateImageUseCase:
    """Generate an image from a text prompt. Never raises; failures come back as results."""

    def __init__(self, image_generator: ImageGenerator) -> None:
        self.image_generator = image_generator

    async def execute(self, request: ImageRequest) -> GenerateImageResult:
        validation_result = request.validate()
        log_validation(OPERATION, request, validation_result)
        if not validation_result.is_valid:
            record_outcome(OPERATION, "invalid")
            return GenerateImageResult(
                success=False,
                validation_result=validation_result,
                processed_request=request,
                error=validation_error_message(validation_result),
            )

        if not self.image_generator.is_available():
            record_outcome(OPERATION, "unavailable")
            logger.warning("image_generator_unavailable", extra={"operation_kind": OPERATION})
            return GenerateImageResult(
                success=False,
                validation_result=validation_result,
                processed_request=request,
                error=SERVICE_UNAVAILABLE_ERROR,
            )

        processed_request = request.with_sanitized_prompt().with_metadata(kind=OPERATION)

        try:
            image_result = await timed_call(
                OPERATION, self.image_generator.generate_image(processed_request.prompt)
            )
        except Exception as e:
            record_outcome(OPERATION, "error")
            logger.error(
                "image_generation_exception",
                extra={
                    "operation_kind": OPERATION,
                    "requester_id": request.requester_id,
                    "error": exception_message(e),
                },
                exc_info=True,
            )
            return GenerateImageResult(
                success=False,
                validation_result=validation_result,
                processed_request=processed_request,
                error=f"Image generation failed: {exception_message(e)}",
            )

        if not image_result.success:
            record_outcome(OPERATION, "failed")
            error = image_result.error or DEFAULT_FAILURE
            logger.warning(
                "image_generation_failed",
                extra={
                    "operation_kind": OPERATION,
                    "requester_id": request.requester_id,
                    "error": error,
                },
            )
            return GenerateImageResult(
                success=False,
                validation_result=validation_result,
                processed_request=processed_request,
                image_result=image_result,
                error=error,
            )

        record_outcome(OPERATION, "success")
        logger.info(
            "image_generation_succeeded",
            extra={
                "operation_kind": OPERATION,
                "requester_id": request.requester_id,
                "group_id": request.group_id,
                "buffer_size": len(image_result.buffer or b""),
            },
        )
        return GenerateImageResult(
            success=True,
            validation_result=validation_result,
            processed_request=processed_request,
            image_result=image_result,
        )

    def get_generator_info(self) -> GeneratorInfo:
        return self.image_generator.get_info()

    def is_available(self) -> bool:
        return self.image_generator.is_available()
