"""
Edit use case: validate the request and the source image, sanitize, and run
one edit call. Buffer checks run before the generator is touched.
"""
import logging
from dataclasses import dataclass

from imagegen.schemas.image_request import ImageRequest, ValidationResult
from imagegen.services.image_generation.base import GeneratorInfo, ImageGenerator, ImageResult
from imagegen.services.image_generation.image_buffer import (
    DEFAULT_MAX_IMAGE_BYTES,
    DEFAULT_MIME_TYPE,
    validate_image_buffer,
)
from imagegen.services.image_generation.use_cases.common import (
    SERVICE_UNAVAILABLE_ERROR,
    exception_message,
    log_validation,
    record_outcome,
    timed_call,
    validation_error_message,
)

logger = logging.getLogger(__name__)

OPERATION = "edit"
DEFAULT_FAILURE = "Failed to edit image"


@dataclass(frozen=True)
class EditImageInput:
    request: ImageRequest
    buffer: bytes
    mime_type: str | None = None  # image/png when not supplied


@dataclass(frozen=True)
class OriginalImageInfo:
    buffer_size: int
    mime_type: str


@dataclass(frozen=True)
class EditImageResult:
    success: bool
    validation_result: ValidationResult
    processed_request: ImageRequest
    original_image_info: OriginalImageInfo
    image_result: ImageResult | None = None
    error: str | None = None


class EditImageUseCase:
    """Edit an existing image from a text prompt. Never raises; failures come back as results."""

    def __init__(
        self,
        image_generator: ImageGenerator,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    ) -> None:
        self.image_generator = image_generator
        self.max_image_bytes = max_image_bytes

    async def execute(self, edit_input: EditImageInput) -> EditImageResult:
        request = edit_input.request
        buffer = edit_input.buffer
        mime_type = edit_input.mime_type or DEFAULT_MIME_TYPE
        image_info = OriginalImageInfo(buffer_size=len(buffer or b""), mime_type=mime_type)

        def failure(error: str, validation_result: ValidationResult, **kwargs) -> EditImageResult:
            return EditImageResult(
                success=False,
                validation_result=validation_result,
                processed_request=kwargs.pop("processed_request", request),
                original_image_info=image_info,
                error=error,
                **kwargs,
            )

        validation_result = request.validate()
        log_validation(OPERATION, request, validation_result)
        if not validation_result.is_valid:
            record_outcome(OPERATION, "invalid")
            return failure(validation_error_message(validation_result), validation_result)

        buffer_error = validate_image_buffer(buffer, mime_type, self.max_image_bytes)
        if buffer_error:
            record_outcome(OPERATION, "invalid_image")
            logger.warning(
                "image_buffer_rejected",
                extra={
                    "operation_kind": OPERATION,
                    "requester_id": request.requester_id,
                    "buffer_size": image_info.buffer_size,
                    "mime_type": mime_type,
                    "error": buffer_error,
                },
            )
            return failure(buffer_error, validation_result)

        if not self.image_generator.is_available():
            record_outcome(OPERATION, "unavailable")
            logger.warning("image_generator_unavailable", extra={"operation_kind": OPERATION})
            return failure(SERVICE_UNAVAILABLE_ERROR, validation_result)

        processed_request = request.with_sanitized_prompt().with_metadata(kind=OPERATION)

        try:
            image_result = await timed_call(
                OPERATION,
                self.image_generator.edit_image(processed_request.prompt, buffer, mime_type),
            )
        except Exception as e:
            record_outcome(OPERATION, "error")
            logger.error(
                "image_edit_exception",
                extra={
                    "operation_kind": OPERATION,
                    "requester_id": request.requester_id,
                    "error": exception_message(e),
                },
                exc_info=True,
            )
            return failure(
                f"Image editing failed: {exception_message(e)}",
                validation_result,
                processed_request=processed_request,
            )

        if not image_result.success:
            record_outcome(OPERATION, "failed")
            error = image_result.error or DEFAULT_FAILURE
            logger.warning(
                "image_edit_failed",
                extra={
                    "operation_kind": OPERATION,
                    "requester_id": request.requester_id,
                    "error": error,
                },
            )
            return failure(
                error,
                validation_result,
                processed_request=processed_request,
                image_result=image_result,
            )

        record_outcome(OPERATION, "success")
        logger.info(
            "image_edit_succeeded",
            extra={
                "operation_kind": OPERATION,
                "requester_id": request.requester_id,
                "group_id": request.group_id,
                "buffer_size": len(image_result.buffer or b""),
                "mime_type": mime_type,
            },
        )
        return EditImageResult(
            success=True,
            validation_result=validation_result,
            processed_request=processed_request,
            original_image_info=image_info,
            image_result=image_result,
        )

    def get_generator_info(self) -> GeneratorInfo:
        return self.image_generator.get_info()

    def is_available(self) -> bool:
        return self.image_generator.is_available()
