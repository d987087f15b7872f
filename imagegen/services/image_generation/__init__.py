"""
Image generation core: generator port, buffer checks, failure classification
and the generate / edit / regenerate use cases.
"""
from .base import (
    GeneratorInfo,
    ImageGenerationError,
    ImageGenerator,
    ImageResult,
    ImageResultMetadata,
    SafetyFiltering,
)
from .failure_types import FailureType, classify_failure_message
from .image_buffer import validate_image_buffer
from .use_cases import (
    EditImageInput,
    EditImageUseCase,
    GenerateImageUseCase,
    RegenerateConfig,
    RegenerateImageInput,
    RegenerateImageUseCase,
)
from .factory import ImageGeneratorFactory, build_use_cases, create_request

__all__ = [
    "GeneratorInfo",
    "ImageGenerationError",
    "ImageGenerator",
    "ImageResult",
    "ImageResultMetadata",
    "SafetyFiltering",
    "FailureType",
    "classify_failure_message",
    "validate_image_buffer",
    "EditImageInput",
    "EditImageUseCase",
    "GenerateImageUseCase",
    "RegenerateConfig",
    "RegenerateImageInput",
    "RegenerateImageUseCase",
    "ImageGeneratorFactory",
    "build_use_cases",
    "create_request",
]
