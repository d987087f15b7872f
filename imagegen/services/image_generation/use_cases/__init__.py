from .generate import GenerateImageResult, GenerateImageUseCase
from .edit import EditImageInput, EditImageResult, EditImageUseCase, OriginalImageInfo
from .regenerate import (
    DEFAULT_REGENERATE_CONFIG,
    RegenerateConfig,
    RegenerateImageInput,
    RegenerateImageResult,
    RegenerateImageUseCase,
    RegenerationMetadata,
)

__all__ = [
    "GenerateImageResult",
    "GenerateImageUseCase",
    "EditImageInput",
    "EditImageResult",
    "EditImageUseCase",
    "OriginalImageInfo",
    "DEFAULT_REGENERATE_CONFIG",
    "RegenerateConfig",
    "RegenerateImageInput",
    "RegenerateImageResult",
    "RegenerateImageUseCase",
    "RegenerationMetadata",
]
