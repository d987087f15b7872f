"""
Base classes and types for image generators.
Used by the factory, the use cases and every generator adapter (gemini).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class SafetyFiltering:
    """Safety filtering detail reported by the generator."""
    blocked: bool
    reason: str | None = None
    categories: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ImageResultMetadata:
    model: str | None = None
    generated_at: datetime | None = None
    processing_time_ms: int | None = None
    safety_filtering: SafetyFiltering | None = None


@dataclass(frozen=True)
class ImageResult:
    """Result of one generate or edit call. buffer is present iff success."""
    success: bool
    buffer: bytes | None = None
    error: str | None = None
    metadata: ImageResultMetadata | None = None

    def __post_init__(self) -> None:
        if self.success and self.buffer is None:
            raise ValueError("successful ImageResult requires a buffer")
        if not self.success and self.buffer is not None:
            raise ValueError("failed ImageResult cannot carry a buffer")


@dataclass(frozen=True)
class GeneratorInfo:
    name: str
    version: str | None = None
    supported_formats: list[str] | None = None
    max_prompt_length: int | None = None


class ImageGenerationError(Exception):
    """Raised when a generator call fails; detail holds provider fields for logging."""
    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.detail = detail or {}


class ImageGenerator(ABC):
    """
    Port for AI image generation.

    Implementations are injected into the use cases by constructor and must be
    safe for concurrent calls from independent callers.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if generator is configured and available."""
        pass

    @abstractmethod
    async def generate_image(self, prompt: str) -> ImageResult:
        """Generate a new image from prompt. May raise ImageGenerationError."""
        pass

    @abstractmethod
    async def edit_image(
        self, prompt: str, buffer: bytes, mime_type: str = "image/png"
    ) -> ImageResult:
        """Edit an existing image according to prompt. May raise ImageGenerationError."""
        pass

    @abstractmethod
    def get_info(self) -> GeneratorInfo:
        """Return name and capability metadata."""
        pass
