"""
Factory for creating image generators and the use cases built on them.
Generators are registered statically; there is no runtime discovery.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from imagegen.schemas.image_request import (
    DEFAULT_BANNED_PATTERNS,
    ImageRequest,
    ValidationConfig,
)
from imagegen.services.image_generation.base import ImageGenerator
from imagegen.services.image_generation.providers.gemini import GeminiImageGenerator
from imagegen.services.image_generation.use_cases.edit import EditImageUseCase
from imagegen.services.image_generation.use_cases.generate import GenerateImageUseCase
from imagegen.services.image_generation.use_cases.regenerate import (
    RegenerateConfig,
    RegenerateImageUseCase,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageUseCases:
    """The three use cases sharing one injected generator."""
    generate: GenerateImageUseCase
    edit: EditImageUseCase
    regenerate: RegenerateImageUseCase


class ImageGeneratorFactory:
    """Factory for creating image generators."""

    PROVIDERS: dict[str, type[ImageGenerator]] = {
        "gemini": GeminiImageGenerator,
    }

    @classmethod
    def create(cls, provider_name: str, config: dict) -> ImageGenerator:
        """
        Create generator instance by name.

        Raises:
            ValueError: If provider name is unknown
        """
        provider_class = cls.PROVIDERS.get(provider_name.strip().lower())

        if not provider_class:
            available = ", ".join(cls.PROVIDERS.keys())
            raise ValueError(
                f"Unknown provider: {provider_name}. "
                f"Available providers: {available}"
            )

        logger.info("image_generator_created", extra={"provider": provider_name})
        generator = provider_class(config)

        if not generator.is_available():
            logger.warning(
                "image_generator_not_configured", extra={"provider": provider_name}
            )

        return generator

    @classmethod
    def create_from_settings(cls, settings, provider_override: Optional[str] = None) -> ImageGenerator:
        provider_name = (provider_override or "").strip() or settings.image_provider

        if provider_name == "gemini":
            config = {
                "api_key": settings.gemini_api_key,
                "api_endpoint": settings.gemini_api_endpoint,
                "timeout": settings.gemini_timeout,
                "model": settings.gemini_image_model,
                "safety_settings": settings.gemini_safety_settings,
            }
        else:
            raise ValueError(f"Provider {provider_name} not supported in settings")

        return cls.create(provider_name, config)

    @classmethod
    def get_available_providers(cls) -> list[str]:
        return list(cls.PROVIDERS.keys())


def validation_config_from_settings(settings) -> ValidationConfig:
    return ValidationConfig(
        max_prompt_length=settings.prompt_max_length,
        min_prompt_length=settings.prompt_min_length,
        allow_dms=settings.allow_dms,
        banned_patterns=DEFAULT_BANNED_PATTERNS,
    )


def regenerate_config_from_settings(settings) -> RegenerateConfig:
    return RegenerateConfig(
        max_retries=settings.regenerate_max_retries,
        enable_auto_retry=settings.regenerate_enable_auto_retry,
        auto_retry_error_types=tuple(settings.auto_retry_error_types_list),
        retry_delay_ms=settings.regenerate_retry_delay_ms,
    )


def build_use_cases(settings, generator: ImageGenerator | None = None) -> ImageUseCases:
    """Wire the use cases to one generator (created from settings unless given)."""
    generator = generator or ImageGeneratorFactory.create_from_settings(settings)
    return ImageUseCases(
        generate=GenerateImageUseCase(generator),
        edit=EditImageUseCase(generator, max_image_bytes=settings.max_image_bytes),
        regenerate=RegenerateImageUseCase(
            generator,
            config=regenerate_config_from_settings(settings),
            max_image_bytes=settings.max_image_bytes,
        ),
    )


def create_request(settings, prompt: str, requester_id: str, group_id: str | None = None, **metadata) -> ImageRequest:
    """Build an ImageRequest validated against the configured limits."""
    return ImageRequest.create(
        prompt,
        requester_id,
        group_id,
        validation_config=validation_config_from_settings(settings),
        **metadata,
    )
