"""Tests for GenerateImageUseCase: validation, availability, sanitization, error normalization."""
import unittest
from unittest.mock import AsyncMock, MagicMock

from imagegen.schemas.image_request import ImageRequest, RequestMetadata
from imagegen.services.image_generation.base import (
    GeneratorInfo,
    ImageGenerationError,
    ImageGenerator,
    ImageResult,
)
from imagegen.services.image_generation.use_cases.generate import GenerateImageUseCase

USER_ID = "123456789012345678"


def _make_generator(available=True, result=None, side_effect=None):
    generator = MagicMock(spec=ImageGenerator)
    generator.is_available.return_value = available
    generator.get_info.return_value = GeneratorInfo(name="fake", version="1")
    generator.generate_image = AsyncMock(
        return_value=result or ImageResult(success=True, buffer=b"png-bytes"),
        side_effect=side_effect,
    )
    return generator


class TestGenerateImageUseCase(unittest.IsolatedAsyncioTestCase):
    async def test_success(self):
        generator = _make_generator()
        use_case = GenerateImageUseCase(generator)
        request = ImageRequest(prompt="a cute robot", requester_id=USER_ID)

        result = await use_case.execute(request)

        self.assertTrue(result.success)
        self.assertTrue(result.image_result.success)
        self.assertEqual(result.image_result.buffer, b"png-bytes")
        self.assertEqual(result.processed_request.metadata.kind, "generate")
        self.assertIsNone(result.error)
        self.assertTrue(result.validation_result.is_valid)
        generator.generate_image.assert_awaited_once_with("a cute robot")

    async def test_empty_prompt_never_calls_generator(self):
        generator = _make_generator()
        use_case = GenerateImageUseCase(generator)

        result = await use_case.execute(ImageRequest(prompt="", requester_id=USER_ID))

        self.assertFalse(result.success)
        self.assertFalse(result.validation_result.is_valid)
        self.assertIn("Prompt cannot be empty", result.validation_result.errors)
        self.assertEqual(result.error, "Request validation failed: Prompt cannot be empty")
        generator.generate_image.assert_not_awaited()
        generator.is_available.assert_not_called()

    async def test_validation_errors_are_joined(self):
        generator = _make_generator()
        request = ImageRequest(prompt="", requester_id="abc")

        result = await GenerateImageUseCase(generator).execute(request)

        self.assertEqual(
            result.error,
            "Request validation failed: Prompt cannot be empty, "
            "Requester ID must be a numeric string, Requester ID must be 17-19 characters long",
        )
        self.assertIs(result.processed_request, request)

    async def test_unavailable_generator(self):
        generator = _make_generator(available=False)

        result = await GenerateImageUseCase(generator).execute(
            ImageRequest(prompt="a cute robot", requester_id=USER_ID)
        )

        self.assertFalse(result.success)
        self.assertEqual(result.error, "Image generation service is not available")
        generator.generate_image.assert_not_awaited()

    async def test_prompt_is_sanitized_and_source_preserved(self):
        generator = _make_generator()
        request = ImageRequest(
            prompt="  a <b>bold</b>   robot ",
            requester_id=USER_ID,
            metadata=RequestMetadata(source="modal", message_id="99"),
        )

        result = await GenerateImageUseCase(generator).execute(request)

        generator.generate_image.assert_awaited_once_with("a bold robot")
        self.assertEqual(result.processed_request.prompt, "a bold robot")
        self.assertEqual(
            result.processed_request.metadata,
            RequestMetadata(source="modal", message_id="99", kind="generate"),
        )
        self.assertEqual(request.prompt, "  a <b>bold</b>   robot ")

    async def test_generator_exception_is_wrapped(self):
        generator = _make_generator(side_effect=ImageGenerationError("Gemini request timeout: read"))

        result = await GenerateImageUseCase(generator).execute(
            ImageRequest(prompt="a cute robot", requester_id=USER_ID)
        )

        self.assertFalse(result.success)
        self.assertEqual(result.error, "Image generation failed: Gemini request timeout: read")
        self.assertIsNone(result.image_result)
        self.assertEqual(result.processed_request.metadata.kind, "generate")

    async def test_structured_failure_is_propagated(self):
        failed = ImageResult(success=False, error="Content blocked: SAFETY")
        generator = _make_generator(result=failed)

        result = await GenerateImageUseCase(generator).execute(
            ImageRequest(prompt="a cute robot", requester_id=USER_ID)
        )

        self.assertFalse(result.success)
        self.assertEqual(result.error, "Content blocked: SAFETY")
        self.assertIs(result.image_result, failed)

    async def test_structured_failure_without_message_gets_default(self):
        generator = _make_generator(result=ImageResult(success=False))

        result = await GenerateImageUseCase(generator).execute(
            ImageRequest(prompt="a cute robot", requester_id=USER_ID)
        )

        self.assertEqual(result.error, "Failed to generate image")


class TestGenerateAccessors(unittest.TestCase):
    def test_pass_through_accessors(self):
        generator = _make_generator(available=False)
        use_case = GenerateImageUseCase(generator)
        self.assertFalse(use_case.is_available())
        self.assertEqual(use_case.get_generator_info(), GeneratorInfo(name="fake", version="1"))
