"""Tests for ImageRequest: validation rules, sanitization, immutable copies."""
from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest

from imagegen.schemas.image_request import (
    DEFAULT_VALIDATION_CONFIG,
    ImageRequest,
    RequestMetadata,
    ValidationConfig,
)

USER_ID = "123456789012345678"
GROUP_ID = "876543210987654321"


def _make_request(prompt="a cute robot painting a sunset", **kwargs):
    kwargs.setdefault("requester_id", USER_ID)
    kwargs.setdefault("group_id", GROUP_ID)
    return ImageRequest(prompt=prompt, **kwargs)


class TestPromptValidation:
    def test_valid_request_has_no_errors_or_warnings(self):
        result = _make_request().validate()
        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings is None

    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    def test_empty_prompt(self, prompt):
        result = _make_request(prompt).validate()
        assert result.is_valid is False
        assert "Prompt cannot be empty" in result.errors

    def test_prompt_too_long(self):
        result = _make_request("word " * 250).validate()
        assert result.is_valid is False
        assert "Prompt cannot exceed 1000 characters" in result.errors
        assert "Very long prompts may be truncated by the AI service" in result.warnings

    def test_prompt_too_short_for_config(self):
        config = ValidationConfig(min_prompt_length=20, max_prompt_length=100)
        result = _make_request("short prompt", validation_config=config).validate()
        assert result.errors == ["Prompt must be at least 20 characters long"]

    def test_length_is_measured_after_trimming(self):
        config = ValidationConfig(min_prompt_length=1, max_prompt_length=12)
        result = _make_request("   twelve chars  ", validation_config=config).validate()
        assert result.is_valid is True

    @pytest.mark.parametrize(
        "prompt",
        [
            "draw <script>alert(1)</script> a cat",
            "link to JavaScript:void(0) please",
            "inline data:image/png;base64,xyz",
            "<img onerror=alert(1)> sunset",
        ],
    )
    def test_banned_patterns_block(self, prompt):
        result = _make_request(prompt).validate()
        assert result.is_valid is False
        assert "Prompt contains prohibited content" in result.errors

    def test_banned_pattern_reported_once(self):
        result = _make_request("javascript: onclick= <script>x</script>").validate()
        assert result.errors.count("Prompt contains prohibited content") == 1

    def test_short_prompt_warning_is_not_blocking(self):
        result = _make_request("a cat").validate()
        assert result.is_valid is True
        assert "Very short prompts may produce unexpected results" in result.warnings

    def test_word_repetition_warning_is_case_insensitive(self):
        result = _make_request("Cat cat CAT cat cat cAt on a mat").validate()
        assert result.is_valid is True
        assert "Prompt contains excessive word repetition" in result.warnings

    def test_five_repetitions_do_not_warn(self):
        result = _make_request("cat cat cat cat cat on a mat").validate()
        assert result.warnings is None

    @pytest.mark.parametrize(
        "prompt",
        ["x", "a red balloon", "q" * 1000, "  padded prompt with spaces  "],
    )
    def test_prompt_within_bounds_without_banned_content_is_valid(self, prompt):
        assert _make_request(prompt).validate().is_valid is True


class TestIdentifierValidation:
    @pytest.mark.parametrize("requester_id", ["12345678901234567", "1234567890123456789"])
    def test_requester_id_length_bounds(self, requester_id):
        assert _make_request(requester_id=requester_id).validate().is_valid is True

    def test_requester_id_not_numeric(self):
        result = _make_request(requester_id="12345678901234567a").validate()
        assert result.errors == ["Requester ID must be a numeric string"]

    def test_requester_id_too_short_and_not_numeric(self):
        result = _make_request(requester_id="abc").validate()
        assert result.errors == [
            "Requester ID must be a numeric string",
            "Requester ID must be 17-19 characters long",
        ]

    def test_empty_requester_id(self):
        result = _make_request(requester_id="").validate()
        assert result.errors == ["Requester ID must be a non-empty string"]

    def test_missing_group_allowed_warns(self):
        result = _make_request(group_id=None).validate()
        assert result.is_valid is True
        assert "Request is from direct message (no group context)" in result.warnings

    def test_missing_group_disallowed_errors(self):
        config = ValidationConfig(allow_dms=False)
        result = _make_request(group_id=None, validation_config=config).validate()
        assert result.is_valid is False
        assert "Group ID is required (direct message requests not allowed)" in result.errors

    def test_bad_group_id(self):
        result = _make_request(group_id="12").validate()
        assert result.errors == ["Group ID must be 17-19 characters long"]

    def test_all_checks_run_without_short_circuit(self):
        result = _make_request("", requester_id="x", group_id="y").validate()
        assert "Prompt cannot be empty" in result.errors
        assert "Requester ID must be a numeric string" in result.errors
        assert "Group ID must be a numeric string" in result.errors


class TestTimestampAndMetadata:
    def test_future_timestamp_warns(self):
        future = datetime.now(timezone.utc) + timedelta(minutes=5)
        result = _make_request(requested_at=future).validate()
        assert result.is_valid is True
        assert "Request timestamp is significantly in the future" in result.warnings

    def test_old_timestamp_warns(self):
        old = datetime.now(timezone.utc) - timedelta(hours=2)
        result = _make_request(requested_at=old).validate()
        assert "Request timestamp is very old" in result.warnings

    def test_naive_timestamp_treated_as_utc(self):
        naive_now = datetime.now(timezone.utc).replace(tzinfo=None)
        assert _make_request(requested_at=naive_now).validate().warnings is None

    def test_unknown_kind_and_source_are_warnings(self):
        meta = RequestMetadata(kind="upscale", source="webhook", message_id=" ")
        result = _make_request(metadata=meta).validate()
        assert result.is_valid is True
        assert result.warnings == [
            "Invalid message ID in metadata",
            "Invalid request type in metadata",
            "Invalid request source in metadata",
        ]


class TestSanitization:
    @pytest.mark.parametrize(
        "prompt, expected",
        [
            ("  a   cute\n\trobot  ", "a cute robot"),
            ("<b>bold</b> cat", "bold cat"),
            ("cat <script>alert(1)</script> dog", "cat dog"),
            ("a > b < c", "a b c"),
            ("visit javascript:alert(1)", "visit alert(1)"),
            ("<img onload=x> hi", "hi"),
            ("robot\x00\x07 arm", "robot arm"),
            ("café au lait", "café au lait"),
        ],
    )
    def test_sanitize_prompt(self, prompt, expected):
        assert _make_request(prompt).sanitize_prompt() == expected

    @pytest.mark.parametrize(
        "prompt",
        [
            "javajavascript:script: trick",
            "java<x>script: tag splice",
            "on<b></b>click= spliced handler",
            "\x00 leading control",
            "a\x00  \x00b",
            "<<script>script>alert(1)<</script>/script>",
            "plain prompt",
        ],
    )
    def test_sanitize_is_idempotent(self, prompt):
        once = _make_request(prompt).sanitize_prompt()
        twice = _make_request(once).sanitize_prompt()
        assert once == twice

    def test_with_sanitized_prompt_returns_new_instance(self):
        original = _make_request("  <i>hello</i>   world ", metadata=RequestMetadata(source="command"))
        sanitized = original.with_sanitized_prompt()
        assert sanitized is not original
        assert sanitized.prompt == "hello world"
        assert original.prompt == "  <i>hello</i>   world "
        assert sanitized.requester_id == original.requester_id
        assert sanitized.group_id == original.group_id
        assert sanitized.requested_at == original.requested_at
        assert sanitized.metadata == original.metadata

    def test_with_metadata_merges(self):
        original = _make_request(metadata=RequestMetadata(source="modal", channel_id="42"))
        updated = original.with_metadata(kind="edit")
        assert updated.metadata == RequestMetadata(source="modal", channel_id="42", kind="edit")
        assert original.metadata.kind is None

    def test_with_metadata_on_request_without_metadata(self):
        updated = _make_request().with_metadata(kind="generate")
        assert updated.metadata == RequestMetadata(kind="generate")

    def test_request_is_frozen(self):
        request = _make_request()
        with pytest.raises(FrozenInstanceError):
            request.prompt = "changed"


def test_create_builds_metadata_and_timestamp():
    request = ImageRequest.create("a fox", USER_ID, GROUP_ID, source="command", channel_id="1")
    assert request.metadata == RequestMetadata(source="command", channel_id="1")
    assert request.validation_config is DEFAULT_VALIDATION_CONFIG
    assert abs((datetime.now(timezone.utc) - request.requested_at).total_seconds()) < 5
