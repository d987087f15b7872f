"""
Image buffer checks for the edit path: size limits, MIME whitelist and
magic-byte sniffing. The declared MIME type is never trusted on its own.
"""
DEFAULT_MIME_TYPE = "image/png"
DEFAULT_MAX_IMAGE_BYTES = 25 * 1024 * 1024

SUPPORTED_MIME_TYPES = ("image/png", "image/jpeg", "image/webp")

PNG_SIGNATURE = bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A])
JPEG_SIGNATURE = bytes([0xFF, 0xD8])
WEBP_RIFF = b"RIFF"
WEBP_TAG = b"WEBP"  # at offset 8

# Enough to hold the longest fixed header we sniff (PNG)
MIN_HEADER_BYTES = len(PNG_SIGNATURE)


def validate_image_buffer(
    buffer: bytes,
    mime_type: str = DEFAULT_MIME_TYPE,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> str | None:
    """
    Check buffer against size limits and the declared MIME type.

    Returns the first failing check's message, or None when the buffer is usable.
    """
    if not isinstance(buffer, (bytes, bytearray, memoryview)):
        return "Invalid image buffer: not a bytes object"

    size = len(buffer)
    if size == 0:
        return "Invalid image buffer: buffer is empty"

    if size < MIN_HEADER_BYTES:
        return "Image buffer too small to contain valid image headers"

    if size > max_bytes:
        return f"Image too large: {size} bytes exceeds {max_bytes} bytes limit"

    mime = (mime_type or "").lower()
    if mime not in SUPPORTED_MIME_TYPES:
        return (
            f"Unsupported MIME type: {mime_type}. "
            f"Supported types: {', '.join(SUPPORTED_MIME_TYPES)}"
        )

    return _check_magic_bytes(bytes(buffer[:12]), mime)


def _check_magic_bytes(header: bytes, mime: str) -> str | None:
    if mime == "image/png":
        if header[:8] != PNG_SIGNATURE:
            return "Buffer does not contain a valid PNG header"
    elif mime == "image/jpeg":
        if header[:2] != JPEG_SIGNATURE:
            return "Buffer does not contain a valid JPEG header"
    elif mime == "image/webp":
        # Short buffers only get the RIFF check
        if header[:4] != WEBP_RIFF or (len(header) >= 12 and header[8:12] != WEBP_TAG):
            return "Buffer does not contain a valid WebP header"
    return None
