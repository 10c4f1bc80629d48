"""
Upload normalization utilities for the HTTP adapter.

Architectural role:
- Convert the two accepted image encodings (JSON data-URI string, multipart
  file upload) into a single data-URI string.
- Enforce the request size limit and basic image validity before any provider
  call.

Processing lifecycle (multipart):
1. Read the uploaded bytes.
2. Reject empty uploads as a missing image.
3. Verify the bytes decode as an image with Pillow and detect the format.
4. Encode as `data:<mime>;base64,<payload>`.

Error handling strategy:
- Validation failures raise `InvalidInputError` (mapped to HTTP 400).
- Oversized payloads raise `PayloadTooLargeError` (mapped to HTTP 413).

Side effects:
- None. No temporary files are written.
"""

import base64
import io

from PIL import Image, UnidentifiedImageError

from roomrelay.core.errors import InvalidInputError


DEFAULT_MIME = "image/png"


class PayloadTooLargeError(InvalidInputError):
    """Request body exceeds the configured size limit."""


def check_size(size: int | None, limit: int) -> None:
    if size is not None and size > limit:
        raise PayloadTooLargeError(
            f"Request body exceeds {limit // (1024 * 1024)} MB limit"
        )


def sniff_mime(data: bytes) -> str:
    """Return the MIME type of encoded image bytes.

    Raises:
        InvalidInputError: When Pillow cannot identify the bytes as an image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            image_format = img.format
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InvalidInputError("Uploaded file is not a valid image") from exc

    return Image.MIME.get(image_format or "", DEFAULT_MIME)


def bytes_to_data_uri(data: bytes, limit: int) -> str:
    """Validate uploaded image bytes and encode them as a data URI."""
    if not data:
        raise InvalidInputError("Image is required")
    check_size(len(data), limit)

    mime = sniff_mime(data)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def normalize_image_field(value) -> str | None:
    """Return a JSON `image` field as a stripped string, or `None` when absent.

    Raises:
        InvalidInputError: For non-string values.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInputError("Image must be a data URI string")
    return value.strip() or None
