"""Scene-description service with graceful degradation.

Role in pipeline:
    - Receives the uploaded room photo from the core pipeline.
    - Asks the captioning client for a description.
    - Normalizes the provider's response shape to a single string.

Error handling strategy:
    Every failure (transport error, non-2xx status, malformed body, missing
    token, quota) is logged as a warning and replaced by the sentinel
    description. `analyze` never raises. There is no retry.

Determinism:
    Shape normalization is deterministic for a fixed provider payload.
"""

import logging
from typing import Any, Protocol

from roomrelay.config import Settings
from roomrelay.core.errors import ProviderError
from roomrelay.prompting.prompt_builder import SENTINEL_DESCRIPTION
from roomrelay.vision.client import CaptionClient, strip_data_uri


logger = logging.getLogger(__name__)

TEXT_FIELDS = ("generated_text", "caption")


class SceneAnalyzer(Protocol):
    """Minimal async interface required by the pipeline."""

    async def analyze(self, image: str) -> str:
        """Return a scene description or the sentinel."""
        ...


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _field(value: Any) -> str | None:
    if not isinstance(value, dict):
        return None
    for name in TEXT_FIELDS:
        text = _text(value.get(name))
        if text:
            return text
    return None


def extract_description(result: Any) -> str | None:
    """Extract caption text from the shapes captioning providers return.

    Checked in fixed priority order, first non-empty text wins:
        1. list whose first item is a dict with a known text field
        2. dict with a known text field
        3. plain string
        4. list whose first item is a plain string

    Returns:
        The caption, or `None` when no known shape matched.
    """
    first = result[0] if isinstance(result, list) and result else None

    for candidate in (_field(first), _field(result), _text(result), _text(first)):
        if candidate:
            return candidate
    return None


class VisionAnalyzer:
    """Caption-backed `SceneAnalyzer` that never fails the caller."""

    def __init__(self, client: CaptionClient) -> None:
        self.client = client

    async def analyze(self, image: str) -> str:
        image_base64 = strip_data_uri(image)
        if not image_base64:
            logger.warning("Invalid image format, skipping vision analysis")
            return SENTINEL_DESCRIPTION

        try:
            result = await self.client.caption(image_base64)
        except ProviderError as exc:
            logger.warning("Vision API error (%s): %s. Continuing with fallback.", exc.status_code, exc)
            if exc.status_code in (401, 403):
                logger.warning(
                    "Vision authentication failed. Check HF_TOKEN or run without a token (slower)."
                )
            return SENTINEL_DESCRIPTION
        except Exception as exc:
            logger.warning("Vision API call failed: %s. Continuing without image analysis.", exc)
            return SENTINEL_DESCRIPTION

        description = extract_description(result)
        if not description:
            logger.warning("Vision API returned an unrecognized payload: %r", result)
            return SENTINEL_DESCRIPTION

        logger.info("Vision analysis successful: %s", description)
        return description


class DisabledAnalyzer:
    """`SceneAnalyzer` used when no vision provider is configured."""

    async def analyze(self, image: str) -> str:
        return SENTINEL_DESCRIPTION


def build_analyzer(settings: Settings) -> SceneAnalyzer:
    """Construct the analyzer selected by `settings.vision_provider`.

    Unknown providers and a missing endpoint URL disable the step with a
    warning rather than failing startup, since analysis is optional.
    """
    if settings.vision_provider == "none":
        return DisabledAnalyzer()

    if not settings.vision_url:
        logger.warning(
            "Vision provider %r has no endpoint configured; analysis disabled",
            settings.vision_provider,
        )
        return DisabledAnalyzer()

    client = CaptionClient(
        url=settings.vision_url,
        token=settings.vision_token,
        timeout=settings.vision_timeout_seconds,
    )
    return VisionAnalyzer(client)
