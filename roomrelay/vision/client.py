"""Captioning-provider HTTP client.

Processing flow:
    1. Strip the data-URI prefix from the image payload.
    2. Submit `{"inputs": <base64>}` to the configured inference endpoint.
    3. Return the parsed JSON body or raise on non-2xx status.

Error handling strategy:
    - Non-2xx responses raise `ProviderError` carrying the status and body text.
    - Transport failures propagate as `httpx` exceptions.
    Callers (`roomrelay.vision.service`) are responsible for degrading.

Security considerations:
    - Exceptions may include upstream provider response bodies.
"""

import logging
from typing import Any

import httpx

from roomrelay.core.errors import ProviderError


logger = logging.getLogger(__name__)

DATA_URI_MARKER = ";base64,"


def strip_data_uri(image: str) -> str:
    """Return the base64 body of a data URI, or the input when it has no prefix."""
    if not isinstance(image, str):
        return ""
    return image.split(DATA_URI_MARKER)[-1].strip()


class CaptionClient:
    """Async client for a Hugging Face style image-to-text endpoint."""

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def caption(self, image_base64: str) -> Any:
        """Send one captioning request and return the decoded JSON body.

        Raises:
            ProviderError: For non-2xx responses.
            httpx.RequestError: For transport failures.
            ValueError: When the body is not valid JSON.
        """
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(
                self.url,
                headers=self._headers(),
                json={"inputs": image_base64},
            )

        if response.status_code >= 400:
            raise ProviderError(
                f"Vision request failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        return response.json()
