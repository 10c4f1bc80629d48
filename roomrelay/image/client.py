"""Replicate-specific image-generation client.

Processing flow:
    1. Resolve the create endpoint from the model reference
       (`owner/name:version` -> `/predictions` with `version`,
       bare `owner/name` -> `/models/owner/name/predictions`).
    2. Submit the prediction input (image data URI + prompt).
    3. Optionally poll the prediction until it reaches a terminal state.

Base64 and temporary files:
    - The image is forwarded as a data URI; no decoding happens here.
    - No temporary files are created.

Error handling strategy:
    - Missing token raises `ProviderError` (401) before any network call.
    - Non-2xx responses raise `ProviderError` with status, code and detail.
    - Failed status checks while waiting raise a status-less `ProviderError`.
    - Predictions ending as `failed`/`canceled` raise `ProviderError` with no
      status, which maps to 500 upstream.
    - Transport failures propagate as `httpx` exceptions.

Performance characteristics:
    - Poll loop has no max-attempt budget; each request is bounded only by the
      transport timeout.
"""

import asyncio
import logging
from typing import Any

import httpx

from roomrelay.core.errors import ProviderError


logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("succeeded", "failed", "canceled")


class ReplicateClient:
    """Async client for the Replicate predictions API."""

    def __init__(
        self,
        api_token: str | None,
        model: str,
        base_url: str = "https://api.replicate.com/v1",
        timeout: float = 300.0,
        poll_interval: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_token = api_token
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._transport = transport

    def _headers(self, wait: bool = False) -> dict[str, str]:
        if not self.api_token:
            raise ProviderError("REPLICATE_API_TOKEN is not configured", status_code=401)

        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }
        if wait:
            headers["Prefer"] = "wait"
        return headers

    def _create_target(self, prediction_input: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        model, _, version = self.model.partition(":")
        if version:
            return f"{self.base_url}/predictions", {"version": version, "input": prediction_input}
        return f"{self.base_url}/models/{model}/predictions", {"input": prediction_input}

    async def _request(self, method: str, url: str, headers: dict[str, str], json_body=None) -> dict:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.request(method, url, headers=headers, json=json_body)

        if response.status_code >= 400:
            raise _provider_error(response)

        return response.json()

    async def create_prediction(self, prediction_input: dict[str, Any], wait: bool = False) -> dict:
        """Create one prediction and return the provider's job object.

        Args:
            prediction_input: Model input (`image`, `prompt`).
            wait: Ask the provider to hold the response until the prediction
                finishes (bounded by the provider's own sync window).
        """
        headers = self._headers(wait=wait)
        url, body = self._create_target(prediction_input)
        prediction = await self._request("POST", url, headers, json_body=body)
        logger.info(
            "Created prediction id=%s status=%s",
            prediction.get("id"),
            prediction.get("status"),
        )
        return prediction

    async def get_prediction(self, prediction_id: str) -> dict:
        """Fetch the current state of a prediction verbatim."""
        headers = self._headers()
        return await self._request("GET", f"{self.base_url}/predictions/{prediction_id}", headers)

    async def run(self, prediction_input: dict[str, Any]) -> Any:
        """Create a prediction, wait for a terminal state, return its output.

        Raises:
            ProviderError: Non-2xx responses, or a `failed`/`canceled` prediction.
        """
        prediction = await self.create_prediction(prediction_input, wait=True)

        while prediction.get("status") not in TERMINAL_STATUSES:
            prediction_id = prediction.get("id")
            if not prediction_id:
                raise ProviderError("Provider did not return a prediction id.")
            await asyncio.sleep(self.poll_interval)
            try:
                prediction = await self.get_prediction(prediction_id)
            except ProviderError as exc:
                # status-less so a failed poll is never reported as a model/input error
                raise ProviderError(
                    f"Status check for prediction {prediction_id} failed: {exc.message}",
                    payload=exc.payload,
                ) from exc

        if prediction.get("status") != "succeeded":
            raise ProviderError(
                f"Prediction {prediction.get('status')}: {prediction.get('error') or 'no error details'}",
                payload=prediction,
            )

        return prediction.get("output")


def _provider_error(response: httpx.Response) -> ProviderError:
    """Build a `ProviderError` from an upstream error response."""
    payload = None
    detail = response.text
    code = None
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        detail = payload.get("detail") or payload.get("title") or detail
        code = payload.get("code")

    return ProviderError(
        str(detail or f"HTTP {response.status_code}"),
        status_code=response.status_code,
        code=code,
        payload=payload,
    )
