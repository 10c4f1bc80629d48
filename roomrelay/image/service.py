"""Image-generation gateways used by the core pipeline.

Role in pipeline:
    - Receives the image data URI and composed prompt from orchestration.
    - Dispatches exactly one generation call to the configured provider.
    - Returns a `GenerationResult`: the provider job (poll mode) or a resolved
      image URL (wait mode).

Mode selection:
    One `GenerationGateway` interface, two implementations. The mode comes from
    configuration and the provider's declared capabilities, never from the
    request.

Error handling strategy:
    Exceptions from the provider client are propagated unchanged; the HTTP
    adapter maps them to client statuses.
"""

import logging
from typing import Any, Protocol

from roomrelay.config import IMAGE_PROVIDERS, Settings
from roomrelay.core.types import GenerationResult
from roomrelay.image.client import ReplicateClient


logger = logging.getLogger(__name__)


class PredictionProvider(Protocol):
    """Provider operations the gateways rely on."""

    async def create_prediction(self, prediction_input: dict[str, Any], wait: bool = False) -> dict:
        ...

    async def get_prediction(self, prediction_id: str) -> dict:
        ...

    async def run(self, prediction_input: dict[str, Any]) -> Any:
        ...


class GenerationGateway(Protocol):
    """Single dispatch interface for both poll and wait modes."""

    mode: str

    async def generate(self, image: str, prompt: str) -> GenerationResult:
        ...

    async def get_status(self, job_id: str) -> dict:
        ...


def build_input(image: str, prompt: str) -> dict[str, Any]:
    return {"image": image, "prompt": prompt}


def normalize_output(output: Any) -> str:
    """Resolve a provider output value to a URL string.

    Checked in order:
        1. URL accessor (`url` attribute, called when callable)
        2. plain string
        3. first element of a non-empty list, resolved recursively
        4. `str(output)`
    """
    accessor = getattr(output, "url", None)
    if callable(accessor):
        accessor = accessor()
    if accessor is not None and str(accessor):
        return str(accessor)

    if isinstance(output, str):
        return output

    if isinstance(output, (list, tuple)) and output:
        return normalize_output(output[0])

    return str(output)


class _BaseGateway:
    mode = ""

    def __init__(self, provider: PredictionProvider) -> None:
        self.provider = provider

    async def get_status(self, job_id: str) -> dict:
        return await self.provider.get_prediction(job_id)


class PollingGateway(_BaseGateway):
    """Create a job and return it immediately; the client polls for status."""

    mode = "poll"

    async def generate(self, image: str, prompt: str) -> GenerationResult:
        job = await self.provider.create_prediction(build_input(image, prompt))
        return GenerationResult(job=job)


class WaitingGateway(_BaseGateway):
    """Block until the provider finishes and return the output URL."""

    mode = "wait"

    async def generate(self, image: str, prompt: str) -> GenerationResult:
        output = await self.provider.run(build_input(image, prompt))
        image_url = normalize_output(output)
        logger.info("Generation finished: %s", image_url)
        return GenerationResult(image_url=image_url)


GATEWAYS = {
    PollingGateway.mode: PollingGateway,
    WaitingGateway.mode: WaitingGateway,
}


def select_mode(requested: str, supported) -> str:
    """Return `requested` when the provider supports it, else its first mode."""
    if requested in supported:
        return requested
    fallback = supported[0]
    logger.warning(
        "Generation mode %r not supported by provider (supports %s); using %r",
        requested,
        ", ".join(supported),
        fallback,
    )
    return fallback


def build_gateway(settings: Settings, provider: PredictionProvider | None = None) -> GenerationGateway:
    """Construct the gateway selected by configuration.

    Raises:
        ValueError: Unknown image provider.
    """
    provider_config = IMAGE_PROVIDERS.get(settings.image_provider)
    if not provider_config:
        raise ValueError(f"Unknown image provider: {settings.image_provider}")

    if provider is None:
        provider = ReplicateClient(
            api_token=settings.image_api_token,
            model=settings.image_model,
            base_url=provider_config["url"],
            timeout=settings.http_timeout_seconds,
            poll_interval=settings.poll_interval_seconds,
        )

    mode = select_mode(settings.generation_mode, provider_config["modes"])
    return GATEWAYS[mode](provider)
