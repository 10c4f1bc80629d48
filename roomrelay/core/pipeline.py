"""Request orchestration for redesign operations.

Architectural role:
    Runs one redesign request through vision analysis, prompt composition and
    image generation, and relays status lookups. All collaborators are passed
    in; this module holds no process-wide clients.

Control flow (`start_redesign`):
    1. Validate that an image is present (no provider call otherwise).
    2. Ask the analyzer for a scene description (never fails).
    3. Compose the prompt.
    4. Dispatch to the gateway and return its `GenerationResult`.

Control flow (`get_redesign`):
    1. Validate the job identifier.
    2. Fetch the provider job object and return it unchanged.

Error handling strategy:
    - Local validation failures raise `InvalidInputError`.
    - Gateway failures propagate unchanged for mapping by the HTTP adapter.
"""

import logging
import re

from roomrelay.core.errors import InvalidInputError
from roomrelay.core.types import GenerationResult, RedesignRequest
from roomrelay.image.service import GenerationGateway
from roomrelay.prompting.prompt_builder import build_redesign_prompt
from roomrelay.vision.service import SceneAnalyzer


logger = logging.getLogger(__name__)

JOB_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class RedesignPipeline:
    """Vision -> prompt -> generation for one request at a time.

    Instances keep only references to their collaborators, so one pipeline can
    serve concurrent requests.
    """

    def __init__(
        self,
        analyzer: SceneAnalyzer,
        gateway: GenerationGateway,
        debug: bool = False,
    ) -> None:
        self.analyzer = analyzer
        self.gateway = gateway
        self.debug = debug

    async def compose_prompt(self, request: RedesignRequest) -> str:
        description = await self.analyzer.analyze(request.image)
        prompt = build_redesign_prompt(
            user_prompt=request.user_prompt,
            style=request.style,
            room_type=request.room_type,
            description=description,
        )
        if self.debug:
            logger.info("Composed prompt: %s", prompt)
        return prompt

    async def start_redesign(self, request: RedesignRequest) -> GenerationResult:
        if not request.image or not request.image.strip():
            raise InvalidInputError("Image is required")

        prompt = await self.compose_prompt(request)
        return await self.gateway.generate(request.image, prompt)

    async def get_redesign(self, job_id) -> dict:
        if not job_id or not isinstance(job_id, str):
            raise InvalidInputError("Prediction ID is required")
        if not JOB_ID_PATTERN.fullmatch(job_id):
            raise InvalidInputError("Prediction ID is invalid")

        return await self.gateway.get_status(job_id)
