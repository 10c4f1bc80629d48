"""
HTTP API adapter for the redesign relay.

Architectural role:
- Expose the redesign start and status endpoints.
- Enforce adapter-level input validation and the request size limit.
- Delegate redesign work to `roomrelay.core.pipeline.RedesignPipeline`.
- Normalize failures to `{error, details}` JSON bodies.

Endpoint responsibilities:
- `POST /api/start-redesign`: parse a JSON or multipart body, validate the
  image, run the pipeline, respond 201.
- `GET /api/get-redesign`: relay the provider job object for `?id=`.
- `GET /health`: liveness probe reporting the active generation mode.

Input validation behavior:
- Missing image -> HTTP 400, no provider call.
- Missing/invalid id -> HTTP 400, no provider call.
- Unparseable body -> HTTP 400.
- Body above `MAX_BODY_MB` -> HTTP 413.

Error handling strategy:
- Generation failures are mapped by `map_generation_error`
  (429/404/422/400, everything else 500).
- Status failures always map to 500.
- Unknown/invalid style and room-type tags are corrected, not rejected.

Side effects:
- Outbound provider calls only; no state is stored between requests.
"""

import logging
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException

from roomrelay.config import Settings
from roomrelay.core.errors import InvalidInputError, map_generation_error, map_status_error
from roomrelay.core.pipeline import RedesignPipeline
from roomrelay.core.types import RedesignRequest
from roomrelay.image.service import GenerationGateway, build_gateway
from roomrelay.vision.service import SceneAnalyzer, build_analyzer
from roomrelay.api.uploads import (
    PayloadTooLargeError,
    bytes_to_data_uri,
    check_size,
    normalize_image_field,
)


logger = logging.getLogger(__name__)


# ============================================================
# Request Schema
# ============================================================

class RedesignPayload(BaseModel):
    """
    JSON body for `POST /api/start-redesign`.

    Tag and prompt fields accept any JSON value; non-string values fall back
    to defaults in the prompt builder instead of failing validation.
    """

    model_config = ConfigDict(extra="ignore")

    image: Any = None
    user_prompt: Any = Field(
        default=None, validation_alias=AliasChoices("userPrompt", "prompt", "user_prompt")
    )
    style: Any = None
    room_type: Any = Field(
        default=None, validation_alias=AliasChoices("roomType", "room_type")
    )


def _text_or_none(value) -> str | None:
    return value if isinstance(value, str) else None


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# ============================================================
# Body parsing
# ============================================================

async def _read_json(request: Request) -> RedesignRequest:
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidInputError("Request body must be valid JSON") from exc

    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object")

    payload = RedesignPayload.model_validate(body)
    return RedesignRequest(
        image=normalize_image_field(payload.image) or "",
        user_prompt=_text_or_none(payload.user_prompt),
        style=_text_or_none(payload.style),
        room_type=_text_or_none(payload.room_type),
    )


async def _read_form(request: Request, limit: int) -> RedesignRequest:
    try:
        form = await request.form()
    except HTTPException as exc:
        raise InvalidInputError(str(exc.detail or "Invalid multipart data.")) from exc
    try:
        image_field = form.get("image")
        if isinstance(image_field, UploadFile):
            image = bytes_to_data_uri(await image_field.read(), limit)
        else:
            image = normalize_image_field(image_field) or ""

        return RedesignRequest(
            image=image,
            user_prompt=_text_or_none(form.get("userPrompt") or form.get("prompt")),
            style=_text_or_none(form.get("style")),
            room_type=_text_or_none(form.get("roomType") or form.get("room_type")),
        )
    finally:
        await form.close()


async def parse_redesign_request(request: Request, limit: int) -> RedesignRequest:
    """Parse a JSON or multipart start-redesign body into a `RedesignRequest`.

    Raises:
        PayloadTooLargeError: Declared or actual body size above `limit`.
        InvalidInputError: Unparseable body or malformed image.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit():
        check_size(int(declared), limit)

    body = await request.body()
    check_size(len(body), limit)

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        return await _read_form(request, limit)
    return await _read_json(request)


# ============================================================
# Application factory
# ============================================================

def create_app(
    settings: Settings | None = None,
    analyzer: SceneAnalyzer | None = None,
    gateway: GenerationGateway | None = None,
) -> FastAPI:
    """
    Build the relay application with explicitly constructed collaborators.

    Args:
        settings: Runtime configuration; read from the environment when omitted.
        analyzer: Scene analyzer; built from `settings` when omitted.
        gateway: Generation gateway; built from `settings` when omitted.

    Returns:
        Configured FastAPI application. The pipeline is stored on
        `app.state.pipeline`.
    """
    settings = settings or Settings.from_env()
    analyzer = analyzer or build_analyzer(settings)
    gateway = gateway or build_gateway(settings)
    pipeline = RedesignPipeline(analyzer, gateway, debug=settings.debug)

    app = FastAPI(
        title="Room Redesign Relay",
        description="Relays room photos and style prompts to image-generation providers.",
    )
    app.state.settings = settings
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    @app.post("/api/start-redesign")
    async def start_redesign(request: Request):
        """
        Start one redesign.

        Returns 201 with the provider job (poll mode) or
        `{success, output, imageUrl}` (wait mode).
        """
        try:
            redesign_request = await parse_redesign_request(request, settings.max_body_bytes)
        except PayloadTooLargeError as exc:
            return _error(413, "Request body too large", str(exc))
        except InvalidInputError as exc:
            return _error(400, str(exc))

        try:
            result = await pipeline.start_redesign(redesign_request)
        except InvalidInputError as exc:
            return _error(400, str(exc))
        except Exception as exc:
            logger.exception("Error starting redesign")
            status_code, body = map_generation_error(exc)
            return JSONResponse(status_code=status_code, content=body)

        return JSONResponse(status_code=201, content=result.to_payload())

    @app.get("/api/get-redesign")
    async def get_redesign(id: str | None = None):
        """Relay the provider's current job object for `id`."""
        try:
            prediction = await pipeline.get_redesign(id)
        except InvalidInputError as exc:
            return _error(400, str(exc))
        except Exception as exc:
            logger.exception("Error getting redesign")
            status_code, body = map_status_error(exc)
            return JSONResponse(status_code=status_code, content=body)

        return JSONResponse(status_code=200, content=prediction)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "mode": gateway.mode}

    return app
