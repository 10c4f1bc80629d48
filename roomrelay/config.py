"""Provider/runtime configuration for the relay.

Architectural role:
    Centralizes provider selection, endpoint tables, and credential lookup for
    `roomrelay.vision`, `roomrelay.image`, and the HTTP adapter.

Resolution flow:
    - `load_dotenv()` populates the process environment from `.env` at import.
    - `Settings.from_env()` snapshots the environment into an immutable object.
    - Provider tables map provider names to endpoints and key files.

Determinism:
    Deterministic for a fixed process environment and key files. Values are
    read when `Settings.from_env()` is called, not at import time, so tests can
    build settings from an explicit mapping.

Failure behavior:
    Missing credentials are represented as `None`. The image client rejects a
    missing token only when a provider call is attempted; the vision client
    simply omits the `Authorization` header.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_PORT = 3001
DEFAULT_MAX_BODY_MB = 10

# Image generation provider table consumed by `roomrelay.image.client`.
# `modes` lists the dispatch modes the provider can serve.
IMAGE_PROVIDERS = {

    "replicate": {
        "url": "https://api.replicate.com/v1",
        "key_file": "config/replicate.key",
        "default_model": (
            "adirik/interior-design:"
            "76604baddc85b1b4616e1c6475eca080da339c8875bd4996705440484a6eac38"
        ),
        "modes": ("poll", "wait"),
    },

}

# Vision/captioning provider table consumed by `roomrelay.vision.client`.
VISION_PROVIDERS = {

    "huggingface": {
        "url": (
            "https://api-inference.huggingface.co/models/"
            "Salesforce/blip-image-captioning-large"
        ),
        "key_file": "config/hf.key",
    },

    "none": {
        "url": None,
        "key_file": None,
    },

}


def load_key(path, env_name=None, environ=None):
    """Load an API key from an environment override or a key file.

    Resolution order:
        1. `env_name` when given, otherwise a name inferred from the file stem
           (`config/replicate.key` -> `REPLICATE_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.
        env_name: Explicit environment variable to consult first.
        environ: Mapping used instead of `os.environ`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - Missing file returns `None`.
        - Whitespace-only values count as missing.
    """
    environ = os.environ if environ is None else environ

    if env_name:
        env_value = (environ.get(env_name) or "").strip()
        if env_value:
            return env_value

    if not path:
        return None

    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = (environ.get(key_name) or "").strip()
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None


def _as_bool(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration for one relay process.

    Relevant environment variables:
        - `HOST`, `PORT`, `FRONTEND_URL`
        - `IMAGE_PROVIDER`, `IMAGE_MODEL`, `REPLICATE_API_TOKEN`
        - `GENERATION_MODE`, `POLL_INTERVAL_SECONDS`, `HTTP_TIMEOUT_SECONDS`
        - `VISION_PROVIDER`, `VISION_MODEL_URL`, `HF_TOKEN`,
          `VISION_TIMEOUT_SECONDS`
        - `MAX_BODY_MB`, `LOG_LEVEL`, `DEBUG`
    """

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    frontend_url: str = "*"

    image_provider: str = "replicate"
    image_model: str = IMAGE_PROVIDERS["replicate"]["default_model"]
    image_api_token: Optional[str] = None
    generation_mode: str = "wait"
    poll_interval_seconds: float = 2.0
    http_timeout_seconds: float = 300.0

    vision_provider: str = "huggingface"
    vision_url: Optional[str] = VISION_PROVIDERS["huggingface"]["url"]
    vision_token: Optional[str] = None
    vision_timeout_seconds: float = 30.0

    max_body_mb: int = DEFAULT_MAX_BODY_MB
    log_level: str = "INFO"
    debug: bool = False

    @property
    def max_body_bytes(self) -> int:
        return self.max_body_mb * 1024 * 1024

    @property
    def allowed_origins(self) -> list:
        return [origin.strip() for origin in self.frontend_url.split(",") if origin.strip()]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Unknown provider names are kept as-is; they are rejected when the
        corresponding client is constructed.
        """
        env = os.environ if environ is None else environ

        image_provider = env.get("IMAGE_PROVIDER", "replicate").strip().lower()
        image_config = IMAGE_PROVIDERS.get(image_provider, {})
        vision_provider = env.get("VISION_PROVIDER", "huggingface").strip().lower()
        vision_config = VISION_PROVIDERS.get(vision_provider, {})

        return cls(
            host=env.get("HOST", "0.0.0.0"),
            port=int(env.get("PORT", DEFAULT_PORT)),
            frontend_url=env.get("FRONTEND_URL") or "*",
            image_provider=image_provider,
            image_model=env.get("IMAGE_MODEL") or image_config.get("default_model", ""),
            image_api_token=load_key(
                image_config.get("key_file"), env_name="REPLICATE_API_TOKEN", environ=env
            ),
            generation_mode=env.get("GENERATION_MODE", "wait").strip().lower(),
            poll_interval_seconds=float(env.get("POLL_INTERVAL_SECONDS", "2")),
            http_timeout_seconds=float(env.get("HTTP_TIMEOUT_SECONDS", "300")),
            vision_provider=vision_provider,
            vision_url=env.get("VISION_MODEL_URL") or vision_config.get("url"),
            vision_token=load_key(
                vision_config.get("key_file"), env_name="HF_TOKEN", environ=env
            ),
            vision_timeout_seconds=float(env.get("VISION_TIMEOUT_SECONDS", "30")),
            max_body_mb=int(env.get("MAX_BODY_MB", DEFAULT_MAX_BODY_MB)),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            debug=_as_bool(env.get("DEBUG")),
        )
