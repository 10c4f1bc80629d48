"""Request/result data contracts for `roomrelay.core.pipeline`.

Architectural role:
    Defines the minimal shapes passed between the HTTP adapter, the pipeline
    and the image gateways. None of them outlive a single request.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RedesignRequest:
    """Normalized redesign input produced by the HTTP adapter.

    Attributes:
        image: Data-URI encoded room photo.
        user_prompt: Optional free-text instruction.
        style: Optional style tag (slug or human-readable label).
        room_type: Optional room-type tag (slug or human-readable label).
    """

    image: str
    user_prompt: str | None = None
    style: str | None = None
    room_type: str | None = None


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one gateway dispatch.

    Exactly one of `job` (poll mode) or `image_url` (wait mode) is set.
    """

    job: dict[str, Any] | None = None
    image_url: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the client-facing response body."""
        if self.job is not None:
            return self.job
        return {
            "success": True,
            "output": self.image_url,
            "imageUrl": self.image_url,
        }
