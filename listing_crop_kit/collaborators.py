"""
Interfaces of the external image services.

The rendering core never calls these; a front end uses them to produce a
new source image (generated or upscaled) which is then handed to
``CropSession.load_source``.  Retry and polling policy belong to the
caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Sequence


class UpscaleStatus(str, Enum):
    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in (UpscaleStatus.SUCCEEDED, UpscaleStatus.FAILED, UpscaleStatus.CANCELED)


@dataclass(frozen=True)
class UpscaleJob:
    """Snapshot returned by one poll of an upscale job."""
    id: str
    status: UpscaleStatus
    output_url: str | None = None
    error: str | None = None


class GenerativeFillService(Protocol):
    async def generate(self, prompt: str, references: Sequence[bytes] = ()) -> bytes:
        """Return one generated image; raise with the service's error message on failure."""
        ...


class UpscaleService(Protocol):
    async def start(self, image: bytes, scale: str = "4x", model: str = "High Fidelity V2") -> str:
        """Submit an upscale job and return its identifier."""
        ...

    async def poll(self, job_id: str) -> UpscaleJob:
        ...
