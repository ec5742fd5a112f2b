import asyncio

from conftest import make_solid, to_png_bytes
from listing_crop_kit.collaborators import UpscaleJob, UpscaleStatus
from listing_crop_kit.session import CropSession


class FakeUpscaler:
    """Finishes after two polls and returns the image at twice the size."""

    def __init__(self):
        self.polls = 0

    async def start(self, image, scale="4x", model="High Fidelity V2"):
        self.image = image
        return "job-1"

    async def poll(self, job_id):
        self.polls += 1
        if self.polls < 2:
            return UpscaleJob(job_id, UpscaleStatus.PROCESSING)
        return UpscaleJob(job_id, UpscaleStatus.SUCCEEDED, output_url="memory://job-1")


def test_terminal_states():
    assert {s for s in UpscaleStatus if s.is_terminal} == {
        UpscaleStatus.SUCCEEDED, UpscaleStatus.FAILED, UpscaleStatus.CANCELED,
    }
    assert UpscaleStatus("processing") is UpscaleStatus.PROCESSING


def test_upscaled_image_becomes_new_source(small_catalog):
    session = CropSession(make_solid(50, 50), small_catalog)
    asyncio.run(session.apply())
    upscaler = FakeUpscaler()

    async def upscale():
        job_id = await upscaler.start(to_png_bytes(session.source))
        job = await upscaler.poll(job_id)
        while not job.status.is_terminal:
            job = await upscaler.poll(job_id)
        return job

    job = asyncio.run(upscale())
    assert job.status is UpscaleStatus.SUCCEEDED
    assert upscaler.polls == 2

    session.load_source(make_solid(100, 100, (0, 255, 0, 255)))
    assert session.source.size == (100, 100)
    assert len(session.results) == 0
