import io
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from roomrelay.api.http_api import create_app
from roomrelay.config import Settings
from roomrelay.core.types import GenerationResult
from roomrelay.prompting.prompt_builder import SENTINEL_DESCRIPTION


class FakeAnalyzer:
    def __init__(self, description=SENTINEL_DESCRIPTION):
        self.description = description
        self.calls = []

    async def analyze(self, image):
        self.calls.append(image)
        return self.description


class FakeGateway:
    def __init__(self, mode="wait", image_url="https://cdn.example/out.png", job=None, error=None):
        self.mode = mode
        self.image_url = image_url
        self.job = job or {"id": "abc123", "status": "starting"}
        self.error = error
        self.generate_calls = []
        self.status_calls = []

    async def generate(self, image, prompt):
        self.generate_calls.append((image, prompt))
        if self.error is not None:
            raise self.error
        if self.mode == "poll":
            return GenerationResult(job=self.job)
        return GenerationResult(image_url=self.image_url)

    async def get_status(self, job_id):
        self.status_calls.append(job_id)
        if self.error is not None:
            raise self.error
        return dict(self.job, id=job_id)


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def settings():
    return Settings(vision_provider="none", debug=True)


@pytest.fixture
def make_client(settings):
    def _make(analyzer=None, gateway=None, **overrides):
        app_settings = replace(settings, **overrides)
        app = create_app(app_settings, analyzer=analyzer or FakeAnalyzer(), gateway=gateway or FakeGateway())
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client, analyzer, gateway):
    return make_client(analyzer=analyzer, gateway=gateway)


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 180, 150)).save(buffer, format="PNG")
    return buffer.getvalue()
