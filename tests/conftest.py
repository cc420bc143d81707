"""Shared fixtures: settings, a fake GCS bucket and a recording HTTP transport."""

import io
from typing import Callable, List
from unittest.mock import MagicMock

import httpx
import pytest
from PIL import Image

from imagegen.config import Settings
from imagegen.models import ReferenceImage
from imagegen.services.generation import ImageGenerationService
from imagegen.services.storage import StorageService


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="platform-openai",
        fireworks_api_key="platform-fireworks",
        stability_api_key="platform-stability",
        bucket_name="test-bucket",
        normalize_jpeg=False,
    )


@pytest.fixture
def bucket():
    """MagicMock bucket whose blobs sign to a URL containing their path."""
    bucket = MagicMock(name="bucket")
    bucket.created = []

    def make_blob(name):
        blob = MagicMock(name="blob")
        blob.name = name
        blob.metadata = None
        blob.generate_signed_url.return_value = (
            f"https://storage.googleapis.com/test-bucket/{name}?X-Goog-Signature=sig"
        )
        bucket.created.append(blob)
        return blob

    bucket.blob.side_effect = make_blob
    return bucket


@pytest.fixture
def storage_service(bucket, settings) -> StorageService:
    return StorageService(bucket, settings=settings)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def image_bytes() -> bytes:
    return b"\xff\xd8\xff\xe0generated-image"


@pytest.fixture
def transport(image_bytes) -> RecordingTransport:
    """Vendor stub: JSON for OpenAI, raw bytes for everyone else."""

    def handler(request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host == "api.openai.com":
            return httpx.Response(200, json={"data": [{"url": "https://images.openai.test/img.png"}]})
        if host == "images.openai.test":
            return httpx.Response(200, content=image_bytes)
        return httpx.Response(200, content=image_bytes, headers={"Content-Type": "image/jpeg"})

    return RecordingTransport(handler)


@pytest.fixture
def make_service(storage_service, settings) -> Callable[[httpx.AsyncBaseTransport], ImageGenerationService]:
    def _make(transport: httpx.AsyncBaseTransport) -> ImageGenerationService:
        return ImageGenerationService(storage_service, settings=settings, transport=transport)

    return _make


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (8, 8), (255, 0, 0, 128)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def reference(png_bytes) -> ReferenceImage:
    return ReferenceImage(data=png_bytes, filename="sketch.png", content_type="image/png")


@pytest.fixture
def make_transport():
    return RecordingTransport
