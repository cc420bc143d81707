"""
Tests for the generate-then-store flow.

Vendor calls go through a recording httpx.MockTransport and storage through a
MagicMock bucket, so every test can assert exactly which calls were made.
"""

import base64
import json
import re

import httpx
import pytest

from imagegen.models import GenerationRequest, ReferenceImage
from imagegen.services.errors import (
    GenerationError,
    ImageAPIError,
    InsufficientCreditsError,
    InvalidReferenceImageError,
    MissingCredentialsError,
    UnsupportedModelError,
)

GENERATED_URL = re.compile(r"^https://storage\.googleapis\.com/test-bucket/generated/user-1/\d+\.jpg\?")


def make_request(model: str, **overrides) -> GenerationRequest:
    fields = dict(prompt="a lighthouse at dusk", uid="user-1", model=model)
    fields.update(overrides)
    return GenerationRequest(**fields)


class TestDispatch:
    """Each selector hits its own vendor endpoint."""

    @pytest.mark.asyncio
    async def test_dall_e_fetches_hosted_image(self, make_service, transport, image_bytes, bucket):
        service = make_service(transport)

        result = await service.generate(make_request("dall-e", use_credits=True))

        assert [str(r.url) for r in transport.requests] == [
            "https://api.openai.com/v1/images/generations",
            "https://images.openai.test/img.png",
        ]
        first = transport.requests[0]
        assert first.method == "POST"
        assert first.headers["Authorization"] == "Bearer platform-openai"
        assert json.loads(first.content) == {"prompt": "a lighthouse at dusk", "n": 1, "size": "1024x1024"}
        # The hosted image URL is fetched without the API key
        assert "Authorization" not in transport.requests[1].headers
        assert GENERATED_URL.match(result.image_url)
        bucket.created[0].upload_from_string.assert_called_once_with(image_bytes, content_type="image/jpeg")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "model, path",
        [
            ("stable-diffusion-xl", "stable-diffusion-xl-1024-v1-0"),
            ("playground-v2", "playground-v2-1024px-aesthetic"),
        ],
    )
    async def test_fireworks_models_send_json(self, make_service, transport, model, path):
        service = make_service(transport)

        await service.generate(make_request(model, fireworks_api_key="user-fw"))

        (sent,) = transport.requests
        assert str(sent.url).endswith(f"/accounts/fireworks/models/{path}")
        assert sent.headers["Content-Type"] == "application/json"
        assert sent.headers["Accept"] == "image/jpeg"
        assert sent.headers["Authorization"] == "Bearer user-fw"
        body = json.loads(sent.content)
        assert body["prompt"] == "a lighthouse at dusk"
        assert (body["cfg_scale"], body["steps"], body["seed"], body["safety_check"]) == (7, 30, 0, False)

    @pytest.mark.asyncio
    async def test_stability_sends_multipart(self, make_service, transport):
        service = make_service(transport)

        await service.generate(make_request("stability-sd3-turbo", stability_api_key="user-st"))

        (sent,) = transport.requests
        assert str(sent.url) == "https://api.stability.ai/v2beta/stable-image/generate/sd3"
        assert sent.headers["Content-Type"].startswith("multipart/form-data")
        assert sent.headers["Accept"] == "image/*"
        assert sent.headers["Authorization"] == "Bearer user-st"
        assert b'name="mode"\r\n\r\ntext-to-image' in sent.content
        assert b'name="model"\r\n\r\nsd3-turbo' in sent.content

    @pytest.mark.asyncio
    async def test_reference_uses_image_to_image_and_is_stored(self, make_service, transport, reference, bucket):
        service = make_service(transport)

        result = await service.generate(
            make_request("stable-diffusion-xl", fireworks_api_key="user-fw", reference_image=reference)
        )

        (sent,) = transport.requests
        assert str(sent.url).endswith("/stable-diffusion-xl-1024-v1-0/image_to_image")
        assert b'name="init_image"; filename="sketch.png"' in sent.content
        assert [blob.name.split("/")[0] for blob in bucket.created] == ["generated", "image-references"]
        assert "/image-references/user-1/" in result.image_reference_url

    @pytest.mark.asyncio
    async def test_no_reference_means_single_write(self, make_service, transport, bucket):
        service = make_service(transport)

        result = await service.generate(make_request("playground-v2", fireworks_api_key="k"))

        assert len(bucket.created) == 1
        assert result.image_reference_url is None
        assert bucket.created[0].metadata == {"prompt": "a lighthouse at dusk"}


    @pytest.mark.asyncio
    async def test_dall_e_inline_base64_needs_no_second_call(self, make_service, make_transport, bucket):
        payload = base64.b64encode(b"inline-image").decode()
        transport = make_transport(lambda request: httpx.Response(200, json={"data": [{"b64_json": payload}]}))
        service = make_service(transport)

        await service.generate(make_request("dall-e", use_credits=True))

        assert len(transport.requests) == 1
        bucket.created[0].upload_from_string.assert_called_once_with(b"inline-image", content_type="image/jpeg")


class TestCredentials:
    """Platform key with credits, caller key otherwise."""

    @pytest.mark.asyncio
    async def test_credits_use_platform_key_even_when_user_key_given(self, make_service, transport):
        service = make_service(transport)

        await service.generate(
            make_request("stability-sd3-turbo", use_credits=True, credits=10, stability_api_key="user-st")
        )

        assert transport.requests[0].headers["Authorization"] == "Bearer platform-stability"

    @pytest.mark.asyncio
    async def test_missing_user_key_fails_before_network(self, make_service, transport):
        service = make_service(transport)

        with pytest.raises(MissingCredentialsError):
            await service.generate(make_request("dall-e"))
        assert transport.requests == []


class TestFailures:
    """Every failure is a GenerationError with a readable message."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credits", [0, 1, 1.5])
    async def test_low_credits_fail_fast(self, make_service, transport, bucket, credits):
        service = make_service(transport)

        with pytest.raises(InsufficientCreditsError, match="Not enough credits"):
            await service.generate(make_request("dall-e", use_credits=True, credits=credits))
        assert transport.requests == []
        assert bucket.created == []

    @pytest.mark.asyncio
    async def test_low_balance_ignored_without_credit_flag(self, make_service, transport):
        service = make_service(transport)

        await service.generate(make_request("dall-e", credits=0, openai_api_key="user-openai"))

        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_unknown_model_makes_no_call(self, make_service, transport, bucket):
        service = make_service(transport)

        with pytest.raises(UnsupportedModelError, match="Unsupported model: flux"):
            await service.generate(make_request("flux", use_credits=True))
        assert transport.requests == []
        assert bucket.created == []

    @pytest.mark.asyncio
    async def test_vendor_error_carries_status(self, make_service, make_transport, bucket):
        transport = make_transport(lambda request: httpx.Response(429, text="slow down"))
        service = make_service(transport)

        with pytest.raises(ImageAPIError, match="429") as excinfo:
            await service.generate(make_request("stable-diffusion-xl", use_credits=True))
        assert excinfo.value.status == 429
        assert len(transport.requests) == 1
        assert bucket.created == []

    @pytest.mark.asyncio
    async def test_failed_hosted_image_download(self, make_service, make_transport):
        def handler(request):
            if request.url.host == "api.openai.com":
                return httpx.Response(200, json={"data": [{"url": "https://images.openai.test/gone.png"}]})
            return httpx.Response(404)

        service = make_service(make_transport(handler))

        with pytest.raises(ImageAPIError, match="404"):
            await service.generate(make_request("dall-e", use_credits=True))

    @pytest.mark.asyncio
    async def test_storage_failure_is_wrapped(self, make_service, transport, bucket):
        bucket.blob.side_effect = RuntimeError("bucket unavailable")
        service = make_service(transport)

        with pytest.raises(GenerationError, match="bucket unavailable") as excinfo:
            await service.generate(make_request("stable-diffusion-xl", use_credits=True))
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_reference_upload_failure_keeps_generated_image(
        self, make_service, transport, bucket, reference, image_bytes
    ):
        make_blob = bucket.blob.side_effect

        def blob(name):
            if name.startswith("image-references/"):
                raise RuntimeError("reference write failed")
            return make_blob(name)

        bucket.blob.side_effect = blob
        service = make_service(transport)

        with pytest.raises(GenerationError, match="reference write failed"):
            await service.generate(make_request("playground-v2", use_credits=True, reference_image=reference))
        (stored,) = bucket.created
        assert stored.name.startswith("generated/user-1/")
        stored.upload_from_string.assert_called_once_with(image_bytes, content_type="image/jpeg")
        stored.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_image_reference_is_rejected_before_network(self, make_service, transport):
        service = make_service(transport)
        bad = ReferenceImage(data=b"%PDF-1.7", filename="doc.pdf", content_type="application/pdf")

        with pytest.raises(InvalidReferenceImageError):
            await service.generate(make_request("dall-e", use_credits=True, reference_image=bad))
        assert transport.requests == []
