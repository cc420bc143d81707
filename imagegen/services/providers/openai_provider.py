from __future__ import annotations

import base64
import logging

import httpx

from imagegen.models import ReferenceImage
from imagegen.services.errors import ImageAPIError

from .base import ImageProvider, ProviderRequest, bearer, reference_file

logger = logging.getLogger(__name__)


class OpenAIImageProvider(ImageProvider):
    """DALL-E via the OpenAI images API.

    The API answers with JSON pointing at a hosted image, so decoding
    needs a second request to fetch the bytes.
    """

    name = "openai"
    credential_field = "openai_api_key"

    _BASE_URL = "https://api.openai.com/v1/images"
    _SIZE = "1024x1024"

    def build_request(
        self,
        prompt: str,
        api_key: str,
        *,
        reference: ReferenceImage | None = None,
    ) -> ProviderRequest:
        if reference is not None:
            return ProviderRequest(
                url=f"{self._BASE_URL}/edits",
                headers=bearer(api_key),
                data={"prompt": prompt, "n": "1", "size": self._SIZE},
                files={"image": reference_file(reference)},
            )
        return ProviderRequest(
            url=f"{self._BASE_URL}/generations",
            headers={"Content-Type": "application/json", **bearer(api_key)},
            json_body={"prompt": prompt, "n": 1, "size": self._SIZE},
        )

    async def decode_response(self, response: httpx.Response, client: httpx.AsyncClient) -> bytes:
        try:
            item = response.json()["data"][0]
        except (ValueError, KeyError, IndexError) as exc:
            raise ImageAPIError(response.status_code, "Missing image data in response") from exc

        if item.get("b64_json"):
            return base64.b64decode(item["b64_json"])

        image_url = item.get("url")
        if not image_url:
            raise ImageAPIError(response.status_code, "Missing image URL in response")

        # Hosted image URLs are pre-signed; no auth header
        logger.debug("GET generated image %s", image_url)
        image_resp = await client.get(image_url)
        if image_resp.status_code >= 400:
            raise ImageAPIError(image_resp.status_code, "Failed to download generated image")
        return image_resp.content
