from __future__ import annotations

from typing import Any

from imagegen.models import ReferenceImage

from .base import ImageProvider, ProviderRequest, bearer, reference_file


class FireworksImageProvider(ImageProvider):
    """Fireworks image generation for a single hosted model family.

    Both text-to-image and image-to-image respond with the JPEG bytes
    directly.
    """

    name = "fireworks"
    credential_field = "fireworks_api_key"

    _BASE_URL = "https://api.fireworks.ai/inference/v1/image_generation/accounts/fireworks/models"

    TEXT_TO_IMAGE_DEFAULTS: dict[str, Any] = {
        "cfg_scale": 7,
        "height": 1024,
        "width": 1024,
        "samples": 1,
        "steps": 30,
        "seed": 0,
        "safety_check": False,
    }
    IMAGE_TO_IMAGE_DEFAULTS: dict[str, str] = {
        "init_image_mode": "IMAGE_STRENGTH",
        "image_strength": "0.5",
        "cfg_scale": "7",
        "seed": "1",
        "steps": "30",
        "safety_check": "false",
    }

    def __init__(self, model_path: str) -> None:
        self.model_path = model_path

    @property
    def endpoint(self) -> str:
        return f"{self._BASE_URL}/{self.model_path}"

    def build_request(
        self,
        prompt: str,
        api_key: str,
        *,
        reference: ReferenceImage | None = None,
    ) -> ProviderRequest:
        if reference is not None:
            return ProviderRequest(
                url=f"{self.endpoint}/image_to_image",
                headers={"Accept": "image/jpeg", **bearer(api_key)},
                data={"prompt": prompt, **self.IMAGE_TO_IMAGE_DEFAULTS},
                files={"init_image": reference_file(reference)},
            )
        return ProviderRequest(
            url=self.endpoint,
            headers={
                "Content-Type": "application/json",
                "Accept": "image/jpeg",
                **bearer(api_key),
            },
            json_body={**self.TEXT_TO_IMAGE_DEFAULTS, "prompt": prompt},
        )
