from __future__ import annotations

from imagegen.models import ReferenceImage

from .base import ImageProvider, ProviderRequest, bearer, reference_file


class StabilityImageProvider(ImageProvider):
    name = "stability"
    credential_field = "stability_api_key"

    _ENDPOINT = "https://api.stability.ai/v2beta/stable-image/generate/sd3"
    _MODEL = "sd3-turbo"

    def build_request(
        self,
        prompt: str,
        api_key: str,
        *,
        reference: ReferenceImage | None = None,
    ) -> ProviderRequest:
        data = {"prompt": prompt, "output_format": "png", "model": self._MODEL}
        if reference is not None:
            data.update(mode="image-to-image", strength="0.7")
            files = {"image": reference_file(reference)}
        else:
            data.update(mode="text-to-image", aspect_ratio="1:1")
            # The endpoint only accepts multipart; an empty part forces the encoding
            files = {"none": ""}
        return ProviderRequest(
            url=self._ENDPOINT,
            headers={"Accept": "image/*", **bearer(api_key)},
            data=data,
            files=files,
        )
