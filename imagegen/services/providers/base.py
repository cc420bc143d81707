from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import BaseModel, Field

from imagegen.models import ReferenceImage


class ProviderRequest(BaseModel):
    """A fully-built vendor call: either a JSON body or a multipart form."""

    url: str
    headers: dict[str, str] = Field(default_factory=dict, repr=False)
    json_body: dict[str, Any] | None = None
    data: dict[str, str] | None = None
    files: dict[str, Any] | None = Field(None, repr=False)

    @property
    def is_multipart(self) -> bool:
        return self.files is not None

    def send_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``httpx.AsyncClient.post``."""

        kwargs: dict[str, Any] = {"headers": self.headers}
        if self.is_multipart:
            kwargs["data"] = self.data or {}
            kwargs["files"] = self.files
        else:
            kwargs["json"] = self.json_body
        return kwargs


class ImageProvider(ABC):
    """Abstract interface for an image-generation vendor."""

    name: str = "abstract"
    # Attribute holding this vendor's key on both Settings and GenerationRequest
    credential_field: str = ""

    @abstractmethod
    def build_request(
        self,
        prompt: str,
        api_key: str,
        *,
        reference: ReferenceImage | None = None,
    ) -> ProviderRequest:
        """Return the vendor request for *prompt*.

        A *reference* image switches to the vendor's edit or image-to-image
        variant.
        """

    async def decode_response(self, response: httpx.Response, client: httpx.AsyncClient) -> bytes:
        """Return raw image bytes from a successful vendor response."""

        return response.content


def bearer(api_key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"}


def reference_file(reference: ReferenceImage) -> tuple[str, bytes, str]:
    return (reference.filename, reference.data, reference.content_type)
