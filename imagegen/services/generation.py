"""Single-shot image generation.

Checks credits, resolves the provider and its credential, makes one vendor
call, stores the result and returns signed URLs. Nothing is retried and the
two storage writes are independent: if the reference upload fails the
generated image stays in the bucket.
"""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Optional

import httpx

from imagegen.config import Settings, get_settings
from imagegen.models import GenerationRequest, GenerationResult
from imagegen.services.errors import (
    GenerationError,
    ImageAPIError,
    InsufficientCreditsError,
    MissingCredentialsError,
)
from imagegen.services.providers import ImageProvider, ProviderRequest, get_provider
from imagegen.services.storage import StorageService, get_storage_service, validate_reference

logger = logging.getLogger(__name__)


class ImageGenerationService:
    """Runs the generate-then-store flow for one request at a time."""

    def __init__(
        self,
        storage: StorageService,
        *,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._storage = storage
        self._settings = settings or get_settings()
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate an image for *request* and return its stored URLs.

        Every failure is logged and surfaces as a ``GenerationError`` whose
        message is safe to show to the caller.
        """

        try:
            return await self._generate(request)
        except GenerationError as exc:
            logger.error("Error generating image: %s", exc)
            raise
        except Exception as exc:
            message = str(exc) or "An unknown error occurred"
            logger.exception("Error generating image: %s", message)
            raise GenerationError(message) from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _generate(self, request: GenerationRequest) -> GenerationResult:
        self._check_credits(request)
        provider = get_provider(request.model)
        api_key = self._resolve_api_key(provider, request)

        reference = request.reference_image
        if reference is not None:
            validate_reference(reference)

        provider_request = provider.build_request(request.prompt, api_key, reference=reference)
        image_bytes = await self._dispatch(provider, provider_request)

        image_url = await asyncio.to_thread(
            self._storage.save_generated, image_bytes, request.uid, prompt=request.prompt
        )
        reference_url = None
        if reference is not None:
            reference_url = await asyncio.to_thread(self._storage.save_reference, reference, request.uid)

        logger.info("Generated image for uid=%s with model=%s", request.uid, request.model)
        return GenerationResult(image_url=image_url, image_reference_url=reference_url)

    def _check_credits(self, request: GenerationRequest) -> None:
        if (
            request.use_credits
            and request.credits is not None
            and request.credits < self._settings.min_credits
        ):
            raise InsufficientCreditsError()

    def _resolve_api_key(self, provider: ImageProvider, request: GenerationRequest) -> str:
        # Credits pay for the platform key; otherwise the caller brings their own
        source = self._settings if request.use_credits else request
        api_key = getattr(source, provider.credential_field)
        if not api_key:
            raise MissingCredentialsError(provider.name)
        return api_key

    async def _dispatch(self, provider: ImageProvider, provider_request: ProviderRequest) -> bytes:
        timeout = self._settings.http_timeout or None
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            logger.debug("POST %s", provider_request.url)
            resp = await client.post(provider_request.url, **provider_request.send_kwargs())
            if resp.status_code >= 400:
                raise ImageAPIError(resp.status_code, resp.reason_phrase)
            return await provider.decode_response(resp, client)


@lru_cache()
def get_generation_service() -> ImageGenerationService:  # pragma: no cover
    return ImageGenerationService(get_storage_service())
