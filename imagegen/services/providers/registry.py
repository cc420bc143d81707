from __future__ import annotations

from imagegen.models import ModelSelector
from imagegen.services.errors import UnsupportedModelError

from .base import ImageProvider
from .fireworks_provider import FireworksImageProvider
from .openai_provider import OpenAIImageProvider
from .stability_provider import StabilityImageProvider

_PROVIDERS: dict[ModelSelector, ImageProvider] = {
    ModelSelector.DALL_E: OpenAIImageProvider(),
    ModelSelector.STABLE_DIFFUSION_XL: FireworksImageProvider("stable-diffusion-xl-1024-v1-0"),
    ModelSelector.STABILITY_SD3_TURBO: StabilityImageProvider(),
    ModelSelector.PLAYGROUND_V2: FireworksImageProvider("playground-v2-1024px-aesthetic"),
}


def get_provider(model: str | None) -> ImageProvider:
    """Return the provider registered for *model* or raise UnsupportedModelError."""

    try:
        selector = ModelSelector(model)
    except ValueError:
        raise UnsupportedModelError(model) from None
    return _PROVIDERS[selector]


def supported_models() -> list[str]:
    return [selector.value for selector in _PROVIDERS]
