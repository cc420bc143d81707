from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ModelSelector(str, Enum):
    DALL_E = "dall-e"
    STABLE_DIFFUSION_XL = "stable-diffusion-xl"
    STABILITY_SD3_TURBO = "stability-sd3-turbo"
    PLAYGROUND_V2 = "playground-v2"


class ReferenceImage(BaseModel):
    """Caller-supplied image used for image-to-image generation."""

    data: bytes = Field(..., repr=False)
    filename: str = "reference.jpg"
    content_type: str = "image/jpeg"


class GenerationRequest(BaseModel):
    """Inputs for a single generation call. Never persisted."""

    prompt: str
    uid: str
    model: str  # resolved against ModelSelector by the provider registry
    use_credits: bool = False
    credits: float | None = None
    openai_api_key: str | None = Field(None, repr=False)
    fireworks_api_key: str | None = Field(None, repr=False)
    stability_api_key: str | None = Field(None, repr=False)
    reference_image: ReferenceImage | None = None


class GenerationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(..., alias="imageUrl")
    image_reference_url: str | None = Field(None, alias="imageReference")
