"""Form endpoint that generates and stores a single image."""
from __future__ import annotations

import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from imagegen.models import GenerationRequest, GenerationResult, ReferenceImage
from imagegen.services.errors import GenerationError, InvalidReferenceImageError
from imagegen.services.generation import ImageGenerationService, get_generation_service

router = APIRouter()
logger = logging.getLogger(__name__)


def raise_http_error(exc: GenerationError) -> NoReturn:
    status = 400 if isinstance(exc, InvalidReferenceImageError) else 500
    raise HTTPException(status_code=status, detail=str(exc)) from exc


async def read_reference(upload: Optional[UploadFile]) -> ReferenceImage | None:
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    if not data:
        return None
    return ReferenceImage(
        data=data,
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
    )


@router.post("/images/generate", response_model=GenerationResult, response_model_by_alias=True)
async def generate_image(
    message: str = Form(...),
    uid: str = Form(...),
    model: str = Form(...),
    open_api_key: Optional[str] = Form(None, alias="openAPIKey"),
    fireworks_api_key: Optional[str] = Form(None, alias="fireworksAPIKey"),
    stability_api_key: Optional[str] = Form(None, alias="stabilityAPIKey"),
    use_credits: bool = Form(False, alias="useCredits"),
    credits: Optional[float] = Form(None),
    image_field: Optional[UploadFile] = File(None, alias="imageField"),
    service: ImageGenerationService = Depends(get_generation_service),
):
    prompt = message.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Describe an image before generating.")

    request = GenerationRequest(
        prompt=prompt,
        uid=uid,
        model=model,
        use_credits=use_credits,
        credits=credits,
        openai_api_key=open_api_key,
        fireworks_api_key=fireworks_api_key,
        stability_api_key=stability_api_key,
        reference_image=await read_reference(image_field),
    )
    try:
        return await service.generate(request)
    except GenerationError as exc:
        raise_http_error(exc)
