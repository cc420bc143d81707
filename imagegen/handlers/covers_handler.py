"""Cover endpoints: build a prompt, generate, and keep a history entry."""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from imagegen.models import GenerationRequest, ModelSelector, PromptData
from imagegen.services.errors import GenerationError
from imagegen.services.generation import ImageGenerationService, get_generation_service
from imagegen.services.history import HistoryStore, get_history_store
from imagegen.utils.prompt import build_prompt

from .generate_handler import raise_http_error

router = APIRouter()
logger = logging.getLogger(__name__)


class CoverRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uid: str
    freestyle: str
    style: str = ""
    model: str = ModelSelector.STABLE_DIFFUSION_XL.value
    use_credits: bool = Field(False, alias="useCredits")
    credits: Optional[float] = None
    openai_api_key: Optional[str] = Field(None, alias="openAPIKey")
    fireworks_api_key: Optional[str] = Field(None, alias="fireworksAPIKey")
    stability_api_key: Optional[str] = Field(None, alias="stabilityAPIKey")


@router.post("/covers", response_model=PromptData, response_model_by_alias=True)
async def create_cover(
    body: CoverRequest,
    service: ImageGenerationService = Depends(get_generation_service),
    history: HistoryStore = Depends(get_history_store),
):
    try:
        prompt = build_prompt(body.freestyle, body.style)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    request = GenerationRequest(
        prompt=prompt,
        uid=body.uid,
        model=body.model,
        use_credits=body.use_credits,
        credits=body.credits,
        openai_api_key=body.openai_api_key,
        fireworks_api_key=body.fireworks_api_key,
        stability_api_key=body.stability_api_key,
    )
    try:
        result = await service.generate(request)
    except GenerationError as exc:
        raise_http_error(exc)

    entry = PromptData(
        style=body.style,
        freestyle=body.freestyle,
        prompt=prompt,
        download_url=result.image_url,
        model=body.model,
    )
    try:
        saved = await asyncio.to_thread(history.save_cover, body.uid, entry)
    except Exception as exc:
        logger.exception("Failed to save cover for uid=%s: %s", body.uid, exc)
        raise HTTPException(status_code=500, detail=str(exc) or "Failed to save cover") from exc
    logger.info("Cover %s saved for uid=%s", saved.id, body.uid)
    return saved


@router.get("/covers/{uid}", response_model=List[PromptData], response_model_by_alias=True)
async def list_covers(
    uid: str,
    limit: int = Query(20, ge=1, le=100),
    history: HistoryStore = Depends(get_history_store),
):
    return await asyncio.to_thread(history.list_covers, uid, limit=limit)
