from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PromptData(BaseModel):
    """A saved cover: the prompt that was sent and where the result lives."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    style: str = ""
    freestyle: str = ""
    prompt: str = ""
    download_url: str = Field("", alias="downloadUrl")
    reference_url: str | None = Field(None, alias="referenceUrl")
    model: str | None = None
    timestamp: datetime | None = None
