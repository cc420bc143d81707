from __future__ import annotations

from fastapi import FastAPI

from imagegen.handlers import covers_handler, generate_handler
from imagegen.services.providers import supported_models

app = FastAPI(title="imagegen API")

app.include_router(generate_handler.router)
app.include_router(covers_handler.router)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.get("/models")
async def models():
    return {"models": supported_models()}
