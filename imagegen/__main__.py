"""Serve the API with uvicorn: ``python -m imagegen``."""
from __future__ import annotations

import uvicorn

from imagegen.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("imagegen.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
