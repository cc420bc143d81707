"""Exceptions raised while generating and storing images.

Everything derives from :class:`GenerationError` so callers can treat a
failed generation as a single failure signal and show ``str(exc)``.
"""
from __future__ import annotations


class GenerationError(Exception):
    """Raised when an image could not be generated or stored."""


class InsufficientCreditsError(GenerationError):
    def __init__(self) -> None:
        super().__init__(
            "Not enough credits to generate an image. "
            "Please purchase credits or use your own API keys."
        )


class UnsupportedModelError(GenerationError):
    def __init__(self, model: str | None) -> None:
        super().__init__(f"Unsupported model: {model}")
        self.model = model


class MissingCredentialsError(GenerationError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"No API key available for provider '{provider}'.")
        self.provider = provider


class InvalidReferenceImageError(GenerationError):
    """Raised when the reference image is not an image or is too large."""


class ImageAPIError(GenerationError):
    """Raised when an image provider returns an error status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"Error from Image API: {status} {message}")
        self.status = status
