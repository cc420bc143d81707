from .base import ImageProvider, ProviderRequest
from .registry import get_provider, supported_models

__all__ = [
    "ImageProvider",
    "ProviderRequest",
    "get_provider",
    "supported_models",
]
