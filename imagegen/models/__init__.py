from .generation import GenerationRequest, GenerationResult, ModelSelector, ReferenceImage
from .history import PromptData

__all__ = [
    "GenerationRequest",
    "GenerationResult",
    "ModelSelector",
    "PromptData",
    "ReferenceImage",
]
