"""Model capability lookup."""

import re
from typing import Protocol

from chatcompile.config import CompilerConfig
from chatcompile.models.model import ModelSpec


class ModelCapabilities(Protocol):
    """Protocol for answering capability questions about a target model."""

    def is_vision_capable(self, model: ModelSpec) -> bool:
        ...

    def is_image_enhancement_model(self, model: ModelSpec) -> bool:
        ...


class DefaultModelCapabilities:
    """Capability lookup from declared flags, falling back to id patterns.

    A flag set explicitly on the ``ModelSpec`` always wins. Otherwise the
    model id is matched case-insensitively against the configured regexes.
    """

    def __init__(self, config: CompilerConfig | None = None) -> None:
        cfg = config or CompilerConfig()
        self._vision = [re.compile(p, re.IGNORECASE) for p in cfg.vision_model_patterns]
        self._enhancement = [
            re.compile(p, re.IGNORECASE) for p in cfg.image_enhancement_model_patterns
        ]

    @staticmethod
    def _matches(patterns: list[re.Pattern[str]], model_id: str) -> bool:
        return any(p.search(model_id) for p in patterns)

    def is_vision_capable(self, model: ModelSpec) -> bool:
        if model.vision is not None:
            return model.vision
        # Image editing models take images as input by definition
        if self.is_image_enhancement_model(model):
            return True
        return self._matches(self._vision, model.id)

    def is_image_enhancement_model(self, model: ModelSpec) -> bool:
        if model.image_enhancement is not None:
            return model.image_enhancement
        return self._matches(self._enhancement, model.id)
