"""
Model registry and context-length lookup.

Static catalogue of hosted models with their context budgets, tokenizer
encodings and chat framing constants.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import UnsupportedModel

logger = logging.getLogger(__name__)

# Model identifiers
TEXT_EMBEDDING_ADA_002 = "text-embedding-ada-002"
TEXT_EMBEDDING_3_LARGE = "text-embedding-3-large"
TEXT_EMBEDDING_3_SMALL = "text-embedding-3-small"
GPT4_0125_PREVIEW = "gpt-4-0125-preview"
GPT4_VISION_PREVIEW = "gpt-4-vision-preview"
GPT4 = "gpt-4"
GPT4_TURBO = "gpt-4-turbo"
GPT4_0613 = "gpt-4-0613"
GPT4_32K = "gpt-4-32k"
GPT4_32K_0613 = "gpt-4-32k-0613"
GPT35_TURBO = "gpt-3.5-turbo"
GPT35_TURBO_16K = "gpt-3.5-turbo-16k"
GPT35_TURBO_0613 = "gpt-3.5-turbo-0613"
GPT35_TURBO_16K_0613 = "gpt-3.5-turbo-16k-0613"
GPT35_TURBO_0301 = "gpt-3.5-turbo-0301"
TEXT_DAVINCI_003 = "text-davinci-003"
TEXT_DAVINCI_002 = "text-davinci-002"
TEXT_DAVINCI_EDIT_001 = "text-davinci-edit-001"
CODE_DAVINCI_002 = "code-davinci-002"

# Context lengths
CONTEXT_4K = 4096
CONTEXT_8K = 8192
CONTEXT_16K = 16384
CONTEXT_32K = 32768
CONTEXT_128K = 128000

CL100K_BASE = "cl100k_base"
P50K_BASE = "p50k_base"
P50K_EDIT = "p50k_edit"

# every message follows <|start|>{role/name}\n{content}<|end|>\n
GPT35_MESSAGE_OVERHEAD = 4
GPT4_MESSAGE_OVERHEAD = 3


@dataclass(frozen=True)
class ModelSpec:
    """Registry entry for one model.

    ``per_message_overhead`` is None for models that do not accept chat
    requests. ``upgrade`` names a same-family model with a larger context.
    """
    model: str
    context_length: int
    encoding: str
    per_message_overhead: Optional[int] = None
    upgrade: Optional[str] = None

    def __post_init__(self):
        """Validate entry values."""
        if not self.model or not self.model.strip():
            raise ValueError("model is required and cannot be empty")
        if self.context_length <= 0:
            raise ValueError(f"context_length for {self.model} must be > 0")
        if not self.encoding:
            raise ValueError(f"encoding for {self.model} is required")
        if self.per_message_overhead is not None and self.per_message_overhead < 0:
            raise ValueError(f"per_message_overhead for {self.model} must be >= 0")


@dataclass(frozen=True)
class ModelRegistry:
    """Read-only lookup table of supported models."""
    specs: Dict[str, ModelSpec]

    def get_spec(self, model: str) -> ModelSpec:
        """Get the registry entry for a model.

        Args:
            model: Model identifier

        Returns:
            ModelSpec for the model

        Raises:
            UnsupportedModel: If model is not catalogued
        """
        if model not in self.specs:
            raise UnsupportedModel(model)
        return self.specs[model]

    def context_length(self, model: str) -> int:
        return self.get_spec(model).context_length

    def encoding_for(self, model: str) -> str:
        return self.get_spec(model).encoding

    def per_message_overhead(self, model: str) -> int:
        """Framing tokens charged for each chat message of this model.

        Raises:
            UnsupportedModel: If model is unknown or is not a chat model
        """
        spec = self.get_spec(model)
        if spec.per_message_overhead is None:
            raise UnsupportedModel(model, "not a chat completion model")
        return spec.per_message_overhead

    def upgrade_path(self, model: str) -> Tuple[bool, str]:
        """Return whether a larger-context sibling exists, and its identifier."""
        spec = self.get_spec(model)
        if spec.upgrade is None:
            return False, ""
        return True, spec.upgrade

    def models(self) -> List[str]:
        return sorted(self.specs)

    def with_models(self, specs: Iterable[ModelSpec]) -> "ModelRegistry":
        """Return a new registry extended (or overridden) with the given entries."""
        merged = dict(self.specs)
        for spec in specs:
            if spec.model in merged:
                logger.debug("Overriding registry entry for %s", spec.model)
            merged[spec.model] = spec
        return ModelRegistry(merged)


def _catalogue(*specs: ModelSpec) -> ModelRegistry:
    return ModelRegistry({spec.model: spec for spec in specs})


# Fixed catalogue - unknown models are errors, never defaults
MODEL_REGISTRY = _catalogue(
    ModelSpec(GPT35_TURBO, CONTEXT_4K, CL100K_BASE, GPT35_MESSAGE_OVERHEAD, GPT35_TURBO_16K),
    ModelSpec(GPT35_TURBO_0301, CONTEXT_4K, CL100K_BASE, GPT35_MESSAGE_OVERHEAD),
    ModelSpec(GPT35_TURBO_0613, CONTEXT_4K, CL100K_BASE, GPT35_MESSAGE_OVERHEAD, GPT35_TURBO_16K_0613),
    ModelSpec(GPT35_TURBO_16K, CONTEXT_16K, CL100K_BASE, GPT35_MESSAGE_OVERHEAD),
    ModelSpec(GPT35_TURBO_16K_0613, CONTEXT_16K, CL100K_BASE, GPT35_MESSAGE_OVERHEAD),
    ModelSpec(GPT4, CONTEXT_8K, CL100K_BASE, GPT4_MESSAGE_OVERHEAD, GPT4_32K),
    ModelSpec(GPT4_0613, CONTEXT_8K, CL100K_BASE, GPT4_MESSAGE_OVERHEAD, GPT4_32K_0613),
    ModelSpec(GPT4_32K, CONTEXT_32K, CL100K_BASE, GPT4_MESSAGE_OVERHEAD, GPT4_0125_PREVIEW),
    ModelSpec(GPT4_32K_0613, CONTEXT_32K, CL100K_BASE, GPT4_MESSAGE_OVERHEAD, GPT4_0125_PREVIEW),
    ModelSpec(GPT4_TURBO, CONTEXT_8K, CL100K_BASE, GPT4_MESSAGE_OVERHEAD),
    ModelSpec(GPT4_0125_PREVIEW, CONTEXT_128K, CL100K_BASE, GPT4_MESSAGE_OVERHEAD),
    ModelSpec(GPT4_VISION_PREVIEW, CONTEXT_128K, CL100K_BASE, GPT4_MESSAGE_OVERHEAD),
    ModelSpec(TEXT_EMBEDDING_ADA_002, CONTEXT_8K, CL100K_BASE),
    ModelSpec(TEXT_EMBEDDING_3_SMALL, CONTEXT_8K, CL100K_BASE),
    ModelSpec(TEXT_EMBEDDING_3_LARGE, CONTEXT_8K, CL100K_BASE),
    ModelSpec(TEXT_DAVINCI_003, CONTEXT_4K, P50K_BASE),
    ModelSpec(TEXT_DAVINCI_002, CONTEXT_4K, P50K_BASE),
    ModelSpec(TEXT_DAVINCI_EDIT_001, CONTEXT_4K, P50K_EDIT),
    ModelSpec(CODE_DAVINCI_002, CONTEXT_8K, P50K_BASE),
)


def context_length(model: str) -> int:
    """Context-length budget of a catalogued model."""
    return MODEL_REGISTRY.context_length(model)


def encoding_for(model: str) -> str:
    """Tokenizer encoding name of a catalogued model."""
    return MODEL_REGISTRY.encoding_for(model)


def per_message_overhead(model: str) -> int:
    return MODEL_REGISTRY.per_message_overhead(model)


def upgrade_path(model: str) -> Tuple[bool, str]:
    return MODEL_REGISTRY.upgrade_path(model)
