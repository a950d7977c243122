"""Static registry: canonical model id -> descriptor + adapter class."""

from dataclasses import dataclass
from types import MappingProxyType

import replicate

from config.config_loader import AppConfig
from neutrality.models import ModelDescriptor, ModelId
from neutrality.providers.anthropic import ClaudeSonnetAdapter
from neutrality.providers.base import ModelAdapter
from neutrality.providers.gemini import GeminiFlashAdapter
from neutrality.providers.openai_provider import GPT5Adapter


@dataclass(frozen=True)
class RegistryEntry:
    descriptor: ModelDescriptor
    adapter_cls: type[ModelAdapter]


MODEL_REGISTRY: MappingProxyType[ModelId, RegistryEntry] = MappingProxyType({
    cls.descriptor.id: RegistryEntry(descriptor=cls.descriptor, adapter_cls=cls)
    for cls in (GeminiFlashAdapter, ClaudeSonnetAdapter, GPT5Adapter)
})


def get_descriptor(model_id: ModelId) -> ModelDescriptor:
    return MODEL_REGISTRY[ModelId(model_id)].descriptor


def list_descriptors() -> list[ModelDescriptor]:
    return [entry.descriptor for entry in MODEL_REGISTRY.values()]


def build_adapters(client: replicate.Client, config: AppConfig) -> dict[ModelId, ModelAdapter]:
    """Instantiate one adapter per registered model, sharing a single client."""
    return {
        model_id: entry.adapter_cls(client, config.models[model_id.value])
        for model_id, entry in MODEL_REGISTRY.items()
    }
