"""Gemini 2.5 Flash on Replicate."""

from typing import Any

from neutrality.models import ModelDescriptor, ModelId
from neutrality.providers.base import ModelAdapter


class GeminiFlashAdapter(ModelAdapter):
    """Google Gemini 2.5 Flash. The only adapter that forwards temperature."""

    descriptor = ModelDescriptor(
        id=ModelId.GEMINI_FLASH,
        display_name="Gemini 2.5 Flash",
        provider_name="Google",
        description="Google's hybrid thinking model optimized for speed and cost-efficiency.",
    )

    def build_input(self, prompt: str, system_instruction: str, temperature: float) -> dict[str, Any]:
        return {
            "prompt": prompt,
            "system_instruction": system_instruction,
            "temperature": temperature,
            "dynamic_thinking": False,
            "max_output_tokens": self._config.max_tokens,
        }
