"""GPT-5 on Replicate."""

from typing import Any

from neutrality.models import ModelDescriptor, ModelId
from neutrality.providers.base import ModelAdapter


class GPT5Adapter(ModelAdapter):
    """OpenAI GPT-5. Reasoning model: fixed effort, no temperature."""

    descriptor = ModelDescriptor(
        id=ModelId.GPT_5,
        display_name="GPT-5",
        provider_name="OpenAI",
        description="OpenAI's flagship model for broad reasoning, writing, and balanced analysis.",
    )

    def build_input(self, prompt: str, system_instruction: str, temperature: float) -> dict[str, Any]:
        return {
            "prompt": prompt,
            "system_prompt": system_instruction,
            "reasoning_effort": "medium",
            "max_completion_tokens": self._config.max_tokens,
        }
