"""Claude 4.5 Sonnet on Replicate."""

from typing import Any

from neutrality.models import ModelDescriptor, ModelId
from neutrality.providers.base import ModelAdapter


class ClaudeSonnetAdapter(ModelAdapter):
    """Anthropic Claude 4.5 Sonnet."""

    descriptor = ModelDescriptor(
        id=ModelId.CLAUDE_SONNET,
        display_name="Claude 4.5 Sonnet",
        provider_name="Anthropic",
        description="Anthropic's frontier reasoning model tuned for coding and complex judgement.",
    )

    def build_input(self, prompt: str, system_instruction: str, temperature: float) -> dict[str, Any]:
        # The Replicate deployment does not expose temperature.
        return {
            "prompt": prompt,
            "system_prompt": system_instruction,
            "max_tokens": self._config.max_tokens,
        }
