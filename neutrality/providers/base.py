"""Abstract base for all model adapters hosted on Replicate."""

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import replicate

from config.config_loader import ModelConfig
from neutrality.models import ModelDescriptor

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        self.detail = message
        super().__init__(f"[{provider_name}] {message}")


def normalize_output(output: Any) -> str:
    """Flatten a Replicate prediction output into a single string.

    None becomes "", lists are concatenated with no separator, dicts are
    serialized to compact JSON and anything else goes through str().
    """
    if output is None:
        return ""
    if isinstance(output, (list, tuple)):
        return "".join("" if chunk is None else str(chunk) for chunk in output)
    if isinstance(output, str):
        return output
    if isinstance(output, dict):
        return json.dumps(output, separators=(",", ":"))
    return str(output)


async def _drain(output: Any) -> Any:
    # Streaming models hand back an async iterator of text fragments.
    if hasattr(output, "__aiter__"):
        return [chunk async for chunk in output]
    return output


class ModelAdapter(ABC):
    """One canonical model mapped onto its native Replicate input shape."""

    descriptor: ModelDescriptor

    def __init__(self, client: replicate.Client, config: ModelConfig) -> None:
        self._client = client
        self._config = config

    def name(self) -> str:
        """Return the canonical model id (e.g. 'gemini-flash')."""
        return self.descriptor.id.value

    def model_string(self) -> str:
        """Return the Replicate model reference."""
        return self._config.model

    @abstractmethod
    def build_input(self, prompt: str, system_instruction: str, temperature: float) -> dict[str, Any]:
        """Map the canonical request onto the model's native input fields."""
        ...

    async def run(self, prompt: str, system_instruction: str, temperature: float) -> str:
        """Run the model once and return its normalized text output.

        Raises:
            ProviderError: On API failure or timeout. No retry is attempted.
        """
        model_input = self.build_input(prompt, system_instruction, temperature)
        start = time.monotonic()
        try:
            output = await asyncio.wait_for(
                self._call(model_input),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self.name(), f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self.name(), str(exc)) from exc

        logger.info("%s (%s): %.2fs", self.name(), self._config.model, time.monotonic() - start)
        return normalize_output(output)

    async def _call(self, model_input: dict[str, Any]) -> Any:
        output = await self._client.async_run(self._config.model, input=model_input)
        return await _drain(output)
