"""Pure dataclasses for the neutrality fan-out pipeline. No logic, no deps."""

from dataclasses import dataclass, field
from enum import Enum


class ModelId(str, Enum):
    GEMINI_FLASH = "gemini-flash"
    CLAUDE_SONNET = "claude-sonnet"
    GPT_5 = "gpt-5"


@dataclass(frozen=True)
class ModelDescriptor:
    id: ModelId
    display_name: str      # "Gemini 2.5 Flash"
    provider_name: str     # "Google", "Anthropic", "OpenAI"
    description: str = ""


@dataclass(frozen=True)
class ModelResult:
    model_id: ModelId
    model_name: str
    provider_name: str
    output: str            # "" when the model failed
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and bool(self.output.strip())


@dataclass(frozen=True)
class NeutralityTestResult:
    prompt: str
    responses: list[ModelResult] = field(default_factory=list)


@dataclass(frozen=True)
class ReadinessStatus:
    ready: bool
    reason: str | None = None
