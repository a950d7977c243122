"""Transport-agnostic service: the procedures exposed by the API and the CLI."""

import logging
from collections.abc import AsyncIterator, Callable

import replicate
from openai import AsyncOpenAI

from config.config_loader import AppConfig, AnalysisConfig, get_secret
from neutrality.analysis_schema import AnalysisResult
from neutrality.analyzer import analyze_responses, build_analysis_client
from neutrality.errors import ConfigurationError
from neutrality.fanout import iter_results, run_batch, run_one
from neutrality.healthcheck import probe_readiness
from neutrality.models import ModelResult, NeutralityTestResult, ReadinessStatus
from neutrality.registry import build_adapters
from neutrality.schemas import AnalyzeRequest, NeutralityModelRequest, NeutralityTestRequest

logger = logging.getLogger(__name__)

ReplicateFactory = Callable[[str], replicate.Client]
AnalysisClientFactory = Callable[[str, AnalysisConfig], AsyncOpenAI]


def _default_replicate_factory(api_key: str) -> replicate.Client:
    return replicate.Client(api_token=api_key)


class NeutralityService:
    """Runs neutrality tests and analyses against the configured back-ends.

    Credentials are read from the environment on every call, so rotating a
    key in the environment takes effect without rebuilding the service.
    """

    def __init__(
        self,
        config: AppConfig,
        replicate_factory: ReplicateFactory = _default_replicate_factory,
        analysis_factory: AnalysisClientFactory = build_analysis_client,
    ) -> None:
        self._config = config
        self._replicate_factory = replicate_factory
        self._analysis_factory = analysis_factory
        # One Replicate client per credential, reused across requests.
        self._replicate_clients: dict[str, replicate.Client] = {}

    @property
    def config(self) -> AppConfig:
        return self._config

    def health_check(self) -> str:
        return "OK"

    async def llm_status(self) -> ReadinessStatus:
        api_key = get_secret(self._config.replicate.api_key_env)
        client = self._client_for(api_key) if api_key else None
        return await probe_readiness(self._config, client)

    def _client_for(self, api_key: str) -> replicate.Client:
        if api_key not in self._replicate_clients:
            self._replicate_clients[api_key] = self._replicate_factory(api_key)
        return self._replicate_clients[api_key]

    def _replicate_client(self) -> replicate.Client:
        env_name = self._config.replicate.api_key_env
        api_key = get_secret(env_name)
        if not api_key:
            raise ConfigurationError(f"{env_name} is not configured on the server")
        return self._client_for(api_key)

    def _temperature(self, requested: float | None) -> float:
        return requested if requested is not None else self._config.defaults.temperature

    async def run_neutrality_test(
        self,
        request: NeutralityTestRequest,
        on_result: Callable[[ModelResult], None] | None = None,
    ) -> NeutralityTestResult:
        """Fan the prompt out to every requested model and wait for all to settle.

        Raises:
            ConfigurationError: If the Replicate credential is missing.
        """
        adapters = build_adapters(self._replicate_client(), self._config)
        responses = await run_batch(
            request.models,
            adapters,
            request.prompt,
            self._config.prompts.system_instruction,
            self._temperature(request.temperature),
            on_result=on_result,
        )
        return NeutralityTestResult(prompt=request.prompt, responses=responses)

    def stream_neutrality_test(self, request: NeutralityTestRequest) -> AsyncIterator[ModelResult]:
        """Same as run_neutrality_test, yielding results in completion order.

        The credential is checked eagerly, before the iterator is returned.
        """
        adapters = build_adapters(self._replicate_client(), self._config)
        return iter_results(
            request.models,
            adapters,
            request.prompt,
            self._config.prompts.system_instruction,
            self._temperature(request.temperature),
        )

    async def run_neutrality_model(self, request: NeutralityModelRequest) -> ModelResult:
        adapters = build_adapters(self._replicate_client(), self._config)
        return await run_one(
            adapters[request.model_id],
            request.prompt,
            self._config.prompts.system_instruction,
            self._temperature(request.temperature),
        )

    async def analyze_responses(self, request: AnalyzeRequest) -> AnalysisResult:
        """Score the given responses with the analyst model.

        Raises:
            ConfigurationError: If the analysis credential is missing.
            AnalysisError: On upstream, parse or schema failure.
        """
        analysis = self._config.analysis
        api_key = get_secret(analysis.api_key_env)
        if not api_key:
            raise ConfigurationError(f"{analysis.api_key_env} is not configured on the server")
        client = self._analysis_factory(api_key, analysis)
        try:
            return await analyze_responses(
                request.question,
                request.responses,
                client,
                analysis,
                self._config.prompts,
            )
        finally:
            await client.close()
