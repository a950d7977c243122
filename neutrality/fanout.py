"""Fan-out orchestration: run one prompt against many models concurrently."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable, Mapping

from neutrality.models import ModelId, ModelResult
from neutrality.providers.base import ModelAdapter, ProviderError

logger = logging.getLogger(__name__)

_UNKNOWN_ERROR = "Unknown model error"


def dedupe_model_ids(model_ids: Iterable[ModelId | str]) -> list[ModelId]:
    """Collapse duplicates, keeping first-seen order."""
    return list(dict.fromkeys(ModelId(m) for m in model_ids))


async def run_one(
    adapter: ModelAdapter,
    prompt: str,
    system_instruction: str,
    temperature: float,
) -> ModelResult:
    """Invoke a single adapter.

    Never raises on model failure; the error is captured in the result.
    """
    descriptor = adapter.descriptor
    try:
        output = await adapter.run(prompt, system_instruction, temperature)
    except Exception as exc:
        # Callers see the upstream message, not the adapter-prefixed one.
        message = (exc.detail if isinstance(exc, ProviderError) else str(exc)) or _UNKNOWN_ERROR
        logger.warning("Model %s failed: %s", descriptor.id.value, message)
        return ModelResult(
            model_id=descriptor.id,
            model_name=descriptor.display_name,
            provider_name=descriptor.provider_name,
            output="",
            error=message,
        )

    return ModelResult(
        model_id=descriptor.id,
        model_name=descriptor.display_name,
        provider_name=descriptor.provider_name,
        output=output,
    )


async def run_batch(
    model_ids: Iterable[ModelId | str],
    adapters: Mapping[ModelId, ModelAdapter],
    prompt: str,
    system_instruction: str,
    temperature: float,
    on_result: Callable[[ModelResult], None] | None = None,
) -> list[ModelResult]:
    """Run every requested model and wait for all of them to settle.

    Args:
        model_ids: Requested canonical ids; duplicates collapse to one call.
        adapters: Adapter per canonical id.
        prompt: The user prompt, already trimmed.
        system_instruction: Instruction sent to every model.
        temperature: Sampling temperature (ignored by adapters that don't take it).
        on_result: Optional callback invoked as each model settles.

    Returns:
        One ModelResult per unique id, in request order.
    """
    unique_ids = dedupe_model_ids(model_ids)
    logger.info("Fanning out to %d models: %s", len(unique_ids), ", ".join(m.value for m in unique_ids))

    async def settle(model_id: ModelId) -> ModelResult:
        result = await run_one(adapters[model_id], prompt, system_instruction, temperature)
        if on_result:
            try:
                on_result(result)
            except Exception:
                logger.exception("on_result callback failed for %s", model_id.value)
        return result

    results = await asyncio.gather(*(settle(m) for m in unique_ids))

    succeeded = sum(1 for r in results if r.error is None)
    logger.info("Fan-out complete: %d/%d models succeeded", succeeded, len(results))
    return list(results)


async def iter_results(
    model_ids: Iterable[ModelId | str],
    adapters: Mapping[ModelId, ModelAdapter],
    prompt: str,
    system_instruction: str,
    temperature: float,
) -> AsyncIterator[ModelResult]:
    """Yield each ModelResult as soon as it settles (completion order)."""
    tasks = [
        asyncio.ensure_future(run_one(adapters[m], prompt, system_instruction, temperature))
        for m in dedupe_model_ids(model_ids)
    ]
    try:
        for next_done in asyncio.as_completed(tasks):
            yield await next_done
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
