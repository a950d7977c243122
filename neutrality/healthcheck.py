"""Readiness probe: check the primary provider before fanning out."""

import asyncio
import logging

import replicate

from config.config_loader import AppConfig, get_secret
from neutrality.models import ReadinessStatus

logger = logging.getLogger(__name__)


async def probe_readiness(
    config: AppConfig,
    client: replicate.Client | None = None,
) -> ReadinessStatus:
    """Report whether Replicate is configured and reachable.

    No network call is made when the credential is missing. Otherwise a
    single metadata lookup of the probe model decides readiness.
    """
    api_key_env = config.replicate.api_key_env
    api_key = get_secret(api_key_env)
    if not api_key:
        return ReadinessStatus(ready=False, reason=f"{api_key_env} not configured")

    if client is None:
        client = replicate.Client(api_token=api_key)

    try:
        await asyncio.wait_for(
            client.models.async_get(config.replicate.probe_model),
            timeout=config.replicate.probe_timeout_sec,
        )
    except TimeoutError:
        reason = f"Readiness check timed out after {config.replicate.probe_timeout_sec}s"
        logger.warning(reason)
        return ReadinessStatus(ready=False, reason=reason)
    except Exception as exc:
        logger.warning("Readiness check failed: %s", exc)
        return ReadinessStatus(ready=False, reason=str(exc) or type(exc).__name__)

    return ReadinessStatus(ready=True)
