"""
Provider cascade and job polling

``run_cascade`` walks an ordered list of provider attempts and returns the
first success; ``poll_job`` is the bounded fixed-interval loop used to wait
for asynchronous render jobs.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from .providers.base import (
    CascadeExhausted,
    JobFailed,
    JobPending,
    JobStatus,
    JobSucceeded,
    ProviderJobFailed,
    ProviderTimeout,
)

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

Attempt = Tuple[str, Callable[[], Awaitable[T]]]


@dataclass
class CascadeOutcome(Generic[T]):
    value: T
    provider: str
    degraded: bool
    errors: dict


async def run_cascade(
    capability: str,
    attempts: Sequence[Attempt],
    fallback: Optional[Callable[[], Awaitable[T]]] = None,
    fallback_name: str = "demo",
) -> CascadeOutcome[T]:
    """
    Try each provider in order, stopping at the first success

    Parameters:
        capability: Label used in logs and errors (e.g. "avatar-video")
        attempts: Ordered (provider_name, zero-arg coroutine factory) pairs
        fallback: Last tier; its result is marked degraded
        fallback_name: Provider name reported for the fallback tier

    Returns:
        CascadeOutcome with the winning value and provider

    Raises:
        CascadeExhausted: every attempt failed and no fallback was given
    """
    errors: dict = {}
    for provider, attempt in attempts:
        try:
            logger.info("[cascade:%s] trying %s", capability, provider)
            value = await attempt()
            logger.info("[cascade:%s] %s succeeded", capability, provider)
            return CascadeOutcome(value=value, provider=provider, degraded=False, errors=errors)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            errors[provider] = e
            logger.warning("[cascade:%s] %s failed: %r", capability, provider, e)

    if fallback is None:
        raise CascadeExhausted(capability, errors)

    logger.warning("[cascade:%s] falling back to %s (failed: %s)", capability, fallback_name, list(errors) or "none tried")
    value = await fallback()
    return CascadeOutcome(value=value, provider=fallback_name, degraded=True, errors=errors)


async def poll_job(
    provider: str,
    poll: Callable[[], Awaitable[JobStatus]],
    interval: float,
    max_attempts: int,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> str:
    """
    Poll a render job until it reaches a terminal state

    A poll that raises counts as an attempt and polling continues; only a
    reported failure or running out of attempts ends the loop.

    Returns:
        The finished asset URL

    Raises:
        ProviderJobFailed: the provider reported a terminal failure
        ProviderTimeout: max_attempts polls without a terminal state
    """
    for attempt in range(1, max_attempts + 1):
        try:
            status = await poll()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("[poll:%s] attempt %d/%d errored: %r", provider, attempt, max_attempts, e)
            status = JobPending()

        if isinstance(status, JobSucceeded):
            logger.info("[poll:%s] done after %d attempt(s)", provider, attempt)
            return status.url
        if isinstance(status, JobFailed):
            raise ProviderJobFailed(provider, status.reason)

        logger.debug("[poll:%s] attempt %d/%d pending (progress=%s)", provider, attempt, max_attempts, status.progress)
        if attempt < max_attempts:
            await sleep(interval)

    raise ProviderTimeout(provider, f"video generation timed out after {max_attempts} polls")
