"""Fixed-delay retry helpers.

Two loops live here:

- :func:`run_with_retry` drives a whole stage. With the default policy it
  never gives up; the loop ends when the dependency comes up or the process
  is terminated.
- :func:`wait_for_ping` is the short, bounded ping loop used inside the
  database stages once a connection handle exists.

Both take a :class:`RetryPolicy` so tests can swap the blocking sleep for a
recorder.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog

from readiness.errors import RetryExhaustedError, TransportError

logger = structlog.get_logger(__name__)

DEFAULT_STAGE_DELAY = 5.0


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try and how long to wait in between.

    ``max_attempts=None`` means retry forever.
    """

    max_attempts: Optional[int] = None
    delay: float = DEFAULT_STAGE_DELAY
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or None")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")

    @classmethod
    def forever(cls, delay: float = DEFAULT_STAGE_DELAY, **kwargs) -> "RetryPolicy":
        return cls(max_attempts=None, delay=delay, **kwargs)

    @classmethod
    def bounded(cls, max_attempts: int, delay: float, **kwargs) -> "RetryPolicy":
        return cls(max_attempts=max_attempts, delay=delay, **kwargs)

    @property
    def unbounded(self) -> bool:
        return self.max_attempts is None

    def allows(self, attempt: int) -> bool:
        """Return ``True`` if ``attempt`` (1-based) may still be made."""
        return self.max_attempts is None or attempt <= self.max_attempts


def run_with_retry(stage_fn: Callable[[], None], policy: RetryPolicy, *, stage: str) -> int:
    """Call ``stage_fn`` until it returns without raising.

    Every failure is logged at error level, followed by a sleep of
    ``policy.delay``. Returns the number of attempts it took. Raises
    :class:`RetryExhaustedError` only when ``policy`` is bounded.
    """
    attempt = 1
    while True:
        try:
            stage_fn()
        except Exception as exc:  # noqa: BLE001 - every stage failure is retried
            if not policy.unbounded and attempt >= policy.max_attempts:
                logger.error(
                    "readiness_stage_exhausted",
                    stage=stage,
                    attempts=attempt,
                    error=str(exc),
                )
                raise RetryExhaustedError(stage, attempt, exc) from exc
            logger.error(
                "readiness_stage_failed",
                stage=stage,
                attempt=attempt,
                error=str(exc),
                error_type=type(exc).__name__,
                retry_in=policy.delay,
            )
            policy.sleep(policy.delay)
            attempt += 1
            continue
        if attempt > 1:
            logger.info("readiness_stage_recovered", stage=stage, attempts=attempt)
        return attempt


def wait_for_ping(
    ping: Callable[[], object],
    policy: RetryPolicy,
    *,
    target: str,
    errors: tuple[type[BaseException], ...],
) -> int:
    """Call ``ping`` until it succeeds or ``policy`` runs out.

    Only exceptions listed in ``errors`` count as a failed ping; anything
    else propagates. After the last failed attempt a :class:`TransportError`
    is raised instead of falling through to the caller's next step.
    """
    if policy.unbounded:
        raise ValueError("ping loops require a bounded policy")
    last_error: BaseException | None = None
    attempt = 1
    while policy.allows(attempt):
        try:
            ping()
        except errors as exc:
            last_error = exc
            logger.warning(
                "ping_failed",
                target=target,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                error=str(exc),
            )
        else:
            logger.debug("ping_succeeded", target=target, attempt=attempt)
            return attempt
        if attempt < policy.max_attempts:
            policy.sleep(policy.delay)
        attempt += 1
    raise TransportError(
        f"ping failed after {policy.max_attempts} attempts: {last_error}"
    ) from last_error
