"""Sequential driver for the readiness stages.

Stages always run in the same order (HTTP, PostgreSQL, MongoDB). A stage
that keeps failing holds back everything after it.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, Optional

import structlog

from readiness.http_check import check_http
from readiness.mongo_check import check_mongo
from readiness.postgres_check import check_postgres
from readiness.retry import RetryPolicy, run_with_retry
from readiness.settings import ReadinessSettings, RetrySettings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Stage:
    name: str
    check: Callable[[], None]


def stage_policy(retry: RetrySettings) -> RetryPolicy:
    if retry.max_attempts:
        return RetryPolicy.bounded(retry.max_attempts, retry.retry_delay)
    return RetryPolicy.forever(retry.retry_delay)


def ping_policy(retry: RetrySettings) -> RetryPolicy:
    return RetryPolicy.bounded(retry.ping_attempts, retry.ping_delay)


def build_stages(settings: ReadinessSettings, *, pings: Optional[RetryPolicy] = None) -> list[Stage]:
    pings = pings or ping_policy(settings.retry)
    return [
        Stage("http", partial(check_http, settings.http)),
        Stage("postgres", partial(check_postgres, settings.postgres, pings)),
        Stage("mongo", partial(check_mongo, settings.mongo, pings)),
    ]


def run_stages(stages: Iterable[Stage], policy: RetryPolicy) -> None:
    """Run ``stages`` one after another, each until it succeeds."""
    for stage in stages:
        run_with_retry(stage.check, policy, stage=stage.name)
    logger.info("all_dependencies_ready")


def wait_for_dependencies(
    settings: ReadinessSettings,
    *,
    policy: Optional[RetryPolicy] = None,
    pings: Optional[RetryPolicy] = None,
) -> None:
    """Block until every configured dependency is reachable."""
    run_stages(
        build_stages(settings, pings=pings),
        policy or stage_policy(settings.retry),
    )
