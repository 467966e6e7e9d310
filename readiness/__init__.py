"""Init-container readiness gate for HTTP endpoints, PostgreSQL and MongoDB."""

from __future__ import annotations

from readiness.orchestrator import Stage, build_stages, run_stages, wait_for_dependencies
from readiness.retry import RetryPolicy, run_with_retry, wait_for_ping

__all__ = [
    "RetryPolicy",
    "Stage",
    "build_stages",
    "run_stages",
    "run_with_retry",
    "wait_for_dependencies",
    "wait_for_ping",
]
