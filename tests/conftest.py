"""Shared fixtures for the readiness tests."""

from __future__ import annotations

import os

import pytest

from readiness.retry import RetryPolicy

_ENV_PREFIXES = ("READINESS_",)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the host environment out of settings-driven tests."""
    for name in list(os.environ):
        if name.upper().startswith(_ENV_PREFIXES) or name.upper() == "POD_NAMESPACE":
            monkeypatch.delenv(name, raising=False)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def ping_policy(sleeps) -> RetryPolicy:
    return RetryPolicy.bounded(3, 5.0, sleep=sleeps)
