"""Shared fixtures: in-memory store, scripted provider, manual clock."""

import asyncio
from collections import deque
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from cron_translator.api.app import app
from cron_translator.api.dependencies import build_handler, get_handler
from cron_translator.config import Settings
from cron_translator.errors import ModelCallError, StoreError

PRIMARY = "primary/model"
BACKUP = "backup/model"

# 2026-10-18 12:00:00 UTC
NOON = 1792324800.0


class ManualClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: float = NOON) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryStore:
    """KeyValueStore test double honouring TTLs against a clock."""

    def __init__(self, clock: ManualClock) -> None:
        self._clock = clock
        self.data: dict[str, tuple[str, float]] = {}
        self.writes: list[str] = []
        self.fail = False

    def get(self, key: str) -> str | None:
        if self.fail:
            raise StoreError("store down")
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self.data[key]
            return None
        return value

    def set(self, key: str, value: str, ttl: int) -> None:
        if self.fail:
            raise StoreError("store down")
        self.writes.append(key)
        self.data[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> bool:
        return self.data.pop(key, None) is not None

    def ping(self) -> bool:
        return not self.fail


class ScriptedProvider:
    """ChatCompletionProvider test double.

    Each script entry is either the text to return or an exception to raise.
    """

    def __init__(self, *script: str | Exception) -> None:
        self.script = deque(script)
        self.calls: list[dict] = []

    async def complete(self, *, model, messages, temperature, max_tokens, timeout) -> str:
        self.calls.append({"model": model, "messages": messages, "temperature": temperature})
        outcome = self.script.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def close(self) -> None:
        pass


def timeout_error(model: str = PRIMARY) -> ModelCallError:
    return ModelCallError(f"{model} timed out", failure_kind="timeout", model=model)


class RecordingSleeper:
    """Async sleeper that records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock) -> InMemoryStore:
    return InMemoryStore(clock)


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def test_settings() -> Settings:
    return replace(
        Settings(),
        openrouter_api_key="test-key",
        translation_models=(PRIMARY, BACKUP),
        key_prefix="test",
        cache_version="v-test",
        daily_limit=5,
        per_caller_max=3,
        per_caller_window_seconds=3600,
        burst_max=2,
        burst_window_seconds=60,
        counter_flush_seconds=3.0,
    )


@pytest.fixture
def make_client(test_settings, store, clock, sleeper):
    """Build a TestClient whose handler runs on the in-memory doubles."""

    def _make(provider: ScriptedProvider | None, settings: Settings | None = None) -> TestClient:
        handler = build_handler(
            settings or test_settings,
            store,
            provider,
            clock=clock,
            sleeper=sleeper,
        )
        app.dependency_overrides[get_handler] = lambda: handler
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
