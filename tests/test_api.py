"""
Tests for the translation API.
"""

import pytest
from fastapi.testclient import TestClient

from cron_translator.api.app import app
from cron_translator.api.dependencies import flush_periodically
from cron_translator.api.middleware import SECURITY_HEADERS
from cron_translator.services import QuotaTracker
from tests.conftest import PRIMARY, ScriptedProvider, run, timeout_error


@pytest.fixture
def client(make_client):
    """Create a test client whose primary model answers 3 PM daily."""
    return make_client(ScriptedProvider("0 15 * * *"))


def assert_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value


def test_root():
    """Test landing page."""
    response = TestClient(app).get("/")
    assert response.status_code == 200
    assert "Cron Translator" in response.text
    assert_security_headers(response)


def test_translate(client):
    """End-to-end: phrase in, cron out."""
    response = client.post("/api/translate", json={"input": "every day at 3 PM"})
    assert response.status_code == 200
    assert response.json() == {
        "cron": "0 15 * * *",
        "model": PRIMARY,
        "input": "every day at 3 pm",
    }
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    assert_security_headers(response)


def test_translate_served_from_cache(make_client):
    """An identical normalized input does not reach the model again."""
    provider = ScriptedProvider("0 15 * * *")
    client = make_client(provider)

    first = client.post("/api/translate", json={"input": "every day at 3 PM"})
    second = client.post("/api/translate", json={"input": "  EVERY day at 3 pm "})

    assert first.json() == second.json()
    assert len(provider.calls) == 1


def test_translate_missing_input(client):
    response = client.post("/api/translate", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing input field"}


def test_translate_blank_input(client):
    response = client.post("/api/translate", json={"input": "   \t  "})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing input field"}


def test_translate_input_too_long(client):
    response = client.post("/api/translate", json={"input": "x" * 201})
    assert response.status_code == 413
    assert response.json() == {"error": "Input too long (max 200 characters)"}
    assert_security_headers(response)


def test_translate_malformed_body(client):
    response = client.post("/api/translate", json={"input": ["not", "a", "string"]})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request body"
    assert body["details"]["fields"] == ["body.input"]


def test_translate_untranslatable(make_client):
    client = make_client(ScriptedProvider("invalid", "invalid"))
    response = client.post("/api/translate", json={"input": "bake a cake"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Could not translate input to a valid cron expression after retrying"
    assert body["details"]["input"] == "bake a cake"
    assert body["details"]["attempts"] == 2
    assert "untranslatable" in body["details"]["lastError"]


def test_translate_retries_primary_after_timeout(make_client, sleeper):
    client = make_client(ScriptedProvider(timeout_error(), "0 15 * * *"))
    response = client.post("/api/translate", json={"input": "every day at 3 PM"})

    assert response.status_code == 200
    assert response.json()["model"] == PRIMARY
    assert sleeper.delays == [0.25]


def test_translate_per_caller_rate_limit(make_client, clock):
    client = make_client(ScriptedProvider("0 15 * * *", "0 16 * * *", "0 17 * * *"))
    headers = {"CF-Connecting-IP": "203.0.113.7"}

    for hour in (3, 4, 5):
        response = client.post("/api/translate", json={"input": f"daily at {hour} pm"}, headers=headers)
        assert response.status_code == 200
        clock.advance(61)

    response = client.post("/api/translate", json={"input": "daily at 6 pm"}, headers=headers)
    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Rate limit exceeded. Please try again later."
    assert body["rateLimitType"] == "perUser"
    assert body["details"]["reason"] == "per_caller"
    assert body["details"]["perUser"] == {
        "max": 3,
        "windowMs": 3_600_000,
        "burstMax": 2,
        "burstWindowMs": 60_000,
    }
    assert body["details"]["daily"]["used"] == 3
    assert_security_headers(response)


def test_translate_burst_limit(make_client):
    client = make_client(ScriptedProvider("0 15 * * *", "0 16 * * *"))
    for hour in (3, 4):
        assert client.post("/api/translate", json={"input": f"daily at {hour} pm"}).status_code == 200

    response = client.post("/api/translate", json={"input": "daily at 5 pm"})
    assert response.status_code == 429
    assert response.json()["rateLimitType"] == "perUser"
    assert response.json()["details"]["reason"] == "burst"


def test_translate_daily_limit(make_client, test_settings):
    provider = ScriptedProvider(*["0 15 * * *"] * test_settings.daily_limit)
    client = make_client(provider)

    for n in range(test_settings.daily_limit):
        headers = {"X-Forwarded-For": f"198.51.100.{n}, 10.0.0.1"}
        assert client.post("/api/translate", json={"input": f"phrase {n}"}, headers=headers).status_code == 200

    response = client.post("/api/translate", json={"input": "one more"}, headers={"X-Forwarded-For": "192.0.2.1"})
    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Daily API limit reached. Please try again tomorrow."
    assert body["rateLimitType"] == "daily"
    assert body["details"]["daily"] == {
        "limit": test_settings.daily_limit,
        "used": test_settings.daily_limit,
        "remaining": 0,
        "date": "2026-10-18",
    }


def test_translate_without_api_key(make_client):
    client = make_client(None)
    response = client.post("/api/translate", json={"input": "every day at 3 PM"})
    assert response.status_code == 500
    assert response.json() == {"error": "Missing OPENROUTER_API_KEY environment variable"}
    assert_security_headers(response)


def test_health(client):
    """Test health check endpoint."""
    client.post("/api/translate", json={"input": "every day at 3 PM"})

    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["rateLimit"]["perUser"]["max"] == 3
    assert data["rateLimit"]["perUser"]["windowMs"] == 3_600_000
    assert data["rateLimit"]["daily"] == {"limit": 5, "used": 1, "remaining": 4, "date": "2026-10-18"}
    assert_security_headers(response)


def test_api_health_alias(client):
    assert client.get("/api/health").json() == client.get("/health").json()


def test_health_degraded_when_store_down(client, store):
    store.fail = True
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "degraded"


def test_translate_survives_store_outage(client, store):
    """Quota and cache are guards, not requirements of translation."""
    store.fail = True
    response = client.post("/api/translate", json={"input": "every day at 3 PM"})
    assert response.status_code == 200
    assert response.json()["cron"] == "0 15 * * *"


def test_stats(client):
    client.post("/api/translate", json={"input": "every day at 3 PM"})
    client.post("/api/translate", json={"input": "every day at 3 PM"})

    data = client.get("/stats").json()
    assert data["total_requests"] == 2
    assert data["cache_hits"] == 1
    assert data["cache_misses"] == 1
    assert data["model_calls"] == 1


def test_openapi_document():
    response = TestClient(app).get("/doc")
    assert response.status_code == 200
    assert "/api/translate" in response.json()["paths"]


def test_docs_ui_gets_relaxed_csp():
    response = TestClient(app).get("/ui")
    assert response.status_code == 200
    assert "cdn.jsdelivr.net" in response.headers["Content-Security-Policy"]
    assert response.headers["X-Frame-Options"] == "DENY"


def test_unknown_route():
    response = TestClient(app).get("/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}
    assert_security_headers(response)


class StopFlushing(Exception):
    pass


def test_pending_quota_counts_are_flushed_periodically(store, clock):
    """Debounced increments reach the store without waiting for another request."""
    quota = QuotaTracker(store=store, key_prefix="test", daily_limit=10, flush_interval=3.0, clock=clock)
    quota.admit("a")
    clock.advance(1)
    quota.admit("b")
    daily_key = "test:daily:2026-10-18"
    assert store.get(daily_key) == "1"

    delays = []

    async def sleeper(seconds):
        delays.append(seconds)
        if len(delays) > 1:
            raise StopFlushing

    with pytest.raises(StopFlushing):
        run(flush_periodically(quota, 3.0, sleeper=sleeper))

    assert store.get(daily_key) == "2"
    assert delays == [3.0, 3.0]
