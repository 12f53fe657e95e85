import io
import json
from urllib.error import HTTPError

import pytest
from fastapi.testclient import TestClient

from libs.core import llm_provider as llm_provider_module
from services.enhancer.app import main

client = TestClient(main.app)

CORS_ORIGIN = "Access-Control-Allow-Origin"


class _FakeHTTPResponse:
    def __init__(self, text: str) -> None:
        payload = {"candidates": [{"content": {"parts": [{"text": text}]}}]}
        self._raw = json.dumps(payload).encode("utf-8")
        self.status = 200

    def read(self) -> bytes:
        return self._raw

    def __enter__(self) -> "_FakeHTTPResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False


@pytest.fixture
def gemini_calls(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    monkeypatch.delenv("ENHANCER_PROMPT_SET", raising=False)
    calls = {"requests": [], "replies": []}

    def _fake_urlopen(request, timeout=0):
        calls["requests"].append(json.loads(request.data.decode("utf-8")))
        reply = calls["replies"].pop(0)
        if isinstance(reply, Exception):
            raise reply
        return _FakeHTTPResponse(reply)

    monkeypatch.setattr(llm_provider_module, "urlopen", _fake_urlopen)
    return calls


def test_preflight_returns_cors_headers():
    response = client.options("/enhance-resume")
    assert response.status_code == 200
    assert response.content == b""
    assert response.headers[CORS_ORIGIN] == "*"
    assert "x-client-info" in response.headers["Access-Control-Allow-Headers"]


def test_skills_request_round_trip(gemini_calls):
    gemini_calls["replies"].append(
        '{"technical": ["Node.js", "PostgreSQL"], "soft": ["Leadership"]}'
    )

    response = client.post(
        "/enhance-resume",
        json={
            "type": "skills",
            "experience": [
                "Led a team of 5 engineers to ship a payments API, reducing latency by 30%"
            ],
        },
    )

    assert response.status_code == 200
    assert response.json() == {"technical": ["Node.js", "PostgreSQL"], "soft": ["Leadership"]}
    assert response.headers[CORS_ORIGIN] == "*"
    assert len(gemini_calls["requests"]) == 1
    prompt = gemini_calls["requests"][0]["contents"][0]["parts"][0]["text"]
    assert "payments API" in prompt


def test_summarize_returns_bullets(gemini_calls):
    gemini_calls["replies"].append("* Resolved 40 tickets a week\n* Trained 3 new hires")

    response = client.post("/enhance-resume", json={"type": "summarize", "text": "Support desk"})

    assert response.status_code == 200
    assert response.json() == {"summary": "• Resolved 40 tickets a week\n• Trained 3 new hires"}


def test_upstream_failure_becomes_500_with_detail(gemini_calls):
    gemini_calls["replies"].append(
        HTTPError(
            url="https://generativelanguage.googleapis.com",
            code=503,
            msg="Service Unavailable",
            hdrs=None,
            fp=io.BytesIO(b'{"error":"overloaded"}'),
        )
    )

    response = client.post("/enhance-resume", json={"type": "summarize", "text": "Support desk"})

    assert response.status_code == 500
    assert "503" in response.json()["error"]
    assert "overloaded" in response.json()["error"]
    assert response.headers[CORS_ORIGIN] == "*"


def test_validation_failure_becomes_500_without_upstream_call(gemini_calls):
    response = client.post("/enhance-resume", json={"type": "summary", "experience": []})

    assert response.status_code == 500
    assert "experience" in response.json()["error"]
    assert gemini_calls["requests"] == []


def test_invalid_json_body_becomes_500(gemini_calls):
    response = client.post(
        "/enhance-resume",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 500
    assert response.json()["error"].startswith("Invalid JSON in request body")
    assert gemini_calls["requests"] == []


def test_missing_api_key_becomes_500(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("LLM_PROVIDER", raising=False)

    response = client.post("/enhance-resume", json={"type": "summarize", "text": "Support desk"})

    assert response.status_code == 500
    assert "GEMINI_API_KEY" in response.json()["error"]


def test_parse_failure_becomes_500(gemini_calls):
    gemini_calls["replies"].append("No dates available")

    response = client.post("/enhance-resume", json={"type": "education-dates"})

    assert response.status_code == 500
    assert "MM YYYY - MM YYYY" in response.json()["error"]


def test_metrics_are_exposed(gemini_calls):
    gemini_calls["replies"].append("01 2020 - 06 2022")
    client.post("/enhance-resume", json={"type": "education-dates"})

    response = client.get("/metrics/")

    assert response.status_code == 200
    assert "enhance_requests_total" in response.text
