from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


@dataclass
class LLMResponse:
    content: str


class LLMProviderError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LLMProvider:
    def generate(self, prompt: str) -> LLMResponse:  # pragma: no cover - interface
        raise NotImplementedError


class MockLLMProvider(LLMProvider):
    """Replays canned replies; useful for local runs without credentials."""

    def __init__(self, replies: Optional[List[str]] = None) -> None:
        self.replies = list(replies or [])
        self.prompts: List[str] = []

    def generate(self, prompt: str) -> LLMResponse:
        self.prompts.append(prompt)
        if self.replies:
            return LLMResponse(content=self.replies.pop(0))
        return LLMResponse(content="• Mock response")


class GeminiProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout_s: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    def generate(self, prompt: str) -> LLMResponse:
        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        request = Request(
            f"{self.endpoint}?{urlencode({'key': self.api_key})}",
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urlopen(request, timeout=self.timeout_s) as response:
                status = getattr(response, "status", 200)
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace") if exc.fp else str(exc)
            raise LLMProviderError(
                f"Gemini API error: {exc.code} {detail}", status_code=exc.code, body=detail
            ) from exc
        except (URLError, TimeoutError) as exc:
            raise LLMProviderError(f"Gemini API connection error: {exc}") from exc
        body = raw.decode("utf-8", errors="replace")
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise LLMProviderError(
                "Invalid response format from Gemini API", status_code=status, body=body
            ) from exc
        text = _extract_candidate_text(data)
        if not text:
            raise LLMProviderError(
                "Invalid response format from Gemini API", status_code=status, body=body
            )
        return LLMResponse(content=text)


def resolve_provider(
    provider_name: str,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout_s: Optional[float] = None,
) -> LLMProvider:
    name = (provider_name or "gemini").lower()
    if name == "mock":
        return MockLLMProvider()
    if name != "gemini":
        raise ValueError(f"Unsupported LLM_PROVIDER: {provider_name}")
    if not api_key:
        raise ValueError("GEMINI_API_KEY is not set. Please configure your environment variables.")
    return GeminiProvider(
        api_key=api_key,
        model=model or DEFAULT_GEMINI_MODEL,
        base_url=base_url or DEFAULT_GEMINI_BASE_URL,
        timeout_s=timeout_s or 30.0,
    )


def _extract_candidate_text(response: Any) -> str:
    if not isinstance(response, dict):
        return ""
    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return ""
    text = parts[0].get("text")
    return text if isinstance(text, str) else ""
