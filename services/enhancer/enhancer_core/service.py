from __future__ import annotations

import os
import random
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from libs.core import llm_provider, logging as core_logging, prompts
from libs.core.models import BULLET_KINDS, JSON_KINDS, EnhanceRequest, RequestKind

from .contracts import contract_violations
from .errors import ConfigurationError, ParseError, UpstreamError, ValidationError
from .normalize import has_bullet_markers, normalize_bullets, split_date_range
from .validation import ensure_required_fields, extract_json, parse_json_object, parse_request

LOGGER = core_logging.get_logger("enhancer")

_DEFAULT_GEMINI_TIMEOUT_S = 30.0

BULLET_RESULT_KEYS: Dict[RequestKind, str] = {
    RequestKind.summarize: "summary",
    RequestKind.summary: "summary",
    RequestKind.improve: "improved",
    RequestKind.experience_description: "description",
}

_JSON_LABELS: Dict[RequestKind, str] = {
    RequestKind.ats_scan: "ATS scan",
    RequestKind.skills: "skills",
    RequestKind.full_resume: "resume",
}


def _parse_optional_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def create_provider_from_env() -> llm_provider.LLMProvider:
    try:
        return llm_provider.resolve_provider(
            os.getenv("LLM_PROVIDER", "gemini"),
            api_key=os.getenv("GEMINI_API_KEY", ""),
            model=os.getenv("GEMINI_MODEL", llm_provider.DEFAULT_GEMINI_MODEL),
            base_url=os.getenv("GEMINI_BASE_URL", llm_provider.DEFAULT_GEMINI_BASE_URL),
            timeout_s=_parse_optional_float(os.getenv("GEMINI_TIMEOUT_S"))
            or _DEFAULT_GEMINI_TIMEOUT_S,
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def resolve_prompt_set() -> str:
    return os.getenv("ENHANCER_PROMPT_SET", prompts.DEFAULT_PROMPT_SET)


def build_prompt(request: EnhanceRequest, prompt_set: Optional[str] = None) -> str:
    try:
        return prompts.render_prompt(request, prompt_set or resolve_prompt_set())
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def request_completion(provider: Any, prompt: str) -> str:
    try:
        response = provider.generate(prompt)
    except llm_provider.LLMProviderError as exc:
        raise UpstreamError(str(exc), status_code=exc.status_code, body=exc.body) from exc
    return response.content


def _provider_model(provider: Any) -> str:
    model = getattr(provider, "model", None)
    if isinstance(model, str) and model.strip():
        return model.strip()
    return ""


def _parse_json_reply(kind: RequestKind, text: str) -> Dict[str, Any]:
    parsed = parse_json_object(extract_json(text), _JSON_LABELS[kind])
    if kind is RequestKind.full_resume and parsed.get("projects") is None:
        parsed["projects"] = []
    violations = contract_violations(kind, parsed)
    if violations:
        LOGGER.warning("result_contract_mismatch", kind=kind.value, violations=violations)
    return parsed


def normalize_reply(
    kind: RequestKind,
    text: str,
    choose: Callable[[Sequence[str]], str] = random.choice,
) -> Dict[str, Any]:
    if kind in JSON_KINDS:
        parsed = _parse_json_reply(kind, text)
        if kind is RequestKind.full_resume:
            return {"enhancedResume": parsed}
        return parsed
    if kind in BULLET_KINDS:
        if text.strip() and not has_bullet_markers(text):
            LOGGER.info("bullets_synthesized", kind=kind.value)
        return {BULLET_RESULT_KEYS[kind]: normalize_bullets(text, choose)}
    if kind is RequestKind.education_dates:
        start_date, end_date = split_date_range(text)
        return {"startDate": start_date, "endDate": end_date}
    field = kind.education_field
    if field is None:
        raise ParseError(f"No normalizer for request type: {kind.value}")
    return {field: text.strip()}


def handle(
    request: Union[EnhanceRequest, Mapping[str, Any]],
    provider: Any | None = None,
    *,
    prompt_set: Optional[str] = None,
    choose: Callable[[Sequence[str]], str] = random.choice,
) -> Dict[str, Any]:
    """Run one enhancement: validate, render, complete once, normalize.

    Without an injected provider the credentials are read from the environment
    on every call, so a missing key fails before the request is even inspected.
    """
    if provider is None:
        provider = create_provider_from_env()
    try:
        if isinstance(request, EnhanceRequest):
            ensure_required_fields(request)
            enhance_request = request
        else:
            enhance_request = parse_request(
                dict(request) if isinstance(request, Mapping) else request
            )
    except ValidationError as exc:
        LOGGER.warning("enhance_request_invalid", field=exc.field, error=exc.detail)
        raise
    kind = enhance_request.kind
    LOGGER.info(
        "enhance_request_received",
        kind=kind.value,
        preserve_user_content=enhance_request.preserveUserContent,
    )
    prompt = build_prompt(enhance_request, prompt_set)
    LOGGER.info(
        "completion_requested",
        kind=kind.value,
        prompt_chars=len(prompt),
        provider_type=provider.__class__.__name__,
        provider_model=_provider_model(provider),
    )
    try:
        text = request_completion(provider, prompt)
    except UpstreamError as exc:
        LOGGER.warning(
            "completion_failed", kind=kind.value, status_code=exc.status_code, error=exc.detail
        )
        raise
    result = normalize_reply(kind, text, choose)
    LOGGER.info("enhance_completed", kind=kind.value, reply_chars=len(text))
    return result
