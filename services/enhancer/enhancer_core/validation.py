from __future__ import annotations

import json
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from libs.core.models import EnhanceRequest, RequestKind

from .errors import ParseError, ValidationError

_KIND_VALUES = frozenset(kind.value for kind in RequestKind)

_REQUIRED_TEXT_FIELDS: Dict[RequestKind, str] = {
    RequestKind.summarize: "text",
    RequestKind.ats_scan: "text",
    RequestKind.improve: "description",
}

_REQUIRED_SEQUENCE_FIELDS: Dict[RequestKind, str] = {
    RequestKind.summary: "experience",
    RequestKind.skills: "experience",
}


def is_missing_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def parse_request(payload: Any) -> EnhanceRequest:
    """Build a typed request from a decoded JSON body.

    Null-valued fields count as absent. Every top-level field is type checked,
    context records are checked for their known keys only, and ``linkedinData``
    must be an object whose contents are passed through untouched.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    cleaned = {key: value for key, value in payload.items() if value is not None}
    kind = cleaned.get("type", cleaned.get("kind"))
    if is_missing_value(kind):
        raise ValidationError("Missing 'type' parameter in request", field="type")
    if not isinstance(kind, str) or kind not in _KIND_VALUES:
        raise ValidationError(f"Unsupported request type: {kind}", field="type")
    try:
        request = EnhanceRequest.model_validate(cleaned)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
        raise ValidationError(
            f"Invalid '{field}' parameter: {first.get('msg', 'invalid value')}", field=field
        ) from exc
    ensure_required_fields(request)
    return request


def ensure_required_fields(request: EnhanceRequest) -> None:
    kind = request.kind
    text_field = _REQUIRED_TEXT_FIELDS.get(kind)
    if text_field and is_missing_value(getattr(request, text_field)):
        raise ValidationError(
            f"Missing '{text_field}' parameter for {kind.value}", field=text_field
        )
    sequence_field = _REQUIRED_SEQUENCE_FIELDS.get(kind)
    if sequence_field:
        values = getattr(request, sequence_field) or []
        if not any(not is_missing_value(item) for item in values):
            raise ValidationError(
                f"Insufficient {sequence_field} data for {kind.value}", field=sequence_field
            )
    if kind is RequestKind.full_resume and request.linkedinData is None:
        raise ValidationError(
            "Missing 'linkedinData' parameter for resume enhancement", field="linkedinData"
        )


def _balanced_object_end(text: str, start: int) -> int:
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return idx
    return -1


def extract_json(text: str) -> str:
    """Return the first balanced ``{...}`` substring, or "" when there is none.

    An opening brace that never closes (stray prose such as "wrap it in {")
    does not hide a complete object that follows it.
    """
    if not text:
        return ""
    start = text.find("{")
    while start != -1:
        end = _balanced_object_end(text, start)
        if end != -1:
            return text[start : end + 1]
        start = text.find("{", start + 1)
    return ""


def parse_json_object(json_text: str, label: str) -> Dict[str, Any]:
    if not json_text:
        raise ParseError(f"No valid JSON found in {label} response")
    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse the AI-generated {label} data: {exc}") from exc
    if not isinstance(payload, dict):
        raise ParseError(f"Failed to parse the AI-generated {label} data: not an object")
    return payload
