from __future__ import annotations

import json
import os
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram, make_asgi_app
from starlette.concurrency import run_in_threadpool

from enhancer_core import EnhancerError, ValidationError, handle
from libs.core import logging as core_logging
from libs.core.models import RequestKind

core_logging.configure_logging("enhancer")
LOGGER = core_logging.get_logger("enhancer")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

_KNOWN_KINDS = frozenset(kind.value for kind in RequestKind)

enhance_requests_total = Counter(
    "enhance_requests_total", "Resume enhancement requests", ["kind", "outcome"]
)
enhance_request_duration_seconds = Histogram(
    "enhance_request_duration_seconds", "Resume enhancement request latency", ["kind"]
)

app = FastAPI(title="Resume Enhancement Service")
app.mount("/metrics", make_asgi_app())


def _kind_label(payload: Any) -> str:
    if not isinstance(payload, dict):
        return "unknown"
    kind = payload.get("type") or payload.get("kind")
    return kind if isinstance(kind, str) and kind in _KNOWN_KINDS else "unknown"


def _error_response(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=500, headers=CORS_HEADERS)


@app.options("/enhance-resume")
def enhance_resume_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@app.post("/enhance-resume")
async def enhance_resume_endpoint(request: Request) -> JSONResponse:
    started_at = time.monotonic()
    kind = "unknown"
    try:
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValidationError(f"Invalid JSON in request body: {exc}") from exc
        kind = _kind_label(payload)
        result = await run_in_threadpool(handle, payload)
    except EnhancerError as exc:
        LOGGER.warning(
            "enhance_request_failed",
            kind=kind,
            error_type=exc.__class__.__name__,
            error=exc.detail,
        )
        enhance_requests_total.labels(kind=kind, outcome=exc.__class__.__name__).inc()
        return _error_response(exc.detail)
    except Exception:
        LOGGER.exception("enhance_request_error", kind=kind)
        enhance_requests_total.labels(kind=kind, outcome="error").inc()
        return _error_response("Unknown error occurred")
    finally:
        enhance_request_duration_seconds.labels(kind=kind).observe(time.monotonic() - started_at)
    enhance_requests_total.labels(kind=kind, outcome="success").inc()
    return JSONResponse(result, headers=CORS_HEADERS)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
