from __future__ import annotations

from typing import Optional


class EnhancerError(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(EnhancerError):
    def __init__(self, detail: str, field: Optional[str] = None) -> None:
        super().__init__(detail)
        self.field = field


class ConfigurationError(EnhancerError):
    pass


class UpstreamError(EnhancerError):
    def __init__(self, detail: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.body = body


class ParseError(EnhancerError):
    pass
