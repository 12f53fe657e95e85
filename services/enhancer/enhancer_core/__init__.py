from .errors import (
    ConfigurationError,
    EnhancerError,
    ParseError,
    UpstreamError,
    ValidationError,
)
from .service import create_provider_from_env, handle, normalize_reply

__all__ = [
    "EnhancerError",
    "ValidationError",
    "ConfigurationError",
    "UpstreamError",
    "ParseError",
    "create_provider_from_env",
    "handle",
    "normalize_reply",
]
