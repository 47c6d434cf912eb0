"""Utility modules for LocalEvents."""

from __future__ import annotations

# Async helpers
from .async_helpers import format_traceback, task_wrapper

# Backoff
from .backoff import ExponentialBackoff

# JSON utilities
from .json_utils import (
    SERIALIZE_ENV,
    json_load,
    json_minify,
    json_save,
    merge_json,
)

# Rate limiting
from .rate_limiter import RateLimiter


__all__ = [
    # JSON utilities
    "json_minify",
    "json_load",
    "json_save",
    "merge_json",
    "SERIALIZE_ENV",
    # Async helpers
    "format_traceback",
    "task_wrapper",
    # Rate limiting
    "RateLimiter",
    # Backoff
    "ExponentialBackoff",
]
