"""HTTP access layer for the clinical-records service."""

from .client import ApiClient
from .errors import ApiError, ApiNetworkError, ApiStatusError, ApiTimeoutError

__all__ = [
    "ApiClient",
    "ApiError",
    "ApiNetworkError",
    "ApiStatusError",
    "ApiTimeoutError",
]
