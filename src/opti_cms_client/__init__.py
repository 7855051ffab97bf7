"""Async client for the Optimizely CMS content API.

Importing the package has no side effects; ``.env`` files are only read by
``ClientConfig.from_env``.
"""

from .client import CmsClient
from .config import ApiVersion, ClientConfig, ClientSettings, OAuthCredentials, resolve_settings
from .errors import ApiError, CmsClientError, ConfigurationError, ErrorKind, FieldError, RequestTimeoutError
from .models import ApiResult, ContentItem, ContentItemPatch, PagedResult, TokenResponse

__all__ = [
    "ApiError",
    "ApiResult",
    "ApiVersion",
    "ClientConfig",
    "ClientSettings",
    "CmsClient",
    "CmsClientError",
    "ConfigurationError",
    "ContentItem",
    "ContentItemPatch",
    "ErrorKind",
    "FieldError",
    "OAuthCredentials",
    "PagedResult",
    "RequestTimeoutError",
    "TokenResponse",
    "resolve_settings",
]
