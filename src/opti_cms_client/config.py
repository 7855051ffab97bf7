"""Configuration management for the CMS client.

``ClientConfig`` is the construction surface: every field is optional.
``resolve_settings`` applies defaults and produces the immutable
``ClientSettings`` the rest of the client reads. Resolution is pure; no URL
validation or I/O happens here.
"""

import os
from enum import StrEnum
from typing import Any, Self

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_TOKEN_ENDPOINT = "https://api.cms.optimizely.com/oauth/token"
JSON_CONTENT_TYPE = "application/json"
ENV_PREFIX = "OPTI_CMS_"


class ApiVersion(StrEnum):
    """Supported CMS API versions."""

    PREVIEW2 = "preview2"
    PREVIEW3 = "preview3"

    @property
    def default_base_url(self) -> str:
        """Return the well-known API endpoint for this version."""
        return f"https://api.cms.optimizely.com/{self.value}"

    @property
    def supports_partial_updates(self) -> bool:
        """Return whether PATCH merge-patch updates are available."""
        return self is not ApiVersion.PREVIEW2


class OAuthCredentials(BaseModel):
    """Client-credentials pair with an optional impersonation subject."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    act_as: str | None = None


class ClientConfig(BaseModel):
    """Caller-supplied client options; anything omitted gets a default."""

    base_url: str | None = None
    token_endpoint: str | None = None
    timeout_ms: int | None = Field(default=None, gt=0)
    headers: dict[str, str] | None = None
    api_version: ApiVersion | None = None
    auto_refresh: bool | None = None
    credentials: OAuthCredentials | None = None
    access_token: str | None = None

    @classmethod
    def from_env(cls) -> Self:
        """Build a configuration from ``OPTI_CMS_*`` environment variables.

        A local ``.env`` file is loaded first for development convenience.

        Raises:
            ConfigurationError: If the environment holds invalid values.

        """
        load_dotenv()
        raw_config: dict[str, Any] = {
            "base_url": _env("BASE_URL"),
            "token_endpoint": _env("TOKEN_ENDPOINT"),
            "timeout_ms": _env("TIMEOUT_MS"),
            "api_version": _env("API_VERSION"),
            "auto_refresh": _env("AUTO_REFRESH"),
            "access_token": _env("ACCESS_TOKEN"),
        }
        client_id = _env("CLIENT_ID")
        client_secret = _env("CLIENT_SECRET")
        if client_id or client_secret:
            raw_config["credentials"] = {
                "client_id": client_id,
                "client_secret": client_secret,
                "act_as": _env("ACT_AS"),
            }
        try:
            return cls(**raw_config)
        except ValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            msg = f"Invalid CMS client configuration: {messages}"
            raise ConfigurationError(msg) from exc


class ClientSettings(BaseModel):
    """Resolved, immutable client settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    token_endpoint: str
    timeout_ms: int = Field(gt=0)
    default_headers: dict[str, str]
    api_version: ApiVersion
    auto_refresh: bool
    initial_credentials: OAuthCredentials | None = None
    initial_access_token: str | None = None

    @property
    def timeout_seconds(self) -> float:
        """Return the timeout as seconds for asyncio and httpx."""
        return self.timeout_ms / 1000


def resolve_settings(config: ClientConfig | None = None) -> ClientSettings:
    """Apply defaults to ``config`` and return immutable settings.

    Args:
        config: Caller options. ``None`` means all defaults.

    Returns:
        The resolved settings.

    """
    config = config or ClientConfig()
    api_version = config.api_version or ApiVersion.PREVIEW3
    if config.base_url is None:
        base_url = api_version.default_base_url
    else:
        base_url = config.base_url.removesuffix("/")

    default_headers = {"Content-Type": JSON_CONTENT_TYPE}
    for name, value in (config.headers or {}).items():
        # Header names are case-insensitive; drop the default spelling.
        if name.lower() == "content-type":
            default_headers.pop("Content-Type", None)
        default_headers[name] = value

    return ClientSettings(
        base_url=base_url,
        token_endpoint=config.token_endpoint or DEFAULT_TOKEN_ENDPOINT,
        timeout_ms=config.timeout_ms or DEFAULT_TIMEOUT_MS,
        default_headers=default_headers,
        api_version=api_version,
        auto_refresh=True if config.auto_refresh is None else config.auto_refresh,
        initial_credentials=config.credentials,
        initial_access_token=config.access_token,
    )


def _env(name: str) -> str | None:
    """Return a non-empty ``OPTI_CMS_`` variable or ``None``."""
    return os.getenv(f"{ENV_PREFIX}{name}") or None


__all__ = [
    "ApiVersion",
    "ClientConfig",
    "ClientSettings",
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_TOKEN_ENDPOINT",
    "OAuthCredentials",
    "resolve_settings",
]
