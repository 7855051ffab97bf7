"""High-level CMS client exposing the content operations.

``CmsClient`` owns one ``httpx.AsyncClient`` shared by its token manager and
dispatcher, and is meant to be used as an async context manager::

    async with CmsClient(ClientConfig(credentials=creds)) as cms:
        item = await cms.get_content("abc123")
"""

import logging
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any, Self
from urllib.parse import quote

import httpx

from ..config import ClientConfig, ClientSettings, OAuthCredentials, resolve_settings
from ..errors import ConfigurationError
from ..models import ApiResult, ContentItem, ContentItemPatch, PagedResult, TokenResponse
from .dispatcher import QueryParams, RequestDispatcher
from .token_manager import TokenManager, epoch_ms
from .transport import build_http_client

logger = logging.getLogger("opti_cms_client.cms_client")

type ContentInput = ContentItemPatch | Mapping[str, Any]


def _segment(value: str) -> str:
    return quote(value, safe="")


def _payload(item: ContentInput) -> dict[str, Any]:
    if isinstance(item, ContentItemPatch):
        return item.to_payload()
    return ContentItemPatch.model_validate(dict(item)).to_payload()


class CmsClient:
    """Authenticated client for CMS content items."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client options; omitted values use defaults.
            http_client: Optional externally managed HTTP client. It is not
                closed by :meth:`aclose`.
            clock: Current time in epoch milliseconds, used for token expiry.

        """
        self._settings = resolve_settings(config)
        self._owns_http_client = http_client is None
        self._http_client = http_client or build_http_client(self._settings.timeout_ms)
        self._token_manager = TokenManager(self._settings, self._http_client, clock=clock)
        self._dispatcher = RequestDispatcher(self._settings, self._token_manager, self._http_client)

    async def __aenter__(self) -> Self:
        """Return the client for ``async with`` usage."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the owned HTTP client."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it. Safe to repeat."""
        if self._owns_http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    @property
    def settings(self) -> ClientSettings:
        """Return the resolved settings."""
        return self._settings

    @property
    def base_url(self) -> str:
        """Return the base URL requests are sent to."""
        return self._settings.base_url

    @property
    def dispatcher(self) -> RequestDispatcher:
        """Return the underlying request dispatcher for custom calls."""
        return self._dispatcher

    def has_credentials(self) -> bool:
        """Return whether OAuth client credentials are configured."""
        return self._token_manager.has_credentials

    def has_access_token(self) -> bool:
        """Return whether a bearer token is currently held."""
        return self._token_manager.access_token is not None

    # -- token lifecycle -------------------------------------------------

    async def authenticate(self, credentials: OAuthCredentials | None = None) -> TokenResponse:
        """Run the client-credentials exchange and store the new token."""
        return await self._token_manager.authenticate(credentials)

    async def ensure_authenticated(self) -> None:
        """Acquire or refresh the token if the refresh policy calls for it."""
        await self._token_manager.ensure_authenticated()

    def is_token_expired(self) -> bool:
        """Return whether the token is expired or within the refresh buffer."""
        return self._token_manager.is_expired()

    def set_access_token(self, token: str, expires_in_seconds: int | None = None) -> None:
        """Use an externally obtained token."""
        self._token_manager.set_access_token(token, expires_in_seconds)

    def get_access_token(self) -> str | None:
        """Return the current bearer token, if any."""
        return self._token_manager.access_token

    def get_token_expires_at(self) -> int | None:
        """Return the token expiry in epoch milliseconds, if recorded."""
        return self._token_manager.expires_at

    # -- content operations ----------------------------------------------

    async def get_content(
        self,
        content_id: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: QueryParams | None = None,
    ) -> ApiResult[ContentItem]:
        """Fetch a single content item."""
        return await self._dispatcher.dispatch(
            f"/experimental/content/{_segment(content_id)}",
            "GET",
            headers=headers,
            params=params,
            response_type=ContentItem,
        )

    async def list_content(
        self,
        container_key: str,
        page_index: int | None = None,
        page_size: int | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> PagedResult[ContentItem]:
        """List the items of a container, one page at a time.

        Paging parameters are only sent when given; otherwise the API applies
        its own defaults. Returns the page itself rather than an ``ApiResult``.
        """
        params: dict[str, int] = {}
        if page_index is not None:
            params["pageIndex"] = page_index
        if page_size is not None:
            params["pageSize"] = page_size

        result = await self._dispatcher.dispatch(
            f"/experimental/content/{_segment(container_key)}/items",
            "GET",
            headers=headers,
            params=params,
            response_type=PagedResult[ContentItem],
        )
        return result.data

    async def create_content(
        self,
        item: ContentInput,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResult[ContentItem]:
        """Create a content item from the given fields."""
        return await self._dispatcher.dispatch(
            "/content",
            "POST",
            body=_payload(item),
            headers=headers,
            response_type=ContentItem,
        )

    async def update_content(
        self,
        content_id: str,
        updates: ContentInput,
        *,
        etag: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResult[ContentItem]:
        """Apply a merge-patch to a content item.

        Args:
            content_id: Item to update.
            updates: Only the fields to change.
            etag: Sent as ``If-Match`` for optimistic concurrency.
            headers: Per-call headers.

        Raises:
            ConfigurationError: If the configured API version has no
                partial updates. No request is sent in that case.

        """
        api_version = self._settings.api_version
        if not api_version.supports_partial_updates:
            msg = f"Partial content updates are not supported by API version '{api_version.value}'."
            raise ConfigurationError(msg)

        return await self._dispatcher.dispatch(
            f"/content/{_segment(content_id)}",
            "PATCH",
            body=_payload(updates),
            headers=headers,
            etag=etag,
            response_type=ContentItem,
        )

    async def delete_content(
        self,
        content_id: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResult[None]:
        """Delete a content item."""
        logger.info("Deleting content item %s", content_id)
        return await self._dispatcher.dispatch(
            f"/content/{_segment(content_id)}",
            "DELETE",
            headers=headers,
            response_type=None,
        )


__all__ = ["CmsClient"]
