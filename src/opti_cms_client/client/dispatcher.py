"""Single-request pipeline: auth, URL and header assembly, send, decode.

Header precedence, lowest to highest:

1. default headers from the settings
2. per-call headers
3. ``Authorization: Bearer <token>`` when a token is held
4. ``Content-Type: application/merge-patch+json`` for PATCH
5. ``If-Match: <etag>`` when an etag is supplied
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import TypeAdapter

from ..config import ClientSettings
from ..errors import error_from_response
from ..models import ApiResult
from .token_manager import TokenManager
from .transport import send_with_timeout

logger = logging.getLogger("opti_cms_client.dispatcher")

MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"

type QueryValue = str | int | float | bool
type QueryParams = Mapping[str, QueryValue]


def serialize_query_value(value: QueryValue) -> str:
    """Return the wire form of a query value; booleans are lower-case."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RequestDispatcher:
    """Build, send and decode authenticated requests against the CMS API."""

    def __init__(
        self,
        settings: ClientSettings,
        token_manager: TokenManager,
        http_client: httpx.AsyncClient,
    ) -> None:
        self._settings = settings
        self._token_manager = token_manager
        self._http_client = http_client

    def build_url(self, path: str, params: QueryParams | None = None) -> httpx.URL:
        """Join ``path`` onto the base URL and append ``params`` in order."""
        url = httpx.URL(f"{self._settings.base_url}{path}")
        if params:
            appended = [(key, serialize_query_value(value)) for key, value in params.items()]
            url = url.copy_with(params=httpx.QueryParams(list(url.params.multi_items()) + appended))
        return url

    def build_headers(
        self,
        method: str,
        headers: Mapping[str, str] | None = None,
        etag: str | None = None,
    ) -> httpx.Headers:
        """Merge header layers in precedence order (see module docstring)."""
        merged = httpx.Headers(self._settings.default_headers)
        for name, value in (headers or {}).items():
            merged[name] = value
        token = self._token_manager.access_token
        if token:
            merged["Authorization"] = f"Bearer {token}"
        if method.upper() == "PATCH":
            merged["Content-Type"] = MERGE_PATCH_CONTENT_TYPE
        if etag is not None:
            merged["If-Match"] = etag
        return merged

    async def dispatch[T](  # noqa: PLR0913
        self,
        path: str,
        method: str = "GET",
        *,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        params: QueryParams | None = None,
        etag: str | None = None,
        response_type: type[T] | Any = Any,
    ) -> ApiResult[T]:
        """Send one authenticated request and decode the response.

        Args:
            path: Path relative to the base URL, starting with ``/``.
            method: HTTP method.
            body: JSON-serializable request body.
            headers: Per-call headers.
            params: Query parameters, appended in insertion order.
            etag: Value for ``If-Match``.
            response_type: Type the success body is validated against.
                ``None`` means an empty body is expected.

        Returns:
            The decoded body with the HTTP status and ``ETag`` header.

        Raises:
            ConfigurationError: If no token can be obtained.
            ApiError: On a non-2xx response.
            RequestTimeoutError: If the round trip exceeds the timeout.

        """
        await self._token_manager.ensure_authenticated()

        method = method.upper()
        request = self._http_client.build_request(
            method,
            self.build_url(path, params),
            headers=self.build_headers(method, headers, etag),
            json=body,
        )
        logger.debug("%s %s", method, request.url)
        response = await send_with_timeout(
            self._http_client,
            request,
            timeout_ms=self._settings.timeout_ms,
        )

        if not response.is_success:
            raise error_from_response(response)

        return ApiResult(
            data=self._decode(response, response_type),
            status=response.status_code,
            etag=response.headers.get("ETag"),
        )

    @staticmethod
    def _decode[T](response: httpx.Response, response_type: type[T] | Any) -> T:
        if response_type is None:
            return None  # type: ignore[return-value]
        if not response.content:
            return TypeAdapter(response_type).validate_python(None)
        return TypeAdapter(response_type).validate_python(response.json())


__all__ = ["MERGE_PATCH_CONTENT_TYPE", "RequestDispatcher", "serialize_query_value"]
