"""Bearer token lifecycle for the CMS API."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from ..config import ClientSettings, OAuthCredentials
from ..errors import ApiError, ConfigurationError, RequestTimeoutError, error_from_response
from ..models import TokenResponse
from .transport import send_with_timeout

logger = logging.getLogger("opti_cms_client.token_manager")

EXPIRY_BUFFER_MS = 30_000


def epoch_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(slots=True)
class TokenState:
    """Current bearer token; no expiry means the token never expires."""

    access_token: str | None = None
    expires_at_epoch_ms: int | None = None


class TokenManager:
    """Acquire and refresh OAuth2 client-credentials tokens.

    Refreshes are not serialized. Two requests that find the token missing or
    expired at the same time each run their own exchange, and a request in
    flight may still carry the token that a concurrent refresh replaced.
    """

    def __init__(
        self,
        settings: ClientSettings,
        http_client: httpx.AsyncClient,
        *,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        """Initialize the token manager.

        Args:
            settings: Resolved client settings.
            http_client: Client used for the token exchange.
            clock: Returns the current time in epoch milliseconds.

        """
        self._settings = settings
        self._http_client = http_client
        self._clock = clock
        self._state = TokenState(access_token=settings.initial_access_token)

    @property
    def access_token(self) -> str | None:
        """Return the current bearer token, if any."""
        return self._state.access_token

    @property
    def expires_at(self) -> int | None:
        """Return the token expiry in epoch milliseconds, if recorded."""
        return self._state.expires_at_epoch_ms

    @property
    def has_credentials(self) -> bool:
        """Return whether client credentials are configured."""
        return self._settings.initial_credentials is not None

    def is_expired(self) -> bool:
        """Return whether the token is expired or within the refresh buffer."""
        expires_at = self._state.expires_at_epoch_ms
        if expires_at is None:
            return True
        return self._clock() >= expires_at - EXPIRY_BUFFER_MS

    def set_access_token(self, token: str, expires_in_seconds: int | None = None) -> None:
        """Replace the current token with an externally obtained one.

        Without ``expires_in_seconds`` the token is treated as never expiring
        until it is replaced.
        """
        self._state.access_token = token
        self._state.expires_at_epoch_ms = (
            None if expires_in_seconds is None else self._clock() + expires_in_seconds * 1000
        )

    async def ensure_authenticated(self) -> None:
        """Make sure a usable token is held before a request is sent.

        Raises:
            ConfigurationError: If no token is held and no credentials are
                configured.

        """
        state = self._state
        if state.access_token is None:
            if not self.has_credentials:
                msg = "No access token is set and no OAuth credentials are configured."
                raise ConfigurationError(msg)
            await self.authenticate()
            return

        # A token without a recorded expiry came from outside and is never refreshed.
        if state.expires_at_epoch_ms is None or not self.is_expired():
            return

        if self._settings.auto_refresh:
            await self.authenticate()
        else:
            logger.warning("Access token has expired but auto_refresh is disabled; sending it anyway.")

    async def authenticate(self, credentials: OAuthCredentials | None = None) -> TokenResponse:
        """Exchange client credentials for a new bearer token and store it.

        Args:
            credentials: Overrides the configured credentials for this call.

        Returns:
            The full token response.

        Raises:
            ConfigurationError: If no credentials are available.
            ApiError: If the token endpoint rejects the exchange or times out.

        """
        credentials = credentials or self._settings.initial_credentials
        if credentials is None:
            msg = "OAuth credentials are required to authenticate."
            raise ConfigurationError(msg)

        try:
            token = await self._request_token(credentials)
        except RequestTimeoutError:
            raise
        except ApiError as exc:
            logger.error("Failed to obtain an access token from %s: %s", self._settings.token_endpoint, exc)  # noqa: TRY400
            raise
        except Exception:
            logger.exception("Failed to obtain an access token from %s", self._settings.token_endpoint)
            raise

        self._state.access_token = token.access_token
        self._state.expires_at_epoch_ms = self._clock() + token.expires_in * 1000
        logger.debug("Fetched new access token expiring in %s seconds.", token.expires_in)
        return token

    async def _request_token(self, credentials: OAuthCredentials) -> TokenResponse:
        body: dict[str, str] = {
            "grant_type": "client_credentials",
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }
        if credentials.act_as:
            body["act_as"] = credentials.act_as

        request = self._http_client.build_request(
            "POST",
            self._settings.token_endpoint,
            json=body,
            headers={"Content-Type": "application/json"},
        )
        response = await send_with_timeout(
            self._http_client,
            request,
            timeout_ms=self._settings.timeout_ms,
        )
        if not response.is_success:
            raise error_from_response(response)
        return TokenResponse.model_validate(response.json())


__all__ = ["EXPIRY_BUFFER_MS", "TokenManager", "TokenState", "epoch_ms"]
