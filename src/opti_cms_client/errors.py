"""Error hierarchy for the CMS client.

Every error raised by this package derives from :class:`CmsClientError` and
carries a class-level ``kind`` tag so callers can branch without ``isinstance``
chains::

    CmsClientError
    +-- ConfigurationError   (kind="configuration")
    +-- ApiError             (kind="api")
        +-- RequestTimeoutError (kind="timeout", status 408, code "TIMEOUT")

Network failures that are not timeouts (DNS, refused connections) are not
normalized and surface as the underlying ``httpx`` exceptions.
"""

import json
import logging
from enum import StrEnum
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

logger = logging.getLogger("opti_cms_client.errors")

DEFAULT_ERROR_TYPE = "about:blank"
TIMEOUT_STATUS = 408
TIMEOUT_CODE = "TIMEOUT"


class ErrorKind(StrEnum):
    """Discriminator shared by every client error."""

    CONFIGURATION = "configuration"
    API = "api"
    TIMEOUT = "timeout"


class FieldError(BaseModel):
    """A single field-level validation problem reported by the API."""

    model_config = ConfigDict(extra="allow")

    field: str | None = None
    message: str


class ErrorResponse(BaseModel):
    """Problem-details body returned by the API on non-2xx responses.

    Fields are coerced one at a time: a value of an unexpected type is turned
    into text or dropped, so the rest of the body is still carried over.
    Missing values are backfilled from the HTTP status by
    :func:`error_from_response`.
    """

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    title: str | None = None
    status: int | None = None
    instance: str | None = None
    details: str | None = None
    code: str | None = None
    errors: list[FieldError] | None = None
    message: str | None = None

    @field_validator("type", "title", "instance", "details", "code", "message", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, dict | list):
            return json.dumps(value)
        return str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> int | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        return None

    @field_validator("errors", mode="before")
    @classmethod
    def _keep_valid_errors(cls, value: Any) -> list[FieldError] | None:
        if not isinstance(value, list):
            return None
        kept: list[FieldError] = []
        for entry in value:
            try:
                kept.append(FieldError.model_validate(entry))
            except ValidationError:
                logger.debug("Dropping malformed field error: %r", entry)
        return kept


class CmsClientError(Exception):
    """Base exception for all CMS client errors."""

    kind: ErrorKind


class ConfigurationError(CmsClientError):
    """Raised before any network call when the client cannot proceed.

    Covers missing credentials or tokens and operations the configured API
    version does not support. Never retried.
    """

    kind = ErrorKind.CONFIGURATION


class ApiError(CmsClientError):
    """A non-2xx response from the CMS API or the token endpoint."""

    kind = ErrorKind.API

    def __init__(  # noqa: PLR0913
        self,
        *,
        status: int,
        title: str | None = None,
        type: str | None = None,  # noqa: A002
        instance: str | None = None,
        details: str | None = None,
        code: str | None = None,
        errors: list[FieldError] | None = None,
    ) -> None:
        """Initialize the error, backfilling generic values from ``status``."""
        self.status = status
        self.title = title or generic_title(status)
        self.type = type or DEFAULT_ERROR_TYPE
        self.instance = instance
        self.details = details
        self.code = code
        self.errors: list[FieldError] = list(errors or [])
        super().__init__(self.title)

    def __str__(self) -> str:
        """Return ``"<status> <title>"`` with details appended when present."""
        text = f"{self.status} {self.title}"
        if self.details:
            text = f"{text}: {self.details}"
        return text

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation, omitting empty fields."""
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "type": self.type,
            "title": self.title,
            "status": self.status,
        }
        for name in ("instance", "details", "code"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.errors:
            data["errors"] = [err.model_dump(exclude_none=True) for err in self.errors]
        return data


class RequestTimeoutError(ApiError):
    """The wall-clock timeout elapsed before the transport completed."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout_ms: int) -> None:
        """Initialize with the fixed 408/TIMEOUT classification."""
        super().__init__(
            status=TIMEOUT_STATUS,
            title="Request timeout",
            code=TIMEOUT_CODE,
            details=f"No response within {timeout_ms} ms",
        )
        self.timeout_ms = timeout_ms


def generic_title(status: int) -> str:
    """Return the generic title used when the API supplies none."""
    return f"Request failed with status {status}"


def error_from_response(response: httpx.Response) -> ApiError:
    """Build an :class:`ApiError` from a non-2xx response.

    The body is parsed as a problem-details document when possible. Fields
    of an unexpected type are coerced or dropped one by one, so the rest of
    the body is kept. A body that is not a JSON object falls back to a
    generic error keyed on the HTTP status so the original failure is never
    masked.

    Args:
        response: The failed HTTP response with its body already read.

    Returns:
        The populated API error.

    """
    status = response.status_code
    try:
        payload = response.json()
        if not isinstance(payload, dict):
            msg = f"Expected an object, got {type(payload).__name__}"
            raise TypeError(msg)
        body = ErrorResponse.model_validate(payload)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError, ValidationError) as exc:
        logger.debug("Unparseable error body for HTTP %s: %s", status, exc)
        return ApiError(status=status)

    return ApiError(
        status=body.status or status,
        title=body.title or body.message,
        type=body.type,
        instance=body.instance,
        details=body.details,
        code=body.code,
        errors=body.errors,
    )


__all__ = [
    "ApiError",
    "CmsClientError",
    "ConfigurationError",
    "ErrorKind",
    "ErrorResponse",
    "FieldError",
    "RequestTimeoutError",
    "error_from_response",
    "generic_title",
]
