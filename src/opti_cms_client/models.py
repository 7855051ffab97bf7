"""Typed payloads exchanged with the CMS API.

Content items are open records: the remote system owns their schema, so the
models below pin only the fields this client relies on and keep everything
else as extra attributes.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ContentItem(BaseModel):
    """A content item as returned by the API."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    content_type: str = Field(alias="contentType")
    name: str


class ContentItemPatch(BaseModel):
    """Any subset of content item fields.

    Used for both creation and merge-patch updates. Only fields that were
    explicitly set are serialized, so an explicit ``None`` still reaches the
    API (merge-patch uses it to remove a property).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    content_type: str | None = Field(default=None, alias="contentType")
    name: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body with API field names and unset fields dropped."""
        payload: dict[str, Any] = {}
        for name, field in type(self).model_fields.items():
            if name in self.model_fields_set:
                payload[field.alias or name] = getattr(self, name)
        payload.update(self.model_extra or {})
        return payload


class PagedResult(BaseModel, Generic[T]):
    """A page of items from a collection endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[T]
    page_index: int = Field(alias="pageIndex")
    page_size: int = Field(alias="pageSize")
    total_item_count: int = Field(alias="totalItemCount")


class TokenResponse(BaseModel):
    """Response of the OAuth2 client-credentials exchange."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    expires_in: int
    token_type: str = "Bearer"


@dataclass(frozen=True, slots=True)
class ApiResult(Generic[T]):
    """Decoded success payload paired with its HTTP metadata."""

    data: T
    status: int
    etag: str | None = None


__all__ = [
    "ApiResult",
    "ContentItem",
    "ContentItemPatch",
    "PagedResult",
    "TokenResponse",
]
