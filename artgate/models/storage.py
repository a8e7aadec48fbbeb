"""Stored artifact models for ArtGate."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ObjectInfo(BaseModel):
    """Listing entry for a stored object."""

    key: str = Field(..., description="Object key, e.g. art/latest.jpg")
    size: int = Field(..., ge=0, description="Content length in bytes")
    uploaded_at: datetime = Field(..., description="Upload timestamp (UTC)")


class StoredObject(ObjectInfo):
    """Stored object with its content and HTTP metadata."""

    content: bytes = Field(..., description="Object body")
    content_type: str = Field(default="application/octet-stream")
    cache_control: str = Field(default="no-store, max-age=0")
    etag: str = Field(..., description="Quoted entity tag")


class HistoryItem(BaseModel):
    """History artifact as exposed by the listing endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    key: str
    url: str
    size: int
    uploaded_at: datetime = Field(..., alias="uploadedAt")


class HistoryListing(BaseModel):
    """Newest-first page of history artifacts."""

    items: List[HistoryItem] = Field(default_factory=list)
