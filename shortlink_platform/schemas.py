"""
Pydantic schemas for request payloads of the HTTP layer.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateShortUrlRequest(BaseModel):
    """Request payload for creating a new short link."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    original_url: str = Field(..., alias="originalUrl")
    alias: Optional[str] = None
    expires_at: Optional[str] = Field(None, alias="expiresAt")
