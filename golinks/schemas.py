"""
Pydantic request/response models for the GoLinks HTTP API.

Validation lives here: by the time a value reaches LinkDirectory, a short
code matches SHORT_CODE_PATTERN (1-50 chars) and a target URL is absolute.
"""

from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import SHORT_CODE_MAX_LENGTH

SHORT_CODE_PATTERN = r"^[a-zA-Z0-9_-]+$"


class CreateLinkRequest(BaseModel):
    """Request payload for creating a new short link."""

    target_url: str = Field(..., description="The original long URL to shorten.",
                            examples=["https://example.com/my-long-article-url"])
    short_code: Optional[str] = Field(
        None,
        min_length=1,
        max_length=SHORT_CODE_MAX_LENGTH,
        pattern=SHORT_CODE_PATTERN,
        description="Optional custom short code. If not provided, one will be generated.",
        examples=["custom-link"],
    )

    @field_validator("target_url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("Invalid URL format for target_url")
        return value


class LinkOut(BaseModel):
    """A stored link as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    short_code: str
    target_url: str
    click_count: int
    created_at: datetime
    updated_at: datetime


class MessageOut(BaseModel):
    message: str
