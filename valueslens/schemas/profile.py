"""Share profile Pydantic schemas for API request/response models."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import Field

from valueslens.schemas.assessment import CamelModel, CustomValue, Definition

ExportFormat = Literal["pdf", "png"]


class ProfileValueEntry(CamelModel):
    """One of the top three values in a published profile."""

    rank: int = Field(ge=1, le=3, description="Rank, starting at 1")
    value_name: str = Field(description="Display name of the value")
    tagline: str = Field(description="Tagline")
    definition: str | None = Field(default=None, description="Definition sentence")
    behavioral_anchors: list[str] | None = Field(default=None, description="Behavioral anchors")


class ProfileSnapshot(CamelModel):
    """Denormalised snapshot stored as profile_json."""

    top3: list[ProfileValueEntry] = Field(description="Top three values in rank order")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Snapshot creation timestamp",
    )


class ProfileCreate(CamelModel):
    """Schema for POST /profiles."""

    session_id: str = Field(min_length=1, description="Session id")
    ranked_values: list[str] = Field(min_length=1, max_length=5, description="Ranked value ids")
    definitions: dict[str, Definition] = Field(default_factory=dict, description="Definitions keyed by value id")
    custom_value: CustomValue | None = Field(default=None, description="Custom value, if any")


class ProfileCreateResponse(CamelModel):
    """Schema for profile creation response."""

    slug: str = Field(description="Share slug")
    url: str = Field(description="Relative share URL")
    existing: bool = Field(default=False, description="Whether the session already had a profile")
    client_only: bool = Field(default=False, description="Set when the profile could not be stored")


class ProfileResponse(CamelModel):
    """Schema for GET /profiles/{slug}."""

    slug: str = Field(description="Share slug")
    profile: ProfileSnapshot = Field(description="Published snapshot")
