"""Session completion Pydantic schemas for API request/response models."""

from pydantic import Field

from valueslens.schemas.assessment import (
    CamelModel,
    CustomValue,
    Definition,
    Demographics,
    SortedValues,
)


class SessionCompleteRequest(CamelModel):
    """Schema for POST /sessions/complete.

    Carries the finalized assessment so it can be stored and published.
    """

    session_id: str = Field(min_length=1, description="Client generated session id")
    consent_research: bool = Field(default=False, description="Research consent flag")
    sorted_values: SortedValues = Field(description="Category ledger")
    ranked_values: list[str] = Field(min_length=1, max_length=5, description="Ranked value ids")
    transcript: str | None = Field(default=None, description="Story transcript")
    definitions: dict[str, Definition] = Field(default_factory=dict, description="Definitions keyed by value id")
    custom_value: CustomValue | None = Field(default=None, description="Custom value, if any")


class SessionCompleteResponse(CamelModel):
    """Schema for session completion response."""

    success: bool = Field(default=True, description="Whether the session was stored")
    session_id: str = Field(description="Stored session id")
    profile_slug: str = Field(description="Share slug of the published profile")


class DemographicsUpdateRequest(CamelModel):
    """Schema for PATCH /sessions/demographics."""

    session_id: str = Field(min_length=1, description="Session id")
    demographics: Demographics = Field(description="Demographics to store")


class SuccessResponse(CamelModel):
    """Generic acknowledgement."""

    success: bool = Field(default=True, description="Whether the operation succeeded")
