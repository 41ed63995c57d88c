"""Checkout Pydantic schemas for API request/response models."""

from pydantic import Field

from valueslens.schemas.assessment import CamelModel, Definition


class CheckoutSessionCreate(CamelModel):
    """Schema for creating a report checkout via POST /checkout/session."""

    session_id: str = Field(min_length=1, description="Assessment session id")
    ranked_values: list[str] = Field(min_length=1, max_length=5, description="Ranked value ids")
    definitions: dict[str, Definition] = Field(default_factory=dict, description="Definitions keyed by value id")


class CheckoutSessionResponse(CamelModel):
    """Schema for checkout session creation response."""

    url: str = Field(description="Stripe Checkout URL to redirect to")
    stripe_session_id: str = Field(description="Stripe Checkout Session ID")
