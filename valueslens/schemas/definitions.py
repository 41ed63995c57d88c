"""Definition generation Pydantic schemas for API request/response models."""

from pydantic import Field

from valueslens.schemas.assessment import CamelModel, Commitment, Definition


class ValueRef(CamelModel):
    """A value to generate a definition for."""

    id: str = Field(min_length=1, description="Catalog or custom value id")
    name: str = Field(min_length=1, description="Display name")


class GenerateDefinitionsRequest(CamelModel):
    """Schema for POST /ai/generate-definitions."""

    values: list[ValueRef] = Field(min_length=1, max_length=5, description="Top ranked values")
    transcript: str = Field(default="", max_length=10000, description="Story transcript")
    commitments: dict[str, Commitment] | None = Field(
        default=None,
        description="VOOP commitments keyed by value id",
    )


class GenerationResult(CamelModel):
    """Definitions for every requested value id.

    ``fallback`` is True when any definition came from the deterministic
    generator instead of the model.
    """

    definitions: dict[str, Definition] = Field(description="Definitions keyed by value id")
    fallback: bool = Field(default=False, description="Whether the fallback generator was used")
    error: str | None = Field(default=None, description="Reason the model output was not used")
