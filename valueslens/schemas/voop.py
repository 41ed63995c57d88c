"""VOOP suggestion Pydantic schemas for API request/response models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from valueslens.schemas.assessment import CamelModel
from valueslens.schemas.definitions import ValueRef

ObstacleCategory = Literal["AVOIDANCE", "EXCESS", "TIMING", "SELF-PROTECTION", "IDENTITY"]


class GenerateVoopRequest(CamelModel):
    """Schema for POST /ai/generate-voop."""

    values: list[ValueRef] = Field(min_length=1, max_length=5, description="Values to suggest for")
    story: str = Field(default="", max_length=10000, description="Story transcript")


class VoopSuggestion(BaseModel):
    """Options offered for one value. Each list holds at least one entry."""

    model_config = ConfigDict(from_attributes=True)

    value_id: str = Field(description="Value id")
    outcomes: list[str] = Field(min_length=1, description="Outcome options")
    obstacles: list[str] = Field(min_length=1, description="Obstacle options")
    obstacle_categories: list[ObstacleCategory] = Field(min_length=1, description="Category of each obstacle")
    reframes: list[str] = Field(min_length=1, description="Short reframe options")


class VoopResult(BaseModel):
    """VOOP suggestions for every requested value.

    Keys stay snake_case on the wire, matching the model output format.
    """

    model_config = ConfigDict(from_attributes=True)

    language_to_echo: list[str] = Field(description="Phrases lifted from the story")
    voop: list[VoopSuggestion] = Field(description="Suggestions, one per value")
    fallback: bool = Field(default=False, description="Whether the fallback generator was used")
    error: str | None = Field(default=None, description="Reason the model output was not used")
