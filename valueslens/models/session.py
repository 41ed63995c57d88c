"""Session model type definitions for database operations."""

from datetime import datetime
from typing import Literal

from typing_extensions import TypedDict


# Sort category values matching the database check constraint
SortCategoryValue = Literal["very", "somewhat", "less"]


class DemographicsData(TypedDict, total=False):
    """Structure for the demographics JSONB column.

    Matches the frontend demographics interface.
    """

    ageRange: Literal["18-24", "25-34", "35-44", "45-54", "55-64", "65+"] | None
    industry: str | None
    leadershipRole: bool | None
    country: str | None


class Session(TypedDict):
    """Session table row representation.

    Represents one completed (or partially stored) assessment.
    """

    id: str
    created_at: datetime
    completed_at: datetime | None
    consent_research: bool
    demographics: DemographicsData | None


class SortRow(TypedDict):
    """One category assignment in the sorts table."""

    session_id: str
    value_id: str
    category: SortCategoryValue


class RankingRow(TypedDict):
    """One ranked value in the rankings table."""

    session_id: str
    value_id: str
    rank: int


class RefinedDefinition(TypedDict):
    """Structure for the refined_definition JSONB column."""

    tagline: str
    definition: str


class DefinitionRow(TypedDict):
    """A top-three definition in the definitions table.

    The transcript is stored once, on the rank 1 row.
    """

    session_id: str
    value_id: str
    rank: int
    raw_transcript: str | None
    refined_definition: RefinedDefinition | None
    user_edited: bool
