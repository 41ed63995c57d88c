"""Assessment state Pydantic schemas.

These models are the persisted shape of a client-held assessment. Field names
are snake_case in Python and camelCase on the wire, which keeps blobs written
by the web client loadable as-is.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing_extensions import assert_never


class SortCategory(str, Enum):
    """Importance bucket a value card is swiped into."""

    VERY = "very"
    SOMEWHAT = "somewhat"
    LESS = "less"


class AssessmentPhase(str, Enum):
    """Pages of the assessment, in progression order."""

    START = "start"
    SORT = "sort"
    SELECT = "select"
    STORY = "story"
    GOALS = "goals"
    SHARE = "share"


AgeRange = Literal["18-24", "25-34", "35-44", "45-54", "55-64", "65+"]


class CamelModel(BaseModel):
    """Base model serialising to camelCase while accepting either case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )


class Demographics(CamelModel):
    """Optional research demographics."""

    age_range: AgeRange | None = Field(default=None, description="Age bracket")
    industry: str | None = Field(default=None, max_length=100, description="Industry")
    leadership_role: bool | None = Field(default=None, description="Whether the user leads people")
    country: str | None = Field(default=None, max_length=100, description="Country")


class CustomValue(CamelModel):
    """A user-named value injected into the very-important bucket."""

    id: str = Field(description="Generated id, prefixed with custom_")
    name: str = Field(description="User supplied name")


class SortedValues(CamelModel):
    """The category ledger: three disjoint ordered sequences of value ids."""

    very: list[str] = Field(default_factory=list)
    somewhat: list[str] = Field(default_factory=list)
    less: list[str] = Field(default_factory=list)

    def sequence(self, category: SortCategory) -> list[str]:
        """Return the sequence backing a category."""
        match category:
            case SortCategory.VERY:
                return self.very
            case SortCategory.SOMEWHAT:
                return self.somewhat
            case SortCategory.LESS:
                return self.less
            case _:
                assert_never(category)

    def find(self, value_id: str) -> SortCategory | None:
        """Return the category holding a value id, if any."""
        for category in SortCategory:
            if value_id in self.sequence(category):
                return category
        return None

    @property
    def total(self) -> int:
        return len(self.very) + len(self.somewhat) + len(self.less)


class Commitment(CamelModel):
    """VOOP record for one ranked value. Empty strings mean not yet chosen."""

    outcome: str = Field(default="", description="Desired outcome")
    obstacle: str = Field(default="", description="Inner obstacle")
    plan: str = Field(default="", description="The 'then I will...' response to the obstacle")

    @property
    def is_complete(self) -> bool:
        return bool(self.outcome and self.obstacle and self.plan)

    @property
    def statement(self) -> str:
        """If-then implementation intention shown on the goals page."""
        return f"If {self.obstacle.lower()}, then I will {self.plan}"


class Definition(CamelModel):
    """Personalised definition of one top value."""

    tagline: str = Field(description="Short personal tagline")
    definition: str | None = Field(default=None, description="One or two sentence definition")
    behavioral_anchors: list[str] | None = Field(default=None, description="Concrete behaviours")
    user_edited: bool = Field(default=False, description="Set once a person overwrites any field")


class AssessmentState(CamelModel):
    """Full client-held assessment state."""

    session_id: str | None = None
    started_at: int | None = Field(default=None, description="Epoch milliseconds")
    consent_research: bool = False
    demographics: Demographics | None = None

    shuffled_value_ids: list[str] = Field(default_factory=list)
    current_card_index: int = Field(default=0, ge=0)
    sorted_values: SortedValues = Field(default_factory=SortedValues)
    custom_value: CustomValue | None = None

    top5: list[str] = Field(default_factory=list)
    ranked_values: list[str] = Field(default_factory=list)

    transcript: str = ""
    voop: dict[str, Commitment] = Field(default_factory=dict)
    definitions: dict[str, Definition] = Field(default_factory=dict)

    share_slug: str | None = None

    def clone(self) -> "AssessmentState":
        """Deep copy used as the working state of a mutation."""
        return self.model_copy(deep=True)

    def to_blob_state(self) -> dict:
        """JSON-ready camelCase dict for persistence."""
        return self.model_dump(mode="json", by_alias=True)
