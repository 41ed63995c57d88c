"""Database model type definitions."""

from valueslens.models.profile import Profile, ProfileInsert
from valueslens.models.session import (
    DefinitionRow,
    DemographicsData,
    RankingRow,
    Session,
    SortRow,
)

__all__ = [
    "Profile",
    "ProfileInsert",
    "Session",
    "SortRow",
    "RankingRow",
    "DefinitionRow",
    "DemographicsData",
]
