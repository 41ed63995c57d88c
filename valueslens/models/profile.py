"""Profile model type definitions for database operations."""

from datetime import datetime
from typing import Any

from typing_extensions import TypedDict


class Profile(TypedDict):
    """Profile table row representation.

    A published share artifact. One per session; the slug is unique.
    """

    id: str
    session_id: str
    share_slug: str
    profile_json: dict[str, Any]
    created_at: datetime


class ProfileInsert(TypedDict):
    """Data required to create a new profile."""

    session_id: str
    share_slug: str
    profile_json: dict[str, Any]
