"""Share profile business logic service."""

import logging
import secrets
from typing import Any

from valueslens.core.supabase import get_supabase_client, require_supabase_client
from valueslens.models import ProfileInsert
from valueslens.schemas.assessment import CustomValue, Definition
from valueslens.schemas.profile import (
    ProfileCreate,
    ProfileCreateResponse,
    ProfileResponse,
    ProfileSnapshot,
    ProfileValueEntry,
)
from valueslens.services.definition_service import build_fallback_definition
from valueslens.services.value_catalog import get_value_by_id

logger = logging.getLogger(__name__)

# No confusable characters (0/O, 1/l/I)
SLUG_ALPHABET = "abcdefghjkmnpqrstuvwxyz23456789"
SLUG_LENGTH = 8


def generate_slug(length: int = SLUG_LENGTH) -> str:
    """Generate a random, URL-safe share slug."""
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def share_url(slug: str) -> str:
    return f"/p/{slug}"


def build_snapshot(
    ranked_values: list[str],
    definitions: dict[str, Definition],
    custom_value: CustomValue | None = None,
) -> ProfileSnapshot:
    """Denormalise the top three values into a share snapshot.

    Values without a definition get the fallback tagline.
    """
    entries = []
    for rank, value_id in enumerate(ranked_values[:3], start=1):
        if custom_value and custom_value.id == value_id:
            name = custom_value.name
        else:
            value = get_value_by_id(value_id)
            name = value.name if value else value_id

        definition = definitions.get(value_id)
        entries.append(
            ProfileValueEntry(
                rank=rank,
                value_name=name,
                tagline=definition.tagline if definition else build_fallback_definition(value_id, name).tagline,
                definition=definition.definition if definition else None,
                behavioral_anchors=definition.behavioral_anchors if definition else None,
            )
        )
    return ProfileSnapshot(top3=entries)


class ProfileService:
    """Service for publishing and reading share profiles."""

    def __init__(self) -> None:
        """Initialize profile service with Supabase client, if configured."""
        self.client = get_supabase_client()

    async def get_by_session_id(self, session_id: str) -> dict[str, Any] | None:
        """Get the profile published for a session.

        Args:
            session_id: The session id.

        Returns:
            dict | None: The profile row or None if not found.
        """
        client = self.client or require_supabase_client()
        response = (
            client.table("profiles")
            .select("*")
            .eq("session_id", session_id)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def get_by_slug(self, slug: str) -> ProfileResponse | None:
        """Get a published profile by its share slug.

        Args:
            slug: The share slug.

        Returns:
            ProfileResponse | None: The profile or None if not found.

        Raises:
            StorageUnavailableError: If storage is not configured.
        """
        client = self.client or require_supabase_client()
        response = (
            client.table("profiles")
            .select("*")
            .eq("share_slug", slug)
            .maybe_single()
            .execute()
        )
        if not response or not response.data:
            return None

        row = response.data
        return ProfileResponse(
            slug=row["share_slug"],
            profile=ProfileSnapshot.model_validate(row["profile_json"]),
        )

    async def create_profile(self, data: ProfileCreate) -> ProfileCreateResponse:
        """Publish a profile, or return the one a session already has.

        When storage fails the slug is still returned, flagged client_only.

        Args:
            data: Ranked values and definitions to publish.

        Returns:
            ProfileCreateResponse: Slug and share URL.
        """
        slug = generate_slug()
        snapshot = build_snapshot(data.ranked_values, data.definitions, data.custom_value)

        try:
            existing = await self.get_by_session_id(data.session_id)
            if existing:
                return ProfileCreateResponse(
                    slug=existing["share_slug"],
                    url=share_url(existing["share_slug"]),
                    existing=True,
                )
            await self._insert(data.session_id, slug, snapshot)
        except Exception as e:
            logger.error("Profile storage failed for session %s, returning client-only slug: %s", data.session_id, e)
            return ProfileCreateResponse(slug=slug, url=share_url(slug), client_only=True)

        logger.info("Published profile %s for session %s", slug, data.session_id)
        return ProfileCreateResponse(slug=slug, url=share_url(slug))

    async def upsert_for_session(self, session_id: str, snapshot: ProfileSnapshot) -> str:
        """Create or refresh the session's profile, keeping an existing slug.

        Returns:
            str: The share slug.
        """
        client = self.client or require_supabase_client()
        existing = await self.get_by_session_id(session_id)
        if existing:
            client.table("profiles").update(
                {"profile_json": snapshot.model_dump(mode="json", by_alias=True)}
            ).eq("session_id", session_id).execute()
            return existing["share_slug"]

        slug = generate_slug()
        await self._insert(session_id, slug, snapshot)
        return slug

    async def _insert(self, session_id: str, slug: str, snapshot: ProfileSnapshot) -> None:
        client = self.client or require_supabase_client()
        row: ProfileInsert = {
            "session_id": session_id,
            "share_slug": slug,
            "profile_json": snapshot.model_dump(mode="json", by_alias=True),
        }
        client.table("profiles").insert(row).execute()
