"""Session business logic service.

Stores finalized assessments. Re-completing a session replaces its sorts,
rankings and definitions and refreshes the published profile.
"""

import logging
from datetime import datetime, timezone

from valueslens.core.supabase import get_supabase_client, require_supabase_client
from valueslens.models import DefinitionRow, RankingRow, SortRow
from valueslens.schemas.assessment import Demographics, SortCategory
from valueslens.schemas.session import SessionCompleteRequest, SessionCompleteResponse
from valueslens.services.profile_service import ProfileService, build_snapshot

logger = logging.getLogger(__name__)

CHILD_TABLES = ("sorts", "rankings", "definitions")


class SessionService:
    """Service for persisting completed assessment sessions."""

    def __init__(self, profile_service: ProfileService | None = None) -> None:
        """Initialize session service with Supabase client.

        Args:
            profile_service: Optional profile service for testing.
        """
        self.client = get_supabase_client()
        self.profile_service = profile_service or ProfileService()

    async def complete_session(self, data: SessionCompleteRequest) -> SessionCompleteResponse:
        """Store a finalized session and publish its profile.

        Args:
            data: The finalized assessment.

        Returns:
            SessionCompleteResponse: Session id and profile slug.

        Raises:
            StorageUnavailableError: If storage is not configured.
        """
        client = self.client or require_supabase_client()
        session_id = data.session_id

        client.table("sessions").upsert(
            {
                "id": session_id,
                "completed_at": datetime.now(timezone.utc).isoformat(),
                "consent_research": data.consent_research,
            }
        ).execute()

        for table in CHILD_TABLES:
            client.table(table).delete().eq("session_id", session_id).execute()

        sort_rows: list[SortRow] = [
            {"session_id": session_id, "value_id": value_id, "category": category.value}
            for category in SortCategory
            for value_id in data.sorted_values.sequence(category)
        ]
        if sort_rows:
            client.table("sorts").insert(sort_rows).execute()

        ranking_rows: list[RankingRow] = [
            {"session_id": session_id, "value_id": value_id, "rank": rank}
            for rank, value_id in enumerate(data.ranked_values, start=1)
        ]
        client.table("rankings").insert(ranking_rows).execute()

        definition_rows: list[DefinitionRow] = []
        for rank, value_id in enumerate(data.ranked_values[:3], start=1):
            definition = data.definitions.get(value_id)
            definition_rows.append(
                {
                    "session_id": session_id,
                    "value_id": value_id,
                    "rank": rank,
                    "raw_transcript": (data.transcript or None) if rank == 1 else None,
                    "refined_definition": (
                        {"tagline": definition.tagline, "definition": definition.definition or ""}
                        if definition
                        else None
                    ),
                    "user_edited": definition.user_edited if definition else False,
                }
            )
        client.table("definitions").insert(definition_rows).execute()

        snapshot = build_snapshot(data.ranked_values, data.definitions, data.custom_value)
        slug = await self.profile_service.upsert_for_session(session_id, snapshot)

        logger.info("Completed session %s with profile %s", session_id, slug)
        return SessionCompleteResponse(session_id=session_id, profile_slug=slug)

    async def update_demographics(self, session_id: str, demographics: Demographics) -> bool:
        """Attach demographics to a stored session.

        Args:
            session_id: The session id.
            demographics: Demographics to store.

        Returns:
            bool: True if a session row was updated.
        """
        client = self.client or require_supabase_client()
        response = (
            client.table("sessions")
            .update({"demographics": demographics.model_dump(by_alias=True, exclude_none=True)})
            .eq("id", session_id)
            .execute()
        )
        return bool(response.data)
