"""Unit tests for SessionService."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from valueslens.core.supabase import StorageUnavailableError
from valueslens.schemas.assessment import Demographics
from valueslens.schemas.session import SessionCompleteRequest
from valueslens.services.session_service import SessionService


@pytest.fixture
def profile_service() -> MagicMock:
    service = MagicMock()
    service.upsert_for_session = AsyncMock(return_value="abcd2345")
    return service


class TestCompleteSession:
    """Tests for storing a finalized session."""

    @pytest.mark.asyncio
    @patch("valueslens.services.session_service.get_supabase_client")
    async def test_stores_all_tables_and_publishes(
        self,
        mock_get_client: MagicMock,
        profile_service: MagicMock,
        completion_payload: dict[str, Any],
    ) -> None:
        """Test that sorts, rankings and definitions are written."""
        mock_client = mock_get_client.return_value
        completion_payload["sortedValues"]["less"] = ["balance"]
        data = SessionCompleteRequest.model_validate(completion_payload)

        service = SessionService(profile_service=profile_service)
        result = await service.complete_session(data)

        assert result.success is True
        assert result.session_id == "session-2"
        assert result.profile_slug == "abcd2345"

        session_row = mock_client.table.return_value.upsert.call_args.args[0]
        assert session_row["id"] == "session-2"
        assert session_row["consent_research"] is True
        assert session_row["completed_at"]

        inserts = [c.args[0] for c in mock_client.table.return_value.insert.call_args_list]
        sort_rows, ranking_rows, definition_rows = inserts
        assert {"session_id": "session-2", "value_id": "balance", "category": "less"} in sort_rows
        assert len(sort_rows) == 6
        assert [row["rank"] for row in ranking_rows] == [1, 2, 3, 4, 5]
        assert ranking_rows[0]["value_id"] == "integrity"
        assert len(definition_rows) == 3
        assert definition_rows[0]["raw_transcript"] == "A story"
        assert definition_rows[1]["raw_transcript"] is None
        assert definition_rows[0]["refined_definition"] == {
            "tagline": "Standing firm",
            "definition": "You keep your word.",
        }
        assert definition_rows[0]["user_edited"] is True
        assert definition_rows[1]["refined_definition"] is None

        snapshot = profile_service.upsert_for_session.call_args.args[1]
        assert snapshot.top3[0].tagline == "Standing firm"

    @pytest.mark.asyncio
    @patch("valueslens.services.session_service.get_supabase_client")
    async def test_recompletion_replaces_child_rows(
        self,
        mock_get_client: MagicMock,
        profile_service: MagicMock,
        completion_payload: dict[str, Any],
    ) -> None:
        """Test that previous rows for the session are deleted first."""
        mock_client = mock_get_client.return_value

        service = SessionService(profile_service=profile_service)
        await service.complete_session(SessionCompleteRequest.model_validate(completion_payload))

        tables = [c.args[0] for c in mock_client.table.call_args_list]
        assert tables[:4] == ["sessions", "sorts", "rankings", "definitions"]
        mock_client.table.return_value.delete.return_value.eq.assert_called_with("session_id", "session-2")

    @pytest.mark.asyncio
    @patch("valueslens.services.session_service.get_supabase_client", return_value=None)
    async def test_requires_storage(
        self,
        mock_get_client: MagicMock,
        profile_service: MagicMock,
        completion_payload: dict[str, Any],
    ) -> None:
        """Test that completion without storage raises."""
        service = SessionService(profile_service=profile_service)

        with pytest.raises(StorageUnavailableError):
            await service.complete_session(SessionCompleteRequest.model_validate(completion_payload))

        profile_service.upsert_for_session.assert_not_called()


class TestUpdateDemographics:
    """Tests for attaching demographics."""

    @pytest.mark.asyncio
    @patch("valueslens.services.session_service.get_supabase_client")
    async def test_updates_existing_session(self, mock_get_client: MagicMock, profile_service: MagicMock) -> None:
        """Test that demographics are stored camelCase without empty fields."""
        mock_client = mock_get_client.return_value
        mock_client.table.return_value.update.return_value.eq.return_value.execute.return_value = MagicMock(
            data=[{"id": "s1"}]
        )

        service = SessionService(profile_service=profile_service)
        updated = await service.update_demographics("s1", Demographics(age_range="25-34", leadership_role=True))

        assert updated is True
        payload = mock_client.table.return_value.update.call_args.args[0]
        assert payload == {"demographics": {"ageRange": "25-34", "leadershipRole": True}}

    @pytest.mark.asyncio
    @patch("valueslens.services.session_service.get_supabase_client")
    async def test_unknown_session(self, mock_get_client: MagicMock, profile_service: MagicMock) -> None:
        """Test that no matching row reports False."""
        mock_client = mock_get_client.return_value
        mock_client.table.return_value.update.return_value.eq.return_value.execute.return_value = MagicMock(data=[])

        service = SessionService(profile_service=profile_service)

        assert await service.update_demographics("missing", Demographics(country="NZ")) is False
