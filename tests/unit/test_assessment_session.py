"""Unit tests for the assessment session."""

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from valueslens.assessment import AssessmentSession, MemoryBlobStore
from valueslens.assessment.errors import AssessmentValidationError, PreconditionError
from valueslens.schemas.assessment import AssessmentPhase, Commitment, Definition, SortCategory
from valueslens.schemas.definitions import GenerationResult, ValueRef
from valueslens.schemas.session import SessionCompleteResponse
from valueslens.services.value_catalog import ALL_VALUE_IDS

ORDER = ["A", "B", "C", "D", "E"]
CATALOG_ORDER = ["integrity", "care", "courage", "growth", "honesty"]
STORY = " ".join(["word"] * 40)


class FailingStore(MemoryBlobStore):
    """Blob store that accepts reads but rejects writes."""

    def set(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")


class SlowGateway:
    """Definition gateway that answers only once released."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def generate(
        self,
        values: list[ValueRef],
        transcript: str = "",
        commitments: dict[str, Commitment] | None = None,
    ) -> GenerationResult:
        self.started.set()
        await self.release.wait()
        return GenerationResult(definitions={v.id: Definition(tagline=f"old {v.id}") for v in values})


def _complete_goals(session: AssessmentSession) -> None:
    for value_id in session.top_three:
        session.set_commitment(value_id, outcome="I act", obstacle="Fear", plan="breathe")


class TestInitSession:
    """Tests for starting a session."""

    def test_shuffles_whole_catalog_by_default(self) -> None:
        """Test that the default deck is a permutation of the catalog."""
        session = AssessmentSession()

        state = session.init_session()

        assert sorted(state.shuffled_value_ids) == sorted(ALL_VALUE_IDS)
        assert state.session_id
        assert state.started_at is not None
        assert state.current_card_index == 0

    def test_replaces_existing_session(self, session: AssessmentSession) -> None:
        """Test that starting again discards the previous assessment."""
        session.assign("A", "very")

        state = session.init_session(session_id="session-new", shuffled_value_ids=list(reversed(ORDER)))

        assert state.session_id == "session-new"
        assert state.sorted_values.total == 0

    @pytest.mark.parametrize(
        "order",
        [[], ["A", "A", "B", "C", "D"], ["A", "B", "C"], ["A", "B", "C", "D", "Z"]],
        ids=["empty", "duplicate", "missing_values", "unknown_value"],
    )
    def test_rejects_bad_presentation_order(self, order: list[str]) -> None:
        """Test that the order must be a permutation of the catalog."""
        with pytest.raises(AssessmentValidationError) as exc_info:
            AssessmentSession(catalog_ids=ORDER).init_session(shuffled_value_ids=order)

        assert exc_info.value.constraint == "presentation_order"

    def test_default_catalog_rejects_unknown_ids(self) -> None:
        """Test that arbitrary ids are not accepted over the value catalog."""
        with pytest.raises(AssessmentValidationError) as exc_info:
            AssessmentSession().init_session(shuffled_value_ids=["X", "Y"])

        assert exc_info.value.constraint == "presentation_order"

    def test_reset_clears_everything(self, session: AssessmentSession) -> None:
        """Test that reset returns to the empty default."""
        session.assign("A", "very")

        state = session.reset()

        assert state.session_id is None
        assert session.resume_phase() == AssessmentPhase.START


class TestResumeRouting:
    """Tests for deriving the current phase from state."""

    def test_empty_session_starts(self) -> None:
        """Test that a new session routes to the start page."""
        assert AssessmentSession().resume_phase() == AssessmentPhase.START

    def test_partial_sort(self, session: AssessmentSession) -> None:
        """Test that a half sorted deck routes to sorting."""
        session.assign("A", "very")

        assert session.resume_phase() == AssessmentPhase.SORT
        assert session.is_in_progress

    def test_mixed_sort_routes_to_selection(self, session: AssessmentSession) -> None:
        """Test the ledger and routing after a mixed sort of five cards."""
        for value_id, category in zip(ORDER, ["very", "less", "very", "very", "somewhat"]):
            session.assign(value_id, category)

        state = session.state
        assert state.sorted_values.very == ["A", "C", "D"]
        assert state.sorted_values.less == ["B"]
        assert state.sorted_values.somewhat == ["E"]
        assert state.current_card_index == 5
        assert session.resume_phase() == AssessmentPhase.SELECT
        assert session.is_in_progress

    def test_too_few_very_important_stays_in_selection(self, session: AssessmentSession) -> None:
        """Test that routing and the selection error agree on the phase."""
        for value_id, category in zip(ORDER, ["very", "very", "less", "less", "somewhat"]):
            session.assign(value_id, category)

        assert session.resume_phase() == AssessmentPhase.SELECT
        with pytest.raises(AssessmentValidationError) as exc_info:
            session.auto_select()

        assert exc_info.value.constraint == "min_very_important"
        assert session.resume_phase() == AssessmentPhase.SELECT

    def test_full_walkthrough(self, session: AssessmentSession) -> None:
        """Test routing through every gate in order."""
        for value_id in ORDER:
            session.assign(value_id, "very")
        assert session.resume_phase() == AssessmentPhase.SELECT
        assert session.progress["percentage"] == 100

        session.auto_select()
        session.set_ranking(["C", "A", "B", "E", "D"])
        assert session.resume_phase() == AssessmentPhase.STORY
        assert not session.is_in_progress

        session.set_transcript(STORY)
        assert session.resume_phase() == AssessmentPhase.GOALS

        _complete_goals(session)
        assert session.resume_phase() == AssessmentPhase.SHARE
        assert session.top_three == ["C", "A", "B"]

    def test_require_phase_names_target(self, session: AssessmentSession) -> None:
        """Test that entering a later phase routes back to the current one."""
        with pytest.raises(PreconditionError) as exc_info:
            session.require_phase(AssessmentPhase.STORY)

        assert exc_info.value.required_phase == AssessmentPhase.SORT

    def test_require_phase_allows_earlier_phases(self, ranked_session: AssessmentSession) -> None:
        """Test that earlier phases stay reachable."""
        ranked_session.require_phase(AssessmentPhase.SORT)
        ranked_session.require_phase(AssessmentPhase.STORY)


class TestSessionMutations:
    """Tests for the session wrappers around the engine."""

    @pytest.mark.parametrize("category", list(SortCategory))
    def test_undo_steps_back(self, session: AssessmentSession, category: SortCategory) -> None:
        """Test that undo removes the last assignment from any category."""
        session.assign("A", "very")
        before = session.state
        session.assign("B", category)

        state = session.undo()

        assert state == before
        assert state.current_card_index == 1
        assert session.current_value_id == "B"

    def test_rejected_mutation_leaves_state(self, session: AssessmentSession, store: MemoryBlobStore) -> None:
        """Test that a failed mutation changes neither memory nor store."""
        session.assign("A", "very")
        persisted = store.get("valuesprofile-assessment")

        with pytest.raises(AssessmentValidationError):
            session.assign("C", "very")

        assert session.state.current_card_index == 1
        assert store.get("valuesprofile-assessment") == persisted

    def test_custom_value_unblocks_selection(self, session: AssessmentSession) -> None:
        """Test two very important values plus a custom value can be selected."""
        for value_id, category in zip(ORDER, ["very", "very", "less", "less", "somewhat"]):
            session.assign(value_id, category)

        with pytest.raises(AssessmentValidationError):
            session.auto_select()

        state = session.add_custom_value("Patience")
        custom_id = state.custom_value.id
        state = session.auto_select()

        assert state.top5 == ["A", "B", custom_id]
        assert session.value_name(custom_id) == "Patience"

    def test_custom_value_joins_three_very_important(self, session: AssessmentSession) -> None:
        """Test adding a custom value after three very important values."""
        for value_id, category in zip(ORDER, ["very", "less", "very", "very", "somewhat"]):
            session.assign(value_id, category)

        state = session.add_custom_value("Patience")
        custom_id = state.custom_value.id

        assert state.sorted_values.very == ["A", "C", "D", custom_id]
        assert state.current_card_index == 5
        assert session.required_selection_size == 4
        assert session.auto_select().top5 == ["A", "C", "D", custom_id]

    def test_manual_selection_above_five(self) -> None:
        """Test that six very important values need an explicit choice."""
        session = AssessmentSession(catalog_ids=list("ABCDEF"))
        session.init_session(shuffled_value_ids=["A", "B", "C", "D", "E", "F"])
        for value_id in "ABCDEF":
            session.assign(value_id, "very")

        assert session.needs_manual_selection
        assert session.required_selection_size == 5

        state = session.select_top_k(["F", "E", "D", "C", "B"])

        assert state.top5 == ["F", "E", "D", "C", "B"]

    def test_move_reorders_ranking(self, ranked_session: AssessmentSession) -> None:
        """Test reordering through the session."""
        state = ranked_session.move_up(1)

        assert state.ranked_values[:2] == ["care", "integrity"]

    def test_set_consent(self, session: AssessmentSession) -> None:
        """Test recording consent."""
        assert session.set_consent(True).consent_research is True


class TestPersistence:
    """Tests for write-on-mutation persistence."""

    def test_every_mutation_is_persisted(self, session: AssessmentSession, store: MemoryBlobStore) -> None:
        """Test that a reloaded session sees the latest state."""
        session.assign("A", "very")
        session.assign("B", "somewhat")

        resumed = AssessmentSession.load(store)

        assert resumed.state == session.state
        assert resumed.current_value_id == "C"

    def test_write_failure_continues_in_memory(self) -> None:
        """Test that a failing store marks the session non-durable."""
        session = AssessmentSession(store=FailingStore(), catalog_ids=ORDER)

        state = session.init_session(shuffled_value_ids=list(ORDER))
        session.assign("A", "very")

        assert session.is_durable is False
        assert state.shuffled_value_ids == ORDER
        assert session.state.current_card_index == 1

    def test_session_without_store_is_not_durable(self) -> None:
        """Test that an in-memory session reports non-durable."""
        assert AssessmentSession().is_durable is False


class TestDefinitions:
    """Tests for generating and editing definitions."""

    @pytest.mark.asyncio
    async def test_generate_requires_ranking(self, session: AssessmentSession) -> None:
        """Test that generation needs a ranking."""
        gateway = MagicMock()

        with pytest.raises(PreconditionError):
            await session.generate_definitions(gateway)

    @pytest.mark.asyncio
    async def test_generate_merges_top_three(self, ranked_session: AssessmentSession) -> None:
        """Test that generated definitions are stored for the top three."""
        gateway = MagicMock()
        gateway.generate = AsyncMock(
            return_value=GenerationResult(
                definitions={v: Definition(tagline=f"{v} tagline") for v in CATALOG_ORDER[:3]},
            )
        )

        result = await ranked_session.generate_definitions(gateway)

        assert result.fallback is False
        values = gateway.generate.call_args.args[0]
        assert [v.name for v in values] == ["Integrity", "Care", "Courage"]
        assert set(ranked_session.state.definitions) == set(CATALOG_ORDER[:3])

    @pytest.mark.asyncio
    async def test_generate_keeps_user_edits(self, ranked_session: AssessmentSession) -> None:
        """Test that regeneration does not overwrite edited definitions."""
        ranked_session.update_definition("integrity", tagline="My own words")
        gateway = MagicMock()
        gateway.generate = AsyncMock(
            return_value=GenerationResult(
                definitions={v: Definition(tagline="generated") for v in CATALOG_ORDER[:3]},
            )
        )

        await ranked_session.generate_definitions(gateway)
        kept = ranked_session.state.definitions["integrity"]

        await ranked_session.generate_definitions(gateway, overwrite_edited=True)
        replaced = ranked_session.state.definitions["integrity"]

        assert kept.tagline == "My own words"
        assert kept.user_edited is True
        assert replaced.tagline == "generated"
        assert replaced.user_edited is False

    @pytest.mark.asyncio
    async def test_gateway_failure_uses_local_fallback(self, ranked_session: AssessmentSession) -> None:
        """Test that a raising gateway still yields definitions."""
        gateway = MagicMock()
        gateway.generate = AsyncMock(side_effect=RuntimeError("network down"))

        result = await ranked_session.generate_definitions(gateway)

        assert result.fallback is True
        assert "network down" in result.error
        assert set(ranked_session.state.definitions) == set(CATALOG_ORDER[:3])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "replace",
        [
            lambda s: s.init_session(session_id="new-session"),
            lambda s: s.init_session(session_id="session-2"),
            lambda s: s.reset(),
        ],
        ids=["new_session", "same_id_restarted", "reset"],
    )
    async def test_late_result_for_replaced_session_is_discarded(
        self,
        ranked_session: AssessmentSession,
        store: MemoryBlobStore,
        replace: Callable[[AssessmentSession], object],
    ) -> None:
        """Test that definitions arriving after a restart do not leak into it."""
        gateway = SlowGateway()
        task = asyncio.create_task(ranked_session.generate_definitions(gateway))
        await gateway.started.wait()

        replace(ranked_session)
        gateway.release.set()
        result = await task

        assert set(result.definitions) == set(CATALOG_ORDER[:3])
        assert ranked_session.state.definitions == {}
        assert AssessmentSession.load(store).state.definitions == {}

    def test_update_definition_rejects_unranked_value(self, ranked_session: AssessmentSession) -> None:
        """Test that edits need a ranked value."""
        with pytest.raises(AssessmentValidationError) as exc_info:
            ranked_session.update_definition("patience", tagline="x")

        assert exc_info.value.constraint == "ranked_value"

    def test_update_definition_rejects_empty_tagline(self, ranked_session: AssessmentSession) -> None:
        """Test that a blank tagline is rejected."""
        with pytest.raises(AssessmentValidationError) as exc_info:
            ranked_session.update_definition("integrity", tagline="   ")

        assert exc_info.value.constraint == "tagline"

    def test_update_definition_keeps_other_fields(self, ranked_session: AssessmentSession) -> None:
        """Test that a partial edit keeps untouched fields."""
        ranked_session.update_definition("care", tagline="Showing up", definition="First sentence.")

        state = ranked_session.update_definition("care", behavioral_anchors=["Call my sister"])

        definition = state.definitions["care"]
        assert definition.tagline == "Showing up"
        assert definition.definition == "First sentence."
        assert definition.behavioral_anchors == ["Call my sister"]
        assert definition.user_edited is True

    def test_definitions_survive_reranking(self, ranked_session: AssessmentSession) -> None:
        """Test that definitions are keyed by id, not rank."""
        ranked_session.update_definition("integrity", tagline="Mine")

        state = ranked_session.set_ranking(list(reversed(CATALOG_ORDER)))

        assert state.definitions["integrity"].tagline == "Mine"


class TestPublish:
    """Tests for completing and sharing a session."""

    def test_completion_request_requires_ranking(self, session: AssessmentSession) -> None:
        """Test that an unranked session cannot be finalized."""
        with pytest.raises(PreconditionError) as exc_info:
            session.completion_request()

        assert exc_info.value.required_phase == AssessmentPhase.SELECT

    def test_completion_request_requires_session(self) -> None:
        """Test that nothing can be finalized before starting."""
        with pytest.raises(PreconditionError) as exc_info:
            AssessmentSession().completion_request()

        assert exc_info.value.required_phase == AssessmentPhase.START

    @pytest.mark.asyncio
    async def test_publish_records_slug(self, ranked_session: AssessmentSession) -> None:
        """Test that a stored session records its share slug."""
        durable = MagicMock()
        durable.complete_session = AsyncMock(
            return_value=SessionCompleteResponse(session_id="session-2", profile_slug="abc23456")
        )

        slug = await ranked_session.publish(durable)

        assert slug == "abc23456"
        assert ranked_session.state.share_slug == "abc23456"
        request = durable.complete_session.call_args.args[0]
        assert request.ranked_values == CATALOG_ORDER

    @pytest.mark.asyncio
    async def test_publish_failure_returns_none(self, ranked_session: AssessmentSession) -> None:
        """Test that a storage failure leaves the session unpublished."""
        durable = MagicMock()
        durable.complete_session = AsyncMock(side_effect=RuntimeError("db down"))

        slug = await ranked_session.publish(durable)

        assert slug is None
        assert ranked_session.state.share_slug is None
