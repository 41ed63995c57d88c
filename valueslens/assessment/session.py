"""Assessment session: the caller-held owner of one assessment's state.

Each mutation computes a new state from the current one, swaps it in, then
writes it through the persistence port. A rejected mutation raises before the
swap, so the session is never left half-updated.
"""

import logging
import random
import time
from collections.abc import Callable, Iterable
from typing import Protocol
from uuid import uuid4

from valueslens.assessment import ledger, narrative, selection
from valueslens.assessment.errors import AssessmentValidationError, PreconditionError
from valueslens.assessment.persistence import STORAGE_KEY, BlobStore, load_state, save_state
from valueslens.schemas.assessment import (
    AssessmentPhase,
    AssessmentState,
    Commitment,
    Definition,
    Demographics,
    SortCategory,
)
from valueslens.schemas.definitions import GenerationResult, ValueRef
from valueslens.schemas.session import SessionCompleteRequest, SessionCompleteResponse
from valueslens.services.definition_service import build_fallback_definitions
from valueslens.services.value_catalog import ALL_VALUE_IDS

logger = logging.getLogger(__name__)

PHASE_ORDER = list(AssessmentPhase)


class DefinitionGateway(Protocol):
    async def generate(
        self,
        values: list[ValueRef],
        transcript: str = "",
        commitments: dict[str, Commitment] | None = None,
    ) -> GenerationResult: ...


class DurableStore(Protocol):
    async def complete_session(self, data: SessionCompleteRequest) -> SessionCompleteResponse: ...


class AssessmentSession:
    """One user's assessment, optionally backed by a blob store."""

    def __init__(
        self,
        store: BlobStore | None = None,
        state: AssessmentState | None = None,
        key: str = STORAGE_KEY,
        catalog_ids: Iterable[str] | None = None,
    ) -> None:
        self._store = store
        self._catalog_ids = list(ALL_VALUE_IDS if catalog_ids is None else catalog_ids)
        self._key = key
        self._state = state or AssessmentState()
        self.is_durable = store is not None

    @classmethod
    def load(
        cls,
        store: BlobStore,
        key: str = STORAGE_KEY,
        catalog_ids: Iterable[str] | None = None,
    ) -> "AssessmentSession":
        """Resume from the store, or start empty when nothing usable is stored."""
        return cls(store=store, state=load_state(store, key), key=key, catalog_ids=catalog_ids)

    @property
    def state(self) -> AssessmentState:
        """A copy of the current state."""
        return self._state.clone()

    def _commit(self, new_state: AssessmentState) -> None:
        self._state = new_state
        if self._store is None:
            return
        try:
            save_state(self._store, new_state, self._key)
        except Exception as e:
            logger.warning("Could not persist assessment %s, continuing in memory: %s", new_state.session_id, e)
            self.is_durable = False
        else:
            self.is_durable = True

    def _apply(self, mutation: Callable[..., AssessmentState], *args, **kwargs) -> AssessmentState:
        new_state = mutation(self._state, *args, **kwargs)
        if new_state is not self._state:
            self._commit(new_state)
        return self.state

    # Lifecycle

    def init_session(
        self,
        session_id: str | None = None,
        shuffled_value_ids: list[str] | None = None,
    ) -> AssessmentState:
        """Discard any current assessment and start a new one.

        Raises:
            AssessmentValidationError: If the given order is empty, has
                duplicates, or is not a permutation of the catalog.
        """
        if shuffled_value_ids is None:
            shuffled_value_ids = random.sample(self._catalog_ids, len(self._catalog_ids))
        if not shuffled_value_ids:
            raise AssessmentValidationError("presentation_order", "Presentation order must not be empty")
        if len(set(shuffled_value_ids)) != len(shuffled_value_ids):
            raise AssessmentValidationError("presentation_order", "Presentation order has duplicate values")
        if set(shuffled_value_ids) != set(self._catalog_ids):
            raise AssessmentValidationError(
                "presentation_order",
                "Presentation order must contain every catalog value exactly once",
            )

        if self._state.session_id:
            logger.info("Replacing assessment %s with a new session", self._state.session_id)
        self._commit(
            AssessmentState(
                session_id=session_id or str(uuid4()),
                started_at=int(time.time() * 1000),
                shuffled_value_ids=list(shuffled_value_ids),
            )
        )
        return self.state

    def reset(self) -> AssessmentState:
        """Return every field to its empty default."""
        self._commit(AssessmentState())
        return self.state

    def set_consent(self, consent: bool, demographics: Demographics | None = None) -> AssessmentState:
        new_state = self._state.clone()
        new_state.consent_research = consent
        if demographics is not None:
            new_state.demographics = demographics
        self._commit(new_state)
        return self.state

    # Routing

    def resume_phase(self) -> AssessmentPhase:
        """Where the user should be, derived only from state.

        A finished sort with fewer than three very-important values still
        routes to SELECT; selecting there fails on min_very_important until
        the user undoes a card or adds a custom value.
        """
        state = self._state
        if not state.session_id or not state.shuffled_value_ids:
            return AssessmentPhase.START
        if state.current_card_index < len(state.shuffled_value_ids):
            return AssessmentPhase.SORT
        if not state.ranked_values:
            return AssessmentPhase.SELECT
        if not narrative.story_meets_gate(state):
            return AssessmentPhase.STORY
        if not narrative.commitments_complete(state):
            return AssessmentPhase.GOALS
        return AssessmentPhase.SHARE

    @property
    def is_in_progress(self) -> bool:
        state = self._state
        return state.current_card_index < len(state.shuffled_value_ids) or not state.ranked_values

    def require_phase(self, phase: AssessmentPhase) -> None:
        """Raise unless the gates before a phase are all satisfied.

        Raises:
            PreconditionError: Naming the phase the user should be routed to.
        """
        current = self.resume_phase()
        if PHASE_ORDER.index(phase) > PHASE_ORDER.index(current):
            raise PreconditionError(current, f"Cannot enter {phase.value} before completing {current.value}")

    # Ledger

    @property
    def current_value_id(self) -> str | None:
        return ledger.current_value_id(self._state)

    @property
    def is_sorting_complete(self) -> bool:
        return ledger.is_sorting_complete(self._state)

    @property
    def progress(self) -> dict[str, int]:
        return ledger.progress(self._state)

    @property
    def category_counts(self) -> dict[SortCategory, int]:
        return ledger.category_counts(self._state)

    def assign(self, value_id: str, category: SortCategory | str) -> AssessmentState:
        return self._apply(ledger.assign, value_id, category)

    def undo(self) -> AssessmentState:
        return self._apply(ledger.undo)

    def add_custom_value(self, name: str) -> AssessmentState:
        return self._apply(ledger.add_custom_value, name)

    def value_name(self, value_id: str) -> str:
        return ledger.resolve_value_name(self._state, value_id)

    # Selection and ranking

    @property
    def required_selection_size(self) -> int:
        return selection.required_selection_size(self._state)

    @property
    def needs_manual_selection(self) -> bool:
        return selection.needs_manual_selection(self._state)

    def select_top_k(self, ids: list[str], k: int | None = None) -> AssessmentState:
        return self._apply(selection.select_top_k, ids, k)

    def auto_select(self) -> AssessmentState:
        return self._apply(selection.auto_select)

    def set_ranking(self, ids: list[str]) -> AssessmentState:
        return self._apply(selection.set_ranking, ids)

    def move(self, from_index: int, to_index: int) -> AssessmentState:
        return self._apply(selection.move, from_index, to_index)

    def move_up(self, index: int) -> AssessmentState:
        return self._apply(selection.move_up, index)

    def move_down(self, index: int) -> AssessmentState:
        return self._apply(selection.move_down, index)

    @property
    def top_three(self) -> list[str]:
        return selection.top_three(self._state)

    # Narrative and commitments

    def set_transcript(self, text: str) -> AssessmentState:
        return self._apply(narrative.set_transcript, text)

    @property
    def word_count(self) -> int:
        return narrative.word_count(self._state.transcript)

    @property
    def story_meets_gate(self) -> bool:
        return narrative.story_meets_gate(self._state)

    def set_commitment(
        self,
        value_id: str,
        outcome: str | None = None,
        obstacle: str | None = None,
        plan: str | None = None,
    ) -> AssessmentState:
        return self._apply(narrative.set_commitment, value_id, outcome=outcome, obstacle=obstacle, plan=plan)

    @property
    def commitments_complete(self) -> bool:
        return narrative.commitments_complete(self._state)

    @property
    def goal_statements(self) -> dict[str, str]:
        return narrative.goal_statements(self._state)

    # Definitions

    def _top_value_refs(self) -> list[ValueRef]:
        top = selection.top_three(self._state)
        if not top:
            raise PreconditionError(AssessmentPhase.SELECT, "Rank your values before generating definitions")
        return [ValueRef(id=value_id, name=self.value_name(value_id)) for value_id in top]

    async def generate_definitions(
        self,
        gateway: DefinitionGateway,
        overwrite_edited: bool = False,
    ) -> GenerationResult:
        """Request definitions for the ranked top three and merge them in.

        Definitions the user edited are kept unless overwrite_edited is set.
        If the gateway itself raises, the local fallback is used. Results
        arriving after the session was replaced or reset, or for a value no
        longer ranked, are discarded.

        Raises:
            PreconditionError: If no ranking exists yet.
        """
        values = self._top_value_refs()
        session_id = self._state.session_id
        commitments = {v.id: self._state.voop[v.id] for v in values if v.id in self._state.voop}

        try:
            result = await gateway.generate(values, self._state.transcript, commitments)
        except Exception as e:
            logger.error("Definition gateway failed, using local fallback: %s", e)
            result = GenerationResult(
                definitions=build_fallback_definitions(values),
                fallback=True,
                error=f"{type(e).__name__}: {e}",
            )

        if self._state.session_id != session_id:
            logger.debug("Discarding definitions for superseded assessment %s", session_id)
            return result

        new_state = self._state.clone()
        for value in values:
            generated = result.definitions.get(value.id)
            if generated is None:
                continue
            if value.id not in new_state.ranked_values:
                logger.debug("Discarding definition for %s, no longer ranked", value.id)
                continue
            existing = new_state.definitions.get(value.id)
            if existing and existing.user_edited and not overwrite_edited:
                logger.debug("Keeping user edited definition for %s", value.id)
                continue
            new_state.definitions[value.id] = generated.model_copy(update={"user_edited": False})
        self._commit(new_state)
        return result

    def update_definition(
        self,
        value_id: str,
        tagline: str | None = None,
        definition: str | None = None,
        behavioral_anchors: list[str] | None = None,
    ) -> AssessmentState:
        """Apply a user edit; the definition is marked user_edited.

        Raises:
            AssessmentValidationError: If value_id is not ranked, or a new
                definition has no tagline.
        """
        if value_id not in self._state.ranked_values:
            raise AssessmentValidationError(
                "ranked_value",
                f"Definitions can only be edited for ranked values, not {value_id!r}",
            )
        if tagline is not None and not tagline.strip():
            raise AssessmentValidationError("tagline", "Tagline must not be empty")

        existing = self._state.definitions.get(value_id)
        if existing is None and tagline is None:
            raise AssessmentValidationError("tagline", "A new definition needs a tagline")

        updates: dict = {"user_edited": True}
        if tagline is not None:
            updates["tagline"] = tagline.strip()
        if definition is not None:
            updates["definition"] = definition
        if behavioral_anchors is not None:
            updates["behavioral_anchors"] = list(behavioral_anchors)

        new_state = self._state.clone()
        base = existing or Definition(tagline=tagline.strip())
        new_state.definitions[value_id] = base.model_copy(update=updates)
        self._commit(new_state)
        return self.state

    # Sharing

    def set_share_slug(self, slug: str) -> AssessmentState:
        new_state = self._state.clone()
        new_state.share_slug = slug
        self._commit(new_state)
        return self.state

    def completion_request(self) -> SessionCompleteRequest:
        """Finalized payload for durable storage.

        Raises:
            PreconditionError: If there is no session or ranking.
        """
        state = self._state
        if not state.session_id:
            raise PreconditionError(AssessmentPhase.START, "No assessment has been started")
        if not state.ranked_values:
            raise PreconditionError(AssessmentPhase.SELECT, "Rank your values before publishing")
        return SessionCompleteRequest(
            session_id=state.session_id,
            consent_research=state.consent_research,
            sorted_values=state.sorted_values,
            ranked_values=state.ranked_values,
            transcript=state.transcript or None,
            definitions=state.definitions,
            custom_value=state.custom_value,
        )

    async def publish(self, durable: DurableStore) -> str | None:
        """Store the finalized session and record its share slug.

        Returns:
            str | None: The share slug, or None if storage failed.

        Raises:
            PreconditionError: If there is no session or ranking.
        """
        request = self.completion_request()
        try:
            response = await durable.complete_session(request)
        except Exception as e:
            logger.warning("Publishing assessment %s failed: %s", request.session_id, e)
            return None

        self.set_share_slug(response.profile_slug)
        return response.profile_slug
