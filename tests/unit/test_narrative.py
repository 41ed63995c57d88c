"""Unit tests for the story transcript and commitments."""

import pytest

from valueslens.assessment import narrative
from valueslens.assessment.errors import AssessmentValidationError, PreconditionError
from valueslens.schemas.assessment import AssessmentPhase, AssessmentState, Commitment, SortedValues


def _ranked(ranked: list[str]) -> AssessmentState:
    return AssessmentState(
        session_id="s",
        shuffled_value_ids=list(ranked),
        current_card_index=len(ranked),
        sorted_values=SortedValues(very=list(ranked)),
        top5=list(ranked),
        ranked_values=list(ranked),
    )


class TestWordCount:
    """Tests for the story gate."""

    def test_counts_whitespace_separated_tokens(self) -> None:
        """Test that repeated whitespace is not counted."""
        assert narrative.word_count("  one   two\nthree\t") == 3
        assert narrative.word_count("") == 0

    @pytest.mark.parametrize(("words", "expected"), [(29, False), (30, True), (500, True), (501, False)])
    def test_gate_bounds(self, words: int, expected: bool) -> None:
        """Test the inclusive 30 to 500 word range."""
        state = narrative.set_transcript(AssessmentState(), " ".join(["word"] * words))

        assert narrative.story_meets_gate(state) is expected

    def test_transcript_stored_verbatim(self) -> None:
        """Test that the transcript is not trimmed."""
        state = narrative.set_transcript(AssessmentState(), "  hello  ")

        assert state.transcript == "  hello  "


class TestSetCommitment:
    """Tests for merging commitment fields."""

    def test_merges_fields(self) -> None:
        """Test that fields given separately accumulate."""
        state = _ranked(["A", "B", "C"])
        state = narrative.set_commitment(state, "A", outcome="I speak up")
        state = narrative.set_commitment(state, "A", obstacle="I fear conflict")
        state = narrative.set_commitment(state, "A", plan="take a breath")

        assert state.voop["A"] == Commitment(outcome="I speak up", obstacle="I fear conflict", plan="take a breath")

    def test_changing_obstacle_clears_plan(self) -> None:
        """Test that a new obstacle invalidates the old plan."""
        state = _ranked(["A", "B", "C"])
        state = narrative.set_commitment(state, "A", outcome="o", obstacle="first", plan="p")

        state = narrative.set_commitment(state, "A", obstacle="second")

        assert state.voop["A"].obstacle == "second"
        assert state.voop["A"].plan == ""

    def test_same_obstacle_keeps_plan(self) -> None:
        """Test that re-choosing the same obstacle keeps the plan."""
        state = _ranked(["A", "B", "C"])
        state = narrative.set_commitment(state, "A", outcome="o", obstacle="first", plan="p")

        state = narrative.set_commitment(state, "A", obstacle="first")

        assert state.voop["A"].plan == "p"

    def test_obstacle_with_plan_sets_both(self) -> None:
        """Test that a plan given with a new obstacle is kept."""
        state = _ranked(["A", "B", "C"])
        state = narrative.set_commitment(state, "A", obstacle="first", plan="p")

        state = narrative.set_commitment(state, "A", obstacle="second", plan="q")

        assert state.voop["A"].plan == "q"

    def test_requires_ranking(self) -> None:
        """Test that commitments need a ranking first."""
        with pytest.raises(PreconditionError) as exc_info:
            narrative.set_commitment(AssessmentState(), "A", outcome="o")

        assert exc_info.value.required_phase == AssessmentPhase.SELECT

    def test_rejects_unranked_value(self) -> None:
        """Test that only ranked values take commitments."""
        with pytest.raises(AssessmentValidationError) as exc_info:
            narrative.set_commitment(_ranked(["A", "B", "C"]), "Z", outcome="o")

        assert exc_info.value.constraint == "ranked_value"


class TestCommitmentsComplete:
    """Tests for the goals gate."""

    def test_complete_only_when_top_three_complete(self) -> None:
        """Test that every top-three value needs a full commitment."""
        state = _ranked(["A", "B", "C", "D"])
        for value_id in ["A", "B"]:
            state = narrative.set_commitment(state, value_id, outcome="o", obstacle="Fear", plan="act")

        assert narrative.commitments_complete(state) is False

        state = narrative.set_commitment(state, "C", outcome="o", obstacle="Fear", plan="act")

        assert narrative.commitments_complete(state) is True

    def test_not_complete_without_ranking(self) -> None:
        """Test that an empty ranking is never complete."""
        assert narrative.commitments_complete(AssessmentState()) is False

    def test_goal_statements(self) -> None:
        """Test that statements read as if-then intentions."""
        state = narrative.set_commitment(_ranked(["A", "B", "C"]), "A", outcome="o", obstacle="I Procrastinate", plan="start small")

        assert narrative.goal_statements(state) == {"A": "If i procrastinate, then I will start small"}
