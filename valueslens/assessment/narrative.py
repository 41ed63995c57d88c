"""Story transcript and per-value VOOP commitments."""

from valueslens.assessment.errors import AssessmentValidationError, PreconditionError
from valueslens.assessment.selection import top_three
from valueslens.schemas.assessment import AssessmentPhase, AssessmentState, Commitment

MIN_STORY_WORDS = 30
MAX_STORY_WORDS = 500


def word_count(text: str) -> int:
    """Count non-empty whitespace separated tokens."""
    return len(text.split())


def story_meets_gate(state: AssessmentState) -> bool:
    return MIN_STORY_WORDS <= word_count(state.transcript) <= MAX_STORY_WORDS


def set_transcript(state: AssessmentState, text: str) -> AssessmentState:
    """Store the transcript verbatim. Length is only checked by the gate."""
    new_state = state.clone()
    new_state.transcript = text
    return new_state


def set_commitment(
    state: AssessmentState,
    value_id: str,
    outcome: str | None = None,
    obstacle: str | None = None,
    plan: str | None = None,
) -> AssessmentState:
    """Merge the given fields into a value's commitment.

    Fields left as None keep their current value. Choosing a different
    obstacle clears the plan unless a plan is given in the same call.

    Raises:
        PreconditionError: If no ranking exists yet.
        AssessmentValidationError: If value_id is not ranked.
    """
    if not state.ranked_values:
        raise PreconditionError(AssessmentPhase.SELECT, "Rank your values before setting goals")
    if value_id not in state.ranked_values:
        raise AssessmentValidationError(
            "ranked_value",
            f"Commitments can only be set for ranked values, not {value_id!r}",
        )

    new_state = state.clone()
    commitment = new_state.voop.get(value_id) or Commitment()

    if outcome is not None:
        commitment.outcome = outcome
    if obstacle is not None:
        if obstacle != commitment.obstacle and plan is None:
            commitment.plan = ""
        commitment.obstacle = obstacle
    if plan is not None:
        commitment.plan = plan

    new_state.voop[value_id] = commitment
    return new_state


def commitments_complete(state: AssessmentState) -> bool:
    """True when every top-three value has a complete commitment."""
    top = top_three(state)
    if not top:
        return False
    return all(
        value_id in state.voop and state.voop[value_id].is_complete
        for value_id in top
    )


def goal_statements(state: AssessmentState) -> dict[str, str]:
    """Value id to if-then statement for each completed top-three commitment."""
    return {
        value_id: state.voop[value_id].statement
        for value_id in top_three(state)
        if value_id in state.voop and state.voop[value_id].is_complete
    }
