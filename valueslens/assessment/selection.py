"""Selection and ranking of the top values out of the very-important bucket."""

import logging

from valueslens.assessment.errors import AssessmentValidationError, PreconditionError
from valueslens.assessment.ledger import is_sorting_complete
from valueslens.schemas.assessment import AssessmentPhase, AssessmentState, SortedValues

logger = logging.getLogger(__name__)

MIN_VERY_IMPORTANT = 3
SELECTION_SIZE = 5
TOP_THREE = 3


def required_selection_size(state: AssessmentState) -> int:
    """Number of values the selection must hold.

    Five when the very-important bucket has at least five entries, otherwise
    every very-important value. Below MIN_VERY_IMPORTANT no selection is
    possible at all.
    """
    very_count = len(state.sorted_values.very)
    return SELECTION_SIZE if very_count >= SELECTION_SIZE else very_count


def needs_manual_selection(state: AssessmentState) -> bool:
    return len(state.sorted_values.very) > SELECTION_SIZE


def _require_selectable(state: AssessmentState) -> None:
    if not is_sorting_complete(state):
        raise PreconditionError(AssessmentPhase.SORT, "Finish sorting every value before selecting")
    if len(state.sorted_values.very) < MIN_VERY_IMPORTANT:
        raise AssessmentValidationError(
            "min_very_important",
            f"At least {MIN_VERY_IMPORTANT} values must be very important to continue",
        )


def select_top_k(state: AssessmentState, ids: list[str], k: int | None = None) -> AssessmentState:
    """Record the selected values in the order given.

    A ranking that is no longer a permutation of the new selection is cleared.

    Raises:
        PreconditionError: If sorting is unfinished.
        AssessmentValidationError: If too few values are very important, or
            the ids do not form a valid selection.
    """
    _require_selectable(state)

    required = required_selection_size(state)
    k = required if k is None else k
    if k != required:
        raise AssessmentValidationError(
            "selection_size",
            f"Selection must contain {required} values, not {k}",
        )
    if len(ids) != k:
        raise AssessmentValidationError(
            "selection_size",
            f"Expected {k} values, got {len(ids)}",
        )
    if len(set(ids)) != len(ids):
        raise AssessmentValidationError("no_duplicates", "Selection contains duplicate values")

    very = set(state.sorted_values.very)
    outside = [value_id for value_id in ids if value_id not in very]
    if outside:
        raise AssessmentValidationError(
            "very_important_only",
            f"Only very important values can be selected: {', '.join(outside)}",
        )

    new_state = state.clone()
    new_state.top5 = list(ids)
    if sorted(new_state.ranked_values) != sorted(ids):
        new_state.ranked_values = []
    return new_state


def auto_select(state: AssessmentState) -> AssessmentState:
    """Select the whole very-important bucket when there is nothing to choose.

    Ranking is still required afterwards.

    Raises:
        PreconditionError: If the selection cannot be made automatically.
        AssessmentValidationError: If too few values are very important.
    """
    _require_selectable(state)
    if needs_manual_selection(state):
        raise PreconditionError(
            AssessmentPhase.SELECT,
            f"More than {SELECTION_SIZE} very important values; choose {SELECTION_SIZE}",
        )
    logger.debug("Auto-selecting %d very important values", len(state.sorted_values.very))
    return select_top_k(state, list(state.sorted_values.very))


def set_ranking(state: AssessmentState, ids: list[str]) -> AssessmentState:
    """Set the authoritative order of the selection.

    Existing definitions are keyed by value id and survive re-ranking.

    Raises:
        PreconditionError: If nothing has been selected yet.
        AssessmentValidationError: If ids is not a permutation of the selection.
    """
    if not state.top5:
        raise PreconditionError(AssessmentPhase.SELECT, "Select values before ranking them")
    if len(ids) != len(state.top5) or sorted(ids) != sorted(state.top5):
        raise AssessmentValidationError(
            "permutation",
            "Ranking must contain exactly the selected values",
        )

    new_state = state.clone()
    new_state.ranked_values = list(ids)
    return new_state


def check_ranking(sorted_values: SortedValues, ranked_ids: list[str]) -> None:
    """Validate a ranking received from outside the engine.

    Raises:
        AssessmentValidationError: If the ranking could not have been built
            from this ledger.
    """
    if not MIN_VERY_IMPORTANT <= len(ranked_ids) <= SELECTION_SIZE:
        raise AssessmentValidationError(
            "selection_size",
            f"Ranking must hold {MIN_VERY_IMPORTANT} to {SELECTION_SIZE} values, got {len(ranked_ids)}",
        )
    if len(set(ranked_ids)) != len(ranked_ids):
        raise AssessmentValidationError("no_duplicates", "Ranking contains duplicate values")
    very = set(sorted_values.very)
    outside = [value_id for value_id in ranked_ids if value_id not in very]
    if outside:
        raise AssessmentValidationError(
            "very_important_only",
            f"Only very important values can be ranked: {', '.join(outside)}",
        )


def _ordering_field(state: AssessmentState) -> str:
    # Before a ranking is committed, reorders apply to the selection draft.
    return "ranked_values" if state.ranked_values else "top5"


def move(state: AssessmentState, from_index: int, to_index: int) -> AssessmentState:
    """Move one entry of the ranking, clamping the target to the ends.

    An out-of-range source or a move onto itself is a no-op.
    """
    field = _ordering_field(state)
    order = getattr(state, field)
    if not 0 <= from_index < len(order):
        return state
    to_index = max(0, min(to_index, len(order) - 1))
    if to_index == from_index:
        return state

    new_state = state.clone()
    reordered = getattr(new_state, field)
    reordered.insert(to_index, reordered.pop(from_index))
    return new_state


def move_up(state: AssessmentState, index: int) -> AssessmentState:
    return move(state, index, index - 1)


def move_down(state: AssessmentState, index: int) -> AssessmentState:
    return move(state, index, index + 1)


def top_three(state: AssessmentState) -> list[str]:
    return state.ranked_values[:TOP_THREE]
