"""Category assignment ledger: swipe sorting, undo and the custom value.

Every mutation takes a state and returns a new one; the input is never
modified, so a raised error leaves the caller's state as it was.
"""

import logging
import re
from uuid import uuid4

from valueslens.assessment.errors import AssessmentValidationError
from valueslens.schemas.assessment import AssessmentState, CustomValue, SortCategory
from valueslens.services.value_catalog import get_value_by_id

logger = logging.getLogger(__name__)

CUSTOM_VALUE_PREFIX = "custom_"
CUSTOM_NAME_MIN_LENGTH = 2
CUSTOM_NAME_MAX_LENGTH = 30
_CUSTOM_NAME_PATTERN = re.compile(r"^[A-Za-z\s]+$")


def current_value_id(state: AssessmentState) -> str | None:
    """Return the value on the current card, or None once sorting is done."""
    if state.current_card_index < len(state.shuffled_value_ids):
        return state.shuffled_value_ids[state.current_card_index]
    return None


def is_sorting_complete(state: AssessmentState) -> bool:
    total = len(state.shuffled_value_ids)
    return total > 0 and state.current_card_index >= total


def progress(state: AssessmentState) -> dict[str, int]:
    """Sorting progress as current card, total cards and rounded percentage."""
    total = len(state.shuffled_value_ids)
    current = state.current_card_index
    return {
        "current": current,
        "total": total,
        "percentage": round(current / total * 100) if total > 0 else 0,
    }


def category_counts(state: AssessmentState) -> dict[SortCategory, int]:
    return {category: len(state.sorted_values.sequence(category)) for category in SortCategory}


def resolve_value_name(state: AssessmentState, value_id: str) -> str:
    """Display name for a catalog or custom value id."""
    if state.custom_value and state.custom_value.id == value_id:
        return state.custom_value.name
    value = get_value_by_id(value_id)
    return value.name if value else value_id


def assign(
    state: AssessmentState,
    value_id: str,
    category: SortCategory | str,
) -> AssessmentState:
    """Sort the current card into a category and advance the cursor.

    Raises:
        AssessmentValidationError: If the category is unknown, sorting is
            already complete, or value_id is not the current card.
    """
    try:
        category = SortCategory(category)
    except ValueError as e:
        raise AssessmentValidationError(
            "category",
            f"Unknown category {category!r}; expected one of {[c.value for c in SortCategory]}",
        ) from e

    expected = current_value_id(state)
    if expected is None:
        raise AssessmentValidationError("sorting_complete", "All values have already been sorted")
    if value_id != expected:
        raise AssessmentValidationError(
            "presentation_order",
            f"Values are sorted in presentation order; current card is {expected!r}, got {value_id!r}",
        )

    new_state = state.clone()
    new_state.sorted_values.sequence(category).append(value_id)
    new_state.current_card_index += 1
    return new_state


def undo(state: AssessmentState) -> AssessmentState:
    """Take back the most recent assignment.

    The value to remove is recovered from the shuffled order and the cursor.
    A value missing from every category is tolerated: the cursor still steps
    back.
    """
    if state.current_card_index == 0:
        return state

    new_state = state.clone()
    last_index = new_state.current_card_index - 1
    last_value_id = (
        new_state.shuffled_value_ids[last_index]
        if last_index < len(new_state.shuffled_value_ids)
        else None
    )

    category = new_state.sorted_values.find(last_value_id) if last_value_id else None
    if category is None:
        logger.debug("Undo found no recorded category for %s", last_value_id)
    else:
        new_state.sorted_values.sequence(category).remove(last_value_id)

    new_state.current_card_index = last_index
    return new_state


def validate_custom_value_name(name: str) -> str:
    """Return the trimmed name or raise naming the broken constraint."""
    trimmed = name.strip()
    if len(trimmed) < CUSTOM_NAME_MIN_LENGTH:
        raise AssessmentValidationError(
            "min_length",
            f"Custom value must be at least {CUSTOM_NAME_MIN_LENGTH} characters",
        )
    if len(trimmed) > CUSTOM_NAME_MAX_LENGTH:
        raise AssessmentValidationError(
            "max_length",
            f"Custom value must be {CUSTOM_NAME_MAX_LENGTH} characters or less",
        )
    if not _CUSTOM_NAME_PATTERN.match(trimmed):
        raise AssessmentValidationError(
            "letters_and_spaces",
            "Custom value can only contain letters and spaces",
        )
    return trimmed


def add_custom_value(state: AssessmentState, name: str) -> AssessmentState:
    """Add the session's custom value straight into the very-important bucket.

    The cursor is not moved: custom values are not part of the shuffled deck.

    Raises:
        AssessmentValidationError: If the name is invalid or the session
            already has a custom value.
    """
    trimmed = validate_custom_value_name(name)
    if state.custom_value is not None:
        raise AssessmentValidationError(
            "single_custom_value",
            "A custom value has already been added to this session",
        )

    new_state = state.clone()
    custom = CustomValue(id=f"{CUSTOM_VALUE_PREFIX}{uuid4().hex[:12]}", name=trimmed)
    new_state.custom_value = custom
    new_state.sorted_values.very.append(custom.id)
    return new_state
