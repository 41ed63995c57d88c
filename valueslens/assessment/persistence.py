"""Blob persistence for assessment state, with a versioned loader.

Persisted blobs look like ``{"state": {...}, "version": n}``. The loader
upgrades older versions one step at a time and writes the result back.
Anything it cannot read loads as "no prior state".
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from valueslens.schemas.assessment import AssessmentState

logger = logging.getLogger(__name__)

STORAGE_KEY = "valuesprofile-assessment"
CURRENT_VERSION = 1


class BlobStore(Protocol):
    """Key-value port for string blobs."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryBlobStore:
    """In-process blob store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self._blobs[key] = value


class FileBlobStore:
    """Blob store keeping one JSON file per key in a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)


def _migrate_v0(state: dict[str, Any]) -> dict[str, Any]:
    """Rename the legacy ``woop`` commitments field to ``voop``."""
    migrated = dict(state)
    legacy = migrated.pop("woop", None)
    if legacy is not None and migrated.get("voop") is None:
        migrated["voop"] = legacy
    return migrated


# Upgrade from the keyed version to the next one.
MIGRATIONS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    0: _migrate_v0,
}


def ledger_violation(state: AssessmentState) -> str | None:
    """Name the first ledger invariant a state breaks, or None if it holds."""
    cursor = state.current_card_index
    if cursor > len(state.shuffled_value_ids):
        return f"cursor {cursor} is past the {len(state.shuffled_value_ids)} card order"

    seen: set[str] = set()
    sorted_values = state.sorted_values
    for value_id in [*sorted_values.very, *sorted_values.somewhat, *sorted_values.less]:
        if value_id in seen:
            return f"value {value_id!r} is sorted more than once"
        seen.add(value_id)

    expected = cursor + (1 if state.custom_value else 0)
    if sorted_values.total != expected:
        return f"{sorted_values.total} sorted values do not match cursor {cursor}"
    return None


def encode_state(state: AssessmentState) -> str:
    return json.dumps({"state": state.to_blob_state(), "version": CURRENT_VERSION})


def save_state(store: BlobStore, state: AssessmentState, key: str = STORAGE_KEY) -> None:
    """Write state to the store. Store errors propagate to the caller."""
    store.set(key, encode_state(state))


def load_state(store: BlobStore, key: str = STORAGE_KEY) -> AssessmentState | None:
    """Read, upgrade and validate persisted state.

    Returns:
        AssessmentState | None: The stored state, or None when nothing usable
            is stored.
    """
    try:
        raw = store.get(key)
    except Exception as e:
        logger.warning("Could not read persisted assessment %s: %s", key, e)
        return None
    if raw is None:
        return None

    try:
        blob = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Discarding unparseable assessment blob %s: %s", key, e)
        return None

    if not isinstance(blob, dict) or not isinstance(blob.get("state"), dict):
        logger.warning("Discarding assessment blob %s with unexpected shape", key)
        return None

    version = blob.get("version", 0)
    if not isinstance(version, int) or isinstance(version, bool) or version < 0:
        logger.warning("Discarding assessment blob %s with invalid version %r", key, version)
        return None
    if version > CURRENT_VERSION:
        logger.warning(
            "Discarding assessment blob %s from newer version %d (current %d)",
            key,
            version,
            CURRENT_VERSION,
        )
        return None

    state_data = blob["state"]
    migrated = version < CURRENT_VERSION
    while version < CURRENT_VERSION:
        state_data = MIGRATIONS[version](state_data)
        version += 1

    try:
        state = AssessmentState.model_validate(state_data)
    except ValidationError as e:
        logger.warning("Discarding invalid assessment state %s: %s", key, e)
        return None

    violation = ledger_violation(state)
    if violation:
        logger.warning("Discarding inconsistent assessment state %s: %s", key, violation)
        return None

    if migrated:
        logger.info("Upgraded persisted assessment %s to version %d", key, CURRENT_VERSION)
        try:
            save_state(store, state, key)
        except Exception as e:
            logger.warning("Could not write back upgraded assessment %s: %s", key, e)

    return state
