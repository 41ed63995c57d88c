"""Assessment progression engine."""

from valueslens.assessment.errors import (
    AssessmentError,
    AssessmentValidationError,
    PreconditionError,
)
from valueslens.assessment.persistence import (
    STORAGE_KEY,
    BlobStore,
    FileBlobStore,
    MemoryBlobStore,
    load_state,
    save_state,
)
from valueslens.assessment.session import AssessmentSession

__all__ = [
    "AssessmentError",
    "AssessmentValidationError",
    "PreconditionError",
    "STORAGE_KEY",
    "BlobStore",
    "FileBlobStore",
    "MemoryBlobStore",
    "load_state",
    "save_state",
    "AssessmentSession",
]
