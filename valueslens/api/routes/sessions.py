"""Session API routes for storing completed assessments."""

from fastapi import APIRouter, HTTPException, status

from valueslens.assessment.selection import check_ranking
from valueslens.schemas.session import (
    DemographicsUpdateRequest,
    SessionCompleteRequest,
    SessionCompleteResponse,
    SuccessResponse,
)
from valueslens.services.session_service import SessionService

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post(
    "/complete",
    response_model=SessionCompleteResponse,
    summary="Complete a session",
    description="Stores the finalized assessment and publishes or refreshes its share profile.",
)
async def complete_session(data: SessionCompleteRequest) -> SessionCompleteResponse:
    """Store a finalized assessment.

    Args:
        data: The finalized assessment.

    Returns:
        SessionCompleteResponse: Session id and profile slug.

    Raises:
        AssessmentValidationError: If the ranking does not fit the ledger
            (rendered as 422).
    """
    check_ranking(data.sorted_values, data.ranked_values)

    service = SessionService()
    return await service.complete_session(data)


@router.patch(
    "/demographics",
    response_model=SuccessResponse,
    summary="Update demographics",
    description="Attaches optional research demographics to a stored session.",
)
async def update_demographics(data: DemographicsUpdateRequest) -> SuccessResponse:
    """Attach demographics to a stored session.

    Args:
        data: Session id and demographics.

    Returns:
        SuccessResponse: Acknowledgement.

    Raises:
        HTTPException: 404 if the session is not stored.
    """
    service = SessionService()
    updated = await service.update_demographics(data.session_id, data.demographics)
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )
    return SuccessResponse()
