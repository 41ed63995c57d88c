"""Checkout API routes for Stripe integration."""

from fastapi import APIRouter, HTTPException, status

from valueslens.schemas.checkout import CheckoutSessionCreate, CheckoutSessionResponse
from valueslens.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post(
    "/session",
    response_model=CheckoutSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Stripe Checkout Session",
    description="Creates a Stripe Checkout Session for the values report.",
)
async def create_checkout_session(data: CheckoutSessionCreate) -> CheckoutSessionResponse:
    """Create a Stripe Checkout Session for the report.

    The frontend should redirect to the returned url.

    Args:
        data: Session id, ranked values and definitions.

    Returns:
        CheckoutSessionResponse: Contains url for redirect.

    Raises:
        HTTPException: 400 if Stripe is not configured.
    """
    service = CheckoutService()
    try:
        return await service.create_checkout_session(data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
