"""Checkout business logic service for the paid values report."""

import json
import logging

import stripe

from valueslens.core.config import get_settings
from valueslens.core.stripe import get_stripe
from valueslens.schemas.checkout import CheckoutSessionCreate, CheckoutSessionResponse

logger = logging.getLogger(__name__)

# Stripe rejects metadata values longer than this
METADATA_VALUE_LIMIT = 500


class CheckoutService:
    """Service for creating Stripe Checkout sessions."""

    def __init__(self) -> None:
        """Initialize checkout service with clients."""
        self.stripe = get_stripe()
        self.settings = get_settings()

    def _build_metadata(self, data: CheckoutSessionCreate) -> dict[str, str]:
        metadata = {
            "sessionId": data.session_id,
            "rankedValues": json.dumps(data.ranked_values),
        }
        definitions = json.dumps(
            {value_id: definition.tagline for value_id, definition in data.definitions.items()}
        )
        if len(definitions) <= METADATA_VALUE_LIMIT:
            metadata["taglines"] = definitions
        else:
            logger.debug("Omitting taglines from checkout metadata for session %s", data.session_id)
        return metadata

    async def create_checkout_session(self, data: CheckoutSessionCreate) -> CheckoutSessionResponse:
        """Create a Stripe Checkout Session for the report.

        Args:
            data: Session id, ranked values and definitions of the buyer.

        Returns:
            CheckoutSessionResponse: Redirect URL and Stripe session id.

        Raises:
            ValueError: If Stripe is not configured.
            stripe.StripeError: If the Stripe API call fails.
        """
        if not self.settings.stripe_secret_key:
            raise ValueError("Stripe is not configured. Please set STRIPE_SECRET_KEY environment variable.")

        frontend_url = self.settings.frontend_url.rstrip("/")
        try:
            stripe_session = self.stripe.checkout.Session.create(
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": "usd",
                            "product_data": {
                                "name": self.settings.report_product_name,
                                "description": self.settings.report_product_description,
                            },
                            "unit_amount": self.settings.report_price_cents,
                        },
                        "quantity": 1,
                    }
                ],
                metadata=self._build_metadata(data),
                success_url=f"{frontend_url}/purchase/success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{frontend_url}/assess/review",
            )
        except stripe.StripeError as e:
            logger.error("Stripe error creating checkout session: %s", str(e))
            raise

        logger.info("Created checkout session %s for session %s", stripe_session.id, data.session_id)
        return CheckoutSessionResponse(url=stripe_session.url, stripe_session_id=stripe_session.id)
