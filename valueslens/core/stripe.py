"""Stripe client configuration and singleton."""

import logging

import stripe

from valueslens.core.config import get_settings

logger = logging.getLogger(__name__)


def configure_stripe() -> None:
    """Configure Stripe SDK with API key from settings.

    This should be called once at application startup.
    If Stripe keys are not configured, checkout fails with a clear error.
    """
    settings = get_settings()
    if settings.stripe_secret_key:
        stripe.api_key = settings.stripe_secret_key
    else:
        logger.warning("Stripe secret key not configured. Report checkout will not work.")


def get_stripe() -> stripe:
    """Get the configured Stripe module.

    Note:
        Stripe SDK uses module-level configuration, so this returns the
        stripe module itself. Ensure configure_stripe() has been called.
    """
    return stripe
