"""
Stripe Checkout adapter.

Everything that talks to Stripe goes through here so views and the order
workflow never touch the SDK directly.
"""
import json
import logging
from decimal import Decimal

import stripe
from django.conf import settings
from django.urls import reverse

from .exceptions import PaymentProviderError

logger = logging.getLogger(__name__)


def to_minor_units(amount):
    """Stripe takes integer amounts in the currency's smallest unit."""
    return int((Decimal(amount) * 100).to_integral_value())


def build_line_items(order):
    return [
        {
            'price_data': {
                'currency': settings.STRIPE_CURRENCY,
                'product_data': {
                    'name': item.product.name,
                },
                'unit_amount': to_minor_units(item.price_at_purchase),
            },
            'quantity': item.quantity,
        }
        for item in order.items.select_related('product')
    ]


def create_checkout_session(order, user):
    """
    Open a hosted checkout for ``order``. The order and user ids ride along
    as metadata so the webhook can find the order again.
    """
    success_url = "{}{}?from_checkout=true".format(
        settings.SITE_URL, reverse('invoice', args=[order.pk])
    )
    cancel_url = "{}{}?order_id={}".format(
        settings.SITE_URL, reverse('order_cancel'), order.pk
    )
    try:
        session = stripe.checkout.Session.create(
            api_key=settings.STRIPE_SECRET_KEY,
            payment_method_types=['card'],
            line_items=build_line_items(order),
            mode='payment',
            customer_email=user.email,
            metadata={
                'order_id': str(order.pk),
                'user_id': str(user.pk),
            },
            success_url=success_url,
            cancel_url=cancel_url,
        )
    except stripe.StripeError as e:
        logger.exception("Stripe checkout session failed for order %s", order.pk)
        raise PaymentProviderError(str(e)) from e

    logger.info("Stripe checkout session %s created for order %s", session.id, order.pk)
    return session


def construct_event(payload, sig_header):
    """
    Verify the ``Stripe-Signature`` header against the webhook secret and
    return the event as a plain dict. Raises ``ValueError`` for a malformed
    payload and ``stripe.SignatureVerificationError`` for a bad signature.
    """
    stripe.WebhookSignature.verify_header(
        payload, sig_header, settings.STRIPE_WEBHOOK_SECRET,
        tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
    )
    return json.loads(payload)
