"""Builders shared by the store tests."""

import hashlib
import hmac
import json
import time
from decimal import Decimal

from store.models import Order, OrderItem


def make_order(user, lines, status=Order.Status.PENDING):
    """``lines`` is a list of ``(product, quantity)``."""
    total = sum((p.price * q for p, q in lines), Decimal("0"))
    order = Order.objects.create(user=user, total_amount=total, status=status)
    for product, quantity in lines:
        OrderItem.objects.create(
            order=order,
            product=product,
            quantity=quantity,
            price_at_purchase=product.price,
        )
    return order


def set_cart(client, lines):
    """Put ``(product, quantity)`` lines straight into the client's session cart."""
    session = client.session
    session["cart"] = [
        {"id": p.pk, "name": p.name, "price": str(p.price), "quantity": q}
        for p, q in lines
    ]
    session.save()


def stripe_signature(payload, secret, timestamp=None):
    """Build a ``Stripe-Signature`` header the way Stripe signs webhooks."""
    timestamp = timestamp or int(time.time())
    signed_payload = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_completed_event(order_id, user_id, event_id="evt_test_1", session_id="cs_test_1"):
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "metadata": {"order_id": str(order_id), "user_id": str(user_id)},
            }
        },
    })
