"""Tests for Stripe payment confirmation.

Covers:
- signature verification on the webhook endpoint
- Pending -> Paid with stock decrement
- idempotency when Stripe redelivers the same event
"""

from unittest import mock

import pytest
from django.core import mail
from django.db import DatabaseError
from django.db.models.query import QuerySet
from django.test import override_settings
from django.urls import reverse

from store.models import Order, Product
from store.orders import confirm_payment, handle_stripe_event

from .helpers import checkout_completed_event, make_order, stripe_signature

SECRET = "whsec_test_secret"


def post_event(client, payload, secret=SECRET, signature=None):
    if signature is None:
        signature = stripe_signature(payload, secret)
    return client.post(
        reverse("stripe_webhook"),
        data=payload,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=signature,
    )


def stock(product):
    return Product.objects.get(pk=product.pk).stock_quantity


def failing_second_stock_update():
    """Patch QuerySet.update so the second Product update raises DatabaseError."""
    original_update = QuerySet.update
    product_updates = []

    def update(self, **kwargs):
        if self.model is Product:
            product_updates.append(kwargs)
            if len(product_updates) == 2:
                raise DatabaseError("disk I/O error")
        return original_update(self, **kwargs)

    return mock.patch.object(QuerySet, "update", update)


class TestWebhookEndpoint:
    def test_completed_event_marks_order_paid_and_reduces_stock(
        self, client, user, pending_order, product_a, product_b
    ):
        payload = checkout_completed_event(pending_order.pk, user.pk, session_id="cs_live_42")

        response = post_event(client, payload)

        assert response.status_code == 200
        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PAID
        assert pending_order.paid_at is not None
        assert pending_order.stripe_session_id == "cs_live_42"
        assert stock(product_a) == 8
        assert stock(product_b) == 4

    def test_redelivered_event_does_not_decrement_twice(
        self, client, user, pending_order, product_a, product_b
    ):
        payload = checkout_completed_event(pending_order.pk, user.pk)

        first = post_event(client, payload)
        second = post_event(client, payload)

        assert first.status_code == 200
        assert second.status_code == 200
        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PAID
        assert stock(product_a) == 8
        assert stock(product_b) == 4

    def test_invalid_signature_is_rejected_without_changes(
        self, client, user, pending_order, product_a
    ):
        payload = checkout_completed_event(pending_order.pk, user.pk)

        response = post_event(client, payload, secret="whsec_wrong")

        assert response.status_code == 400
        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING
        assert stock(product_a) == 10

    def test_missing_signature_is_rejected(self, client, user, pending_order):
        payload = checkout_completed_event(pending_order.pk, user.pk)

        response = client.post(
            reverse("stripe_webhook"), data=payload, content_type="application/json"
        )

        assert response.status_code == 400
        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING

    def test_malformed_payload_is_rejected(self, client, db):
        response = post_event(client, "not json")

        assert response.status_code == 400

    def test_stale_signature_is_rejected(self, client, user, pending_order):
        payload = checkout_completed_event(pending_order.pk, user.pk)
        signature = stripe_signature(payload, SECRET, timestamp=1_000_000)

        response = post_event(client, payload, signature=signature)

        assert response.status_code == 400

    def test_database_failure_returns_500_and_keeps_order_pending(
        self, client, user, pending_order, product_a, product_b
    ):
        payload = checkout_completed_event(pending_order.pk, user.pk)

        with failing_second_stock_update():
            response = post_event(client, payload)

        assert response.status_code == 500
        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING
        assert stock(product_a) == 10
        assert stock(product_b) == 5

        retry = post_event(client, payload)

        assert retry.status_code == 200
        assert stock(product_a) == 8
        assert stock(product_b) == 4

    @override_settings(STRIPE_WEBHOOK_SECRET="")
    def test_unconfigured_secret_is_server_error(self, client, user, pending_order):
        payload = checkout_completed_event(pending_order.pk, user.pk)

        response = post_event(client, payload)

        assert response.status_code == 500

    def test_metadata_user_must_own_order(self, client, other_user, pending_order, product_a):
        payload = checkout_completed_event(pending_order.pk, other_user.pk)

        response = post_event(client, payload)

        assert response.status_code == 200
        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING
        assert stock(product_a) == 10

    def test_other_event_types_are_acknowledged(self, client, db):
        payload = '{"id": "evt_2", "object": "event", "type": "payment_intent.created", "data": {"object": {}}}'

        response = post_event(client, payload)

        assert response.status_code == 200

    def test_webhook_is_csrf_exempt(self, user, pending_order):
        from django.test import Client

        csrf_client = Client(enforce_csrf_checks=True)
        payload = checkout_completed_event(pending_order.pk, user.pk)

        response = post_event(csrf_client, payload)

        assert response.status_code == 200


class TestConfirmPayment:
    def test_scenario_two_lines(self, user, product_a, product_b):
        order = make_order(user, [(product_a, 2), (product_b, 1)])
        assert order.total_amount == 25000
        assert order.items.count() == 2

        assert confirm_payment(order.pk, user.pk) is True

        order.refresh_from_db()
        assert order.status == "Paid"
        assert stock(product_a) == 8
        assert stock(product_b) == 4

    def test_second_confirmation_is_noop(self, user, pending_order, product_a):
        assert confirm_payment(pending_order.pk, user.pk) is True
        assert confirm_payment(pending_order.pk, user.pk) is False
        assert stock(product_a) == 8

    def test_failed_stock_update_rolls_back_everything(
        self, user, pending_order, product_a, product_b, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks() as callbacks:
            with failing_second_stock_update():
                with pytest.raises(DatabaseError):
                    confirm_payment(pending_order.pk, user.pk)

        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING
        assert pending_order.paid_at is None
        assert stock(product_a) == 10
        assert stock(product_b) == 5
        assert callbacks == []

        assert confirm_payment(pending_order.pk, user.pk) is True
        assert stock(product_a) == 8
        assert stock(product_b) == 4

    def test_abandoned_order_is_ignored(self, user, pending_order):
        order_id = pending_order.pk
        pending_order.delete()

        assert confirm_payment(order_id, user.pk) is False

    def test_shipped_order_is_not_reconfirmed(self, user, product_a):
        order = make_order(user, [(product_a, 1)], status=Order.Status.SHIPPED)

        assert confirm_payment(order.pk, user.pk) is False
        order.refresh_from_db()
        assert order.status == Order.Status.SHIPPED
        assert stock(product_a) == 10

    def test_sends_confirmation_emails_after_commit(
        self, user, pending_order, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            confirm_payment(pending_order.pk, user.pk)

        recipients = [m.to for m in mail.outbox]
        assert [user.email] in recipients
        assert ["owner@example.com"] in recipients
        receipt = next(m for m in mail.outbox if m.to == [user.email])
        assert f"#{pending_order.pk}" in receipt.subject
        assert "Rp 25.000" in receipt.body

    def test_no_emails_for_duplicate(self, user, pending_order, django_capture_on_commit_callbacks):
        confirm_payment(pending_order.pk, user.pk)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            confirm_payment(pending_order.pk, user.pk)

        assert callbacks == []


class TestHandleStripeEvent:
    def test_event_without_metadata_is_ignored(self, db):
        event = {
            "id": "evt_3",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "metadata": {}}},
        }

        assert handle_stripe_event(event) is False

    @pytest.mark.parametrize("order_id", ["abc", None])
    def test_garbage_order_id_is_ignored(self, db, user, order_id):
        event = {
            "id": "evt_4",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "metadata": {"order_id": order_id, "user_id": str(user.pk)}}},
        }

        assert handle_stripe_event(event) is False

    @pytest.mark.parametrize("data", [None, {}, {"object": None}])
    def test_envelope_without_session_object_is_ignored(self, db, data):
        event = {"id": "evt_5", "type": "checkout.session.completed", "data": data}

        assert handle_stripe_event(event) is False

    def test_signed_envelope_without_session_object_is_acknowledged(self, client, db):
        payload = '{"id": "evt_6", "object": "event", "type": "checkout.session.completed"}'

        response = post_event(client, payload)

        assert response.status_code == 200
