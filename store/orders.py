"""
Order lifecycle.

    (none)  --checkout-->         Pending
    Pending --payment webhook-->  Paid
    Pending --cancel callback-->  (deleted with its items)
    Paid    --admin ships-->      Shipped
    Paid    --customer cancels--> Cancelled_By_User (stock restored)

Every transition is a conditional UPDATE on the current status, so a
transition that has already happened (or can no longer happen) matches no
row and is a no-op. That is what makes webhook redelivery safe.
"""
import logging
from functools import partial

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from . import emails, payments
from .exceptions import EmptyCartError, PaymentProviderError, UnavailableProductError
from .models import Order, OrderItem, Product

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = 'checkout.session.completed'


# -------------------------------
# CHECKOUT
# -------------------------------
def place_order(user, cart):
    """Persist the cart as a Pending order with price snapshots."""
    if cart.is_empty:
        raise EmptyCartError("Your cart is empty.")

    wanted = {line['id'] for line in cart}
    missing = wanted - set(Product.objects.filter(pk__in=wanted).values_list('pk', flat=True))
    if missing:
        raise UnavailableProductError(missing)

    with transaction.atomic():
        order = Order.objects.create(
            user=user,
            total_amount=cart.total,
            status=Order.Status.PENDING,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product_id=line['id'],
                quantity=line['quantity'],
                price_at_purchase=line['price'],
            )
            for line in cart
        ])

    logger.info("Order %s placed by user %s (%s lines, total %s)",
                order.pk, user.pk, len(cart), order.total_amount)
    return order


def start_checkout(user, cart):
    """
    Place the order first so the webhook has something to reconcile, then
    open the provider's checkout session. Returns ``(order, session)``.
    """
    order = place_order(user, cart)
    try:
        session = payments.create_checkout_session(order, user)
    except PaymentProviderError:
        order.delete()
        logger.info("Order %s removed after checkout session failure", order.pk)
        raise

    Order.objects.filter(pk=order.pk).update(stripe_session_id=session.id)
    order.stripe_session_id = session.id
    return order, session


# -------------------------------
# PAYMENT CONFIRMATION
# -------------------------------
def confirm_payment(order_id, user_id, session_id=None):
    """
    Mark the order Paid and take its items out of stock, in one
    transaction. Returns False when the order is unknown, belongs to
    someone else, or was already confirmed.
    """
    now = timezone.now()
    changes = {'status': Order.Status.PAID, 'paid_at': now, 'updated_at': now}
    if session_id:
        changes['stripe_session_id'] = session_id

    with transaction.atomic():
        updated = Order.objects.filter(
            pk=order_id,
            user_id=user_id,
            status=Order.Status.PENDING,
        ).update(**changes)

        if not updated:
            logger.warning("[Webhook %s] No pending order for user %s; nothing to confirm",
                           order_id, user_id)
            return False

        logger.info("[Webhook %s] Order marked as paid", order_id)

        items = OrderItem.objects.filter(order_id=order_id).values_list('product_id', 'quantity')
        for product_id, quantity in items:
            Product.objects.filter(pk=product_id).update(
                stock_quantity=F('stock_quantity') - quantity
            )
            logger.debug("[Webhook %s] Stock of product %s reduced by %s",
                         order_id, product_id, quantity)

        transaction.on_commit(partial(emails.send_order_confirmation, order_id))
        transaction.on_commit(partial(emails.notify_admins_of_payment, order_id))

    logger.info("[Webhook %s] Stock updated for %s items", order_id, len(items))
    return True


def handle_stripe_event(event):
    """Apply a verified Stripe event. Returns True if it changed anything."""
    if event.get('type') != CHECKOUT_COMPLETED:
        logger.debug("Ignoring Stripe event %s", event.get('type'))
        return False

    session = (event.get('data') or {}).get('object') or {}
    metadata = session.get('metadata') or {}
    try:
        order_id = int(metadata['order_id'])
        user_id = int(metadata['user_id'])
    except (KeyError, TypeError, ValueError):
        logger.warning("Stripe event %s carries no usable order metadata", event.get('id'))
        return False

    return confirm_payment(order_id, user_id, session_id=session.get('id'))


# -------------------------------
# CANCELLATION / FULFILMENT
# -------------------------------
def abandon_order(order_id, user):
    """
    Drop an order the customer walked away from at checkout. Only a Pending
    order owned by ``user`` is removed.
    """
    with transaction.atomic():
        order = (
            Order.objects.select_for_update()
            .filter(pk=order_id, user=user, status=Order.Status.PENDING)
            .first()
        )
        if order is None:
            return False
        order.items.all().delete()
        order.delete()

    logger.info("Abandoned order %s removed", order_id)
    return True


def cancel_order(order_id, user):
    """Customer cancellation of a Paid order; puts the stock back."""
    with transaction.atomic():
        updated = Order.objects.filter(
            pk=order_id,
            user=user,
            status=Order.Status.PAID,
        ).update(status=Order.Status.CANCELLED_BY_USER, updated_at=timezone.now())

        if not updated:
            return False

        items = OrderItem.objects.filter(order_id=order_id).values_list('product_id', 'quantity')
        for product_id, quantity in items:
            Product.objects.filter(pk=product_id).update(
                stock_quantity=F('stock_quantity') + quantity
            )

    logger.info("Order %s cancelled by user %s, stock restored", order_id, user.pk)
    return True


def ship_order(order_id):
    updated = Order.objects.filter(
        pk=order_id,
        status=Order.Status.PAID,
    ).update(status=Order.Status.SHIPPED, updated_at=timezone.now())
    if updated:
        logger.info("Order %s shipped", order_id)
    return bool(updated)
