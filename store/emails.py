import logging

from anymail.message import AnymailMessage
from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

from .models import Order
from .store_utils import format_currency

logger = logging.getLogger(__name__)


def admin_recipients():
    """
    ADMIN_NOTIFICATION_EMAILS as a clean, de-duplicated list. Falls back to
    DEFAULT_FROM_EMAIL when nothing usable is configured.
    """
    raw_admins = getattr(settings, "ADMIN_NOTIFICATION_EMAILS", None)
    if isinstance(raw_admins, str):
        recipient_list = [e.strip() for e in raw_admins.split(",") if e.strip()]
    elif isinstance(raw_admins, (list, tuple)):
        recipient_list = [e.strip() for e in raw_admins if e and e.strip()]
    else:
        recipient_list = []

    if not recipient_list:
        recipient_list = [settings.DEFAULT_FROM_EMAIL]

    seen = set()
    clean_recipients = []
    for r in recipient_list:
        low = r.lower()
        if low not in seen:
            clean_recipients.append(r)
            seen.add(low)
    return clean_recipients


def send_order_confirmation(order_id):
    """Mail the customer a receipt for a paid order."""
    try:
        o = Order.objects.select_related('user').get(pk=order_id)
        if not o.user.email:
            return

        ctx = {
            "order": o,
            "items": o.items.select_related('product'),
            "name": o.user.name or "Customer",
            "site_url": settings.SITE_URL,
        }

        plain = render_to_string("store/emails/order_confirmation.txt", ctx)
        html = render_to_string("store/emails/order_confirmation.html", ctx)

        msg = AnymailMessage(
            subject=f"Order confirmation #{o.id}",
            body=plain,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[o.user.email],
        )
        msg.attach_alternative(html, "text/html")
        msg.send()
        logger.info("Order confirmation sent for order %s", order_id)

    except Exception:
        logger.exception("Order confirmation send failed for order %s", order_id)


def notify_admins_of_payment(order_id):
    try:
        order = Order.objects.select_related('user').get(pk=order_id)
        recipient_list = admin_recipients()
        logger.info("Sending admin payment notification for order %s to %s", order.id, recipient_list)
        send_mail(
            subject=f"New paid order - Order #{order.id}",
            message=(
                f"A payment has been confirmed.\n\n"
                f"Order ID: {order.id}\n"
                f"Customer: {order.user.name} <{order.user.email}>\n"
                f"Total: {format_currency(order.total_amount)}\n"
                f"---\n"
                f"Ship it from the back-office: {settings.SITE_URL}/admin/orders/"
            ),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=recipient_list,
            fail_silently=False,
        )
    except Exception:
        logger.exception("Admin notification failed for order %s", order_id)
