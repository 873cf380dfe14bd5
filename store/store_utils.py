# store/store_utils.py
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.utils import numberformat


def get_cart_count(request):
    """
    Returns the total item count in the session cart.
    """
    cart = request.session.get('cart', []) or []
    return sum(int(line.get('quantity', 0)) for line in cart)


def format_currency(value):
    """
    Format a money amount with thousands separators, e.g. ``Rp 1.250.000``.
    Cents are only shown when the amount has any.
    """
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        amount = Decimal('0')

    decimal_pos = 0 if amount == amount.to_integral_value() else 2
    number = numberformat.format(
        amount,
        decimal_sep=',',
        decimal_pos=decimal_pos,
        grouping=3,
        thousand_sep='.',
        force_grouping=True,
    )
    return f"{settings.CURRENCY_SYMBOL} {number}"
