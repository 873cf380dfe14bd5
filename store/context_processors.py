from django.conf import settings

from .store_utils import get_cart_count


def storefront_context(request):
    """Cart badge and Stripe publishable key for every template."""
    return {
        'cart_count': get_cart_count(request) if hasattr(request, 'session') else 0,
        'stripe_public_key': settings.STRIPE_PUBLISHABLE_KEY,
    }
