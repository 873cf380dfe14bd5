class StoreError(Exception):
    """Base class for storefront domain errors."""


class EmptyCartError(StoreError):
    """Checkout was attempted with nothing in the cart."""


class PaymentProviderError(StoreError):
    """The payment provider could not be reached or refused the request."""


class UnavailableProductError(StoreError):
    """The cart refers to products that no longer exist."""

    def __init__(self, product_ids):
        self.product_ids = sorted(product_ids)
        super().__init__(f"Products no longer available: {self.product_ids}")
