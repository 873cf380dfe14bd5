from .models import Category, Product

SORT_ORDERING = {
    'newest': ('-created_at', '-id'),
    'price_asc': ('price', 'id'),
    'price_desc': ('-price', '-id'),
}


def catalog_search(q=None, category=None, min_price=None, max_price=None, sort='newest'):
    """
    Products a shopper may browse (in stock, not archived), narrowed by the
    given filters. A filter left as ``None`` does not constrain the result.
    ``category`` is a single id or an iterable of ids.
    """
    products = Product.objects.catalog().select_related('category')

    if q:
        products = products.filter(name__icontains=q)

    if category:
        if isinstance(category, (list, tuple, set)):
            products = products.filter(category_id__in=list(category))
        else:
            products = products.filter(category_id=category)

    if min_price is not None:
        products = products.filter(price__gte=min_price)
    if max_price is not None:
        products = products.filter(price__lte=max_price)

    return products.order_by(*SORT_ORDERING.get(sort or 'newest', SORT_ORDERING['newest']))


def all_categories():
    return Category.objects.order_by('name')
