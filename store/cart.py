from decimal import Decimal


class Cart:
    """
    Shopping cart kept in the request session.

    Lines are stored as ``{"id", "name", "price", "quantity"}`` dicts in
    insertion order. Prices are kept as strings so the session stays JSON
    serialisable.
    """

    SESSION_KEY = 'cart'

    def __init__(self, session):
        self.session = session
        lines = session.get(self.SESSION_KEY)
        if not isinstance(lines, list):
            lines = []
            session[self.SESSION_KEY] = lines
        self.lines = lines

    def __iter__(self):
        for line in self.lines:
            price = Decimal(line['price'])
            yield {
                'id': line['id'],
                'name': line['name'],
                'price': price,
                'quantity': line['quantity'],
                'subtotal': price * line['quantity'],
            }

    def __len__(self):
        return len(self.lines)

    def __contains__(self, product_id):
        return self._find(product_id) is not None

    @property
    def is_empty(self):
        return not self.lines

    @property
    def total(self):
        return sum((line['subtotal'] for line in self), Decimal('0'))

    @property
    def count(self):
        return sum(line['quantity'] for line in self.lines)

    def _find(self, product_id):
        for line in self.lines:
            if str(line['id']) == str(product_id):
                return line
        return None

    def add(self, product, quantity=1):
        if quantity <= 0:
            raise ValueError("quantity must be a positive integer")
        line = self._find(product.pk)
        if line is not None:
            line['quantity'] += quantity
        else:
            self.lines.append({
                'id': product.pk,
                'name': product.name,
                'price': str(product.price),
                'quantity': quantity,
            })
        self.save()

    def remove(self, product_id):
        line = self._find(product_id)
        if line is None:
            return False
        self.lines.remove(line)
        self.save()
        return True

    def clear(self):
        self.lines = []
        self.session[self.SESSION_KEY] = self.lines
        self.save()

    def save(self):
        self.session[self.SESSION_KEY] = self.lines
        self.session.modified = True
