"""Shared pytest fixtures for store tests."""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.test import Client

from store.models import Category, Order, Product

from .helpers import make_order

User = get_user_model()


@pytest.fixture
def user(db):
    """Create a customer."""
    return User.objects.create_user(
        email="budi@example.com",
        password="testpass123",
        name="Budi",
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email="sari@example.com",
        password="testpass123",
        name="Sari",
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="admin@example.com",
        password="testpass123",
        name="Admin",
        is_staff=True,
    )


@pytest.fixture
def client():
    """Return a Django test client."""
    return Client()


@pytest.fixture
def user_client(client, user):
    client.force_login(user)
    return client


@pytest.fixture
def admin_client(client, admin_user):
    client.force_login(admin_user)
    return client


@pytest.fixture
def category(db):
    return Category.objects.create(name="Stethoscopes")


@pytest.fixture
def other_category(db):
    return Category.objects.create(name="Masks")


@pytest.fixture
def product_a(db, category):
    return Product.objects.create(
        name="Littmann Classic Stethoscope",
        description="Dual head",
        price=Decimal("10000.00"),
        stock_quantity=10,
        category=category,
    )


@pytest.fixture
def product_b(db, other_category):
    return Product.objects.create(
        name="Surgical Mask Box",
        description="50 pcs",
        price=Decimal("5000.00"),
        stock_quantity=5,
        category=other_category,
    )


@pytest.fixture
def pending_order(user, product_a, product_b):
    return make_order(user, [(product_a, 2), (product_b, 1)])


@pytest.fixture
def paid_order(user, product_a, product_b):
    return make_order(user, [(product_a, 3), (product_b, 1)], status=Order.Status.PAID)
