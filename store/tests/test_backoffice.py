"""Tests for the store back-office views."""

from decimal import Decimal

import pytest
from django.urls import reverse

from store.models import Category, Order, Product


@pytest.mark.parametrize("url_name,args", [
    ("admin_products", []),
    ("admin_product_new", []),
    ("admin_categories", []),
    ("admin_orders", []),
])
class TestAccessControl:
    def test_anonymous_is_redirected_home(self, client, db, url_name, args):
        response = client.get(reverse(url_name, args=args))

        assert response.status_code == 302
        assert response["Location"] == reverse("home")

    def test_customer_is_redirected_home(self, user_client, url_name, args):
        response = user_client.get(reverse(url_name, args=args))

        assert response.status_code == 302
        assert response["Location"] == reverse("home")

    def test_admin_gets_page(self, admin_client, url_name, args):
        response = admin_client.get(reverse(url_name, args=args))

        assert response.status_code == 200


class TestProducts:
    def test_list_includes_archived(self, admin_client, product_a):
        Product.objects.filter(pk=product_a.pk).update(is_archived=True)

        response = admin_client.get(reverse("admin_products"))

        assert list(response.context["products"]) == [Product.objects.get(pk=product_a.pk)]
        assert "Archived" in response.content.decode()

    def test_create_product(self, admin_client, category):
        response = admin_client.post(reverse("admin_product_new"), {
            "name": "Digital Thermometer",
            "description": "Fast read",
            "price": "45000",
            "stock_quantity": "12",
            "category": category.pk,
        })

        assert response.status_code == 302
        product = Product.objects.get(name="Digital Thermometer")
        assert product.price == Decimal("45000")
        assert product.stock_quantity == 12
        assert product.category == category
        assert not product.is_archived

    def test_create_product_without_category(self, admin_client, db):
        response = admin_client.post(reverse("admin_product_new"), {
            "name": "Bandage", "description": "", "price": "2000", "stock_quantity": "3",
        })

        assert response.status_code == 302
        assert Product.objects.get(name="Bandage").category is None

    def test_negative_stock_is_rejected(self, admin_client, db):
        response = admin_client.post(reverse("admin_product_new"), {
            "name": "Bandage", "description": "", "price": "2000", "stock_quantity": "-1",
        })

        assert response.status_code == 200
        assert not Product.objects.filter(name="Bandage").exists()

    def test_edit_product(self, admin_client, product_a, other_category):
        response = admin_client.post(reverse("admin_product_edit", args=[product_a.pk]), {
            "name": product_a.name,
            "description": "Updated",
            "price": "12000",
            "stock_quantity": "7",
            "category": other_category.pk,
        })

        assert response.status_code == 302
        product_a.refresh_from_db()
        assert product_a.price == Decimal("12000")
        assert product_a.stock_quantity == 7
        assert product_a.category == other_category

    def test_edit_missing_product(self, admin_client, db):
        response = admin_client.get(reverse("admin_product_edit", args=[9999]))

        assert response.status_code == 404

    def test_archive_and_restore(self, admin_client, product_a):
        admin_client.post(reverse("admin_product_archive", args=[product_a.pk]))
        product_a.refresh_from_db()
        assert product_a.is_archived
        assert Product.objects.filter(pk=product_a.pk).exists()

        admin_client.post(reverse("admin_product_restore", args=[product_a.pk]))
        product_a.refresh_from_db()
        assert not product_a.is_archived

    def test_customer_cannot_archive(self, user_client, product_a):
        user_client.post(reverse("admin_product_archive", args=[product_a.pk]))

        product_a.refresh_from_db()
        assert not product_a.is_archived


class TestCategories:
    def test_create_category(self, admin_client, db):
        response = admin_client.post(reverse("admin_categories"), {"name": "Gloves"})

        assert response.status_code == 302
        assert Category.objects.filter(name="Gloves").exists()

    def test_product_form_offers_categories(self, admin_client, category, other_category):
        response = admin_client.get(reverse("admin_product_new"))

        choices = list(response.context["form"].fields["category"].queryset)
        assert choices == [other_category, category]


class TestOrders:
    def test_list_joins_customer_name(self, admin_client, paid_order, user):
        response = admin_client.get(reverse("admin_orders"))

        assert list(response.context["orders"]) == [paid_order]
        assert user.name in response.content.decode()

    def test_ship_paid_order(self, admin_client, paid_order):
        response = admin_client.post(reverse("admin_order_ship", args=[paid_order.pk]))

        assert response.status_code == 302
        paid_order.refresh_from_db()
        assert paid_order.status == Order.Status.SHIPPED

    def test_ship_pending_order_is_noop(self, admin_client, pending_order):
        admin_client.post(reverse("admin_order_ship", args=[pending_order.pk]))

        pending_order.refresh_from_db()
        assert pending_order.status == Order.Status.PENDING

    def test_customer_cannot_ship(self, user_client, paid_order):
        user_client.post(reverse("admin_order_ship", args=[paid_order.pk]))

        paid_order.refresh_from_db()
        assert paid_order.status == Order.Status.PAID
