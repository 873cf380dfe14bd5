"""Store back-office: products, categories and order fulfilment."""
import logging

from django.contrib import messages
from django.http import HttpResponse
from django.shortcuts import render, redirect
from django.views.decorators.http import require_POST

from .decorators import admin_required
from .forms import CategoryForm, ProductForm
from .models import Category, Order, Product
from .orders import ship_order

logger = logging.getLogger(__name__)


# -------------------------------
# Products
# -------------------------------
@admin_required
def product_list(request):
    products = Product.objects.select_related('category').order_by('-id')
    return render(request, 'store/admin/products.html', {'products': products})


@admin_required
def product_new(request):
    form = ProductForm(request.POST or None, request.FILES or None)
    if request.method == 'POST' and form.is_valid():
        product = form.save()
        logger.info("Product %s created by %s", product.pk, request.user.pk)
        return redirect('admin_products')
    return render(request, 'store/admin/product_form.html', {
        'title': 'New product',
        'form': form,
        'product': None,
    })


@admin_required
def product_edit(request, pk):
    product = Product.objects.filter(pk=pk).first()
    if product is None:
        return HttpResponse("Product not found.", status=404)

    form = ProductForm(request.POST or None, request.FILES or None, instance=product)
    if request.method == 'POST' and form.is_valid():
        form.save()
        logger.info("Product %s updated by %s", product.pk, request.user.pk)
        return redirect('admin_products')
    return render(request, 'store/admin/product_form.html', {
        'title': 'Edit product',
        'form': form,
        'product': product,
    })


@admin_required
@require_POST
def product_archive(request, pk):
    Product.objects.filter(pk=pk).update(is_archived=True)
    return redirect('admin_products')


@admin_required
@require_POST
def product_restore(request, pk):
    Product.objects.filter(pk=pk).update(is_archived=False)
    return redirect('admin_products')


# -------------------------------
# Categories
# -------------------------------
@admin_required
def category_list(request):
    form = CategoryForm(request.POST or None)
    if request.method == 'POST' and form.is_valid():
        form.save()
        messages.success(request, "Category added.")
        return redirect('admin_categories')
    return render(request, 'store/admin/categories.html', {
        'categories': Category.objects.order_by('name'),
        'form': form,
    })


# -------------------------------
# Orders
# -------------------------------
@admin_required
def order_list(request):
    orders = Order.objects.select_related('user').order_by('-created_at')
    return render(request, 'store/admin/orders.html', {'orders': orders})


@admin_required
@require_POST
def order_ship(request, pk):
    if not ship_order(pk):
        messages.info(request, f"Order #{pk} is not paid, so it was not shipped.")
    return redirect('admin_orders')
